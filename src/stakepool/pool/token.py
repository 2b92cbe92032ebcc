from __future__ import annotations

from typing import Dict

from .errors import InsufficientBalance
from .shares import require_uint


class ShareToken:
    """In-memory token-unit sink mirroring the pool's share bookkeeping.

    The pool mints and burns exactly the shares delta of each call, so
    `units_of(h)` always equals the pool's `shares_of(h)`.
    """

    def __init__(self, name: str = "Staked Pool Share", symbol: str = "stPOOL"):
        self.name = name
        self.symbol = symbol
        self._units: Dict[str, int] = {}
        self.total_units = 0

    def units_of(self, holder: str) -> int:
        return self._units.get(holder, 0)

    def mint(self, to: str, units: int) -> None:
        require_uint(units, "units")
        self._units[to] = self._units.get(to, 0) + units
        self.total_units += units

    def burn(self, holder: str, units: int) -> None:
        require_uint(units, "units")
        held = self._units.get(holder, 0)
        if units > held:
            raise InsufficientBalance(f"cannot burn {units} units from {holder}: holds {held}")
        self._units[holder] = held - units
        self.total_units -= units

    def snapshot(self) -> Dict[str, int]:
        return dict(self._units)

    def restore(self, snap: Dict[str, int]) -> None:
        self._units = dict(snap)
        self.total_units = sum(self._units.values())
