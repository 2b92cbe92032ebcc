from __future__ import annotations

from typing import Dict, List

from .errors import AlreadyExists, NotFound


class ValidatorRegistry:
    """Deduplicated list of validator addresses.

    Removal swaps the last entry into the freed slot, so order is not
    preserved.
    """

    def __init__(self) -> None:
        self.validators: List[str] = []
        self.is_validator: Dict[str, bool] = {}

    def add(self, addr: str) -> None:
        if self.is_validator.get(addr, False):
            raise AlreadyExists(f"validator {addr} already registered")
        self.validators.append(addr)
        self.is_validator[addr] = True

    def remove(self, addr: str) -> None:
        if not self.is_validator.get(addr, False):
            raise NotFound(f"validator {addr} not registered")
        idx = self.validators.index(addr)
        last = len(self.validators) - 1
        if idx != last:
            self.validators[idx] = self.validators[last]
        self.validators.pop()
        del self.is_validator[addr]

    def count(self) -> int:
        return len(self.validators)

    def snapshot(self) -> List[str]:
        return list(self.validators)

    def restore(self, validators: List[str]) -> None:
        self.validators = list(validators)
        self.is_validator = {v: True for v in self.validators}
