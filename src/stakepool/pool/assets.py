"""Base-asset custody for a pool.

`AssetVault` is the in-process stand-in for the host's native asset: it
holds the pool's balance, keeps a wallet balance per external account and
delivers outgoing transfers. A recipient may register a receive hook,
which runs synchronously inside `send`, exactly where a real transfer
would hand control to foreign code.
"""
from __future__ import annotations

import logging
from typing import Callable, Dict

from .shares import require_uint

ReceiveHook = Callable[[str, int], None]

log = logging.getLogger("stakepool.pool")


class AssetVault:
    def __init__(self) -> None:
        self.held = 0
        self.wallets: Dict[str, int] = {}
        self._hooks: Dict[str, ReceiveHook] = {}

    def on_receive(self, account: str, hook: ReceiveHook) -> None:
        """Register a callback run when `account` receives a transfer."""
        self._hooks[account] = hook

    def clear_hook(self, account: str) -> None:
        self._hooks.pop(account, None)

    def wallet_of(self, account: str) -> int:
        return self.wallets.get(account, 0)

    def receive(self, amount: int) -> None:
        self.held += require_uint(amount)

    def send(self, recipient: str, amount: int) -> bool:
        """Release `amount` to `recipient`; False when the vault cannot cover it.

        Exceptions raised by the recipient hook propagate to the caller.
        """
        require_uint(amount)
        if amount > self.held:
            log.warning("vault short: held=%d requested=%d", self.held, amount)
            return False
        self.held -= amount
        self.wallets[recipient] = self.wallets.get(recipient, 0) + amount
        hook = self._hooks.get(recipient)
        if hook is not None:
            hook(recipient, amount)
        return True

    def snapshot(self) -> Dict[str, object]:
        return {"held": self.held, "wallets": dict(self.wallets)}

    def restore(self, snap: Dict[str, object]) -> None:
        self.held = int(snap["held"])  # type: ignore[arg-type]
        self.wallets = dict(snap["wallets"])  # type: ignore[arg-type]
