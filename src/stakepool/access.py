"""Administrator capability for pool operations.

A single owner address holds the capability. The ledger only asks the
boolean question `is_admin(caller)`; `require_admin` turns a negative
answer into `Unauthorized`.
"""
from __future__ import annotations

import logging

from .pool.errors import Unauthorized

log = logging.getLogger("stakepool.access")


class Ownership:
    def __init__(self, owner: str):
        if not owner:
            raise ValueError("owner address must be non-empty")
        self.owner = owner

    def is_admin(self, caller: str) -> bool:
        return bool(caller) and caller == self.owner

    def require_admin(self, caller: str) -> None:
        if not self.is_admin(caller):
            raise Unauthorized(f"{caller!r} is not the pool administrator")

    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        self.require_admin(caller)
        if not new_owner:
            raise ValueError("new owner address must be non-empty")
        log.info("ownership transferred from %s to %s", self.owner, new_owner)
        self.owner = new_owner
