from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional
import uuid


def new_id() -> str:
    return uuid.uuid4().hex


@dataclass
class PoolState:
    """Aggregate counters and per-holder shares owned by one pool.

    Invariant: `total_pooled_asset` and `total_shares` are both zero or
    both positive, and `total_shares == sum(shares.values())`.
    """

    total_pooled_asset: int = 0
    total_shares: int = 0
    shares: Dict[str, int] = field(default_factory=dict)

    def shares_of(self, holder: str) -> int:
        return self.shares.get(holder, 0)

    def snapshot(self) -> Dict[str, Any]:
        return {
            "total_pooled_asset": self.total_pooled_asset,
            "total_shares": self.total_shares,
            "shares": dict(self.shares),
        }

    def restore(self, snap: Dict[str, Any]) -> None:
        self.total_pooled_asset = int(snap["total_pooled_asset"])
        self.total_shares = int(snap["total_shares"])
        self.shares = dict(snap["shares"])


@dataclass
class StepResult:
    """Outcome of one replayed scenario step."""

    step: int
    op: str
    account: str
    ok: bool
    total_pooled_asset: int
    total_shares: int
    amount: Optional[int] = None
    result: Optional[int] = None
    error: Optional[str] = None
