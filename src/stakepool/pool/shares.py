"""Share/asset conversion arithmetic.

All amounts are non-negative integers in the smallest unit of the base
asset. Both directions truncate toward zero, so any rounding error stays
in the pool and never in the caller's favour.
"""

from __future__ import annotations

from .errors import InvalidAmount


def require_uint(value: int, name: str = "amount") -> int:
    """Return `value` if it is a non-negative int, else raise InvalidAmount."""
    # bool is an int subclass; True/False are never valid amounts
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidAmount(f"{name} must be an integer, got {type(value).__name__}")
    if value < 0:
        raise InvalidAmount(f"{name} must be non-negative, got {value}")
    return value


def asset_to_shares(amount: int, total_pooled_asset: int, total_shares: int) -> int:
    """Shares worth `amount` of asset at the current rate.

    An empty pool converts 1:1.
    """
    require_uint(amount)
    if total_pooled_asset == 0:
        return amount
    return amount * total_shares // total_pooled_asset


def shares_to_asset(shares: int, total_pooled_asset: int, total_shares: int) -> int:
    """Asset redeemable for `shares` at the current rate (0 when nothing is issued)."""
    require_uint(shares, "shares")
    if total_shares == 0:
        return 0
    return shares * total_pooled_asset // total_shares
