from __future__ import annotations


class PoolError(Exception):
    """Base error for pool ledger failures.

    `reason` is a stable snake_case tag used for metric labels and
    rejection events.
    """

    reason = "pool_error"


class InvalidAmount(PoolError, ValueError):
    reason = "invalid_amount"


class ZeroDeposit(PoolError):
    reason = "zero_deposit"


class ZeroWithdrawal(PoolError):
    reason = "zero_withdrawal"


class ZeroRewards(PoolError):
    reason = "zero_rewards"


class InsufficientBalance(PoolError):
    reason = "insufficient_balance"


class ZeroSharesToBurn(PoolError):
    """Withdrawal amount is dust at the current rate."""

    reason = "zero_shares_to_burn"


class ZeroSharesToMint(PoolError):
    """Deposit amount is dust at the current rate."""

    reason = "zero_shares_to_mint"


class Unauthorized(PoolError):
    reason = "unauthorized"


class AlreadyExists(PoolError):
    reason = "already_exists"


class NotFound(PoolError):
    reason = "not_found"


class TransferFailed(PoolError):
    reason = "transfer_failed"


class ReentrantCall(PoolError):
    reason = "reentrant_call"


class EmptyPool(PoolError):
    """Rewards injected while no shares exist to receive them."""

    reason = "empty_pool"
