from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterator, List, Optional
import logging
import time

from ..events.schema import (
    BaseEvent,
    EventEnvelope,
    OperationRejected,
    RewardsInjected,
    Submitted,
    ValidatorAdded,
    ValidatorRemoved,
    Withdrawal,
)
from ..events.bus import publish as publish_event
from ..metrics.pool import (
    get_deposits_total,
    get_deposited_asset_total,
    get_withdrawals_total,
    get_withdrawn_asset_total,
    get_rewards_injected_total,
    get_operations_rejected_total,
    set_pool_gauges,
    inc_safe,
)
from .assets import AssetVault
from .errors import (
    EmptyPool,
    InsufficientBalance,
    PoolError,
    TransferFailed,
    ZeroDeposit,
    ZeroRewards,
    ZeroSharesToBurn,
    ZeroSharesToMint,
    ZeroWithdrawal,
)
from .guard import NonReentrant
from .model import PoolState, new_id
from .registry import ValidatorRegistry
from .shares import asset_to_shares, require_uint, shares_to_asset
from .token import ShareToken

if TYPE_CHECKING:
    from ..access import Ownership

log = logging.getLogger("stakepool.pool")


class PoolLedger:
    """Pooled-asset ledger: depositors hold shares, balances are derived.

    A holder's asset balance is never stored; it is recomputed from shares
    at the current `total_pooled_asset / total_shares` rate on every read,
    so injected rewards raise every balance without touching any shares.

    Every mutating call is atomic: pool state, token units, vault balances,
    validators and ownership are restored on any failure, and events are
    published only after the outermost call commits.
    """

    def __init__(
        self,
        name: str,
        access: Ownership,
        token: Optional[ShareToken] = None,
        vault: Optional[AssetVault] = None,
        publisher: Optional[Callable[[EventEnvelope], None]] = None,
    ):
        self.name = name
        self.access = access
        self.state = PoolState()
        self.token = token if token is not None else ShareToken()
        self.vault = vault if vault is not None else AssetVault()
        self.registry = ValidatorRegistry()
        self.events: List[BaseEvent] = []
        self._publish = publisher if publisher is not None else publish_event
        self._guard = NonReentrant()
        self._sequence = 0
        self._pending: Optional[List[BaseEvent]] = None
        # Metrics
        self._deposits = get_deposits_total()
        self._deposited_asset = get_deposited_asset_total()
        self._withdrawals = get_withdrawals_total()
        self._withdrawn_asset = get_withdrawn_asset_total()
        self._rewards = get_rewards_injected_total()
        self._rejected = get_operations_rejected_total()
        set_pool_gauges(self.name, 0, 0)

    # ---- views ----

    @property
    def total_pooled_asset(self) -> int:
        return self.state.total_pooled_asset

    @property
    def total_shares(self) -> int:
        return self.state.total_shares

    def convert_asset_to_shares(self, amount: int) -> int:
        return asset_to_shares(amount, self.state.total_pooled_asset, self.state.total_shares)

    def convert_shares_to_asset(self, shares: int) -> int:
        return shares_to_asset(shares, self.state.total_pooled_asset, self.state.total_shares)

    get_shares_by_pooled_asset = convert_asset_to_shares
    get_pooled_asset_by_shares = convert_shares_to_asset

    def shares_of(self, holder: str) -> int:
        return self.state.shares_of(holder)

    def balance_of(self, holder: str) -> int:
        return self.convert_shares_to_asset(self.state.shares_of(holder))

    def total_supply(self) -> int:
        # Token supply is reported in asset terms, never as a share count
        return self.state.total_pooled_asset

    def get_validator_count(self) -> int:
        return self.registry.count()

    def exchange_rate(self) -> float:
        if self.state.total_shares == 0:
            return 1.0
        return self.state.total_pooled_asset / self.state.total_shares

    def snapshot(self) -> Dict[str, Any]:
        snap = self.state.snapshot()
        snap["validators"] = self.registry.snapshot()
        return snap

    # ---- mutating surface ----

    def deposit(self, sender: str, amount: int, referral: Optional[str] = None) -> int:
        """Add `amount` of base asset for `sender` and mint the matching shares."""
        with self._atomic("deposit", sender) as pending, self._guard("deposit"):
            require_uint(amount)
            if amount == 0:
                raise ZeroDeposit("deposit amount must be positive")
            shares = self.convert_asset_to_shares(amount)
            if shares == 0:
                raise ZeroSharesToMint(
                    f"deposit of {amount} is worth zero shares "
                    f"(pooled={self.state.total_pooled_asset}, shares={self.state.total_shares})"
                )
            self.vault.receive(amount)
            self.state.total_pooled_asset += amount
            self.state.total_shares += shares
            self.state.shares[sender] = self.state.shares_of(sender) + shares
            self.token.mint(sender, shares)
            pending.append(
                Submitted(
                    ts=_now_ms(), pool=self.name, sender=sender, amount=amount,
                    referral=referral, shares=shares,
                )
            )
            inc_safe(self._deposits, self.name)
            inc_safe(self._deposited_asset, self.name, amount=amount)
            log.info("deposit sender=%s amount=%d shares=%d referral=%s", sender, amount, shares, referral)
            return shares

    def receive(self, sender: str, amount: int) -> int:
        """Bare asset transfer into the pool; same as a deposit without referral."""
        return self.deposit(sender, amount, None)

    def withdraw(self, sender: str, asset_amount: int) -> None:
        """Burn the shares worth `asset_amount` and release that asset to `sender`.

        The transfer runs after all bookkeeping is committed to `state`; if
        it fails (or anything it calls raises) the whole call is rolled back.
        """
        with self._atomic("withdraw", sender) as pending, self._guard("withdraw"):
            require_uint(asset_amount, "asset_amount")
            if asset_amount == 0:
                raise ZeroWithdrawal("withdrawal amount must be positive")
            balance = self.balance_of(sender)
            if balance < asset_amount:
                raise InsufficientBalance(
                    f"{sender} can redeem {balance}, requested {asset_amount}"
                )
            to_burn = self.convert_asset_to_shares(asset_amount)
            if to_burn == 0:
                raise ZeroSharesToBurn(
                    f"withdrawal of {asset_amount} burns zero shares "
                    f"(pooled={self.state.total_pooled_asset}, shares={self.state.total_shares})"
                )
            self.state.shares[sender] = self.state.shares_of(sender) - to_burn
            self.state.total_shares -= to_burn
            self.state.total_pooled_asset -= asset_amount
            self.token.burn(sender, to_burn)

            try:
                ok = self.vault.send(sender, asset_amount)
            except Exception as e:
                raise TransferFailed(f"transfer of {asset_amount} to {sender} raised: {e}") from e
            if not ok:
                raise TransferFailed(f"transfer of {asset_amount} to {sender} was refused")

            pending.append(
                Withdrawal(ts=_now_ms(), pool=self.name, recipient=sender, amount=asset_amount, shares=to_burn)
            )
            inc_safe(self._withdrawals, self.name)
            inc_safe(self._withdrawn_asset, self.name, amount=asset_amount)
            log.info("withdraw recipient=%s amount=%d shares_burned=%d", sender, asset_amount, to_burn)

    def inject_rewards(self, caller: str, amount: int) -> None:
        """Raise `total_pooled_asset` without issuing shares (administrator only)."""
        with self._atomic("inject_rewards", caller) as pending, self._guard("inject_rewards"):
            self.access.require_admin(caller)
            require_uint(amount)
            if amount == 0:
                raise ZeroRewards("reward amount must be positive")
            if self.state.total_shares == 0:
                raise EmptyPool("cannot inject rewards into a pool with no shares")
            self.vault.receive(amount)
            self.state.total_pooled_asset += amount
            pending.append(
                RewardsInjected(
                    ts=_now_ms(), pool=self.name, amount=amount,
                    total_pooled_asset=self.state.total_pooled_asset,
                    total_shares=self.state.total_shares,
                )
            )
            inc_safe(self._rewards, self.name, amount=amount)
            log.info(
                "rewards injected amount=%d pooled=%d shares=%d",
                amount, self.state.total_pooled_asset, self.state.total_shares,
            )

    def add_validator(self, caller: str, addr: str) -> None:
        with self._atomic("add_validator", caller) as pending:
            self.access.require_admin(caller)
            self.registry.add(addr)
            pending.append(ValidatorAdded(ts=_now_ms(), pool=self.name, validator=addr))

    def remove_validator(self, caller: str, addr: str) -> None:
        with self._atomic("remove_validator", caller) as pending:
            self.access.require_admin(caller)
            self.registry.remove(addr)
            pending.append(ValidatorRemoved(ts=_now_ms(), pool=self.name, validator=addr))

    # ---- internals ----

    @contextmanager
    def _atomic(self, operation: str, account: str) -> Iterator[List[BaseEvent]]:
        pool_snap = self.state.snapshot()
        token_snap = self.token.snapshot()
        vault_snap = self.vault.snapshot()
        validators_snap = self.registry.snapshot()
        owner_snap = self.access.owner
        # nested regions (calls made from a transfer hook) share the outermost
        # region's pending list and commit only when it does
        outermost = self._pending is None
        if outermost:
            self._pending = []
        pending = self._pending
        mark = len(pending)
        try:
            yield pending
        except BaseException as e:
            del pending[mark:]
            self.state.restore(pool_snap)
            self.token.restore(token_snap)
            self.vault.restore(vault_snap)
            self.registry.restore(validators_snap)
            self.access.owner = owner_snap
            if outermost:
                self._pending = None
            if isinstance(e, PoolError):
                self._reject(operation, account, e)
            raise
        if not outermost:
            return
        self._pending = None
        self.events.extend(pending)
        set_pool_gauges(self.name, self.state.total_pooled_asset, self.state.total_shares)
        for evt in pending:
            self._emit(evt, operation)

    def _reject(self, operation: str, account: str, err: PoolError) -> None:
        self._rejected.labels(self.name, operation, err.reason).inc()
        log.warning("%s rejected account=%s reason=%s: %s", operation, account, err.reason, err)
        evt = OperationRejected(
            ts=_now_ms(), pool=self.name, operation=operation, account=account, reason=err.reason,
        )
        self._emit(evt, operation)

    def _emit(self, evt: BaseEvent, operation: str) -> None:
        self._sequence += 1
        env = EventEnvelope(
            correlation_id=f"{self.name}:{operation}:{new_id()}",
            sequence=self._sequence,
            event=evt,
        )
        try:
            self._publish(env)
        except Exception:
            log.exception("failed to publish %s event", evt.event_type)


def _now_ms() -> int:
    return int(time.time() * 1000)
