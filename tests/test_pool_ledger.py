import pytest

from src.stakepool.access import Ownership
from src.stakepool.events.schema import OperationRejected, Submitted, Withdrawal
from src.stakepool.pool.errors import (
    EmptyPool,
    InsufficientBalance,
    InvalidAmount,
    TransferFailed,
    Unauthorized,
    ZeroDeposit,
    ZeroRewards,
    ZeroSharesToBurn,
    ZeroSharesToMint,
    ZeroWithdrawal,
)
from src.stakepool.pool.ledger import PoolLedger

ADMIN = "0xadmin"
ALICE = "0xalice"
BOB = "0xbob"


def make_pool(name: str = "test-pool"):
    published = []
    return PoolLedger(name, Ownership(ADMIN), publisher=published.append), published


def assert_consistent(led: PoolLedger):
    assert led.total_supply() == led.total_pooled_asset
    assert sum(led.state.shares.values()) == led.total_shares
    assert led.token.total_units == led.total_shares
    for holder, shares in led.state.shares.items():
        assert led.token.units_of(holder) == shares
    assert (led.total_pooled_asset == 0) == (led.total_shares == 0)


def test_first_deposit_mints_one_to_one():
    led, _ = make_pool()
    assert led.convert_asset_to_shares(100) == 100
    assert led.deposit(ALICE, 100) == 100
    assert led.shares_of(ALICE) == 100
    assert led.balance_of(ALICE) == 100
    assert led.total_supply() == 100
    assert led.token.units_of(ALICE) == 100
    assert_consistent(led)


def test_reward_injection_raises_balances_then_full_exit():
    led, _ = make_pool()
    led.deposit(ALICE, 100)
    led.inject_rewards(ADMIN, 50)
    assert led.total_pooled_asset == 150
    assert led.total_shares == 100
    assert led.balance_of(ALICE) == 150
    assert led.shares_of(ALICE) == 100
    assert_consistent(led)

    led.withdraw(ALICE, 150)
    assert led.shares_of(ALICE) == 0
    assert led.total_pooled_asset == 0
    assert led.total_shares == 0
    assert led.vault.wallet_of(ALICE) == 150
    assert led.vault.held == 0
    assert_consistent(led)


def test_two_depositors_share_rewards_equally():
    led, _ = make_pool()
    led.deposit(ALICE, 100)
    led.deposit(BOB, 100)
    assert led.shares_of(ALICE) == led.shares_of(BOB) == 100
    led.inject_rewards(ADMIN, 100)
    assert led.balance_of(ALICE) == 150
    assert led.balance_of(BOB) == 150
    assert_consistent(led)


def test_rewards_strictly_increase_holder_balance():
    led, _ = make_pool()
    led.deposit(ALICE, 100)
    led.deposit(BOB, 300)
    before = led.balance_of(ALICE)
    led.inject_rewards(ADMIN, 40)
    assert led.balance_of(ALICE) == 110 > before
    assert led.balance_of(BOB) == 330


def test_partial_withdraw_after_rewards_burns_floor_shares():
    led, _ = make_pool()
    led.deposit(ALICE, 100)
    led.deposit(BOB, 100)
    led.inject_rewards(ADMIN, 100)
    led.withdraw(ALICE, 100)
    # 100 * 200 // 300 == 66 shares burned
    assert led.shares_of(ALICE) == 34
    assert led.total_shares == 134
    assert led.total_pooled_asset == 200
    assert led.balance_of(BOB) == 149
    assert led.balance_of(ALICE) + led.balance_of(BOB) <= led.total_pooled_asset
    assert_consistent(led)


def test_deposit_after_rewards_uses_current_rate():
    led, _ = make_pool()
    led.deposit(ALICE, 100)
    led.inject_rewards(ADMIN, 50)
    assert led.deposit(BOB, 3) == 2
    assert led.total_pooled_asset == 153
    assert led.total_shares == 102
    assert led.balance_of(BOB) == 3
    assert_consistent(led)


def test_receive_is_deposit_without_referral():
    led, published = make_pool()
    assert led.receive(ALICE, 40) == 40
    evt = led.events[-1]
    assert isinstance(evt, Submitted)
    assert (evt.sender, evt.amount, evt.referral) == (ALICE, 40, None)
    assert published[-1].event == evt


def test_deposit_records_referral_and_sequence():
    led, published = make_pool()
    led.deposit(ALICE, 10, referral="0xref")
    led.deposit(BOB, 20)
    assert [e.referral for e in led.events] == ["0xref", None]
    assert [env.sequence for env in published] == [1, 2]
    assert all(env.correlation_id.startswith("test-pool:deposit:") for env in published)


def test_withdraw_emits_withdrawal_record():
    led, _ = make_pool()
    led.deposit(ALICE, 100)
    led.withdraw(ALICE, 60)
    evt = led.events[-1]
    assert isinstance(evt, Withdrawal)
    assert (evt.recipient, evt.amount, evt.shares) == (ALICE, 60, 60)


def test_zero_deposit_rejected():
    led, published = make_pool()
    with pytest.raises(ZeroDeposit):
        led.deposit(ALICE, 0)
    assert led.total_pooled_asset == 0
    assert led.events == []
    rejected = published[-1].event
    assert isinstance(rejected, OperationRejected)
    assert (rejected.operation, rejected.account, rejected.reason) == ("deposit", ALICE, "zero_deposit")


def test_negative_or_fractional_amounts_rejected():
    led, _ = make_pool()
    with pytest.raises(InvalidAmount):
        led.deposit(ALICE, -5)
    with pytest.raises(InvalidAmount):
        led.withdraw(ALICE, 1.5)
    assert_consistent(led)


def test_dust_deposit_rejected_when_pool_not_empty():
    led, _ = make_pool()
    led.deposit(ALICE, 100)
    led.inject_rewards(ADMIN, 50)
    with pytest.raises(ZeroSharesToMint):
        led.deposit(BOB, 1)
    assert led.shares_of(BOB) == 0
    assert led.total_pooled_asset == 150
    assert led.vault.held == 150
    assert_consistent(led)


def test_zero_only_for_dust_never_for_bootstrap():
    led, _ = make_pool()
    for amount in range(1, 200):
        assert led.convert_asset_to_shares(amount) == amount
    led.deposit(ALICE, 100)
    led.inject_rewards(ADMIN, 250)
    pooled, shares = led.total_pooled_asset, led.total_shares
    for amount in range(1, 200):
        converted = led.convert_asset_to_shares(amount)
        assert (converted == 0) == (amount * shares < pooled)


def test_dust_withdrawal_rejected_even_with_balance():
    led, _ = make_pool()
    led.deposit(ALICE, 100)
    led.inject_rewards(ADMIN, 50)
    led.deposit(BOB, 3)
    assert led.balance_of(BOB) >= 1
    with pytest.raises(ZeroSharesToBurn):
        led.withdraw(BOB, 1)
    assert led.shares_of(BOB) == 2
    assert led.vault.wallet_of(BOB) == 0
    assert_consistent(led)


def test_withdraw_more_than_balance_rejected():
    led, _ = make_pool()
    led.deposit(ALICE, 100)
    with pytest.raises(InsufficientBalance):
        led.withdraw(ALICE, 101)
    with pytest.raises(InsufficientBalance):
        led.withdraw(BOB, 1)
    with pytest.raises(ZeroWithdrawal):
        led.withdraw(ALICE, 0)
    assert led.shares_of(ALICE) == 100


def test_failed_transfer_rolls_back_everything():
    led, _ = make_pool()
    led.deposit(ALICE, 100)
    led.vault.held = 10
    with pytest.raises(TransferFailed):
        led.withdraw(ALICE, 50)
    assert led.shares_of(ALICE) == 100
    assert led.total_shares == 100
    assert led.total_pooled_asset == 100
    assert led.token.units_of(ALICE) == 100
    assert led.vault.held == 10
    assert led.vault.wallet_of(ALICE) == 0
    assert not any(isinstance(e, Withdrawal) for e in led.events)


def test_inject_rewards_requires_admin_and_positive_amount():
    led, _ = make_pool()
    led.deposit(ALICE, 100)
    with pytest.raises(Unauthorized):
        led.inject_rewards(ALICE, 10)
    with pytest.raises(ZeroRewards):
        led.inject_rewards(ADMIN, 0)
    assert led.total_pooled_asset == 100


def test_inject_rewards_into_empty_pool_rejected():
    led, _ = make_pool()
    with pytest.raises(EmptyPool):
        led.inject_rewards(ADMIN, 10)
    assert led.total_pooled_asset == 0
    assert_consistent(led)


def test_snapshot_exposes_persisted_surface():
    led, _ = make_pool()
    led.deposit(ALICE, 100)
    led.add_validator(ADMIN, "0xv1")
    snap = led.snapshot()
    assert snap == {
        "total_pooled_asset": 100,
        "total_shares": 100,
        "shares": {ALICE: 100},
        "validators": ["0xv1"],
    }
    assert led.exchange_rate() == 1.0


def test_supply_matches_pooled_asset_through_mixed_sequence():
    led, _ = make_pool()
    ops = [
        lambda: led.deposit(ALICE, 1_000),
        lambda: led.deposit(BOB, 333),
        lambda: led.inject_rewards(ADMIN, 77),
        lambda: led.withdraw(ALICE, 500),
        lambda: led.deposit(ALICE, 19),
        lambda: led.inject_rewards(ADMIN, 5),
        lambda: led.withdraw(BOB, led.balance_of(BOB)),
    ]
    for op in ops:
        op()
        assert_consistent(led)


def test_dust_errors_report_integer_totals_for_huge_rates():
    led, _ = make_pool()
    led.deposit(ALICE, 1)
    led.inject_rewards(ADMIN, 10**400)
    with pytest.raises(ZeroSharesToMint) as excinfo:
        led.deposit(BOB, 10**399)
    assert f"pooled={10**400 + 1}" in str(excinfo.value)
    with pytest.raises(ZeroSharesToBurn):
        led.withdraw(ALICE, 10**399)
