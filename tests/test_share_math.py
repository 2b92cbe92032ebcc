import pytest

from src.stakepool.pool.errors import InvalidAmount
from src.stakepool.pool.shares import asset_to_shares, require_uint, shares_to_asset


@pytest.mark.parametrize("amount", [1, 7, 100, 10**18])
def test_empty_pool_converts_one_to_one(amount):
    assert asset_to_shares(amount, 0, 0) == amount


def test_empty_pool_shares_are_worth_nothing():
    assert shares_to_asset(5, 0, 0) == 0


def test_conversions_truncate_toward_pool():
    # rate 1.5 asset per share
    assert asset_to_shares(1, 150, 100) == 0
    assert asset_to_shares(3, 150, 100) == 2
    assert shares_to_asset(1, 150, 100) == 1
    assert shares_to_asset(3, 150, 100) == 4


@pytest.mark.parametrize("pooled,shares", [(150, 100), (1000, 999), (7, 3), (10**18 + 1, 10**18)])
def test_round_trip_never_exceeds_input(pooled, shares):
    for a in range(0, 60):
        assert shares_to_asset(asset_to_shares(a, pooled, shares), pooled, shares) <= a


def test_asset_to_shares_is_monotonic():
    prev = 0
    for a in range(0, 500):
        cur = asset_to_shares(a, 997, 401)
        assert cur >= prev
        prev = cur


@pytest.mark.parametrize("bad", [-1, 1.5, True, "3", None])
def test_require_uint_rejects_non_amounts(bad):
    with pytest.raises(InvalidAmount):
        require_uint(bad)


def test_require_uint_accepts_zero():
    assert require_uint(0) == 0
