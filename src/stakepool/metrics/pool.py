"""Prometheus collectors for pool accounting.

Gauges (labeled by pool):
- pool_total_pooled_asset, pool_total_shares, pool_exchange_rate

Counters:
- pool_deposits_total{pool}, pool_deposited_asset_total{pool}
- pool_withdrawals_total{pool}, pool_withdrawn_asset_total{pool}
- pool_rewards_injected_total{pool}
- pool_operations_rejected_total{pool,operation,reason}
"""
from __future__ import annotations

from typing import Optional
import os
from prometheus_client import Counter, Gauge, REGISTRY

_total_pooled_asset: Optional[Gauge] = None
_total_shares: Optional[Gauge] = None
_exchange_rate: Optional[Gauge] = None
_deposits_total: Optional[Counter] = None
_deposited_asset_total: Optional[Counter] = None
_withdrawals_total: Optional[Counter] = None
_withdrawn_asset_total: Optional[Counter] = None
_rewards_injected_total: Optional[Counter] = None
_operations_rejected_total: Optional[Counter] = None


class _NoOp:
    def labels(self, *args, **kwargs):
        return self
    def inc(self, *args, **kwargs):
        return None
    def set(self, *args, **kwargs):
        return None


def _existing_collector(name: str, kind):
    # Counters register without their "_total" suffix
    names = {name, name[: -len("_total")] if name.endswith("_total") else name}
    for coll in list(getattr(REGISTRY, "_collector_to_names", {}).keys()):
        if isinstance(coll, kind) and getattr(coll, "_name", None) in names:
            return coll
    return None


def _safe_counter(name: str, doc: str, labelnames):
    if os.getenv("DISABLE_PROMETHEUS", "0") == "1":
        return _NoOp()
    try:
        return Counter(name, doc, labelnames)
    except ValueError:
        # Already registered (module reloaded or imported under two names)
        coll = _existing_collector(name, Counter)
        return coll if coll is not None else _NoOp()


def _safe_gauge_labels(name: str, doc: str, labelnames):
    if os.getenv("DISABLE_PROMETHEUS", "0") == "1":
        return _NoOp()
    try:
        return Gauge(name, doc, labelnames)
    except ValueError:
        coll = _existing_collector(name, Gauge)
        return coll if coll is not None else _NoOp()


def get_total_pooled_asset_gauge():
    global _total_pooled_asset
    if _total_pooled_asset is None:
        _total_pooled_asset = _safe_gauge_labels("pool_total_pooled_asset", "Base asset held by the pool", ["pool"])
    return _total_pooled_asset


def get_total_shares_gauge():
    global _total_shares
    if _total_shares is None:
        _total_shares = _safe_gauge_labels("pool_total_shares", "Shares issued by the pool", ["pool"])
    return _total_shares


def get_exchange_rate_gauge():
    global _exchange_rate
    if _exchange_rate is None:
        _exchange_rate = _safe_gauge_labels("pool_exchange_rate", "Pooled asset per share", ["pool"])
    return _exchange_rate


def get_deposits_total():
    global _deposits_total
    if _deposits_total is None:
        _deposits_total = _safe_counter("pool_deposits_total", "Deposits accepted", ["pool"])
    return _deposits_total


def get_deposited_asset_total():
    global _deposited_asset_total
    if _deposited_asset_total is None:
        _deposited_asset_total = _safe_counter("pool_deposited_asset_total", "Base asset deposited", ["pool"])
    return _deposited_asset_total


def get_withdrawals_total():
    global _withdrawals_total
    if _withdrawals_total is None:
        _withdrawals_total = _safe_counter("pool_withdrawals_total", "Withdrawals completed", ["pool"])
    return _withdrawals_total


def get_withdrawn_asset_total():
    global _withdrawn_asset_total
    if _withdrawn_asset_total is None:
        _withdrawn_asset_total = _safe_counter("pool_withdrawn_asset_total", "Base asset released", ["pool"])
    return _withdrawn_asset_total


def get_rewards_injected_total():
    global _rewards_injected_total
    if _rewards_injected_total is None:
        _rewards_injected_total = _safe_counter("pool_rewards_injected_total", "Rewards injected", ["pool"])
    return _rewards_injected_total


def get_operations_rejected_total():
    global _operations_rejected_total
    if _operations_rejected_total is None:
        _operations_rejected_total = _safe_counter(
            "pool_operations_rejected_total", "Pool calls rejected", ["pool", "operation", "reason"]
        )
    return _operations_rejected_total


def set_pool_gauges(pool: str, total_pooled_asset: int, total_shares: int) -> None:
    """Refresh the per-pool state gauges after a committed call."""
    try:
        rate = (total_pooled_asset / total_shares) if total_shares else 1.0
        get_total_pooled_asset_gauge().labels(pool=pool).set(total_pooled_asset)
        get_total_shares_gauge().labels(pool=pool).set(total_shares)
        get_exchange_rate_gauge().labels(pool=pool).set(rate)
    except (OverflowError, ValueError):
        # totals beyond float range are not exported
        pass


def inc_safe(counter, *labels, amount: int = 1) -> None:
    """Increment a labeled counter, ignoring amounts a float cannot hold."""
    try:
        counter.labels(*labels).inc(amount)
    except (OverflowError, ValueError):
        pass
