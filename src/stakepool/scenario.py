"""Scripted replay of pool operations.

A scenario is a list of step mappings, for example::

    - {op: deposit, sender: "0xalice", amount: 100, referral: "0xref"}
    - {op: inject_rewards, caller: "0xadmin", amount: 50}
    - {op: withdraw, sender: "0xalice", amount: 150}

A failing step is recorded with its error reason and replay continues;
each failure is already atomic, so later steps see the pre-step state.
"""
from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List
import logging

from .pool.errors import PoolError
from .pool.ledger import PoolLedger
from .pool.model import StepResult

log = logging.getLogger("stakepool.scenario")

OPS = ("deposit", "receive", "withdraw", "inject_rewards", "add_validator", "remove_validator")


def _who(step: Dict[str, Any]) -> str:
    return str(step.get("sender") or step.get("caller") or "")


def run_step(ledger: PoolLedger, step: Dict[str, Any]):
    op = step.get("op")
    who = _who(step)
    if op == "deposit":
        return ledger.deposit(who, step.get("amount"), step.get("referral"))
    if op == "receive":
        return ledger.receive(who, step.get("amount"))
    if op == "withdraw":
        return ledger.withdraw(who, step.get("amount"))
    if op == "inject_rewards":
        return ledger.inject_rewards(who, step.get("amount"))
    if op == "add_validator":
        return ledger.add_validator(who, str(step["validator"]))
    if op == "remove_validator":
        return ledger.remove_validator(who, str(step["validator"]))
    raise ValueError(f"Unknown scenario op: {op!r} (expected one of {', '.join(OPS)})")


def replay(ledger: PoolLedger, steps: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    results: List[Dict[str, Any]] = []
    for i, step in enumerate(steps):
        op = str(step.get("op"))
        who = _who(step)
        raw = step.get("amount")
        # malformed amounts reach the ledger untouched and are rejected there
        amount = raw if isinstance(raw, int) and not isinstance(raw, bool) else None
        try:
            out = run_step(ledger, step)
            res = StepResult(
                step=i, op=op, account=who, ok=True, amount=amount,
                total_pooled_asset=ledger.total_pooled_asset,
                total_shares=ledger.total_shares,
                result=out if isinstance(out, int) else None,
            )
        except PoolError as e:
            res = StepResult(
                step=i, op=op, account=who, ok=False, amount=amount,
                total_pooled_asset=ledger.total_pooled_asset,
                total_shares=ledger.total_shares,
                error=e.reason,
            )
        log.info("step %d %s ok=%s", i, op, res.ok)
        results.append(asdict(res))
    return results
