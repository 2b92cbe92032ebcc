from __future__ import annotations

import json
import os
from typing import Any, Dict, List, Optional
import logging
import time

from ..metrics.pool import _safe_counter


_appends = None
_errors = None


def _get_append_counters():
    global _appends, _errors
    if _appends is None:
        _appends = _safe_counter("journal_appends_total", "Journal records appended", ["pool"])
        _errors = _safe_counter("journal_errors_total", "Journal write errors", ["reason", "pool"])
    return _appends, _errors


REQUIRED_KEYS = {
    "ts", "pool", "step", "op", "ok", "total_pooled_asset", "total_shares",
}


def validate_record(rec: Dict[str, Any]) -> List[str]:
    return sorted(k for k in REQUIRED_KEYS if k not in rec)


def append_jsonl(path: str, rec: Dict[str, Any]) -> bool:
    """Append one record as a JSON line; returns False if it was not written."""
    pool = str(rec.get("pool", "unknown"))
    app, err = _get_append_counters()
    missing = validate_record(rec)
    if missing:
        err.labels("missing_fields", pool).inc()
        logging.getLogger("stakepool.journal").warning("journal record missing %s", ",".join(missing))
        return False
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    try:
        with open(path, "a", encoding="utf-8") as f:
            f.write(json.dumps(rec, ensure_ascii=False) + "\n")
    except OSError:
        err.labels("io_error", pool).inc()
        logging.getLogger("stakepool.journal").exception("journal write failed: %s", path)
        return False
    app.labels(pool).inc()
    return True


def log_pool_event(
    event: str,
    pool: str,
    account: Optional[str] = None,
    amount: Optional[int] = None,
    ts: Optional[int] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> None:
    """Emit a structured JSON log line for pool observability.

    Keys: event, pool, account, amount, ts, severity, component, schema_version
    """
    logger = logging.getLogger("stakepool.journal")
    payload: Dict[str, Any] = {
        "event": str(event),
        "pool": str(pool),
        "account": account,
        "amount": int(amount) if amount is not None else None,
        "ts": int(ts if ts is not None else int(time.time() * 1000)),
        "severity": "INFO",
        "component": "pool",
        "schema_version": "v1",
    }
    if extra:
        payload["extra"] = extra
    logger.info(json.dumps(payload, separators=(",", ":")))
