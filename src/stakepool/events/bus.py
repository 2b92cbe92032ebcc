from __future__ import annotations

import json
import os
import logging

import redis

from .schema import EventEnvelope
from .metrics import get_events_total, get_events_dlq_total


STREAM_EVENTS = os.getenv("EVENTS_STREAM", "stakepool.events")
STREAM_DLQ = os.getenv("EVENTS_DLQ", "stakepool.dlq")
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

log = logging.getLogger("stakepool.events")


def _get_redis():
    return redis.Redis.from_url(REDIS_URL, decode_responses=True, socket_connect_timeout=0.5)


def to_json_line(env: EventEnvelope) -> str:
    return json.dumps({
        "schema_version": env.schema_version,
        "correlation_id": env.correlation_id,
        "sequence": env.sequence,
        "event": env.event.model_dump(),
    }, separators=(",", ":"))


def publish(env: EventEnvelope) -> None:
    """Publish an event to Redis Streams and log it as a single JSON line.

    Never raises: an unreachable Redis must not fail a committed ledger call.
    """
    try:
        get_events_total().labels(env.event.event_type).inc()
    except Exception:
        pass

    line = to_json_line(env)
    try:
        r = _get_redis()
        r.xadd(STREAM_EVENTS, {"json": line})
    except Exception:
        try:
            get_events_dlq_total().inc()
            r = _get_redis()
            r.xadd(STREAM_DLQ, {"json": line})
        except Exception:
            pass
    # Always log for Loki ingestion
    try:
        log.info(line)
    except Exception:
        pass


def ensure_group(group: str) -> None:
    try:
        r = _get_redis()
        r.xgroup_create(name=STREAM_EVENTS, groupname=group, id="$", mkstream=True)
    except Exception as e:
        if "BUSYGROUP" in str(e):
            return
        raise


def consume(group: str, consumer: str, block_ms: int = 15000):
    """Generator yielding (id, json_str) from the events stream consumer group.

    Yields None when a read times out. Caller is responsible for XACK.
    """
    r = _get_redis()
    ensure_group(group)
    while True:
        resp = r.xreadgroup(group, consumer, {STREAM_EVENTS: ">"}, count=100, block=block_ms)
        if not resp:
            yield None
            continue
        # resp is list[(stream, [(id, {field:value}), ...])]
        for _stream, entries in resp:
            for msg_id, fields in entries:
                yield (msg_id, fields.get("json", ""))
