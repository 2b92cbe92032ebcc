import json
import logging

from src.stakepool.logs.journal import append_jsonl, log_pool_event, validate_record


def _record(**over):
    rec = {
        "ts": 1700000000000, "pool": "journal-pool", "step": 0, "op": "deposit",
        "ok": True, "total_pooled_asset": 100, "total_shares": 100,
    }
    rec.update(over)
    return rec


def test_append_jsonl_writes_one_line_per_record(tmp_path):
    path = tmp_path / "nested" / "journal.jsonl"
    assert append_jsonl(str(path), _record())
    assert append_jsonl(str(path), _record(step=1, op="withdraw"))
    lines = path.read_text().splitlines()
    assert [json.loads(line)["op"] for line in lines] == ["deposit", "withdraw"]


def test_append_jsonl_skips_incomplete_records(tmp_path):
    path = tmp_path / "journal.jsonl"
    rec = _record()
    del rec["total_shares"]
    assert validate_record(rec) == ["total_shares"]
    assert append_jsonl(str(path), rec) is False
    assert not path.exists()


def test_log_pool_event_emits_json(caplog):
    with caplog.at_level(logging.INFO, logger="stakepool.journal"):
        log_pool_event("deposit", "journal-pool", account="0xalice", amount=5, ts=1)
    payload = json.loads(caplog.records[-1].getMessage())
    assert payload["event"] == "deposit"
    assert payload["amount"] == 5
    assert payload["component"] == "pool"
