"""
Main entrypoint for stakepool.

What it does:
- Loads runtime settings from `config/config.yaml` (path overridable with
  `STAKEPOOL_CONFIG`) and the `STAKEPOOL_OWNER` environment variable.
- Starts the Prometheus metrics exporter (`PROMETHEUS_PORT` overrides the config).
- Builds the pool ledger with its share token and configured validators.
- When `SCENARIO_PATH` is set, replays that scenario against the pool, journals
  every step and logs the resulting state snapshot.

Where it is used:
- Invoked by `python -m stakepool.main` or the `stakepool` console script.
"""
import json
import logging
import os
import time

from .config.loader import build_pool, load_scenario, load_settings
from .logs.journal import append_jsonl, log_pool_event
from .metrics.core import start_server_safe
from .scenario import replay


def main() -> None:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    settings = load_settings(os.getenv("STAKEPOOL_CONFIG", "config/config.yaml"))
    logging.info(f"Pool: {settings.pool.name}, owner: {settings.pool.owner}")

    prom_port = int(os.getenv("PROMETHEUS_PORT", str(settings.metrics.port)))
    start_server_safe(prom_port)

    ledger = build_pool(settings)
    logging.info(f"Validators registered: {ledger.get_validator_count()}")

    scenario_path = os.getenv("SCENARIO_PATH", "")
    if scenario_path:
        steps = load_scenario(scenario_path)
        results = replay(ledger, steps)
        for res in results:
            log_pool_event(
                res["op"], ledger.name, account=res["account"], amount=res["amount"],
                extra={"ok": res["ok"], "error": res["error"]},
            )
            if settings.journal.path:
                append_jsonl(settings.journal.path, dict(res, ts=int(time.time() * 1000), pool=ledger.name))
        failed = sum(1 for r in results if not r["ok"])
        logging.info(f"Scenario replayed: {len(results)} steps, {failed} rejected")

    logging.info(json.dumps(ledger.snapshot(), separators=(",", ":"), sort_keys=True))


if __name__ == "__main__":
    main()
