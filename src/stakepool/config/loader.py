"""
Configuration loader for stakepool.

What it does:
- Reads static settings from `config/config.yaml`.
- Lets the `STAKEPOOL_OWNER` environment variable override `pool.owner`, so the
  administrator address can be injected per deployment.
- Validates the resulting configuration using Pydantic models.

Where it is used:
- Called by `stakepool.main` to build a `Settings` object, then `build_pool`
  turns it into a ready `PoolLedger`.
"""

import os
import yaml
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, field_validator

from ..access import Ownership
from ..pool.ledger import PoolLedger
from ..pool.token import ShareToken


class PoolConfig(BaseModel):
    """Identity of the pool, its administrator and its share token."""
    name: str = "stakepool"
    owner: str
    token_name: str = "Staked Pool Share"
    token_symbol: str = "stPOOL"
    validators: List[str] = Field(default_factory=list)

    @field_validator("owner")
    @classmethod
    def not_empty(cls, v, info):
        if not v:
            raise ValueError(f"Missing required pool setting: {info.field_name}")
        return v

    @field_validator("validators")
    @classmethod
    def unique(cls, v):
        seen = set()
        for addr in v:
            if addr in seen:
                raise ValueError(f"Duplicate validator in config: {addr}")
            seen.add(addr)
        return v


class MetricsConfig(BaseModel):
    port: int = 8000


class JournalConfig(BaseModel):
    path: Optional[str] = None


class Settings(BaseModel):
    """Runtime settings assembled from YAML + environment variables."""
    pool: PoolConfig
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
    journal: JournalConfig = Field(default_factory=JournalConfig)


def load_settings(path: str = "config/config.yaml") -> Settings:
    """Load YAML config, apply env overrides, and return Settings."""
    with open(path, "r") as f:
        config = yaml.safe_load(f) or {}
    pool = dict(config.get("pool") or {})
    owner = os.getenv("STAKEPOOL_OWNER", "")
    if owner:
        pool["owner"] = owner
    if not pool.get("owner"):
        raise ValueError("Missing pool owner. Set pool.owner in config or STAKEPOOL_OWNER")
    return Settings(
        pool=PoolConfig(**pool),
        metrics=MetricsConfig(**(config.get("metrics") or {})),
        journal=JournalConfig(**(config.get("journal") or {})),
    )


def build_pool(settings: Settings, publisher=None) -> PoolLedger:
    """Construct a PoolLedger with ownership, share token and configured validators."""
    cfg = settings.pool
    ledger = PoolLedger(
        name=cfg.name,
        access=Ownership(cfg.owner),
        token=ShareToken(name=cfg.token_name, symbol=cfg.token_symbol),
        publisher=publisher,
    )
    for addr in cfg.validators:
        ledger.add_validator(cfg.owner, addr)
    return ledger


def load_scenario(path: str) -> List[Dict[str, Any]]:
    """Load a YAML scenario: a list of step mappings, or a mapping with a `steps` list."""
    with open(path, "r") as f:
        data = yaml.safe_load(f) or []
    if isinstance(data, dict):
        data = data.get("steps") or []
    if not isinstance(data, list):
        raise ValueError(f"Scenario {path} must be a list of steps")
    return data
