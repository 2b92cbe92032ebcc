from __future__ import annotations

from typing import Literal, Optional, Union
from pydantic import BaseModel


# ---- Base + envelope ----

class BaseEvent(BaseModel):
    event_type: str
    ts: int
    pool: str


class EventEnvelope(BaseModel):
    schema_version: str = "v1"
    correlation_id: str
    sequence: int = 0
    event: BaseEvent


# ---- Event types ----

class Submitted(BaseEvent):
    event_type: Literal["submitted"] = "submitted"
    sender: str
    amount: int
    referral: Optional[str] = None
    shares: int


class Withdrawal(BaseEvent):
    event_type: Literal["withdrawal"] = "withdrawal"
    recipient: str
    amount: int
    shares: int


class RewardsInjected(BaseEvent):
    event_type: Literal["rewards_injected"] = "rewards_injected"
    amount: int
    total_pooled_asset: int
    total_shares: int


class ValidatorAdded(BaseEvent):
    event_type: Literal["validator_added"] = "validator_added"
    validator: str


class ValidatorRemoved(BaseEvent):
    event_type: Literal["validator_removed"] = "validator_removed"
    validator: str


class OperationRejected(BaseEvent):
    event_type: Literal["operation_rejected"] = "operation_rejected"
    operation: str
    account: str
    reason: str


AnyEvent = Union[
    Submitted,
    Withdrawal,
    RewardsInjected,
    ValidatorAdded,
    ValidatorRemoved,
    OperationRejected,
]
