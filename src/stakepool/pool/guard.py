"""Re-entrancy guard for the pool's mutating entry points.

A plain entered-flag: the ledger is driven by a single logical stream of
calls, so the only way to observe the flag set is a callback re-entering
the pool while a call is in flight (for example from the recipient hook
of a withdrawal transfer).
"""
from __future__ import annotations

from typing import Optional

from .errors import ReentrantCall


class NonReentrant:
    def __init__(self) -> None:
        self._entered = False
        self._operation: Optional[str] = None

    @property
    def entered(self) -> bool:
        return self._entered

    def __call__(self, operation: str) -> "NonReentrant":
        if self._entered:
            raise ReentrantCall(f"{operation} called while {self._operation} is in progress")
        self._operation = operation
        return self

    def __enter__(self) -> "NonReentrant":
        self._entered = True
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self._entered = False
        self._operation = None
        return False
