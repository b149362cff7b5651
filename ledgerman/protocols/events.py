"""
Event Emission Protocol — structured notifications out of the ledger.

Event names:
    ledger.movement.created     one per persisted movement
    ledger.deduction.completed  one per deduction run (counts, duration_ms)
    ledger.reversal.completed   one per reversal run (counts, duration_ms)
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

MOVEMENT_CREATED = "ledger.movement.created"
DEDUCTION_COMPLETED = "ledger.deduction.completed"
REVERSAL_COMPLETED = "ledger.reversal.completed"


@runtime_checkable
class EventEmitter(Protocol):
    """Receives ledger events. Implementations must not raise."""

    def emit(self, event: str, **fields: Any) -> None:
        ...
