"""
Ledger event emitters.

SignalEventEmitter is the default: every event is logged on the
'ledgerman' logger with its fields as structured extra, then sent as a
Django signal. Broken receivers are logged and never reach the ledger.

The ledger hands events over through MovementStore.on_commit(), so an
emitter only ever hears about writes that were committed.
"""

import logging
from typing import Any

from ledgerman import signals
from ledgerman.protocols.events import DEDUCTION_COMPLETED, MOVEMENT_CREATED, REVERSAL_COMPLETED

logger = logging.getLogger('ledgerman')

SIGNALS = {
    MOVEMENT_CREATED: signals.movement_created,
    DEDUCTION_COMPLETED: signals.deduction_completed,
    REVERSAL_COMPLETED: signals.reversal_completed,
}


class LoggingEventEmitter:
    """Events as log records only."""

    def emit(self, event: str, **fields: Any) -> None:
        level = logging.WARNING if fields.get('error_count') else logging.INFO
        logger.log(level, event, extra=fields)


class SignalEventEmitter(LoggingEventEmitter):
    """Events as log records and Django signals."""

    def emit(self, event: str, **fields: Any) -> None:
        super().emit(event, **fields)

        signal = SIGNALS.get(event)
        if signal is None:
            return

        for receiver, response in signal.send_robust(sender=self.__class__, **fields):
            if isinstance(response, Exception):
                logger.warning(
                    "ledger.event.receiver_failed",
                    extra={"event": event, "receiver": repr(receiver), "error": str(response)},
                )


class CollectingEventEmitter:
    """Keeps events in memory. Handy in tests and dry runs."""

    def __init__(self):
        self.events: list[tuple[str, dict[str, Any]]] = []

    def emit(self, event: str, **fields: Any) -> None:
        self.events.append((event, fields))

    def names(self) -> list[str]:
        return [name for name, _ in self.events]
