"""
Reversal orchestrator — undoes a cancelled sale with compensating movements.

Flow:
    NOT_STARTED → CHECKING_ALREADY_REVERSED → SHORT_CIRCUITED
                                            → LOCATING_ORIGINALS → NO_ORIGINALS
                                                                 → REVERSING → DONE

Every stock-affecting movement under the transaction number gets one
RETURN movement under CANCEL-<transaction number>. Originals are never
touched. Blend usage statistics are not rolled back. A claimed run whose
reversals all failed releases the claim so it can be retried.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from typing import Any

from ledgerman.exceptions import LedgerError, StoreUnavailable
from ledgerman.models.claim import ClaimKind
from ledgerman.protocols.events import REVERSAL_COMPLETED, EventEmitter
from ledgerman.protocols.stores import MovementStore
from ledgerman.services.guard import IdempotencyGuard, reversal_reference
from ledgerman.services.movements import MovementRecorder

logger = logging.getLogger('ledgerman')


class ReversalState(str, Enum):
    NOT_STARTED = "not_started"
    CHECKING_ALREADY_REVERSED = "checking_already_reversed"
    SHORT_CIRCUITED = "short_circuited"
    LOCATING_ORIGINALS = "locating_originals"
    NO_ORIGINALS = "no_originals"
    REVERSING = "reversing"
    DONE = "done"


@dataclass
class InventoryReversalResult:
    success: bool = True
    reversed_movements: list = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    original_movement_count: int = 0
    reversed_count: int = 0
    state: ReversalState = ReversalState.NOT_STARTED

    def as_dict(self) -> dict[str, Any]:
        return {
            'success': self.success,
            'reversed_movements': [m.id for m in self.reversed_movements],
            'errors': list(self.errors),
            'warnings': list(self.warnings),
            'original_movement_count': self.original_movement_count,
            'reversed_count': self.reversed_count,
        }


class ReversalOrchestrator:

    def __init__(self, movements: MovementStore, guard: IdempotencyGuard,
                 recorder: MovementRecorder, events: EventEmitter):
        self.movements = movements
        self.guard = guard
        self.recorder = recorder
        self.events = events

    def reverse(self, transaction_number: str, actor: str) -> InventoryReversalResult:
        """Restore the stock deducted for transaction_number."""
        started = time.monotonic()
        transaction_number = str(transaction_number)
        reference = reversal_reference(transaction_number)
        result = InventoryReversalResult()

        result.state = ReversalState.CHECKING_ALREADY_REVERSED
        already = self.guard.existing_reversals(transaction_number)
        if already:
            return self._already_reversed(result, transaction_number, len(already), started)

        result.state = ReversalState.LOCATING_ORIGINALS
        originals = self.guard.existing_deductions(transaction_number)
        result.original_movement_count = len(originals)

        if not originals:
            result.warnings.append(f"No movements found for {transaction_number}.")
            result.state = ReversalState.NO_ORIGINALS
            logger.warning(
                "ledger.reversal.nothing_to_reverse",
                extra={"reference": transaction_number},
            )
            self._emit(result, transaction_number, started)
            return result

        result.state = ReversalState.REVERSING
        with self.movements.atomic():
            if not self.guard.claim(reference, ClaimKind.REVERSAL, actor):
                return self._claim_taken(result, transaction_number, reference, started)

            for original in originals:
                try:
                    movement = self.recorder.compensate(original, reference, actor)
                except StoreUnavailable:
                    raise
                except LedgerError as exc:
                    result.errors.append(f"Failed to reverse {original.product_name}: {exc}")
                    continue
                except Exception as exc:
                    logger.exception(
                        "ledger.reversal.movement_failed",
                        extra={"reference": transaction_number, "movement_id": original.id},
                    )
                    result.errors.append(f"Failed to reverse {original.product_name}: {exc}")
                    continue

                result.reversed_movements.append(movement)
                result.reversed_count += 1

            if result.errors and not result.reversed_movements:
                self.guard.release(reference, ClaimKind.REVERSAL)

        result.state = ReversalState.DONE
        self._emit(result, transaction_number, started)
        return result

    def _already_reversed(self, result, transaction_number, count, started):
        result.warnings.append(f"Already reversed ({count} movements). Skipping.")
        result.state = ReversalState.SHORT_CIRCUITED
        logger.warning(
            "ledger.reversal.already_reversed",
            extra={"reference": transaction_number, "existing_count": count},
        )
        self._emit(result, transaction_number, started)
        return result

    def _claim_taken(self, result, transaction_number, reference, started):
        result.warnings.append(f"Reference {reference} already claimed by another run. Skipping.")
        result.state = ReversalState.SHORT_CIRCUITED
        logger.warning("ledger.reversal.already_claimed", extra={"reference": transaction_number})
        self._emit(result, transaction_number, started)
        return result

    def _emit(self, result, transaction_number, started):
        self.movements.on_commit(partial(
            self.events.emit,
            REVERSAL_COMPLETED,
            reference=transaction_number,
            state=result.state.value,
            original_count=result.original_movement_count,
            reversed_count=result.reversed_count,
            error_count=len(result.errors),
            duration_ms=round((time.monotonic() - started) * 1000, 3),
        ))
