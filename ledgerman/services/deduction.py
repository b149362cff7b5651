"""
Deduction orchestrator — turns a completed sale into stock movements.

Flow:
    NOT_STARTED → CHECKING_IDEMPOTENCY → SHORT_CIRCUITED
                                       → PROCESSING → DONE

Items are processed one by one, in order, each inside its own atomic
block. A failing item is recorded in errors and the run carries on:
success=True means the run completed, not that every item did. Callers
treat a non-empty errors list as "sale completed with inventory
discrepancies to reconcile".

Only StoreUnavailable escapes.
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
from ledgerman.protocols.events import DEDUCTION_COMPLETED, EventEmitter
from ledgerman.protocols.stores import MovementStore
from ledgerman.services.guard import IdempotencyGuard
from ledgerman.services.router import ItemRouter, ProcessingContext, item_name

logger = logging.getLogger('ledgerman')


class RunState(str, Enum):
    NOT_STARTED = "not_started"
    CHECKING_IDEMPOTENCY = "checking_idempotency"
    SHORT_CIRCUITED = "short_circuited"
    PROCESSING = "processing"
    DONE = "done"


@dataclass
class InventoryDeductionResult:
    success: bool = True
    movements: list = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    state: RunState = RunState.NOT_STARTED

    @property
    def has_discrepancies(self) -> bool:
        return bool(self.errors)

    def as_dict(self) -> dict[str, Any]:
        return {
            'success': self.success,
            'movements': [m.id for m in self.movements],
            'errors': list(self.errors),
            'warnings': list(self.warnings),
        }


class DeductionOrchestrator:

    def __init__(self, movements: MovementStore, guard: IdempotencyGuard,
                 router: ItemRouter, events: EventEmitter):
        self.movements = movements
        self.guard = guard
        self.router = router
        self.events = events

    def process(self, transaction, actor: str) -> InventoryDeductionResult:
        """
        Deduct stock for every item of transaction.

        Args:
            transaction: object with transaction_number and items
            actor: who triggered the sale (recorded as created_by)
        """
        started = time.monotonic()
        reference = str(transaction.transaction_number)
        result = InventoryDeductionResult()

        result.state = RunState.CHECKING_IDEMPOTENCY
        existing = self.guard.existing_deductions(reference)
        if existing:
            return self._short_circuit(result, reference, existing, started)

        result.state = RunState.PROCESSING
        context = ProcessingContext(reference=reference, actor=actor, warnings=result.warnings)

        with self.movements.atomic():
            if not self.guard.claim(reference, ClaimKind.DEDUCTION, actor):
                return self._claim_taken(result, reference, started)

            for item in transaction.items:
                try:
                    with self.movements.atomic():
                        result.movements.extend(self.router.route(item, context))
                except StoreUnavailable:
                    raise
                except LedgerError as exc:
                    result.errors.append(f"Failed to process {item_name(item)}: {exc}")
                except Exception as exc:
                    logger.exception(
                        "ledger.deduction.item_failed",
                        extra={"reference": reference, "item": item_name(item)},
                    )
                    result.errors.append(f"Failed to process {item_name(item)}: {exc}")

            if result.errors and not result.movements:
                # Nothing written, leave the reference free for a retry.
                self.guard.release(reference, ClaimKind.DEDUCTION)

        result.state = RunState.DONE
        if result.errors:
            logger.warning(
                "ledger.deduction.discrepancies",
                extra={"reference": reference, "errors": result.errors},
            )
        self._emit(result, reference, started)
        return result

    def _short_circuit(self, result, reference, existing, started):
        result.warnings.append(
            f"Inventory movements already exist ({len(existing)}). "
            f"Skipping to prevent duplicate deduction."
        )
        result.movements = list(existing)
        result.state = RunState.SHORT_CIRCUITED
        logger.warning(
            "ledger.deduction.already_processed",
            extra={"reference": reference, "existing_count": len(existing)},
        )
        self._emit(result, reference, started)
        return result

    def _claim_taken(self, result, reference, started):
        result.warnings.append(
            f"Reference {reference} already claimed by another run. "
            f"Skipping to prevent duplicate deduction."
        )
        result.movements = list(self.guard.existing_deductions(reference))
        result.state = RunState.SHORT_CIRCUITED
        logger.warning("ledger.deduction.already_claimed", extra={"reference": reference})
        self._emit(result, reference, started)
        return result

    def _emit(self, result, reference, started):
        self.movements.on_commit(partial(
            self.events.emit,
            DEDUCTION_COMPLETED,
            reference=reference,
            state=result.state.value,
            movement_count=len(result.movements),
            error_count=len(result.errors),
            warning_count=len(result.warnings),
            duration_ms=round((time.monotonic() - started) * 1000, 3),
        ))
