"""
Ledger Service — the public interface for deductions and reversals.

Usage:
    from ledgerman import build_ledger

    ledger = build_ledger()
    result = ledger.process_transaction(sale, actor="cashier-3")
    if result.errors:
        ...  # sale stands, stock needs reconciling

    ledger.reverse_transaction(sale.transaction_number, actor="manager")

Every collaborator is injected; build_ledger() wires the configured ones.
"""

from __future__ import annotations

from ledgerman.adapters import get_event_emitter, get_stores
from ledgerman.conf import ledgerman_settings
from ledgerman.protocols.events import EventEmitter
from ledgerman.protocols.stores import LedgerStores
from ledgerman.protocols.transaction import SaleTransaction
from ledgerman.services.composition import CompositionResolver
from ledgerman.services.deduction import DeductionOrchestrator, InventoryDeductionResult
from ledgerman.services.guard import IdempotencyGuard, reversal_reference
from ledgerman.services.movements import MovementRecorder
from ledgerman.services.mutator import StockMutator
from ledgerman.services.reversal import InventoryReversalResult, ReversalOrchestrator
from ledgerman.services.router import ItemRouter


class Ledger:
    """
    One fully wired ledger.

    Parameter convention: (transaction, actor) for writes, references as
    plain strings for reads.
    """

    def __init__(self, stores: LedgerStores, events: EventEmitter, claim_references: bool = False):
        self.stores = stores
        self.events = events

        self.mutator = StockMutator(stores.products)
        self.recorder = MovementRecorder(stores, self.mutator, events)
        self.composition = CompositionResolver(stores, self.recorder)
        self.router = ItemRouter(self.recorder, self.composition)
        self.guard = IdempotencyGuard(stores.movements, claim_references=claim_references)

        self.deduction = DeductionOrchestrator(stores.movements, self.guard, self.router, events)
        self.reversal = ReversalOrchestrator(stores.movements, self.guard, self.recorder, events)

    # ══════════════════════════════════════════════════════════════
    # WRITES
    # ══════════════════════════════════════════════════════════════

    def process_transaction(self, transaction, actor: str) -> InventoryDeductionResult:
        """
        Deduct stock for a completed sale.

        transaction may be any object with transaction_number and items,
        or a plain dict payload.
        """
        if isinstance(transaction, dict):
            transaction = SaleTransaction.from_dict(transaction)
        return self.deduction.process(transaction, actor)

    def reverse_transaction(self, transaction_number: str, actor: str) -> InventoryReversalResult:
        """Give back the stock of a cancelled sale."""
        return self.reversal.reverse(transaction_number, actor)

    # ══════════════════════════════════════════════════════════════
    # READS
    # ══════════════════════════════════════════════════════════════

    def movements(self, reference: str, movement_types=None) -> list:
        return self.stores.movements.find(reference, movement_types)

    def reversal_movements(self, transaction_number: str) -> list:
        return self.stores.movements.find(reversal_reference(transaction_number))

    def is_reversed(self, transaction_number: str) -> bool:
        return bool(self.guard.existing_reversals(transaction_number))


def build_ledger(stores: LedgerStores | None = None, events: EventEmitter | None = None,
                 claim_references: bool | None = None) -> Ledger:
    """Ledger over the given collaborators, falling back to LEDGERMAN settings."""
    if claim_references is None:
        claim_references = ledgerman_settings.CLAIM_REFERENCES
    return Ledger(
        stores=stores if stores is not None else get_stores(),
        events=events if events is not None else get_event_emitter(),
        claim_references=claim_references,
    )
