"""
Ledger services — one module per component.

    from ledgerman.services import DeductionOrchestrator, ReversalOrchestrator
"""

from ledgerman.services.allocator import Allocation, ContainerAllocator, ContainerSlot, ContainerState
from ledgerman.services.composition import CompositionResolver
from ledgerman.services.deduction import DeductionOrchestrator, InventoryDeductionResult
from ledgerman.services.guard import IdempotencyGuard, reversal_reference
from ledgerman.services.movements import MovementRecorder
from ledgerman.services.mutator import StockMutator
from ledgerman.services.queries import LedgerQueries
from ledgerman.services.reversal import InventoryReversalResult, ReversalOrchestrator
from ledgerman.services.router import ItemRouter, ProcessingContext

__all__ = [
    'Allocation',
    'ContainerAllocator',
    'ContainerSlot',
    'ContainerState',
    'CompositionResolver',
    'DeductionOrchestrator',
    'InventoryDeductionResult',
    'IdempotencyGuard',
    'reversal_reference',
    'MovementRecorder',
    'StockMutator',
    'LedgerQueries',
    'InventoryReversalResult',
    'ReversalOrchestrator',
    'ItemRouter',
    'ProcessingContext',
]
