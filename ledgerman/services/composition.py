"""
Composition resolver — expands blends and bundles into primitive movements.

    blend  x N  → one movement per ingredient, ingredient.quantity * N
    bundle x N  → per line, line.quantity * N:
                    product line → one BUNDLE_SALE movement
                    blend line   → resolve_blend(line.quantity * N) labelled
                                   as bundle blend ingredients

A missing product or blend on a bundle line is skipped with a warning;
sibling lines still go through. A missing blend or bundle at the top
level raises.
"""

import logging
from decimal import Decimal
from typing import Any

from django.utils import timezone

from ledgerman.exceptions import LedgerError
from ledgerman.models.enums import BundleLineType, MovementType
from ledgerman.protocols.stores import LedgerStores
from ledgerman.services.movements import MovementRecorder

logger = logging.getLogger('ledgerman')

FIXED_BLEND_LABEL = 'Fixed blend ingredient'
BUNDLE_BLEND_LABEL = 'Bundle blend ingredient'


class CompositionResolver:

    def __init__(self, stores: LedgerStores, recorder: MovementRecorder):
        self.stores = stores
        self.recorder = recorder

    def resolve_blend(self, blend_id: Any, multiplier: Decimal, reference: str, actor: str,
                      context_label: str = FIXED_BLEND_LABEL) -> list:
        """
        Deduct every ingredient of a blend, scaled by multiplier.

        Bumps the template's usage statistics by multiplier.

        Raises:
            LedgerError('BLEND_NOT_FOUND')
            LedgerError('PRODUCT_NOT_FOUND'): If an ingredient's product is gone
        """
        blend = self.stores.compositions.get_blend(blend_id)
        movement_type = (
            MovementType.BUNDLE_BLEND_INGREDIENT
            if context_label == BUNDLE_BLEND_LABEL
            else MovementType.FIXED_BLEND
        )

        movements = []
        for ingredient in blend.ingredients:
            scaled = ingredient.quantity * multiplier
            movements.append(self.recorder.deduct(
                product_id=ingredient.product_id,
                movement_type=movement_type,
                quantity=scaled,
                converted_quantity=scaled,
                reference=reference,
                actor=actor,
                notes=f"{context_label}: {ingredient.name} for {blend.name} x {multiplier}",
                product_name=ingredient.name,
                unit_of_measurement_id=ingredient.unit_of_measurement_id,
                base_unit=ingredient.unit_name or None,
            ))

        self.stores.compositions.record_blend_usage(blend.id, multiplier, timezone.now())
        return movements

    def resolve_bundle(self, bundle_id: Any, multiplier: Decimal, reference: str, actor: str,
                       warnings: list[str] | None = None) -> list:
        """
        Deduct every line of a bundle, scaled by multiplier.

        Raises:
            LedgerError('BUNDLE_NOT_FOUND')
        """
        bundle = self.stores.compositions.get_bundle(bundle_id)
        warnings = warnings if warnings is not None else []

        movements = []
        for line in bundle.lines:
            total = line.quantity * multiplier

            if line.product_type == BundleLineType.FIXED_BLEND and line.blend_id is not None:
                try:
                    movements.extend(self.resolve_blend(
                        line.blend_id, total, reference, actor, context_label=BUNDLE_BLEND_LABEL,
                    ))
                except LedgerError as exc:
                    if exc.code != 'BLEND_NOT_FOUND':
                        raise
                    self._skip(warnings, bundle, line, exc)
                continue

            try:
                movements.append(self.recorder.deduct(
                    product_id=line.product_id,
                    movement_type=MovementType.BUNDLE_SALE,
                    quantity=total,
                    converted_quantity=total,
                    reference=reference,
                    actor=actor,
                    notes=f"Bundle sale: {line.name} from {bundle.name} x {multiplier}",
                    product_name=line.name,
                    unit_of_measurement_id=line.unit_of_measurement_id,
                    base_unit=line.unit_name or None,
                ))
            except LedgerError as exc:
                if exc.code != 'PRODUCT_NOT_FOUND':
                    raise
                self._skip(warnings, bundle, line, exc)

        return movements

    @staticmethod
    def _skip(warnings: list[str], bundle, line, exc: LedgerError) -> None:
        message = f"Bundle line {line.name!r} of {bundle.name} skipped: {exc}"
        warnings.append(message)
        logger.warning(
            "ledger.bundle.line_skipped",
            extra={"bundle_id": bundle.id, "line": line.name, "code": exc.code},
        )
