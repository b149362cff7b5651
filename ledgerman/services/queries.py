"""
Ledger queries — read-only operations for audit and reporting.

All methods are classmethods and use no locking.
"""

from decimal import Decimal

from django.db.models import Count, Q, Sum
from django.db.models.functions import Coalesce

from ledgerman.models.container import Container
from ledgerman.models.enums import DEDUCTING_TYPES, ContainerStatus, MovementType
from ledgerman.models.movement import Movement
from ledgerman.models.product import Product
from ledgerman.services.guard import reversal_reference


class LedgerQueries:
    """Read-only ledger query methods."""

    @classmethod
    def movements(cls, reference: str, movement_types=None):
        """Movements under reference, oldest first."""
        qs = Movement.objects.for_reference(reference)
        if movement_types:
            qs = qs.of_types(movement_types)
        return qs.order_by('created_at', 'id')

    @classmethod
    def is_reversed(cls, transaction_number: str) -> bool:
        return Movement.objects.for_reference(reversal_reference(transaction_number)).exists()

    @classmethod
    def product_history(cls, product: Product, limit: int | None = 50):
        """Latest movements of a product, newest first."""
        qs = Movement.objects.filter(product=product).order_by('-created_at', '-id')
        return qs[:limit] if limit else qs

    @classmethod
    def net_change(cls, product: Product) -> Decimal:
        """
        Stock change implied by the ledger for product.

        returns - deductions. Comparing it with the counters is the
        starting point of any reconciliation.
        """
        totals = Movement.objects.filter(product=product).aggregate(
            out=Coalesce(Sum('converted_quantity', filter=Q(movement_type__in=DEDUCTING_TYPES)), Decimal('0')),
            back=Coalesce(Sum('converted_quantity', filter=Q(movement_type=MovementType.RETURN)), Decimal('0')),
        )
        return totals['back'] - totals['out']

    @classmethod
    def oversold_products(cls):
        """Products with negative stock, most oversold first."""
        return Product.objects.oversold().order_by('current_stock')

    @classmethod
    def container_summary(cls, product: Product) -> dict:
        """Counts per container status and volume left in open containers."""
        containers = Container.objects.filter(product=product)
        counts = {
            row['status']: row['n']
            for row in containers.order_by().values('status').annotate(n=Count('id'))
        }
        remaining = containers.filter(remaining__gt=0).aggregate(
            t=Coalesce(Sum('remaining'), Decimal('0'))
        )['t']

        return {
            'full': product.full_containers,
            'partial': counts.get(ContainerStatus.PARTIAL, 0),
            'empty': counts.get(ContainerStatus.EMPTY, 0),
            'oversold': counts.get(ContainerStatus.OVERSOLD, 0),
            'total_remaining': remaining,
        }
