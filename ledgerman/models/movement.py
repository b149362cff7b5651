"""
Movement model — Immutable ledger of stock changes.
"""

from decimal import Decimal

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from ledgerman.models.enums import ContainerStatus, MovementType


class MovementQuerySet(models.QuerySet):

    def for_reference(self, reference: str):
        return self.filter(reference=reference)

    def of_types(self, movement_types):
        return self.filter(movement_type__in=list(movement_types))


class Movement(models.Model):
    """
    Immutable record of one stock change and its cause.

    Rules:
    - NEVER update() or delete()
    - Corrections are new Movements (a cancellation writes RETURN rows
      under CANCEL-<reference>)
    - Stock counters are changed by the stock mutator, inside the same
      atomic block that creates the row
    """

    product = models.ForeignKey(
        'ledgerman.Product',
        on_delete=models.PROTECT,
        related_name='movements',
        verbose_name=_('Product'),
    )
    product_name = models.CharField(max_length=200, blank=True, default='', verbose_name=_('Product name'))
    movement_type = models.CharField(
        max_length=30,
        choices=MovementType.choices,
        verbose_name=_('Type'),
    )

    quantity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        verbose_name=_('Quantity'),
    )
    converted_quantity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        verbose_name=_('Converted quantity'),
        help_text=_('Quantity in the product base unit'),
    )
    unit_of_measurement_id = models.CharField(max_length=64, blank=True, default='')
    base_unit = models.CharField(max_length=20, default='unit', verbose_name=_('Base unit'))

    reference = models.CharField(
        max_length=100,
        db_index=True,
        verbose_name=_('Reference'),
        help_text=_('Transaction number, or CANCEL-<transaction number> for reversals'),
    )
    notes = models.TextField(blank=True, default='', verbose_name=_('Notes'))
    created_by = models.CharField(max_length=150, verbose_name=_('Created by'))

    # Container annotations (volumetric sales only)
    container_id = models.CharField(max_length=64, blank=True, default='', verbose_name=_('Container'))
    container_status = models.CharField(
        max_length=10,
        choices=ContainerStatus.choices,
        blank=True,
        default='',
        verbose_name=_('Container status'),
    )
    remaining_quantity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        null=True,
        blank=True,
        verbose_name=_('Remaining in container'),
    )

    created_at = models.DateTimeField(default=timezone.now, db_index=True, verbose_name=_('Created at'))
    updated_at = models.DateTimeField(auto_now=True)

    objects = MovementQuerySet.as_manager()

    class Meta:
        verbose_name = _('Movement')
        verbose_name_plural = _('Movements')
        ordering = ['created_at', 'id']
        indexes = [
            models.Index(fields=['reference', 'movement_type'], name='ledger_mov_ref_type_idx'),
            models.Index(fields=['product', 'created_at'], name='ledger_mov_product_date_idx'),
            models.Index(fields=['movement_type'], name='ledger_mov_type_idx'),
        ]

    def save(self, *args, **kwargs):
        """Insert only."""
        from ledgerman.exceptions import LedgerError

        if self.pk:
            raise LedgerError('IMMUTABLE_MOVEMENT', movement_id=self.pk)

        if not self.reference:
            raise ValueError("Reference is required")

        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        """Prevent deletion — movements are immutable."""
        from ledgerman.exceptions import LedgerError

        raise LedgerError('IMMUTABLE_MOVEMENT', movement_id=self.pk)

    @property
    def signed_quantity(self) -> Decimal:
        """Converted quantity with the sign it had on stock."""
        if self.movement_type == MovementType.RETURN:
            return self.converted_quantity
        return -self.converted_quantity

    def __str__(self) -> str:
        qty = self.signed_quantity
        signal = '+' if qty > 0 else ''
        return f"{signal}{qty} {self.product_name} | {self.reference}"
