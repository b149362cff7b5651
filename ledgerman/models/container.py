"""
Container model — Opened physical containers of a volumetric product.
"""

from decimal import Decimal

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from ledgerman.models.enums import ContainerStatus


class Container(models.Model):
    """
    One opened (or synthetic oversold) container.

    The per-product sequence IS the allocation queue: lower sequence was
    opened first and is consumed first. Rows are ordered by sequence and
    must never be re-sorted by any other field.

    Empty containers stay in place as audit trail; allocation skips them.
    """

    product = models.ForeignKey(
        'ledgerman.Product',
        on_delete=models.CASCADE,
        related_name='containers',
        verbose_name=_('Product'),
    )
    sequence = models.PositiveIntegerField(
        verbose_name=_('Queue position'),
        help_text=_('FIFO order: oldest opened first'),
    )
    code = models.CharField(max_length=64, verbose_name=_('Container ID'))

    capacity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        verbose_name=_('Capacity'),
    )
    remaining = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal('0'),
        verbose_name=_('Remaining'),
        help_text=_('Negative only when status is oversold'),
    )
    status = models.CharField(
        max_length=10,
        choices=ContainerStatus.choices,
        default=ContainerStatus.PARTIAL,
        verbose_name=_('Status'),
    )
    opened_at = models.DateTimeField(default=timezone.now, verbose_name=_('Opened at'))
    sale_history = models.JSONField(default=list, blank=True, verbose_name=_('Sale history'))

    class Meta:
        verbose_name = _('Container')
        verbose_name_plural = _('Containers')
        ordering = ['product', 'sequence']
        constraints = [
            models.UniqueConstraint(
                fields=['product', 'sequence'],
                name='unique_container_queue_position',
            ),
            models.UniqueConstraint(
                fields=['product', 'code'],
                name='unique_container_code_per_product',
            ),
        ]

    def __str__(self) -> str:
        return f"{self.code} [{self.status}]: {self.remaining}/{self.capacity}"
