"""
Product model — Stock snapshot of a sellable item.
"""

from decimal import Decimal

from django.db import models
from django.utils.translation import gettext_lazy as _


class ProductQuerySet(models.QuerySet):
    """Custom QuerySet for Product with stock filters."""

    def oversold(self):
        """Products whose stock went negative."""
        return self.filter(current_stock__lt=0)

    def container_tracked(self):
        """Products sold by volume out of physical containers."""
        return self.filter(container_capacity__isnull=False, container_capacity__gt=0)


class Product(models.Model):
    """
    Aggregate stock counters for a product.

    current_stock and available_stock are caches changed only by the
    stock mutator, always through F() expressions. They may go negative:
    overselling is recorded, never blocked.

    Container-tracked products (container_capacity set) also carry a count
    of sealed containers and an ordered list of opened ones (Container).
    """

    name = models.CharField(max_length=200, verbose_name=_('Name'))
    sku = models.CharField(max_length=64, unique=True, verbose_name=_('SKU'))
    base_unit = models.CharField(
        max_length=20,
        default='unit',
        verbose_name=_('Base unit'),
        help_text=_('Unit in which converted quantities are expressed'),
    )

    current_stock = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal('0'),
        verbose_name=_('Current stock'),
    )
    available_stock = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal('0'),
        verbose_name=_('Available stock'),
    )

    container_capacity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        null=True,
        blank=True,
        verbose_name=_('Container capacity'),
        help_text=_('Empty = product is not sold out of containers'),
    )
    full_containers = models.PositiveIntegerField(
        default=0,
        verbose_name=_('Sealed containers'),
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ProductQuerySet.as_manager()

    class Meta:
        verbose_name = _('Product')
        verbose_name_plural = _('Products')
        ordering = ['name']

    @property
    def tracks_containers(self) -> bool:
        return bool(self.container_capacity)

    @property
    def is_oversold(self) -> bool:
        return self.current_stock < 0

    @property
    def backorder_quantity(self) -> Decimal:
        """Quantity sold beyond stock (0 when not oversold)."""
        return abs(min(Decimal('0'), self.current_stock))

    def __str__(self) -> str:
        return f"{self.name} ({self.sku})"
