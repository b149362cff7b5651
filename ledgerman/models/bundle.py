"""
Bundle models — kits of products and fixed blends sold together.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _

from ledgerman.models.enums import BundleLineType


class Bundle(models.Model):
    """A kit sold as one line. Its lines are deducted, never the bundle itself."""

    name = models.CharField(max_length=200, verbose_name=_('Name'))
    sku = models.CharField(max_length=64, unique=True, verbose_name=_('SKU'))
    is_active = models.BooleanField(default=True, verbose_name=_('Active'))

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Bundle')
        verbose_name_plural = _('Bundles')
        ordering = ['name']

    def __str__(self) -> str:
        return self.name


class BundleLine(models.Model):
    """
    One component of a bundle.

    PRODUCT lines point to product, FIXED_BLEND lines to blend. quantity is
    per bundle: products in units, blends in blend units.
    """

    bundle = models.ForeignKey(
        Bundle,
        on_delete=models.CASCADE,
        related_name='lines',
        verbose_name=_('Bundle'),
    )
    product_type = models.CharField(
        max_length=20,
        choices=BundleLineType.choices,
        default=BundleLineType.PRODUCT,
        verbose_name=_('Line type'),
    )
    product = models.ForeignKey(
        'ledgerman.Product',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('Product'),
    )
    blend = models.ForeignKey(
        'ledgerman.BlendTemplate',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('Blend template'),
    )
    name = models.CharField(max_length=200, verbose_name=_('Name'))
    quantity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        verbose_name=_('Quantity per bundle'),
    )
    unit_of_measurement_id = models.CharField(max_length=64, blank=True, default='')
    unit_name = models.CharField(max_length=20, blank=True, default='')

    class Meta:
        verbose_name = _('Bundle line')
        verbose_name_plural = _('Bundle lines')
        ordering = ['bundle', 'id']

    def __str__(self) -> str:
        return f"{self.quantity} x {self.name}"
