"""
Blend models — fixed recipes sold as one item.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class BlendTemplate(models.Model):
    """
    Fixed recipe. Selling N units consumes N times every ingredient.

    usage_count and last_used are lifetime statistics: sales bump them,
    cancellations leave them alone.
    """

    name = models.CharField(max_length=200, verbose_name=_('Name'))
    is_active = models.BooleanField(default=True, verbose_name=_('Active'))
    usage_count = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=0,
        verbose_name=_('Units sold'),
    )
    last_used = models.DateTimeField(null=True, blank=True, verbose_name=_('Last used'))

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Blend template')
        verbose_name_plural = _('Blend templates')
        ordering = ['name']

    def __str__(self) -> str:
        return self.name


class BlendIngredient(models.Model):
    """Quantity of one product consumed per blend unit."""

    template = models.ForeignKey(
        BlendTemplate,
        on_delete=models.CASCADE,
        related_name='ingredients',
        verbose_name=_('Blend template'),
    )
    product = models.ForeignKey(
        'ledgerman.Product',
        on_delete=models.PROTECT,
        related_name='+',
        verbose_name=_('Product'),
    )
    quantity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        verbose_name=_('Quantity per unit'),
    )
    unit_of_measurement_id = models.CharField(max_length=64, blank=True, default='')
    unit_name = models.CharField(max_length=20, blank=True, default='')

    class Meta:
        verbose_name = _('Blend ingredient')
        verbose_name_plural = _('Blend ingredients')
        ordering = ['template', 'id']

    def __str__(self) -> str:
        return f"{self.quantity} {self.unit_name or ''} {self.product}".strip()
