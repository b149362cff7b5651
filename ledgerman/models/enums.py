"""
Enums for Ledgerman models.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class MovementType(models.TextChoices):
    """Cause of a stock movement."""
    SALE = 'sale', _('Sale')
    FIXED_BLEND = 'fixed_blend', _('Fixed blend ingredient')
    BUNDLE_SALE = 'bundle_sale', _('Bundle sale')
    BUNDLE_BLEND_INGREDIENT = 'bundle_blend_ingredient', _('Bundle blend ingredient')
    BLEND_INGREDIENT = 'blend_ingredient', _('Blend ingredient')
    CUSTOM_BLEND = 'custom_blend', _('Custom blend')
    RETURN = 'return', _('Return')


class ContainerStatus(models.TextChoices):
    """
    Physical container state.

    FULL:     Sealed, never opened. Only counted, never listed.
    PARTIAL:  Opened, volume left.
    EMPTY:    Remaining reached exactly 0. Kept for the audit trail.
    OVERSOLD: Synthetic container with negative remaining.
    """
    FULL = 'full', _('Full')
    PARTIAL = 'partial', _('Partial')
    OVERSOLD = 'oversold', _('Oversold')
    EMPTY = 'empty', _('Empty')


class ItemType(models.TextChoices):
    """Declared type of a transaction line."""
    PRODUCT = 'product', _('Product')
    FIXED_BLEND = 'fixed_blend', _('Fixed blend')
    CUSTOM_BLEND = 'custom_blend', _('Custom blend')
    BUNDLE = 'bundle', _('Bundle')
    MISCELLANEOUS = 'miscellaneous', _('Miscellaneous')
    CONSULTATION = 'consultation', _('Consultation')
    SERVICE = 'service', _('Service')


class SaleType(models.TextChoices):
    """How a line quantity is measured."""
    QUANTITY = 'quantity', _('By quantity')
    VOLUME = 'volume', _('By volume')


class BundleLineType(models.TextChoices):
    """What a bundle line points to."""
    PRODUCT = 'product', _('Product')
    FIXED_BLEND = 'fixed_blend', _('Fixed blend')


# Stock-affecting movement types: deducted on sale, reversible on cancellation.
DEDUCTING_TYPES = (
    MovementType.SALE,
    MovementType.FIXED_BLEND,
    MovementType.BUNDLE_SALE,
    MovementType.BUNDLE_BLEND_INGREDIENT,
    MovementType.BLEND_INGREDIENT,
    MovementType.CUSTOM_BLEND,
)

NO_INVENTORY_TYPES = frozenset({
    ItemType.MISCELLANEOUS,
    ItemType.CONSULTATION,
    ItemType.SERVICE,
})
