"""
Ledgerman Admin.

- Product: editable catalog data, stock counters read-only, containers inline
- BlendTemplate / Bundle: editable recipes with inlines
- Movement: read-only audit trail with a "reverse transactions" action
- ReferenceClaim: read-only
"""

import logging

from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from ledgerman.models import (
    BlendIngredient,
    BlendTemplate,
    Bundle,
    BundleLine,
    Container,
    Movement,
    Product,
    ReferenceClaim,
)
from ledgerman.services.guard import REVERSAL_PREFIX

logger = logging.getLogger(__name__)


class ReadOnlyAdminMixin:

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# =========================================================================
# PRODUCT ADMIN
# =========================================================================


class ContainerInline(ReadOnlyAdminMixin, admin.TabularInline):
    """Opened containers in queue order."""

    model = Container
    extra = 0
    fields = ['sequence', 'code', 'status', 'remaining', 'capacity', 'opened_at']
    readonly_fields = fields
    ordering = ['sequence']


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    """Stock counters only change through movements."""

    list_display = ['name', 'sku', 'current_stock', 'available_stock', 'base_unit',
                    'full_containers', 'is_oversold_display']
    search_fields = ['name', 'sku']
    readonly_fields = ['current_stock', 'available_stock', 'full_containers', 'created_at', 'updated_at']
    inlines = [ContainerInline]

    @admin.display(description=_('Oversold?'), boolean=True)
    def is_oversold_display(self, obj):
        return obj.is_oversold


# =========================================================================
# COMPOSITION ADMIN
# =========================================================================


class BlendIngredientInline(admin.TabularInline):
    model = BlendIngredient
    extra = 1
    autocomplete_fields = ['product']


@admin.register(BlendTemplate)
class BlendTemplateAdmin(admin.ModelAdmin):
    list_display = ['name', 'is_active', 'usage_count', 'last_used']
    list_filter = ['is_active']
    search_fields = ['name']
    readonly_fields = ['usage_count', 'last_used', 'created_at', 'updated_at']
    inlines = [BlendIngredientInline]


class BundleLineInline(admin.TabularInline):
    model = BundleLine
    extra = 1
    autocomplete_fields = ['product', 'blend']


@admin.register(Bundle)
class BundleAdmin(admin.ModelAdmin):
    list_display = ['name', 'sku', 'is_active']
    list_filter = ['is_active']
    search_fields = ['name', 'sku']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [BundleLineInline]


# =========================================================================
# MOVEMENT ADMIN (read-only audit trail)
# =========================================================================


@admin.register(Movement)
class MovementAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """Movement admin — read-only. Immutable audit trail."""

    list_display = ['created_at', 'reference', 'movement_type', 'product_name',
                    'quantity', 'converted_quantity', 'container_id', 'created_by']
    list_filter = ['movement_type', 'created_at']
    search_fields = ['reference', 'product_name', 'container_id']
    readonly_fields = ['product', 'product_name', 'movement_type', 'quantity', 'converted_quantity',
                       'unit_of_measurement_id', 'base_unit', 'reference', 'notes', 'created_by',
                       'container_id', 'container_status', 'remaining_quantity', 'created_at']
    date_hierarchy = 'created_at'
    actions = ['reverse_transactions']

    @admin.action(description=_('Reverse selected transactions'))
    def reverse_transactions(self, request, queryset):
        from ledgerman import build_ledger

        ledger = build_ledger()
        references = sorted(
            set(queryset.exclude(reference__startswith=REVERSAL_PREFIX).values_list('reference', flat=True))
        )

        count = 0
        for reference in references:
            result = ledger.reverse_transaction(reference, actor=request.user.get_username())
            count += result.reversed_count
            for error in result.errors:
                logger.warning("reverse_transactions: %s: %s", reference, error)

        self.message_user(
            request,
            _('{count} movement(s) reversed across {refs} transaction(s).').format(
                count=count, refs=len(references),
            ),
        )


@admin.register(ReferenceClaim)
class ReferenceClaimAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ['reference', 'kind', 'claimed_by', 'created_at']
    list_filter = ['kind']
    search_fields = ['reference']
