from django.contrib import admin
from django.utils.translation import gettext_lazy as _
from unfold.admin import ModelAdmin, TabularInline
from unfold.decorators import display
from unfold.contrib.filters.admin import (
    RangeDateTimeFilter,
    RangeNumericFilter,
)

from .models import Category, Item, StockMovement, Alert
from .services import unit_service


class StockMovementInline(TabularInline):
    model = StockMovement
    extra = 0
    fields = ('movement_type', 'quantity', 'previous_stock', 'new_stock', 'reference', 'created_by', 'created_at')
    readonly_fields = fields
    ordering = ('-created_at', '-id')
    max_num = 0
    can_delete = False
    show_change_link = True


@admin.register(Category)
class CategoryAdmin(ModelAdmin):
    list_display = ['id', 'name', 'organization_id', 'color', 'sort_order', 'item_count', 'created_at']
    search_fields = ['name', 'description']
    list_filter = [('created_at', RangeDateTimeFilter)]
    list_filter_submit = True
    readonly_fields = ['uuid', 'created_at', 'updated_at']

    @display(description=_("Items"))
    def item_count(self, obj):
        return obj.items.count()


@admin.register(Item)
class ItemAdmin(ModelAdmin):
    list_display = [
        'id', 'name', 'sku', 'category', 'unit_of_measurement',
        'stock_display', 'threshold_display', 'stock_status', 'track_stock', 'is_active',
    ]
    list_filter = [
        'unit_of_measurement',
        'track_stock',
        'is_active',
        ('current_stock', RangeNumericFilter),
    ]
    list_filter_submit = True
    list_fullwidth = True
    search_fields = ['name', 'sku']
    # Stock only moves through recorded adjustments
    readonly_fields = ['uuid', 'current_stock', 'created_at', 'updated_at']
    inlines = [StockMovementInline]

    fieldsets = (
        (_('Item'), {
            'fields': ('organization_id', 'category', 'name', 'sku', 'unit_of_measurement', 'unit_cost'),
            'classes': ['tab'],
        }),
        (_('Stock'), {
            'fields': ('current_stock', 'minimum_threshold', 'track_stock', 'is_active'),
            'classes': ['tab'],
            'description': _('Quantities are stored in base units (g, ml, pcs).'),
        }),
        (_('Meta'), {
            'fields': ('uuid', 'created_at', 'updated_at'),
            'classes': ['tab'],
        }),
    )

    @display(description=_("Stock"), ordering='current_stock')
    def stock_display(self, obj):
        return f"{unit_service.format_quantity(obj.current_stock, obj.unit_of_measurement)} {obj.unit_of_measurement}"

    @display(description=_("Threshold"), ordering='minimum_threshold')
    def threshold_display(self, obj):
        return f"{unit_service.format_quantity(obj.minimum_threshold, obj.unit_of_measurement)} {obj.unit_of_measurement}"

    @display(
        description=_("Status"),
        label={
            "OK": "success",
            "LOW": "warning",
            "OUT": "danger",
            "UNTRACKED": "info",
        },
    )
    def stock_status(self, obj):
        if not obj.track_stock:
            return "UNTRACKED"
        if obj.current_stock == 0:
            return "OUT"
        if obj.current_stock < obj.minimum_threshold:
            return "LOW"
        return "OK"


@admin.register(StockMovement)
class StockMovementAdmin(ModelAdmin):
    list_display = ['id', 'item', 'movement_type', 'quantity', 'previous_stock', 'new_stock', 'reference', 'created_at']
    list_filter = [
        'movement_type',
        ('created_at', RangeDateTimeFilter),
    ]
    list_filter_submit = True
    search_fields = ['item__name', 'reference', 'notes']
    date_hierarchy = 'created_at'

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Alert)
class AlertAdmin(ModelAdmin):
    list_display = ['id', 'title', 'item', 'alert_type', 'severity_badge', 'is_read', 'created_at']
    list_filter = ['alert_type', 'severity', 'is_read']
    search_fields = ['title', 'message']
    readonly_fields = ['uuid', 'created_at']
    actions = ['mark_as_read']

    @display(
        description=_("Severity"),
        label={
            "INFO": "info",
            "WARNING": "warning",
            "CRITICAL": "danger",
        },
    )
    def severity_badge(self, obj):
        return obj.severity

    @admin.action(description=_("Mark selected alerts as read"))
    def mark_as_read(self, request, queryset):
        updated = queryset.update(is_read=True)
        self.message_user(request, f"{updated} alert(s) marked as read")
