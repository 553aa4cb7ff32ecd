from django.contrib import admin
from django.db.models import Count, Q
from django.utils.html import format_html
from django.utils.translation import gettext_lazy as _
from django.urls import reverse
from unfold.admin import ModelAdmin, TabularInline
from unfold.decorators import display
from unfold.contrib.filters.admin import RangeDateFilter, RangeDateTimeFilter

from .models import Product, Batch, SerializedItem, UnitStageLog
from .services.batch_service import calculate_progress_percent
from .stages import stage_label


STATUS_COLORS = {
    'PENDING': 'info',
    'NOT_STARTED': 'info',
    'IN_PROGRESS': 'warning',
    'COMPLETE': 'success',
    'REJECTED': 'danger',
}


class UnitStageLogInline(TabularInline):
    """Ledger rows are append-only, so the inline is display only."""
    model = UnitStageLog
    extra = 0
    can_delete = False
    fields = ('timestamp', 'stage', 'status', 'completed_by', 'notes')
    readonly_fields = fields
    ordering = ('timestamp', 'id')

    def has_add_permission(self, request, obj=None):
        return False


class SerializedItemInline(TabularInline):
    """Units are generated with their batch; serials never change afterwards."""
    model = SerializedItem
    extra = 0
    can_delete = False
    fields = ('serial_number', 'status', 'current_stage', 'updated_at')
    readonly_fields = fields
    show_change_link = True

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Product)
class ProductAdmin(ModelAdmin):
    list_display = ['id', 'name', 'model_number', 'batch_count', 'created_at']
    list_filter = [
        ('created_at', RangeDateFilter),
    ]
    search_fields = ['name', 'model_number', 'description']
    list_filter_submit = True

    fieldsets = (
        (_('Product Information'), {
            'fields': ('name', 'model_number', 'description', 'image_url')
        }),
    )

    @display(description=_("Batches"))
    def batch_count(self, obj):
        return obj.batches.count()


@admin.register(Batch)
class BatchAdmin(ModelAdmin):
    list_display = ['id', 'name', 'product_link', 'quantity', 'status_badge', 'progress', 'created_at']
    list_filter = [
        'status',
        'product',
        ('created_at', RangeDateFilter),
    ]
    search_fields = ['name', 'product__name', 'serialized_items__serial_number']
    list_filter_submit = True
    list_fullwidth = True
    inlines = [SerializedItemInline]
    readonly_fields = ['status', 'created_by', 'created_at', 'updated_at']

    fieldsets = (
        (_('Batch'), {
            'fields': ('name', 'product', 'quantity', 'status')
        }),
        (_('Audit'), {
            'fields': ('created_by', 'created_at', 'updated_at')
        }),
    )

    # Units and serials only come from BatchService.create_batch.
    def has_add_permission(self, request):
        return False

    # UnitStageLog rows cascade with the batch.
    def has_delete_permission(self, request, obj=None):
        return False

    def get_readonly_fields(self, request, obj=None):
        if obj is not None:
            return self.readonly_fields + ['product', 'quantity']
        return self.readonly_fields

    def get_queryset(self, request):
        return super().get_queryset(request).select_related('product').annotate(
            completed=Count(
                'serialized_items',
                filter=Q(serialized_items__status=SerializedItem.Status.COMPLETE),
                distinct=True,
            )
        )

    @display(description=_("Product"))
    def product_link(self, obj):
        url = reverse('admin:assembly_product_change', args=[obj.product_id])
        return format_html('<a href="{}">{}</a>', url, obj.product.name)

    @display(description=_("Status"), label=True)
    def status_badge(self, obj):
        return STATUS_COLORS.get(obj.status, 'info'), obj.get_status_display()

    @display(description=_("Progress"))
    def progress(self, obj):
        return f"{obj.completed}/{obj.quantity} ({calculate_progress_percent(obj.completed, obj.quantity)}%)"


@admin.register(SerializedItem)
class SerializedItemAdmin(ModelAdmin):
    list_display = ['serial_number', 'batch_link', 'status_badge', 'stage_display', 'updated_at']
    list_filter = [
        'status',
        'current_stage',
        ('updated_at', RangeDateTimeFilter),
    ]
    search_fields = ['serial_number', 'batch__name']
    list_filter_submit = True
    list_fullwidth = True
    inlines = [UnitStageLogInline]
    readonly_fields = ['status', 'current_stage', 'created_at', 'updated_at']

    fieldsets = (
        (_('Unit'), {
            'fields': ('serial_number', 'batch')
        }),
        (_('Progress'), {
            'fields': ('status', 'current_stage', 'created_at', 'updated_at'),
            'description': _('Updated only by recording stage completions.')
        }),
    )

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def get_readonly_fields(self, request, obj=None):
        if obj is not None:
            return self.readonly_fields + ['serial_number', 'batch']
        return self.readonly_fields

    @display(description=_("Batch"))
    def batch_link(self, obj):
        url = reverse('admin:assembly_batch_change', args=[obj.batch_id])
        return format_html('<a href="{}">{}</a>', url, obj.batch.name)

    @display(description=_("Status"), label=True)
    def status_badge(self, obj):
        return STATUS_COLORS.get(obj.status, 'info'), obj.get_status_display()

    @display(description=_("Current Stage"), ordering='current_stage')
    def stage_display(self, obj):
        return stage_label(obj.current_stage) if obj.current_stage else "-"
