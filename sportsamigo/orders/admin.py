from django.contrib import admin
from django.utils.html import format_html

from .models import Order, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    fields = ('product', 'name', 'quantity', 'price')
    readonly_fields = ('product', 'name', 'quantity', 'price')
    can_delete = False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ('order_number', 'user', 'colored_status', 'total_amount', 'payment_method', 'payment_status', 'created_at')
    list_filter = ('status', 'payment_method', 'payment_status', 'created_at')
    search_fields = ('order_number', 'user__username', 'user__email', 'full_name')
    readonly_fields = ('order_number', 'total_amount', 'item_count', 'payment_method', 'created_at', 'updated_at')
    inlines = [OrderItemInline]

    fieldsets = (
        ('Order Info', {
            'fields': ('order_number', 'user', 'status', 'payment_method', 'payment_status',
                       'total_amount', 'item_count', 'created_at')
        }),
        ('Shipping', {
            'fields': ('full_name', 'phone', 'email', 'street', 'area', 'city', 'state', 'landmark',
                       'expected_delivery'),
        }),
    )

    def colored_status(self, obj):
        color = {
            Order.PENDING: '#ffa500',
            Order.CONFIRMED: '#28a745',
            Order.CANCELLED: '#dc3545',
        }.get(obj.status, '#6c757d')
        return format_html(
            '<span style="color: white; background: {}; padding: 3px 8px; border-radius: 4px;">{}</span>',
            color, obj.get_status_display(),
        )

    colored_status.short_description = 'Status'
