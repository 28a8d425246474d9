from django.contrib import admin
from .models import Cart, CartItem


class CartItemInline(admin.TabularInline):
    model = CartItem
    extra = 0
    fields = ('product', 'name', 'price', 'quantity')
    readonly_fields = ('name', 'price')


@admin.register(Cart)
class CartAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'item_count', 'total_amount', 'revision', 'updated_at')
    search_fields = ('user__username', 'user__email')
    readonly_fields = ('revision', 'item_count', 'total_amount', 'created_at', 'updated_at')
    inlines = [CartItemInline]
