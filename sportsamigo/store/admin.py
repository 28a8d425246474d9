from django.contrib import admin
from .models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ('name', 'category', 'price', 'stock', 'featured', 'is_active')
    list_filter = ('category', 'featured', 'is_active')
    list_editable = ('stock', 'featured', 'is_active')
    search_fields = ('name', 'description')
