from django.contrib import admin
from .models import Category, Product


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'created_at']
    search_fields = ['name']
    ordering = ['name']


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['name', 'article_number', 'category', 'selling_price', 'price_incl_btw', 'stock', 'min_stock', 'is_low_stock']
    list_filter = ['is_low_stock', 'category', 'created_at']
    search_fields = ['name', 'article_number', 'description']
    ordering = ['name']
    readonly_fields = ['price_incl_btw', 'is_low_stock', 'created_at', 'updated_at']
