from django.contrib import admin
from .models import Customer, CustomerProduct


class CustomerProductInline(admin.TabularInline):
    model = CustomerProduct
    extra = 0
    autocomplete_fields = ['product']


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ['name', 'email', 'phone', 'city', 'created_at']
    list_filter = ['city', 'created_at']
    search_fields = ['name', 'email', 'phone', 'city']
    ordering = ['name']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [CustomerProductInline]
