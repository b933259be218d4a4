import django_filters
from django.db.models import Q
from .models import Product


class ProductFilter(django_filters.FilterSet):
    """Filter for the product list using django-filter"""

    # Basic search - searches across name, article number and description
    search = django_filters.CharFilter(method='filter_search', label='Search')

    # Direct field filters
    category = django_filters.NumberFilter(field_name='category_id', lookup_expr='exact')
    low_stock = django_filters.CharFilter(method='filter_low_stock', label='Low Stock')

    class Meta:
        model = Product
        fields = ['search', 'category', 'low_stock']

    def filter_search(self, queryset, name, value):
        """All words must appear in name, article number or description (any order)"""
        if not value or not value.strip():
            return queryset

        for word in value.split():
            queryset = queryset.filter(
                Q(name__icontains=word) |
                Q(article_number__icontains=word) |
                Q(description__icontains=word)
            )
        return queryset

    def filter_low_stock(self, queryset, name, value):
        """Filter on the stored low-stock flag; accepts 'true'/'false'"""
        if value is None or value == '':
            return queryset
        return queryset.filter(is_low_stock=value.lower() == 'true')
