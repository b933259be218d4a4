from django.urls import path
from .views import (
    category_list_create,
    product_list_create, product_detail, product_update_stock,
    product_low_stock, product_bulk_upload
)

urlpatterns = [
    # Category endpoints
    path('products/categories/', category_list_create, name='category-list-create'),

    # Product endpoints
    path('products/', product_list_create, name='product-list-create'),
    path('products/low-stock/', product_low_stock, name='product-low-stock'),
    path('products/bulk-upload/', product_bulk_upload, name='product-bulk-upload'),
    path('products/<int:pk>/', product_detail, name='product-detail'),
    path('products/<int:pk>/stock/', product_update_stock, name='product-update-stock'),
]
