from django.urls import path
from .views import (
    customer_list_create, customer_detail, customer_search,
    customer_add_product, customer_remove_product
)

urlpatterns = [
    # Customer endpoints
    path('customers/', customer_list_create, name='customer-list-create'),
    path('customers/search/<str:query>/', customer_search, name='customer-search'),
    path('customers/<int:pk>/', customer_detail, name='customer-detail'),

    # Customer product links
    path('customers/<int:pk>/products/', customer_add_product, name='customer-add-product'),
    path('customers/<int:pk>/products/<int:product_id>/', customer_remove_product, name='customer-remove-product'),
]
