from django.urls import path
from .views import work_order_list_create, work_order_detail, work_order_update_status

urlpatterns = [
    path('workorders/', work_order_list_create, name='workorder-list-create'),
    path('workorders/<int:pk>/', work_order_detail, name='workorder-detail'),
    path('workorders/<int:pk>/status/', work_order_update_status, name='workorder-update-status'),
]
