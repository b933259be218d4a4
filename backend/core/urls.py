from django.urls import path
from .views import (
    login, CustomTokenRefreshView, register, user_me,
    user_list, user_detail
)

urlpatterns = [
    # Auth endpoints
    path('auth/login/', login, name='login'),
    path('auth/register/', register, name='register'),
    path('auth/refresh/', CustomTokenRefreshView.as_view(), name='token_refresh'),
    path('auth/me/', user_me, name='user-me'),

    # User endpoints
    path('auth/users/', user_list, name='user-list'),
    path('auth/users/<int:pk>/', user_detail, name='user-detail'),
]
