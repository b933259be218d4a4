"""
URL configuration for the BTD backend.

Every app contributes its own urlpatterns under the shared `api/` prefix.
"""
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "BTD Beheer"
admin.site.site_title = "BTD Beheerportaal"
admin.site.index_title = "Welkom bij het BTD beheerportaal"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/', include('backend.core.urls')),
    path('api/', include('backend.catalog.urls')),
    path('api/', include('backend.parties.urls')),
    path('api/', include('backend.tasks.urls')),
    path('api/', include('backend.workorders.urls')),
    path('api/', include('backend.notifications.urls')),
]
