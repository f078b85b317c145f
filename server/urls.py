"""
URL configuration for server project.

Public and admin JSON endpoints live under /api/; the Django admin site under /admin/.
"""
from django.contrib import admin
from django.urls import include, path

from system.views import admin_ping, health

urlpatterns = [
    path('_health/', health, name='health'),
    path('_health', health, name='health_no_slash'),
    path('api/admin/ping', admin_ping, name='admin_ping'),
    path('api/', include('rules.urls')),
    path('api/', include('feedback.urls')),
    path('api/', include('pages.urls')),
    path('admin/', admin.site.urls),
]
