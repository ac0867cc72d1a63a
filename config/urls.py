"""URL configuration for FindoTrip.

The `urlpatterns` list routes URLs to views. It includes both Django admin
and application-level routers provided by Django Rest Framework and each app.
"""
from django.contrib import admin  # type: ignore
from django.urls import include, path  # type: ignore
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView  # type: ignore

from apps.properties.urls import availability_urlpatterns, room_urlpatterns

# API versioning. v1 is our initial version; future versions can be added here.

urlpatterns = [
    path('admin/', admin.site.urls),
    # Application URLs
    path('api/v1/auth/', include('apps.users.auth_urls')),
    path('api/v1/users/', include('apps.users.urls')),
    path('api/v1/properties/', include('apps.properties.urls')),
    path('api/v1/rooms/', include(room_urlpatterns)),
    path('api/v1/availability/', include(availability_urlpatterns)),
    path('api/v1/bookings/', include('apps.bookings.urls')),
    path('api/v1/notifications/', include('apps.notifications.urls')),
    # API documentation
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
]
