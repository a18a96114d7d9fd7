from django.contrib import admin
from django.urls import path, include
from django.conf import settings
from django.conf.urls.static import static

from accounts.urls import partner_urlpatterns
from .views import health_check

urlpatterns = [
    path('admin/', admin.site.urls),
    path("health/", health_check), # Health check endpoint

    # Authentication endpoints (at /api/auth/)
    path('api/auth/', include('accounts.urls')),  # register, login, refresh, profile
    path('api/accounts/', include(partner_urlpatterns)),  # admin partner list / verification

    # Client APIs (profile, available drivers, history, trip request)
    path('api/client/', include('clients.urls')),

    # Driver APIs (driver profile, status, location, trip requests, history, earnings)
    path('api/driver/', include('drivers.urls')),

    # Fleet and onboarding documents
    path('api/vehicles/', include('vehicles.urls')),

    # Trip endpoints shared by both sides (accept, advance, cancel, reviews, messages)
    path('api/trips/', include('trips.urls')),

    path('api/notifications/', include('notifications.urls')),
]

# Serve media files in development
if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
