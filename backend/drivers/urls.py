from django.urls import path
from .views import (
    DriverProfileView,
    DriverStatusView,
    DriverLocationUpdateView,
    DriverTripRequestsView,
    DriverCurrentTripView,
    DriverUpcomingTripsView,
    DriverTripHistoryView,
    DriverEarningsView,
)

app_name = "drivers"

urlpatterns = [
    path("profile/", DriverProfileView.as_view(), name="driver-profile"),
    path("status/", DriverStatusView.as_view(), name="driver-status"),
    path("location/", DriverLocationUpdateView.as_view(), name="driver-location"),
    path("trip-requests/", DriverTripRequestsView.as_view(), name="driver-trip-requests"),
    path("current-trip/", DriverCurrentTripView.as_view(), name="driver-current-trip"),
    path("upcoming/", DriverUpcomingTripsView.as_view(), name="driver-upcoming"),
    path("history/", DriverTripHistoryView.as_view(), name="driver-history"),
    path("earnings/", DriverEarningsView.as_view(), name="driver-earnings"),
]
