# clients/urls.py

from django.urls import path

from .views.info import (
    ClientProfileView,
    ClientAvailableDriversView,
    ClientTripHistoryView,
)

from .views.trips import (
    ClientCreateTripView,
    ClientCurrentTripView,
    ClientCancelTripView,
)

app_name = "clients"

urlpatterns = [
    # INFO
    path("profile/", ClientProfileView.as_view(), name="profile"),
    path("available-drivers/", ClientAvailableDriversView.as_view(), name="available-drivers"),
    path("history/", ClientTripHistoryView.as_view(), name="trip-history"),

    # TRIP
    path("trips/", ClientCreateTripView.as_view(), name="create-trip"),
    path("trips/current/", ClientCurrentTripView.as_view(), name="current-trip"),
    path("trips/<int:trip_id>/cancel/", ClientCancelTripView.as_view(), name="cancel-trip"),
]
