from django.urls import path

from . import views

app_name = "trips"

urlpatterns = [
    path("<int:trip_id>/", views.trip_detail, name="trip-detail"),
    path("<int:trip_id>/accept/", views.accept_trip, name="accept"),
    path("<int:trip_id>/refuse/", views.refuse_trip, name="refuse"),
    path("<int:trip_id>/status/", views.update_trip_status, name="advance"),
    path("<int:trip_id>/cancel/", views.cancel_trip, name="cancel"),
    path("<int:trip_id>/pricing/", views.set_trip_pricing, name="pricing"),
    path("<int:trip_id>/payment-method/", views.set_payment_method, name="payment-method"),
    path("<int:trip_id>/reviews/", views.trip_reviews, name="reviews"),
    path("<int:trip_id>/messages/", views.trip_messages, name="messages"),
    path("<int:trip_id>/messages/read/", views.mark_messages_read, name="messages-read"),
    path("estimate-arrival/", views.estimate_arrival, name="estimate-arrival"),
    path("messages/unread-count/", views.unread_messages_count, name="messages-unread-count"),
    path("users/<int:user_id>/reviews/", views.user_reviews, name="user-reviews"),
]
