from django.urls import path

from .views import (
    NotificationListView,
    UnreadCountView,
    MarkReadView,
    MarkAllReadView,
    NotificationDeleteView,
)

app_name = "notifications"

urlpatterns = [
    path("", NotificationListView.as_view(), name="list"),
    path("unread-count/", UnreadCountView.as_view(), name="unread-count"),
    path("read-all/", MarkAllReadView.as_view(), name="read-all"),
    path("<int:notification_id>/read/", MarkReadView.as_view(), name="read"),
    path("<int:notification_id>/", NotificationDeleteView.as_view(), name="delete"),
]
