"""WebSocket URL routing for the realtime app."""

from django.urls import re_path

from .consumers.notification_consumer import NotificationConsumer

websocket_urlpatterns = [
    # URL: ws://localhost:8000/ws/notifications/?token=<access JWT>
    re_path(
        r"ws/notifications/$",
        NotificationConsumer.as_asgi(),
        name="notifications-ws"
    ),
]
