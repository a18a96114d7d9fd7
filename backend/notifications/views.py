from rest_framework import status
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from common.utils import parse_limit
from notifications import services
from notifications.serializers import NotificationSerializer


class NotificationListView(APIView):
    """
    GET: the authenticated user's notifications, newest first.
    Query params: unread_only=true, limit=<n>
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        unread_only = request.query_params.get("unread_only", "false").lower() == "true"
        limit = parse_limit(request, default=50)

        notifications = services.get_user_notifications(
            request.user, include_read=not unread_only, limit=limit
        )
        data = NotificationSerializer(notifications, many=True).data
        return Response({"count": len(data), "notifications": data})


class UnreadCountView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response({"unread": services.count_unread(request.user)})


class MarkReadView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, notification_id):
        notification = services.mark_read(notification_id, request.user)
        return Response(NotificationSerializer(notification).data)


class MarkAllReadView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        updated = services.mark_all_read(request.user)
        return Response({"message": "All notifications marked as read", "updated": updated})


class NotificationDeleteView(APIView):
    permission_classes = [IsAuthenticated]

    def delete(self, request, notification_id):
        services.delete_notification(notification_id, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)
