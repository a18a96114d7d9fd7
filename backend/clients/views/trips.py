# clients/views/trips.py

from rest_framework import status
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from accounts.permissions import IsClient
from clients.services import trip_services


class ClientCreateTripView(APIView):
    """
    POST: Client creates a trip request (immediate or scheduled).
    """
    permission_classes = [IsAuthenticated, IsClient]

    def post(self, request):
        result = trip_services.create_trip(
            user=request.user,
            data=request.data,
            request=request
        )

        return Response(result, status=status.HTTP_201_CREATED)


class ClientCurrentTripView(APIView):
    """
    GET: Client polling endpoint to get the current trip.
    """
    permission_classes = [IsAuthenticated, IsClient]

    def get(self, request):
        result = trip_services.get_current_trip(request.user, request)

        if not result:
            return Response({
                "has_active_trip": False,
                "message": "No active trip found"
            })

        return Response(result)


class ClientCancelTripView(APIView):
    """
    POST: Client cancels a trip.
    """
    permission_classes = [IsAuthenticated, IsClient]

    def post(self, request, trip_id: int):
        result = trip_services.cancel_trip(
            user=request.user,
            trip_id=trip_id,
            data=request.data,
            request=request,
        )
        return Response(result)
