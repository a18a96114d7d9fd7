from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from accounts.permissions import IsClient
from common.utils import parse_limit
from ..serializers import AvailableDriversQuerySerializer
from ..services import info_services


class ClientProfileView(APIView):
    """
    GET  -> Retrieve authenticated client profile
    POST -> Partially update client profile
    """
    permission_classes = [IsAuthenticated, IsClient]

    def get(self, request):
        data = info_services.get_client_profile(request.user, request)
        return Response(data)

    def post(self, request):
        data = info_services.update_client_profile(request.user, request.data, request)
        return Response(data)


class ClientAvailableDriversView(APIView):
    """
    POST: Returns drivers able to serve the given pickup point.
    An empty list is a normal answer, not an error.
    """
    permission_classes = [IsAuthenticated, IsClient]

    def post(self, request):
        query_ser = AvailableDriversQuerySerializer(data=request.data)
        query_ser.is_valid(raise_exception=True)

        drivers = info_services.search_available_drivers(query_ser.validated_data, request)

        return Response({
            "count": len(drivers),
            "drivers": drivers,
        })


class ClientTripHistoryView(APIView):
    """
    GET: Retrieve client trip history (completed + cancelled by default,
    ?status=completed,inProgress to filter)
    """
    permission_classes = [IsAuthenticated, IsClient]

    def get(self, request):
        limit = parse_limit(request, default=20)
        history = info_services.get_client_trip_history(
            request.user, request.query_params.get("status"), limit, request
        )
        return Response({"count": len(history), "trips": history})
