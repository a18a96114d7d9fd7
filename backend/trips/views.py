from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from accounts.permissions import IsPartner, IsClient
from common.utils import parse_limit
from services import trip_management
from .serializers import (
    TripSerializer,
    TripAcceptSerializer,
    TripRefuseSerializer,
    TripStatusSerializer,
    TripCancelSerializer,
    PricingSerializer,
    PaymentMethodSerializer,
    EstimateArrivalSerializer,
    ReviewCreateSerializer,
    ReviewSerializer,
    MessageCreateSerializer,
    MessageSerializer,
)


def _result_response(result, request, status_code=status.HTTP_200_OK):
    body = {
        "success": result.success,
        "message": result.message,
        "trip": TripSerializer(result.trip, context={"request": request}).data,
    }
    if result.extra:
        body.update(result.extra)
    return Response(body, status=status_code)


# ==================== Trip detail ====================

@api_view(["GET"])
@permission_classes([IsAuthenticated])
def trip_detail(request, trip_id):
    """Trip details for its client, its partner, or a partner viewing an open request"""
    trip = trip_management.get_trip_for_participant(trip_id, request.user)
    return Response(TripSerializer(trip, context={"request": request}).data)


# ==================== Partner actions ====================

@api_view(["POST"])
@permission_classes([IsAuthenticated, IsPartner])
def accept_trip(request, trip_id):
    """
    Accept a waiting trip.

    Body: {"vehicle_id": 3, "estimated_arrival_minutes": 12}
       or {"vehicle_id": 3, "distance_km": 4.2}
    Two partners racing on the same trip: the loser gets 409 trip_not_available.
    """
    serializer = TripAcceptSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    eta = data.get("estimated_arrival_minutes")
    if eta is None:
        eta = round(trip_management.compute_estimated_arrival(data["distance_km"]), 1)

    result = trip_management.accept_trip(trip_id, request.user, data["vehicle_id"], eta)
    return _result_response(result, request)


@api_view(["POST"])
@permission_classes([IsAuthenticated, IsPartner])
def refuse_trip(request, trip_id):
    serializer = TripRefuseSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    result = trip_management.refuse_trip(trip_id, request.user, serializer.validated_data["reason"])
    return _result_response(result, request)


@api_view(["POST"])
@permission_classes([IsAuthenticated, IsPartner])
def update_trip_status(request, trip_id):
    """
    Advance the trip one step: driver_on_the_way -> arrived_at_pickup ->
    in_progress -> completed. camelCase and UI names are accepted.
    """
    serializer = TripStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    result = trip_management.advance_trip(trip_id, request.user, serializer.validated_data["status"])
    return _result_response(result, request)


# ==================== Shared actions ====================

@api_view(["POST"])
@permission_classes([IsAuthenticated])
def cancel_trip(request, trip_id):
    """Cancel by the trip's client or its assigned partner"""
    serializer = TripCancelSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    result = trip_management.cancel_trip(trip_id, request.user, serializer.validated_data["reason"])
    return _result_response(result, request)


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def set_trip_pricing(request, trip_id):
    serializer = PricingSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    result = trip_management.set_trip_pricing(trip_id, request.user, dict(serializer.validated_data))
    return _result_response(result, request)


@api_view(["POST"])
@permission_classes([IsAuthenticated, IsClient])
def set_payment_method(request, trip_id):
    serializer = PaymentMethodSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    result = trip_management.set_payment_method(
        trip_id, request.user, serializer.validated_data["payment_method"]
    )
    return _result_response(result, request)


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def estimate_arrival(request):
    """Body: {"distance_km": 6, "speed_kmh": 40}; speed defaults to 30 km/h"""
    serializer = EstimateArrivalSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    minutes = trip_management.compute_estimated_arrival(
        serializer.validated_data["distance_km"],
        serializer.validated_data.get("speed_kmh"),
    )
    return Response({"estimated_arrival_minutes": minutes})


# ==================== Reviews ====================

@api_view(["GET", "POST"])
@permission_classes([IsAuthenticated])
def trip_reviews(request, trip_id):
    if request.method == "GET":
        trip_management.get_trip_for_participant(trip_id, request.user)
        reviews = trip_management.list_trip_reviews(trip_id)
        return Response({"count": len(reviews), "reviews": ReviewSerializer(reviews, many=True).data})

    serializer = ReviewCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    review = trip_management.submit_review(
        trip_id, request.user, data["reviewee_id"], data["rating"], data.get("comment")
    )
    return Response(ReviewSerializer(review).data, status=status.HTTP_201_CREATED)


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def user_reviews(request, user_id):
    """Reviews a user received, with average and 1..5 distribution"""
    reviews = trip_management.list_user_reviews(user_id, limit=parse_limit(request))
    return Response({
        "stats": trip_management.get_user_review_stats(user_id),
        "reviews": ReviewSerializer(reviews, many=True).data,
    })


# ==================== Messages ====================

@api_view(["GET", "POST"])
@permission_classes([IsAuthenticated])
def trip_messages(request, trip_id):
    if request.method == "GET":
        messages = trip_management.list_trip_messages(trip_id, request.user, limit=parse_limit(request))
        return Response({"count": len(messages), "messages": MessageSerializer(messages, many=True).data})

    serializer = MessageCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    message = trip_management.send_message(trip_id, request.user, serializer.validated_data["content"])
    return Response(MessageSerializer(message).data, status=status.HTTP_201_CREATED)


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def mark_messages_read(request, trip_id):
    updated = trip_management.mark_messages_read(trip_id, request.user)
    return Response({"updated": updated})


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def unread_messages_count(request):
    return Response({"unread": trip_management.count_unread_messages(request.user)})
