from rest_framework import status
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import AllowAny, IsAuthenticated, IsAdminUser
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.exceptions import TokenError

from .serializers import (
    RegisterSerializer,
    LoginSerializer,
    UserSerializer,
    PartnerSerializer,
    VerificationStatusSerializer,
)
from common.utils import parse_limit
from . import services


def _tokens_for(user):
    refresh = RefreshToken.for_user(user)
    return {
        'refresh': str(refresh),
        'access': str(refresh.access_token),
    }


class RegisterView(APIView):
    """
    Register a new user (client or partner)

    POST Body:
    {
        "email": "john@example.com",
        "password": "password123",
        "user_type": "client",  // or "partner"
        "first_name": "John",
        "last_name": "Doe",
        "phone_number": "+1234567890",
        "vehicle": {...},       // partners only, optional
        "documents": [...]      // partners only, optional
    }
    """
    permission_classes = (AllowAny,)
    authentication_classes = []

    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()

        return Response({
            'message': 'User registered successfully',
            'user': UserSerializer(user, context={'request': request}).data,
            'tokens': _tokens_for(user),
        }, status=status.HTTP_201_CREATED)


class LoginView(APIView):
    """
    Login with username (or email) and password to get JWT tokens
    """
    permission_classes = (AllowAny,)
    authentication_classes = []

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.validated_data

        return Response({
            "message": "Login successful",
            "user": UserSerializer(user, context={'request': request}).data,
            "tokens": _tokens_for(user),
        }, status=status.HTTP_200_OK)


class RefreshTokenView(APIView):
    """
    Refresh JWT access token

    POST Body:
    {
        "refresh": "your_refresh_token"
    }
    """
    permission_classes = (AllowAny,)
    authentication_classes = []

    def post(self, request):
        refresh_token = request.data.get('refresh')

        if not refresh_token:
            return Response(
                {'error': 'Refresh token is required'},
                status=status.HTTP_400_BAD_REQUEST
            )

        try:
            refresh = RefreshToken(refresh_token)
        except TokenError:
            return Response(
                {'error': 'Invalid refresh token'},
                status=status.HTTP_401_UNAUTHORIZED
            )
        return Response({'access': str(refresh.access_token)})


class ProfileView(APIView):
    """
    GET   -> Retrieve the authenticated user's profile
    PATCH -> Partially update it (partners go back to pending verification)
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        serializer_cls = PartnerSerializer if request.user.is_partner else UserSerializer
        return Response(serializer_cls(request.user, context={'request': request}).data)

    def patch(self, request):
        serializer_cls = PartnerSerializer if request.user.is_partner else UserSerializer
        serializer = serializer_cls(request.user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        if request.user.is_partner:
            user = services.update_partner_profile(request.user, **serializer.validated_data)
        else:
            user = services.update_profile(request.user, **serializer.validated_data)

        return Response(serializer_cls(user, context={'request': request}).data)


class PartnerListView(APIView):
    """Admin: list partners, optionally filtered by ?verification_status="""
    permission_classes = [IsAdminUser]

    def get(self, request):
        partners = services.list_partners(
            verification_status=request.query_params.get('verification_status'),
            limit=parse_limit(request),
        )
        data = PartnerSerializer(partners, many=True, context={'request': request}).data
        return Response({'count': len(data), 'partners': data})


class PartnerVerificationView(APIView):
    """Admin: approve or reject a partner"""
    permission_classes = [IsAdminUser]

    def post(self, request, partner_id):
        serializer = VerificationStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        partner = services.update_verification_status(partner_id, serializer.validated_data['status'])
        return Response(PartnerSerializer(partner, context={'request': request}).data)
