"""
API views for authentication and user profiles.

Endpoints:
    POST /api/auth/register/   - Create account, returns {token, user}
    POST /api/auth/login/      - Returns {token, user}
    GET  /api/auth/me/         - Current user
    PUT  /api/auth/profile/    - Update username/bio
    POST /api/auth/avatar/     - Upload avatar image, returns {user, avatar}
    GET  /api/users/search/    - Search users by username/email (?q=)
    GET  /api/users/{id}/      - Another user's public profile

Related files:
    - serializers.py: Request/response shapes
    - services.py: AuthService business logic
"""

from __future__ import annotations

from django.shortcuts import get_object_or_404
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from authentication.models import User
from authentication.serializers import (
    AvatarUploadSerializer,
    LoginSerializer,
    ProfileUpdateSerializer,
    PublicUserSerializer,
    RegisterSerializer,
    UserSerializer,
)
from authentication.services import AuthService
from core.views import error_response
from toolkit.services.storage import get_blob_store


def _auth_payload(data: dict) -> dict:
    return {"token": data["token"], "user": UserSerializer(data["user"]).data}


class RegisterView(APIView):
    """Create a new account."""

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        summary="Register",
        tags=["Auth"],
        request=RegisterSerializer,
        responses={201: OpenApiTypes.OBJECT},
    )
    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AuthService.register(**serializer.validated_data)
        if not result.success:
            return error_response(result)

        return Response(_auth_payload(result.data), status=status.HTTP_201_CREATED)


class LoginView(APIView):
    """Exchange email and password for an access token."""

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        summary="Login",
        tags=["Auth"],
        request=LoginSerializer,
        responses={200: OpenApiTypes.OBJECT},
    )
    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AuthService.login(**serializer.validated_data)
        if not result.success:
            return error_response(result)

        return Response(_auth_payload(result.data))


class MeView(APIView):
    """Return the authenticated user."""

    permission_classes = [IsAuthenticated]

    @extend_schema(summary="Current user", tags=["Auth"], responses={200: UserSerializer})
    def get(self, request):
        return Response(UserSerializer(request.user).data)


class ProfileView(APIView):
    """Update the authenticated user's username and/or bio."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Update profile",
        tags=["Auth"],
        request=ProfileUpdateSerializer,
        responses={200: UserSerializer},
    )
    def put(self, request):
        serializer = ProfileUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AuthService.update_profile(request.user, **serializer.validated_data)
        if not result.success:
            return error_response(result)

        return Response(UserSerializer(result.data).data)


class AvatarView(APIView):
    """Upload a new avatar image."""

    permission_classes = [IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser]

    @extend_schema(
        summary="Upload avatar",
        tags=["Auth"],
        request=AvatarUploadSerializer,
        responses={200: OpenApiTypes.OBJECT},
    )
    def post(self, request):
        serializer = AvatarUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AuthService.update_avatar(
            request.user, serializer.validated_data["avatar"], get_blob_store()
        )
        if not result.success:
            return error_response(result)

        user = result.data
        return Response({"user": UserSerializer(user).data, "avatar": user.avatar})


class UserSearchView(APIView):
    """Search other users by username or email."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Search users",
        tags=["Users"],
        parameters=[OpenApiParameter("q", OpenApiTypes.STR, description="Search text")],
        responses={200: PublicUserSerializer(many=True)},
    )
    def get(self, request):
        users = AuthService.search_users(request.user, request.query_params.get("q", ""))
        return Response(PublicUserSerializer(users, many=True).data)


class UserDetailView(APIView):
    """Return another user's public profile."""

    permission_classes = [IsAuthenticated]

    @extend_schema(summary="User profile", tags=["Users"], responses={200: PublicUserSerializer})
    def get(self, request, pk: int):
        user = get_object_or_404(User, pk=pk, is_active=True)
        return Response(PublicUserSerializer(user).data)
