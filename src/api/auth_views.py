"""
Authentication Views

Endpoints:
- POST /api/auth/signup/ - Create an account, get JWT
- POST /api/auth/login/ - Login with email/password, get JWT
- POST /api/auth/refresh/ - Refresh access token

Signing out is done by the client discarding its tokens.
"""

import logging

from django.contrib.auth import authenticate
from django.contrib.auth.models import User
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError
from django.core.validators import validate_email
from django.db import transaction
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken

from src.social.models import Profile

logger = logging.getLogger(__name__)


def token_response(user: User, profile: Profile, status_code=status.HTTP_200_OK) -> Response:
    refresh = RefreshToken.for_user(user)
    refresh["username"] = profile.username
    return Response(
        {
            "access": str(refresh.access_token),
            "refresh": str(refresh),
            "user_id": user.id,
            "username": profile.username,
        },
        status=status_code,
    )


class SignUpView(APIView):
    """
    Create an account.

    POST /api/auth/signup/
    Body: {"email": "user@example.com", "password": "secret", "username": "riffmaster"}

    Returns:
        {"access": "...", "refresh": "...", "user_id": 1, "username": "riffmaster"}
    """

    authentication_classes = []  # Public endpoint
    permission_classes = []

    def post(self, request):
        email = (request.data.get("email") or "").strip().lower()
        password = request.data.get("password") or ""
        username = (request.data.get("username") or "").strip()

        if not email or not password:
            return Response(
                {"error": "Email and password required"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            validate_email(email)
            validate_password(password)
        except ValidationError as e:
            return Response(
                {"error": "validation_error", "message": e.messages},
                status=status.HTTP_400_BAD_REQUEST,
            )

        username = username or email.split("@")[0]
        if User.objects.filter(email__iexact=email).exists():
            return Response(
                {"error": "Email already registered"},
                status=status.HTTP_409_CONFLICT,
            )
        if Profile.username_taken(username):
            return Response(
                {"error": "Username already taken"},
                status=status.HTTP_409_CONFLICT,
            )

        with transaction.atomic():
            user = User.objects.create_user(username=username, email=email, password=password)
            profile = Profile.for_user(user)

        logger.info(f"New account {user.id} ({username})")
        return token_response(user, profile, status.HTTP_201_CREATED)


class LoginView(APIView):
    """
    Login with email/password to get JWT tokens.

    POST /api/auth/login/
    Body: {"email": "user@example.com", "password": "secret"}

    Returns:
        {"access": "...", "refresh": "...", "user_id": 1, "username": "..."}
    """

    authentication_classes = []  # Public endpoint
    permission_classes = []

    def post(self, request):
        email = (request.data.get("email") or "").strip()
        password = request.data.get("password")

        if not email or not password:
            return Response(
                {"error": "Email and password required"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        # Django uses username for auth, but we accept email
        user = User.objects.filter(email__iexact=email).first()
        if user is None:
            return Response(
                {"error": "Invalid credentials"},
                status=status.HTTP_401_UNAUTHORIZED,
            )

        user = authenticate(username=user.username, password=password)
        if not user:
            return Response(
                {"error": "Invalid credentials"},
                status=status.HTTP_401_UNAUTHORIZED,
            )

        # First sign in of accounts created outside the API
        profile = Profile.for_user(user)
        return token_response(user, profile)


class RefreshView(APIView):
    """
    Refresh access token.

    POST /api/auth/refresh/
    Body: {"refresh": "..."}

    Returns:
        {"access": "..."}
    """

    authentication_classes = []  # Public endpoint
    permission_classes = []

    def post(self, request):
        refresh_token = request.data.get("refresh")

        if not refresh_token:
            return Response(
                {"error": "Refresh token required"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            refresh = RefreshToken(refresh_token)
            return Response({
                "access": str(refresh.access_token),
            })
        except TokenError:
            return Response(
                {"error": "Invalid refresh token"},
                status=status.HTTP_401_UNAUTHORIZED,
            )
