"""
Authentication views for CleanCity Backend.

Provides REST API endpoints for:
- Login (identifier + password)
- Token refresh
- Current user
"""

from rest_framework import status, views
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle

from .serializers import LoginSerializer, UserSerializer


class LoginThrottle(ScopedRateThrottle):
    """Rate limiting for login endpoints."""
    scope = 'login'


class LoginView(views.APIView):
    """
    Login endpoint.

    POST /api/v1/auth/login/

    Request:
    {
        "identifier": "admin@cleancity.local",
        "password": "secure_password"
    }

    Response:
    {
        "refresh": "jwt_refresh_token",
        "access": "jwt_access_token",
        "role": "admin",
        "user": { ... }
    }
    """

    permission_classes = [AllowAny]
    throttle_classes = [LoginThrottle]
    serializer_class = LoginSerializer

    def post(self, request):
        serializer = self.serializer_class(
            data=request.data,
            context={'request': request}
        )
        serializer.is_valid(raise_exception=True)
        result = serializer.save()
        return Response(result, status=status.HTTP_200_OK)


class CurrentUserView(views.APIView):
    """
    GET /api/v1/auth/me/
    """

    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(UserSerializer(request.user).data)
