from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.views import APIView

from apps.core.responses import api_response

from .serializers import CredentialsSerializer
from .services import AuthService


class LoginView(APIView):
    """Exchange email/password for a bearer token."""
    authentication_classes = []
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = CredentialsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        session = AuthService.login(**serializer.validated_data)
        return api_response(session)


class RegisterView(APIView):
    authentication_classes = []
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = CredentialsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        session = AuthService.register(**serializer.validated_data)
        return api_response(session, status_code=status.HTTP_201_CREATED)


class CurrentUserView(APIView):
    """Identity carried by the bearer token."""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return api_response({
            'id': str(request.user.id),
            'email': request.auth.get('email'),
        })
