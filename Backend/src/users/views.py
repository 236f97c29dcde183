from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from .serializers import LoginSerializer, RegisterSerializer, UserSerializer
from .services import AuthService


class RegisterView(APIView):
    """Inscription ouverte: cree un utilisateur et renvoie son profil public."""

    authentication_classes = []
    permission_classes = [permissions.AllowAny]
    service_class = AuthService

    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = self.service_class().register(**serializer.validated_data)
        return Response({"ok": True, "user": UserSerializer(user).data}, status=status.HTTP_201_CREATED)


class LoginView(APIView):
    """Email + mot de passe -> bearer token."""

    authentication_classes = []
    permission_classes = [permissions.AllowAny]
    service_class = AuthService

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = self.service_class().login(**serializer.validated_data)
        return Response({"ok": True, **result})


class MeView(APIView):
    """Renvoie les claims du token courant."""

    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        return Response({"ok": True, "user": dict(request.auth.payload)})
