from django.contrib.auth import authenticate, login, logout
from django.db import transaction
from django.utils.decorators import method_decorator
from django.views.decorators.csrf import csrf_exempt
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from .exceptions import AuthenticationError, ValidationError
from .serializers import ProfessionalRegistrationSerializer, PublicProfessionalSerializer


@method_decorator(csrf_exempt, name="dispatch")
class ProfessionalRegisterView(APIView):
    """
    POST /api/auth/register
    {
      "email": "jane@example.com",
      "password": "Password123!",
      "name": "Jane Doe",
      "business_name": "Jane's Studio",
      "phone": "+15550100"
    }
    Creates Django User + Professional (seeded with a default service and
    Mon-Fri 09:00-17:00 availability) and logs the professional in (session).
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        serializer = ProfessionalRegistrationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        with transaction.atomic():
            professional = serializer.save()

        login(request, professional.user, backend="django.contrib.auth.backends.ModelBackend")
        return Response(
            {
                "message": "Registration successful",
                "professional": PublicProfessionalSerializer(professional).data,
            },
            status=status.HTTP_201_CREATED,
        )


@method_decorator(csrf_exempt, name="dispatch")
class LoginView(APIView):
    """
    POST /api/auth/login
    { "email": "jane@example.com", "password": "Password123!" }
    Logs in the professional (session).
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        email = (request.data.get("email") or "").strip().lower()
        password = request.data.get("password") or ""
        if not email or not password:
            raise ValidationError("Email and password are required")

        user = authenticate(request, username=email, password=password)
        if user is None:
            raise AuthenticationError("Invalid credentials")

        login(request, user)
        return Response({"message": "Logged in"}, status=status.HTTP_200_OK)


@method_decorator(csrf_exempt, name="dispatch")
class LogoutView(APIView):
    """
    POST /api/auth/logout
    Ends the current session.
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        logout(request)
        return Response({"message": "Logged out"}, status=status.HTTP_200_OK)
