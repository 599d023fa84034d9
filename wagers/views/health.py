from django.utils import timezone
from rest_framework.response import Response
from rest_framework.views import APIView


class HealthView(APIView):
    """GET /health - Liveness check."""

    def get(self, request, *args, **kwargs):
        return Response(
            {"success": True, "message": "Wager API is online", "timestamp": timezone.now()}
        )
