import hmac
import logging

from django.conf import settings
from rest_framework.permissions import BasePermission
from rest_framework.response import Response

from wagers.views.base import EngineAPIView

logger = logging.getLogger(__name__)


class HasMaintenanceToken(BasePermission):
    """
    Allows the request only when ``X-Maintenance-Token`` matches
    ``WAGERS_MAINTENANCE_TOKEN``. With no token configured the route is closed.
    """

    message = "Maintenance token missing or invalid."

    def has_permission(self, request, view):
        expected = getattr(settings, "WAGERS_MAINTENANCE_TOKEN", None)
        supplied = request.headers.get("X-Maintenance-Token", "")
        return bool(expected) and hmac.compare_digest(supplied, expected)


class ReconcileView(EngineAPIView):
    """
    POST /maintenance/reconcile - Append records whose balance change was
    applied but whose log write failed.
    """

    permission_classes = [HasMaintenanceToken]

    def post(self, request, *args, **kwargs):
        appended = self.engine.reconcile()
        pending = len(self.engine.reconciliation)
        logger.info("Reconciliation run: appended=%d pending=%d", appended, pending)
        return Response({"reconciled": appended, "pending": pending})
