import logging

from rest_framework import status
from rest_framework.response import Response

from wagers.exceptions import WagerError
from wagers.serializers import AccountSerializer, StatsSerializer
from wagers.views.base import EngineAPIView, error_response

logger = logging.getLogger(__name__)


class OpenAccountView(EngineAPIView):
    """POST /accounts/ - Open an account with the welcome bonus."""

    def post(self, request, *args, **kwargs):
        account = self.engine.open_account()
        return Response(AccountSerializer(account).data, status=status.HTTP_201_CREATED)


class RetrieveAccountView(EngineAPIView):
    """GET /accounts/<uuid>/ - Retrieve account details."""

    def get(self, request, account_id, *args, **kwargs):
        try:
            account = self.engine.get_account(account_id)
        except WagerError as exc:
            return error_response(exc)
        return Response(AccountSerializer(account).data)


class DeactivateAccountView(EngineAPIView):
    """POST /accounts/<uuid>/deactivate - Soft-deactivate an account."""

    def post(self, request, account_id, *args, **kwargs):
        try:
            account = self.engine.deactivate_account(account_id)
        except WagerError as exc:
            return error_response(exc)
        return Response(AccountSerializer(account).data)


class BalanceView(EngineAPIView):
    """GET /accounts/<uuid>/balance - Balance and lifetime betting statistics."""

    def get(self, request, account_id, *args, **kwargs):
        try:
            stats = self.engine.get_stats(account_id)
        except WagerError as exc:
            return error_response(exc)
        return Response(StatsSerializer(stats).data)
