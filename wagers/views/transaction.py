import logging

from rest_framework.response import Response

from wagers.exceptions import WagerError
from wagers.serializers import TransactionSerializer
from wagers.views.base import EngineAPIView, error_response

logger = logging.getLogger(__name__)


class TransactionListView(EngineAPIView):
    """
    GET /accounts/<uuid>/transactions/ - List all transactions for an account, newest first.

    Query params:
        - status: Filter by transaction status (PENDING, COMPLETED, REJECTED)
        - type: Filter by transaction type (DEPOSIT, WITHDRAWAL)
    """

    def get(self, request, account_id, *args, **kwargs):
        try:
            records = self.engine.transaction_history(
                account_id,
                transaction_type=request.query_params.get("type"),
                status=request.query_params.get("status"),
            )
        except WagerError as exc:
            return error_response(exc)
        return Response(TransactionSerializer(records, many=True).data)


class TransactionDetailView(EngineAPIView):
    """GET /accounts/<uuid>/transactions/<id>/ - Retrieve a single transaction."""

    def get(self, request, account_id, transaction_id, *args, **kwargs):
        try:
            record = self.engine.transaction_detail(account_id, transaction_id)
        except WagerError as exc:
            return error_response(exc)
        return Response(TransactionSerializer(record).data)
