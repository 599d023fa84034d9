import logging

from rest_framework import status
from rest_framework.response import Response

from wagers.exceptions import RecordedButUnloggedError, WagerError
from wagers.serializers import DepositSerializer, StatsSerializer, TransactionSerializer
from wagers.views.base import EngineAPIView, error_response

logger = logging.getLogger(__name__)


def transaction_payload(outcome) -> dict:
    return {
        "stats": StatsSerializer(outcome.stats).data,
        "transaction": TransactionSerializer(outcome.record).data,
    }


class CreateDepositView(EngineAPIView):
    """
    POST /accounts/<uuid>/deposit - Deposit into an account.

    Request body: {"amount": <integer, at least 1000>}
    """

    def post(self, request, account_id, *args, **kwargs):
        serializer = DepositSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            outcome = self.engine.deposit(account_id, serializer.validated_data["amount"])
        except RecordedButUnloggedError as exc:
            return error_response(exc, **transaction_payload(exc.outcome))
        except WagerError as exc:
            return error_response(exc)

        return Response(transaction_payload(outcome), status=status.HTTP_200_OK)
