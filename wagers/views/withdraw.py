import logging

from rest_framework import status
from rest_framework.response import Response

from wagers.exceptions import RecordedButUnloggedError, WagerError
from wagers.serializers import WithdrawSerializer
from wagers.views.base import EngineAPIView, error_response
from wagers.views.deposit import transaction_payload

logger = logging.getLogger(__name__)


class CreateWithdrawView(EngineAPIView):
    """
    POST /accounts/<uuid>/withdraw - Request a payout to a bank account.

    Request body: {"amount": <integer, at least 1000>, "iban": "...", "account_name": "..."}
    The amount is debited now; the transaction stays PENDING until paid out.
    """

    def post(self, request, account_id, *args, **kwargs):
        serializer = WithdrawSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            outcome = self.engine.withdraw(
                account_id,
                data["amount"],
                {"iban": data["iban"], "account_name": data["account_name"]},
            )
        except RecordedButUnloggedError as exc:
            return error_response(exc, **transaction_payload(exc.outcome))
        except WagerError as exc:
            return error_response(exc)

        return Response(transaction_payload(outcome), status=status.HTTP_201_CREATED)
