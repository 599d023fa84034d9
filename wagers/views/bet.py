import logging

from rest_framework import status
from rest_framework.response import Response

from wagers.exceptions import RecordedButUnloggedError, WagerError
from wagers.serializers import (
    BetHistoryQuerySerializer,
    BetRecordSerializer,
    PlaceBetSerializer,
    StatsSerializer,
)
from wagers.views.base import EngineAPIView, error_response

logger = logging.getLogger(__name__)


def bet_payload(outcome) -> dict:
    return {
        "bet": BetRecordSerializer(outcome.record).data,
        "stats": StatsSerializer(outcome.stats).data,
    }


class PlaceBetView(EngineAPIView):
    """
    POST /accounts/<uuid>/bets - Place and resolve one bet.

    Request body: {"game": "numbers|slots|wheel|coin", "stake": <int>,
    "game_data": {"selected_number": <1-25>} | {"choice": "heads|tails"} | {}}
    """

    def post(self, request, account_id, *args, **kwargs):
        serializer = PlaceBetSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            outcome = self.engine.place_bet(
                account_id,
                game=serializer.validated_data["game"],
                stake=serializer.validated_data["stake"],
                game_data=serializer.validated_data["game_data"],
            )
        except RecordedButUnloggedError as exc:
            return error_response(exc, **bet_payload(exc.outcome))
        except WagerError as exc:
            return error_response(exc)

        return Response(bet_payload(outcome), status=status.HTTP_200_OK)


class BetHistoryView(EngineAPIView):
    """
    GET /accounts/<uuid>/bets/ - Most recent bets first.

    Query params:
        - limit: How many bets to return (capped at the house limit, 50 by default)
    """

    def get(self, request, account_id, *args, **kwargs):
        query = BetHistoryQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        try:
            bets = self.engine.bet_history(account_id, limit=query.validated_data.get("limit"))
        except WagerError as exc:
            return error_response(exc)

        return Response(BetRecordSerializer(bets, many=True).data)
