from rest_framework.response import Response
from rest_framework.views import APIView

from wagers.engine import get_engine
from wagers.exceptions import WagerError


def error_response(exc: WagerError, **extra) -> Response:
    body = exc.as_dict()
    body.update(extra)
    return Response(body, status=exc.status_code)


class EngineAPIView(APIView):
    """APIView with access to the process-wide wager engine."""

    @property
    def engine(self):
        return get_engine()
