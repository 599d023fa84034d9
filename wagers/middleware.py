import json
import logging

logger = logging.getLogger(__name__)

REDACTED_FIELDS = ("iban", "account_name")
MAX_LOGGED_BODY = 2000


def _mask(data):
    if isinstance(data, dict):
        return {
            key: "***" if key in REDACTED_FIELDS and value else _mask(value)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [_mask(item) for item in data]
    return data


def _redact(body: str) -> str:
    """Mask payout details before a JSON body reaches the logs."""
    try:
        return json.dumps(_mask(json.loads(body)))
    except ValueError:
        return body


class RequestResponseLoggingMiddleware:
    """
    Middleware that logs each request method, path, body,
    and the corresponding response status and content.

    Bank details in withdrawal requests are masked.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request_body = ""
        if request.method in ("POST", "PUT", "PATCH") and request.body:
            try:
                request_body = _redact(request.body.decode("utf-8"))
            except UnicodeDecodeError:
                request_body = "<Could not decode body>"

        logger.info(
            "API Request: %s %s Body: %s",
            request.method,
            request.get_full_path(),
            request_body[:MAX_LOGGED_BODY],
        )

        response = self.get_response(request)

        response_type = response.get("Content-Type", "")
        if hasattr(response, "streaming_content"):
            response_content = "<Streaming content>"
        elif response_type.startswith("application/json"):
            response_content = _redact(response.content.decode("utf-8", errors="replace"))
        else:
            response_content = f"<Content-Type: {response_type}>"

        log = logger.warning if response.status_code >= 500 else logger.info
        log(
            "API Response: %s %s Status: %d Content: %s",
            request.method,
            request.get_full_path(),
            response.status_code,
            response_content[:MAX_LOGGED_BODY],
        )

        return response
