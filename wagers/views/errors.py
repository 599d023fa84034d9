from django.http import JsonResponse


def not_found(request, exception=None):
    """Project-wide ``handler404``: unknown paths answer in JSON like every route."""
    return JsonResponse({"error": "Endpoint not found.", "code": "NOT_FOUND"}, status=404)


def server_error(request):
    """Project-wide ``handler500``. Django has already logged the traceback."""
    return JsonResponse(
        {"error": "Internal server error.", "code": "INTERNAL_ERROR"}, status=500
    )
