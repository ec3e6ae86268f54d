"""
JSON response helpers shared by the API views.
"""
import functools
import logging

from django.http import JsonResponse

from ledger.exceptions import BackOfficeError

logger = logging.getLogger(__name__)


def error_response(code, message, status, details=None):
    body = {"code": code, "message": message}
    if details:
        body["details"] = details
    return JsonResponse({"error": body}, status=status)


def form_error_response(form):
    return error_response(
        "invalid_request",
        "Request parameters are invalid.",
        400,
        details={field: [str(e) for e in errors] for field, errors in form.errors.items()},
    )


def json_api(view):
    """Translate BackOfficeError raised by a view into a JSON error response."""
    @functools.wraps(view)
    def wrapper(request, *args, **kwargs):
        try:
            return view(request, *args, **kwargs)
        except BackOfficeError as exc:
            logger.info("%s %s -> %s: %s", request.method, request.path, exc.code, exc.message)
            return JsonResponse({"error": exc.as_dict()}, status=exc.status)
    return wrapper
