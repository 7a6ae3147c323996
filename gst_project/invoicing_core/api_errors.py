from django.conf import settings
from rest_framework import exceptions as drf_exceptions
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from .exceptions import PostingError, StoreError


def _flatten(detail):
    """DRF error detail (str / list / dict, possibly nested) → one string."""
    if isinstance(detail, dict):
        return "; ".join(f"{key}: {_flatten(value)}" for key, value in detail.items())
    if isinstance(detail, list):
        return "; ".join(_flatten(value) for value in detail)
    return str(detail)


def exception_handler(exc, context):
    """Render every error as {"kind": ..., "detail": ...}."""
    if isinstance(exc, PostingError):
        detail = exc.detail
        if isinstance(exc, StoreError) and not settings.DEBUG:
            detail = "A database error occurred; nothing was saved."
        return Response({"kind": exc.kind, "detail": detail}, status=exc.status_code)

    response = drf_exception_handler(exc, context)
    if response is None:
        # Unhandled: let Django's 500 handling (and its logging) take over
        return None

    if isinstance(exc, drf_exceptions.ValidationError):
        kind = "validation_error"
    elif isinstance(exc, drf_exceptions.NotFound):
        kind = "not_found"
    elif isinstance(exc, (drf_exceptions.NotAuthenticated, drf_exceptions.PermissionDenied)):
        kind = "forbidden"
    else:
        kind = getattr(exc, "default_code", "error")
    data = response.data
    if isinstance(data, dict) and set(data) == {"detail"}:
        data = data["detail"]
    response.data = {"kind": kind, "detail": _flatten(data)}
    return response
