import logging

from django.http import JsonResponse

from .exceptions import ShopError, error_response
from .http import is_ajax

logger = logging.getLogger(__name__)


class ShopErrorMiddleware:
    """Answers errors that escape a view without leaking stack traces."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        return self.get_response(request)

    def process_exception(self, request, exception):
        if isinstance(exception, ShopError):
            logger.warning("%s on %s: %s", type(exception).__name__, request.path, exception.message)
            return error_response(exception)

        if is_ajax(request):
            logger.exception("Unhandled error on %s", request.path)
            return JsonResponse({"success": False, "error": "Something went wrong"}, status=500)

        # page requests fall through to Django's own 500 handling
        return None
