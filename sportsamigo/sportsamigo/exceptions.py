from django.http import JsonResponse


class ShopError(Exception):
    """Base for errors a shopper can act on.

    Carries the message shown to the user and the HTTP status used when the
    error is answered as JSON.
    """

    status_code = 400
    default_message = "Something went wrong. Please try again."

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(ShopError):
    status_code = 404
    default_message = "Not found"


def error_response(exc):
    return JsonResponse({"success": False, "error": exc.message}, status=exc.status_code)
