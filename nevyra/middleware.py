import logging

from nevyra.exceptions import ApiError
from nevyra.responses import error_response

logger = logging.getLogger(__name__)


class ApiErrorMiddleware:
    """
    Central error handler for the API.

    ApiError subclasses raised anywhere below a view become their own status
    with the standard envelope; anything else is logged with its traceback
    and reported as a generic 500.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        return self.get_response(request)

    def process_exception(self, request, exception):
        if isinstance(exception, ApiError):
            if exception.status >= 500:
                logger.error(f"{request.method} {request.path} failed: {exception.message}")
            return error_response(exception.message, exception.status)

        logger.exception(f"Unhandled error on {request.method} {request.path}")
        return error_response('Internal server error', 500)
