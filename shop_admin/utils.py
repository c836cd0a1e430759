import logging
from functools import wraps
from nevyra.responses import error_response
from nevyra.utils import extract_token_from_header, is_token_expired

# Set up logger for admin authorization
logger = logging.getLogger(__name__)


def admin_required(view_func):
    """
    Decorator that restricts a view to admin identities.

    Must be applied inside user_required, which resolves the caller's claims:

        @csrf_exempt
        @user_required
        @admin_required
        def some_admin_view(request): ...

    Returns 403 when the resolved identity lacks the isAdmin claim, and 401 if
    the bearer token has expired by the time this check runs.
    """
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        payload = getattr(request, 'user_payload', None)
        if not payload or not payload.get('isAdmin'):
            logger.warning(
                f"Non-admin access attempt to {request.method} {request.path} "
                f"from {request.META.get('REMOTE_ADDR')}"
            )
            return error_response('Admin access required', 403)

        token = extract_token_from_header(request.headers.get('Authorization'))
        if token and is_token_expired(token):
            logger.info(f"Admin token expired during request to {request.path}")
            return error_response('Token expired', 401)

        logger.info(f"Admin '{payload.get('email')}' authorized for {request.method} {request.path}")
        return view_func(request, *args, **kwargs)

    return wrapper
