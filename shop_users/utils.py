import jwt
import logging
from functools import wraps
from nevyra.responses import error_response
from nevyra.utils import extract_token_from_header, verify_token

# Set up logger for user authentication
logger = logging.getLogger(__name__)


def user_required(view_func):
    """
    Decorator that validates JWT tokens from the Authorization header.

    Expected format: Authorization: Bearer <token>

    Both user and admin tokens are accepted. On success the decoded claims are
    attached as request.user_payload, with request.user_id, request.user_email
    and request.is_admin as shortcuts. On failure returns a 401 envelope.
    """
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        remote_addr = request.META.get('REMOTE_ADDR')
        token = extract_token_from_header(request.headers.get('Authorization'))

        if not token:
            logger.warning(f"Access attempt without bearer token from {remote_addr}")
            return error_response('No token provided', 401)

        try:
            payload = verify_token(token)
        except jwt.ExpiredSignatureError:
            logger.info(f"Access attempt with expired token from {remote_addr}")
            return error_response('Token has expired', 401)
        except jwt.InvalidTokenError as e:
            logger.warning(f"Access attempt with invalid token from {remote_addr}: {str(e)}")
            return error_response('Invalid token', 401)

        request.user_payload = payload
        request.user_id = payload['id']
        request.user_email = payload['email']
        request.is_admin = bool(payload.get('isAdmin'))

        logger.info(f"'{request.user_email}' authenticated for {request.method} {request.path}")
        return view_func(request, *args, **kwargs)

    return wrapper
