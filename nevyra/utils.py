import jwt
import time
from datetime import datetime, timedelta, timezone
from django.conf import settings


def _encode(claims, expiry_days):
    now = datetime.now(timezone.utc)
    payload = {
        **claims,
        'iat': now,
        'exp': now + timedelta(days=expiry_days),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def generate_user_token(user_id, email, is_admin=False):
    """
    Generate a JWT token for a storefront user

    Args:
        user_id: Firestore document id of the user
        email: The user's email
        is_admin: Whether the user record carries the admin flag

    Returns:
        str: JWT token
    """
    if not user_id or not email:
        raise ValueError('Missing required payload fields: id and email')
    return _encode({
        'id': user_id,
        'email': email,
        'isAdmin': bool(is_admin),
        'type': 'user',
    }, settings.JWT_EXPIRES_DAYS)


def generate_admin_token(admin_id, email):
    """Generate a JWT token for an admin account. Admin tokens always carry isAdmin."""
    if not admin_id or not email:
        raise ValueError('Missing required payload fields: id and email')
    return _encode({
        'id': admin_id,
        'email': email,
        'isAdmin': True,
        'type': 'admin',
    }, settings.JWT_ADMIN_EXPIRES_DAYS)


def verify_token(token):
    """
    Verify signature and expiry of a token and return its claims.

    Raises:
        jwt.ExpiredSignatureError: token is past its expiry
        jwt.InvalidTokenError: bad signature, malformed token or missing claims
    """
    payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    if not payload.get('id') or not payload.get('email'):
        raise jwt.InvalidTokenError('Invalid token payload')
    return payload


def extract_token_from_header(auth_header):
    if not auth_header or not auth_header.startswith('Bearer '):
        return None
    token = auth_header[len('Bearer '):].strip()
    return token or None


def is_token_expired(token):
    """Check the exp claim without verifying the signature."""
    if not token:
        return True
    try:
        payload = jwt.decode(token, options={'verify_signature': False})
    except jwt.PyJWTError:
        return True
    exp = payload.get('exp')
    if not exp:
        return True
    return exp < time.time()
