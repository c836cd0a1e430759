import re

from pydantic import BaseModel, EmailStr, ValidationError as PydanticValidationError

NAME_RE = re.compile(r"^[A-Za-z][A-Za-z\s'\-]{1,49}$")
PHONE_RE = re.compile(r'^\+?[0-9]{10,15}$')
SPECIAL_RE = re.compile(r'[^A-Za-z0-9]')

NAME_MESSAGE = 'must be 2-50 characters and contain only letters, spaces, hyphens, and apostrophes'
PASSWORD_MESSAGE = (
    'Password must be at least 8 characters long and contain uppercase, '
    'lowercase, number, and special character'
)


class _EmailCheck(BaseModel):
    email: EmailStr


def is_email(value):
    if not isinstance(value, str):
        return False
    try:
        _EmailCheck(email=value)
    except PydanticValidationError:
        return False
    return True


def is_valid_name(value):
    return isinstance(value, str) and bool(NAME_RE.match(value.strip()))


def is_valid_phone(value):
    if not isinstance(value, str):
        return False
    return bool(PHONE_RE.match(re.sub(r'[\s\-]', '', value)))


def is_strong_password(value):
    if not isinstance(value, str) or len(value) < 8:
        return False
    return (
        any(c.isupper() for c in value)
        and any(c.islower() for c in value)
        and any(c.isdigit() for c in value)
        and bool(SPECIAL_RE.search(value))
    )


def describe_pydantic_error(exc, prefix=''):
    """Turn the first pydantic error into a single field-specific message."""
    error = exc.errors()[0]
    field = '.'.join(str(part) for part in error.get('loc', ()))
    if error.get('type') == 'missing':
        return f'Missing required field{prefix}: {field}'
    return f'Invalid value for {field}{prefix}: {error.get("msg")}'
