from django.contrib.auth.hashers import make_password, check_password
from django.views.decorators.csrf import csrf_exempt
from django.utils import timezone
from django.conf import settings
import logging
from shop_users.utils import user_required
from nevyra.exceptions import Conflict, NotFound, Unauthorized, ValidationError
from nevyra.firebase import get_db
from nevyra import password_reset
from nevyra.responses import api_response, method_not_allowed, parse_json_body
from nevyra.utils import generate_user_token
from nevyra.validators import (
    NAME_MESSAGE,
    PASSWORD_MESSAGE,
    is_email,
    is_strong_password,
    is_valid_name,
    is_valid_phone,
)

USERS = 'users'

ADDRESS_FIELDS = ['firstName', 'lastName', 'email', 'phone', 'address', 'city', 'zipCode', 'state']

PROFILE_FIELDS = ['firstName', 'lastName', 'email', 'phone', 'isAdmin', 'addresses', 'recentSearches', 'createdAt', 'updatedAt']

FALLBACK_POPULAR_SEARCHES = ['laptop', 'smartphone', 'shoes', 'dress', 'watch', 'headphones', 'camera', 'tablet']

# Set up logger
logger = logging.getLogger(__name__)


def _find_user_by(field, value):
    docs = get_db().collection(USERS).where(field, '==', value).limit(1).stream()
    for doc in docs:
        return doc
    return None


def _get_user_doc(user_id):
    user_doc = get_db().collection(USERS).document(user_id).get()
    if not user_doc.exists:
        raise NotFound('User not found')
    return user_doc


def _profile(user_doc):
    """Public view of a user document: never exposes the password hash or OTP fields."""
    user_data = user_doc.to_dict()
    profile = {'id': user_doc.id}
    for field in PROFILE_FIELDS:
        profile[field] = user_data.get(field)
    profile['isAdmin'] = bool(profile['isAdmin'])
    profile['addresses'] = profile['addresses'] or []
    profile['recentSearches'] = profile['recentSearches'] or []
    return profile


@csrf_exempt
def register(request):
    if request.method != 'POST':
        return method_not_allowed()

    data = parse_json_body(request)
    first_name = data.get('firstName')
    last_name = data.get('lastName')
    email = data.get('email')
    phone = data.get('phone')
    password = data.get('password')

    if not all([first_name, last_name, email, password]):
        raise ValidationError('All required fields must be provided')
    if not is_valid_name(first_name):
        raise ValidationError(f'First name {NAME_MESSAGE}')
    if not is_valid_name(last_name):
        raise ValidationError(f'Last name {NAME_MESSAGE}')
    if not is_email(email):
        raise ValidationError('Please provide a valid email address')
    if not is_strong_password(password):
        raise ValidationError(PASSWORD_MESSAGE)

    if _find_user_by('email', email):
        raise Conflict('An account with this email already exists')

    if phone:
        if not is_valid_phone(phone):
            raise ValidationError('Please provide a valid phone number')
        if _find_user_by('phone', phone):
            raise Conflict('This phone number is already registered')

    now = timezone.now()
    user_payload = {
        'firstName': first_name.strip(),
        'lastName': last_name.strip(),
        'email': email,
        'phone': phone or None,
        'password': make_password(password),
        'isAdmin': False,
        'addresses': [],
        'recentSearches': [],
        'resetPasswordOTP': None,
        'resetPasswordOTPExpires': None,
        'createdAt': now,
        'updatedAt': now,
    }
    # Firestore will auto-generate an ID for this document
    _, doc_ref = get_db().collection(USERS).add(user_payload)
    logger.info(f"Registered user {doc_ref.id}")

    # No token here: the client logs in separately
    return api_response('Account created successfully! Please login with your new account.', {
        'id': doc_ref.id,
        'firstName': user_payload['firstName'],
        'lastName': user_payload['lastName'],
        'email': email,
        'phone': user_payload['phone'],
    }, status=201)


@csrf_exempt
def login(request):
    if request.method != 'POST':
        return method_not_allowed()

    data = parse_json_body(request)
    email = data.get('email')
    password = data.get('password')
    if not email or not password:
        raise ValidationError('Email and password are required')

    user_doc = _find_user_by('email', email)
    # Same message for unknown email and wrong password
    if user_doc is None:
        raise Unauthorized('Invalid email or password')
    user_data = user_doc.to_dict()
    if not check_password(password, user_data.get('password')):
        raise Unauthorized('Invalid email or password')

    token = generate_user_token(user_doc.id, user_data['email'], user_data.get('isAdmin', False))
    logger.info(f"User {user_doc.id} logged in")
    return api_response('Login successful! Welcome back.', {
        'token': token,
        'id': user_doc.id,
        'firstName': user_data.get('firstName'),
        'lastName': user_data.get('lastName'),
        'email': user_data.get('email'),
        'phone': user_data.get('phone'),
    })


@csrf_exempt
def forgot_password(request):
    if request.method != 'POST':
        return method_not_allowed()
    data = parse_json_body(request)
    password_reset.issue_otp(USERS, data.get('email'))
    return api_response(password_reset.GENERIC_FORGOT_MESSAGE)


@csrf_exempt
def verify_otp(request):
    if request.method != 'POST':
        return method_not_allowed()
    data = parse_json_body(request)
    password_reset.verify_otp(USERS, data.get('email'), data.get('otp'))
    return api_response('OTP verified successfully. You can now reset your password.')


@csrf_exempt
def reset_password(request):
    if request.method != 'POST':
        return method_not_allowed()
    data = parse_json_body(request)
    password_reset.reset_password(USERS, data.get('email'), data.get('otp'), data.get('newPassword'))
    return api_response('Password has been reset successfully. You can now login with your new password.')


@csrf_exempt
@user_required
def profile(request):
    if request.method == 'GET':
        return api_response('Profile retrieved successfully', _profile(_get_user_doc(request.user_id)))
    if request.method == 'PATCH':
        return _update_profile(request)
    return method_not_allowed()


def _update_profile(request):
    data = parse_json_body(request)
    user_doc = _get_user_doc(request.user_id)
    user_data = user_doc.to_dict()
    update_payload = {}

    for field, label in (('firstName', 'First name'), ('lastName', 'Last name')):
        if field in data:
            if not is_valid_name(data[field]):
                raise ValidationError(f'{label} {NAME_MESSAGE}')
            update_payload[field] = data[field].strip()

    phone = data.get('phone')
    if 'phone' in data and phone != user_data.get('phone'):
        if not is_valid_phone(phone):
            raise ValidationError('Please provide a valid phone number')
        existing = _find_user_by('phone', phone)
        if existing and existing.id != user_doc.id:
            raise Conflict('This phone number is already registered')
        update_payload['phone'] = phone

    email = data.get('email')
    if 'email' in data and email != user_data.get('email'):
        if not is_email(email):
            raise ValidationError('Please provide a valid email address')
        existing = _find_user_by('email', email)
        if existing and existing.id != user_doc.id:
            raise Conflict('This email is already registered')
        update_payload['email'] = email

    if update_payload:
        update_payload['updatedAt'] = timezone.now()
        user_doc.reference.update(update_payload)

    return api_response('Profile updated successfully', _profile(user_doc.reference.get()))


def _address_from(data):
    missing = [field for field in ADDRESS_FIELDS if not data.get(field)]
    if missing:
        raise ValidationError('All address fields required including state')
    return {field: data[field] for field in ADDRESS_FIELDS}


@csrf_exempt
@user_required
def addresses(request):
    if request.method == 'GET':
        user_doc = _get_user_doc(request.user_id)
        return api_response('Addresses fetched', user_doc.to_dict().get('addresses') or [])

    if request.method == 'POST':
        address = _address_from(parse_json_body(request))
        user_doc = _get_user_doc(request.user_id)
        address_list = list(user_doc.to_dict().get('addresses') or [])
        address_list.append(address)
        user_doc.reference.update({'addresses': address_list, 'updatedAt': timezone.now()})
        return api_response('Address added', address_list, status=201)

    return method_not_allowed()


@csrf_exempt
@user_required
def address_detail(request, index):
    if request.method not in ('PATCH', 'DELETE'):
        return method_not_allowed()

    data = parse_json_body(request) if request.method == 'PATCH' else None
    user_doc = _get_user_doc(request.user_id)
    address_list = list(user_doc.to_dict().get('addresses') or [])
    if index < 0 or index >= len(address_list):
        raise NotFound('Address not found')

    if request.method == 'PATCH':
        address_list[index] = _address_from(data)
        message = 'Address updated'
    else:
        address_list.pop(index)
        message = 'Address deleted'

    user_doc.reference.update({'addresses': address_list, 'updatedAt': timezone.now()})
    return api_response(message, address_list)


@csrf_exempt
@user_required
def recent_searches(request):
    limit = settings.RECENT_SEARCHES_LIMIT

    if request.method == 'GET':
        user_doc = _get_user_doc(request.user_id)
        searches = user_doc.to_dict().get('recentSearches') or []
        return api_response('Recent searches', searches[:limit])

    if request.method == 'POST':
        term = (parse_json_body(request).get('term') or '').strip()
        if not term:
            raise ValidationError('term is required')
        user_doc = _get_user_doc(request.user_id)
        previous = user_doc.to_dict().get('recentSearches') or []
        # Most recent first, one entry per case-insensitive term
        searches = [term] + [s for s in previous if s.lower() != term.lower()]
        searches = searches[:limit]
        user_doc.reference.update({'recentSearches': searches})
        return api_response('Saved', searches)

    return method_not_allowed()


@csrf_exempt
def popular_searches(request):
    if request.method != 'GET':
        return method_not_allowed()

    frequency = {}
    users = get_db().collection(USERS).limit(settings.POPULAR_SEARCHES_SAMPLE).stream()
    for user_doc in users:
        for term in user_doc.to_dict().get('recentSearches') or []:
            key = str(term).lower()
            frequency[key] = frequency.get(key, 0) + 1

    ranked = sorted(frequency.items(), key=lambda item: item[1], reverse=True)
    popular = [term for term, _ in ranked[:10]]
    return api_response('Popular searches', popular or FALLBACK_POPULAR_SEARCHES)
