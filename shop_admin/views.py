from django.views.decorators.csrf import csrf_exempt
import logging
from shop_users.utils import user_required
from .models import ShopAdmin
from .utils import admin_required
from nevyra import password_reset
from nevyra.exceptions import NotFound, Unauthorized, ValidationError
from nevyra.responses import api_response, method_not_allowed, parse_json_body
from nevyra.utils import generate_admin_token
from nevyra.validators import PASSWORD_MESSAGE, is_strong_password

logger = logging.getLogger(__name__)

ADMINS = ShopAdmin.COLLECTION_NAME


@csrf_exempt
def admin_login(request):
    if request.method != 'POST':
        return method_not_allowed()

    data = parse_json_body(request)
    email = data.get('email')
    password = data.get('password')
    if not email or not password:
        raise ValidationError('Email and password are required')

    shop_admin = ShopAdmin.get_by_email(email)
    if shop_admin is None or not shop_admin.check_password(password):
        logger.warning(f"Failed admin login attempt from {request.META.get('REMOTE_ADDR')}")
        raise Unauthorized('Invalid email or password')

    token = generate_admin_token(shop_admin.admin_id, shop_admin.email)
    logger.info(f"Admin {shop_admin.admin_id} logged in")
    return api_response('Login successful', {'token': token, 'admin': shop_admin.to_dict()})


@csrf_exempt
@user_required
@admin_required
def change_password(request):
    if request.method != 'PUT':
        return method_not_allowed()

    data = parse_json_body(request)
    current_password = data.get('currentPassword')
    new_password = data.get('newPassword')
    if not current_password or not new_password:
        raise ValidationError('Current password and new password are required')

    shop_admin = ShopAdmin.get_by_id(request.user_id)
    if shop_admin is None:
        raise NotFound('Admin not found')
    if not shop_admin.check_password(current_password):
        raise Unauthorized('Current password is incorrect')
    if not is_strong_password(new_password):
        raise ValidationError(PASSWORD_MESSAGE)

    shop_admin.set_password(new_password)
    logger.info(f"Admin {shop_admin.admin_id} changed their password")
    return api_response('Password updated successfully')


@csrf_exempt
def admin_forgot_password(request):
    if request.method != 'POST':
        return method_not_allowed()
    data = parse_json_body(request)
    password_reset.issue_otp(ADMINS, data.get('email'))
    return api_response(password_reset.GENERIC_FORGOT_MESSAGE)


@csrf_exempt
def admin_verify_otp(request):
    if request.method != 'POST':
        return method_not_allowed()
    data = parse_json_body(request)
    password_reset.verify_otp(ADMINS, data.get('email'), data.get('otp'))
    return api_response('OTP verified successfully. You can now reset your password.')


@csrf_exempt
def admin_reset_password(request):
    if request.method != 'POST':
        return method_not_allowed()
    data = parse_json_body(request)
    password_reset.reset_password(ADMINS, data.get('email'), data.get('otp'), data.get('newPassword'))
    return api_response('Password has been reset successfully. You can now login with your new password.')
