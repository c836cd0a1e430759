"""
OTP based password reset, shared by the user and admin account collections.

A reset goes through three calls: ``issue_otp`` stores a 6-digit code with
an expiry on the account document and emails it, ``verify_otp`` checks a
code without consuming it, and ``reset_password`` checks it again, stores
the new password hash and clears the code. Expiry is checked when a code is
presented; expired codes are cleared at that point.
"""
import logging
import secrets
from datetime import timedelta

from django.conf import settings
from django.contrib.auth.hashers import make_password
from django.core.mail import send_mail
from django.utils import timezone

from nevyra.exceptions import ApiError, ValidationError
from nevyra.firebase import get_db
from nevyra.validators import PASSWORD_MESSAGE, is_email, is_strong_password

logger = logging.getLogger(__name__)

GENERIC_FORGOT_MESSAGE = 'If an account with this email exists, a password reset OTP has been sent'

CLEARED_OTP = {'resetPasswordOTP': None, 'resetPasswordOTPExpires': None}


def generate_otp():
    return str(secrets.randbelow(900000) + 100000)


def send_otp_email(email, otp):
    send_mail(
        subject='Your password reset code',
        message=(
            f'Your password reset OTP is: {otp}\n'
            f'It will expire in {settings.OTP_EXPIRY_MINUTES} minutes.'
        ),
        from_email=settings.DEFAULT_FROM_EMAIL,
        recipient_list=[email],
        fail_silently=False,
    )


def _find_account(collection, email):
    docs = get_db().collection(collection).where('email', '==', email).limit(1).stream()
    for doc in docs:
        return doc
    return None


def issue_otp(collection, email):
    """Create and email a reset code. Unknown emails are silently ignored."""
    if not email:
        raise ValidationError('Email address is required')
    if not is_email(email):
        raise ValidationError('Please provide a valid email address')

    account = _find_account(collection, email)
    if account is None:
        logger.info(f"Password reset requested for unknown {collection} email")
        return

    otp = generate_otp()
    account.reference.update({
        'resetPasswordOTP': otp,
        'resetPasswordOTPExpires': timezone.now() + timedelta(minutes=settings.OTP_EXPIRY_MINUTES),
    })

    try:
        send_otp_email(email, otp)
    except Exception as e:
        account.reference.update(CLEARED_OTP)
        logger.error(f"Failed to send reset OTP for {collection} account {account.id}: {str(e)}")
        raise ApiError('Failed to send reset email. Please try again later.', 500)

    logger.info(f"Reset OTP issued for {collection} account {account.id}")


def _check_otp(collection, email, otp):
    account = _find_account(collection, email)
    if account is None:
        raise ValidationError('Invalid reset request or OTP expired')

    data = account.to_dict()
    stored_otp = data.get('resetPasswordOTP')
    expires_at = data.get('resetPasswordOTPExpires')
    if not stored_otp or not expires_at:
        raise ValidationError('Invalid reset request or OTP expired')

    if expires_at < timezone.now():
        account.reference.update(CLEARED_OTP)
        raise ValidationError('OTP has expired. Please request a new one.')

    if not secrets.compare_digest(str(stored_otp), str(otp)):
        raise ValidationError('Invalid OTP code')

    return account


def verify_otp(collection, email, otp):
    if not email or not otp:
        raise ValidationError('Email and OTP are required')
    _check_otp(collection, email, otp)


def reset_password(collection, email, otp, new_password):
    if not email or not otp or not new_password:
        raise ValidationError('Email, OTP, and new password are required')

    account = _check_otp(collection, email, otp)

    if not is_strong_password(new_password):
        raise ValidationError(PASSWORD_MESSAGE)

    account.reference.update({
        'password': make_password(new_password),
        'updatedAt': timezone.now(),
        **CLEARED_OTP,
    })
    logger.info(f"Password reset completed for {collection} account {account.id}")
