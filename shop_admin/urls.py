from django.urls import path
from .views import *


urlpatterns = [
    path('login', admin_login, name='admin_login'),
    path('password', change_password, name='admin_change_password'),

    # OTP password reset
    path('forgot-password', admin_forgot_password, name='admin_forgot_password'),
    path('verify-otp', admin_verify_otp, name='admin_verify_otp'),
    path('reset-password', admin_reset_password, name='admin_reset_password'),
]
