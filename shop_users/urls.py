from django.urls import path
from . import cart_views, views


auth_urlpatterns = [
    path('register', views.register, name='register'),
    path('login', views.login, name='login'),
    path('forgot-password', views.forgot_password, name='forgot_password'),
    path('verify-otp', views.verify_otp, name='verify_otp'),
    path('reset-password', views.reset_password, name='reset_password'),
    path('profile', views.profile, name='profile'),

    # Addresses URLs
    path('addresses', views.addresses, name='addresses'),
    path('addresses/<int:index>', views.address_detail, name='address_detail'),
]

users_urlpatterns = [
    path('profile', views.profile, name='user_profile'),
    path('recent-searches', views.recent_searches, name='recent_searches'),
    path('popular-searches', views.popular_searches, name='popular_searches'),
]

cart_urlpatterns = [
    path('summary', cart_views.cart_summary, name='cart_summary'),
    path('<str:item_id>', cart_views.cart_item, name='cart_item'),
]
