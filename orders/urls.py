from django.urls import path
from . import views


urlpatterns = [
    # Admin routes come before <order_id> so they are not captured by it
    path('admin/all', views.admin_all_orders, name='admin_all_orders'),
    path('admin/<str:order_id>/status', views.admin_update_status, name='admin_update_status'),

    path('number/<str:order_number>', views.order_by_number, name='order_by_number'),
    path('<str:order_id>', views.order_detail, name='order_detail'),
    path('<str:order_id>/cancel', views.cancel_order, name='cancel_order'),
]
