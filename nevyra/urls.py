from django.urls import include, path
from nevyra import views
from orders import views as order_views
from products import views as product_views
from shop_users import cart_views
from shop_users.urls import auth_urlpatterns, cart_urlpatterns, users_urlpatterns

# Collection roots are routed without a trailing slash, e.g. /api/products
urlpatterns = [
    path('api/health', views.health, name='health'),
    path('api/auth/', include(auth_urlpatterns)),
    path('api/users/', include(users_urlpatterns)),
    path('api/cart', cart_views.cart, name='cart'),
    path('api/cart/', include(cart_urlpatterns)),
    path('api/products', product_views.products, name='products'),
    path('api/products/', include('products.urls')),
    path('api/orders', order_views.orders, name='orders'),
    path('api/orders/', include('orders.urls')),
    path('api/admins/', include('shop_admin.urls')),
]

handler404 = 'nevyra.views.not_found'
handler500 = 'nevyra.views.server_error'
