from django.urls import path
from . import views


urlpatterns = [
    path('all', views.all_products, name='all_products'),
    path('sections', views.sections, name='product_sections'),
    path('top-picks', views.top_picks, name='top_picks'),
    path('suggest', views.suggest, name='suggest'),
    path('<str:product_id>', views.product_detail, name='product_detail'),

    # Reviews
    path('<str:product_id>/reviews', views.product_reviews, name='product_reviews'),
    path('<str:product_id>/reviews/<str:review_id>', views.review_detail, name='review_detail'),
]
