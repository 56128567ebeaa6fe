from django.urls import path
from .views import (
    admin_stores_view, health_view, store_list_view, store_owner_create_store_view,
    store_owner_dashboard_view, submit_rating_view,
)

urlpatterns = [
    path('health', health_view, name='health'),
    path('stores', store_list_view, name='store-list'),
    path('ratings', submit_rating_view, name='rating-submit'),
    path('admin/stores', admin_stores_view, name='admin-stores'),
    path('store-owner/dashboard', store_owner_dashboard_view, name='store-owner-dashboard'),
    path('store-owner/stores', store_owner_create_store_view, name='store-owner-stores'),
]
