from django.urls import path
from .views import (
    admin_dashboard_view, admin_user_detail_view, admin_users_view,
    change_password_view, login_view, register_view, store_owner_change_password_view,
)

urlpatterns = [
    path('auth/login', login_view, name='auth-login'),
    path('auth/register', register_view, name='auth-register'),
    path('users/password', change_password_view, name='users-password'),
    path('admin/dashboard', admin_dashboard_view, name='admin-dashboard'),
    path('admin/users', admin_users_view, name='admin-users'),
    path('admin/users/<int:user_id>', admin_user_detail_view, name='admin-user-detail'),
    path('store-owner/change-password', store_owner_change_password_view, name='store-owner-change-password'),
]
