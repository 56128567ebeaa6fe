# users/views.py
import logging

from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from storerating.exceptions import InvalidCredentials
from .permissions import IsAdmin, IsAnyRole, IsStoreOwner
from .serializers import (
    AdminUserCreateSerializer, AdminUserListSerializer, LoginSerializer,
    PasswordChangeSerializer, RegisterSerializer, UserDetailSerializer, UserSerializer,
)
from .credentials import issue_token
from . import services

logger = logging.getLogger(__name__)


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def login_view(request):
    """
    POST /api/auth/login
    body: { email, password }
    Unknown email and wrong password both answer 401 "Invalid email or password".
    """
    serializer = LoginSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    user = services.authenticate_credentials(data['email'], data['password'])
    if user is None:
        logger.info("Failed login attempt")
        raise InvalidCredentials()

    token = issue_token(user.claims)
    logger.info("User id=%s logged in", user.pk)
    return Response({"token": token, "user": UserSerializer(user).data})


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def register_view(request):
    """
    POST /api/auth/register
    body: { name, email, password, address, role='user' }
    No token is issued; the client logs in afterwards.
    """
    serializer = RegisterSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    services.create_user(**serializer.validated_data)
    return Response({"message": "User registered successfully"}, status=status.HTTP_201_CREATED)


def _change_own_password(request):
    serializer = PasswordChangeSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    services.change_password(
        request.user.id,
        serializer.validated_data['current_password'],
        serializer.validated_data['new_password'],
    )
    return Response({"message": "Password updated successfully"})


@api_view(['PUT'])
@permission_classes([IsAnyRole])
def change_password_view(request):
    """PUT /api/users/password  body: { currentPassword, newPassword }"""
    return _change_own_password(request)


@api_view(['PUT'])
@permission_classes([IsStoreOwner])
def store_owner_change_password_view(request):
    """PUT /api/store-owner/change-password, same contract as /api/users/password."""
    return _change_own_password(request)


@api_view(['GET'])
@permission_classes([IsAdmin])
def admin_dashboard_view(request):
    return Response(services.dashboard_counts())


@api_view(['GET', 'POST'])
@permission_classes([IsAdmin])
def admin_users_view(request):
    """
    GET  /api/admin/users?search=&role=&sortBy=name&sortOrder=ASC
    POST /api/admin/users  body: { name, email, password, address, role }
    """
    if request.method == 'POST':
        serializer = AdminUserCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = services.create_user(**serializer.validated_data)
        return Response({"message": "User created successfully", "id": user.id}, status=status.HTTP_201_CREATED)

    users = services.list_users(request.query_params)
    return Response(AdminUserListSerializer(users, many=True).data)


@api_view(['GET'])
@permission_classes([IsAdmin])
def admin_user_detail_view(request, user_id):
    user = services.get_user_detail(user_id)
    return Response(UserDetailSerializer(user).data)
