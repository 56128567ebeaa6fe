# stores/views.py
import logging

from django.db import DatabaseError, connection
from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from users.permissions import IsAdmin, IsAnyRole, IsStoreOwner
from .serializers import (
    AdminStoreCreateSerializer, AdminStoreSerializer, OwnerRaterSerializer, OwnerStoreSerializer,
    RatingSubmitSerializer, StoreCreateSerializer, UserStoreSerializer,
)
from . import services

logger = logging.getLogger(__name__)


@api_view(['GET', 'POST'])
@permission_classes([IsAdmin])
def admin_stores_view(request):
    """
    GET  /api/admin/stores?search=&sortBy=name&sortOrder=ASC
    POST /api/admin/stores  body: { name, email, address, owner_id? }
    """
    if request.method == 'POST':
        serializer = AdminStoreCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        store = services.create_store(**serializer.validated_data)
        return Response({"message": "Store created successfully", "id": store.id}, status=status.HTTP_201_CREATED)

    stores = services.list_stores(request.query_params)
    return Response(AdminStoreSerializer(stores, many=True).data)


@api_view(['GET'])
@permission_classes([IsAnyRole])
def store_list_view(request):
    """
    GET /api/stores?search=&sortBy=name&sortOrder=ASC&storeId=
    Every row carries the caller's own rating as user_rating.
    """
    stores = services.list_stores_for_user(request.user.id, request.query_params)
    return Response(UserStoreSerializer(stores, many=True).data)


@api_view(['POST'])
@permission_classes([IsAnyRole])
def submit_rating_view(request):
    """
    POST /api/ratings
    body: { store_id, rating: 1..5 }
    A second submission for the same store overwrites the first.
    """
    serializer = RatingSubmitSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    services.submit_rating(
        request.user.id,
        serializer.validated_data['store_id'],
        serializer.validated_data['rating'],
    )
    return Response({"message": "Rating submitted successfully"})


@api_view(['GET'])
@permission_classes([IsStoreOwner])
def store_owner_dashboard_view(request):
    stores, ratings = services.owner_dashboard(request.user.id)
    return Response({
        "stores": OwnerStoreSerializer(stores, many=True).data,
        "users": OwnerRaterSerializer(ratings, many=True).data,
    })


@api_view(['POST'])
@permission_classes([IsStoreOwner])
def store_owner_create_store_view(request):
    """POST /api/store-owner/stores  body: { name, email, address }, owned by the caller."""
    serializer = StoreCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    store = services.create_store(owner_id=request.user.id, **serializer.validated_data)
    return Response({"message": "Store created successfully", "id": store.id}, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def health_view(request):
    database = 'ok'
    try:
        connection.ensure_connection()
    except DatabaseError:
        logger.exception("Database health check failed")
        database = 'error'
    return Response({"backend": "ok", "database": database})
