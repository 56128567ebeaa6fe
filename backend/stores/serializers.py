from collections.abc import Mapping

from rest_framework import serializers
from rest_framework.settings import api_settings

from users import validation
from users.serializers import check, text_field
from .services import store_owner_exists


class StoreCreateSerializer(serializers.Serializer):
    name = text_field()
    email = text_field()
    address = text_field()

    def to_internal_value(self, data):
        if isinstance(data, Mapping) and not all(data.get(field) for field in ('name', 'email', 'address')):
            raise serializers.ValidationError({
                api_settings.NON_FIELD_ERRORS_KEY: ['Name, email, and address are required'],
            })
        return super().to_internal_value(data)

    def validate_name(self, value):
        return check(validation.validate_store_name, value)

    def validate_email(self, value):
        return check(validation.validate_email, value)

    def validate_address(self, value):
        return check(validation.validate_address, value)


class AdminStoreCreateSerializer(StoreCreateSerializer):
    owner_id = serializers.IntegerField(required=False, allow_null=True, default=None)

    def validate_owner_id(self, value):
        if value is not None and not store_owner_exists(value):
            raise serializers.ValidationError('Owner must be an existing store owner')
        return value


class RatingValueField(serializers.Field):
    default_error_messages = {
        'required': validation.RATING_ERROR,
        'null': validation.RATING_ERROR,
    }

    def to_internal_value(self, data):
        result = validation.validate_rating(data)
        if not result.is_valid:
            raise serializers.ValidationError(result.error)
        return validation.parse_rating(data)

    def to_representation(self, value):
        return value


class RatingSubmitSerializer(serializers.Serializer):
    # rating is checked before the store reference
    rating = RatingValueField()
    store_id = serializers.IntegerField()


class AdminStoreSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    name = serializers.CharField()
    email = serializers.CharField()
    address = serializers.CharField()
    owner_id = serializers.IntegerField(allow_null=True)
    average_rating = serializers.FloatField(allow_null=True)
    total_ratings = serializers.IntegerField()


class UserStoreSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    name = serializers.CharField()
    email = serializers.CharField()
    address = serializers.CharField()
    owner_name = serializers.CharField(allow_null=True)
    average_rating = serializers.FloatField(allow_null=True)
    total_ratings = serializers.IntegerField()
    user_rating = serializers.IntegerField(allow_null=True)


class OwnerStoreSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    name = serializers.CharField()
    address = serializers.CharField()
    averageRating = serializers.FloatField(source='average_rating', allow_null=True)
    totalRatings = serializers.IntegerField(source='total_ratings')


class OwnerRaterSerializer(serializers.Serializer):
    """One rating on an owned store, flattened to the rater's details."""
    id = serializers.IntegerField(source='user.id')
    name = serializers.CharField(source='user.name')
    email = serializers.CharField(source='user.email')
    address = serializers.CharField(source='user.address')
    storeName = serializers.CharField(source='store.name')
    rating = serializers.IntegerField()
    date = serializers.DateTimeField(source='created_at')
