from rest_framework import serializers
from .models import User, Role
from . import validation


def text_field(**kwargs):
    # Absent, null and blank values all reach validate_<field>, so the
    # validation module decides what is required and reports its own message.
    kwargs.setdefault('required', False)
    kwargs.setdefault('default', '')
    return serializers.CharField(allow_blank=True, allow_null=True, trim_whitespace=False, **kwargs)


def check(validator, value):
    result = validator(value)
    if not result.is_valid:
        raise serializers.ValidationError(result.error)
    return value


class RegisterSerializer(serializers.Serializer):
    name = text_field()
    email = text_field()
    password = text_field()
    address = text_field()
    role = text_field(default=Role.USER)

    def validate_name(self, value):
        return check(validation.validate_name, value)

    def validate_email(self, value):
        return check(validation.validate_email, value)

    def validate_password(self, value):
        return check(validation.validate_password, value)

    def validate_address(self, value):
        return check(validation.validate_address, value)

    def validate_role(self, value):
        return check(validation.validate_role, value)


class AdminUserCreateSerializer(RegisterSerializer):
    role = text_field()


class LoginSerializer(serializers.Serializer):
    email = text_field()
    password = text_field()

    def validate_email(self, value):
        return check(validation.validate_email, value)

    def validate_password(self, value):
        return value or ''


class PasswordChangeSerializer(serializers.Serializer):
    currentPassword = text_field(source='current_password')
    newPassword = text_field(source='new_password')

    def validate_newPassword(self, value):
        return check(validation.validate_password, value)

    def validate_currentPassword(self, value):
        return value or ''


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id','name','email','role','address']


class AdminUserListSerializer(serializers.ModelSerializer):
    # average over every store the user owns; null for non-owners
    rating = serializers.FloatField(read_only=True, allow_null=True)

    class Meta:
        model = User
        fields = ['id','name','email','address','role','rating']


class UserDetailSerializer(serializers.ModelSerializer):
    average_rating = serializers.FloatField(read_only=True, allow_null=True)
    total_ratings = serializers.IntegerField(read_only=True)

    class Meta:
        model = User
        fields = ['id','name','email','address','role','average_rating','total_ratings']
