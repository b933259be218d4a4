from rest_framework import serializers
from rest_framework.validators import UniqueValidator
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer
from rest_framework_simplejwt.exceptions import AuthenticationFailed
from django.contrib.auth.password_validation import validate_password
from .models import User


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'email', 'name', 'role', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']


class UserSummarySerializer(serializers.ModelSerializer):
    """Minimal user representation embedded in tasks and work orders"""
    class Meta:
        model = User
        fields = ['id', 'name', 'email']


class UserCreateSerializer(serializers.ModelSerializer):
    email = serializers.EmailField(
        validators=[UniqueValidator(queryset=User.objects.all(), message='User already exists', lookup='iexact')]
    )
    password = serializers.CharField(write_only=True, validators=[validate_password])
    name = serializers.CharField(required=False, allow_blank=True, max_length=200)

    class Meta:
        model = User
        fields = ['email', 'password', 'name']

    def validate_email(self, value):
        return value.lower()

    def create(self, validated_data):
        # Role is never taken from the request on self-registration
        return User.objects.create_user(
            email=validated_data['email'],
            password=validated_data['password'],
            name=validated_data.get('name') or '',
            role=User.ROLE_USER,
        )


class UserUpdateSerializer(serializers.ModelSerializer):
    """Admin-side user edits; a new password is hashed before saving"""
    password = serializers.CharField(write_only=True, required=False, validators=[validate_password])

    class Meta:
        model = User
        fields = ['id', 'email', 'name', 'role', 'is_active', 'password', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']

    def validate_email(self, value):
        return value.lower()

    def update(self, instance, validated_data):
        password = validated_data.pop('password', None)
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        if password:
            instance.set_password(password)
        instance.save()
        return instance


class LoginSerializer(TokenObtainPairSerializer):
    """Email/password login issuing a token that carries id, email and role"""
    default_error_messages = {
        'no_active_account': 'Invalid credentials',
    }

    def validate(self, attrs):
        data = super().validate(attrs)
        if not self.user.is_active:
            raise AuthenticationFailed('User account is disabled.')
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['email'] = user.email
        token['role'] = user.role
        return token
