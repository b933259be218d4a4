import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework_simplejwt.views import TokenRefreshView
from rest_framework_simplejwt.serializers import TokenRefreshSerializer
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from django.contrib.auth import get_user_model
from django.core.exceptions import ObjectDoesNotExist
from django.shortcuts import get_object_or_404
from .exceptions import DomainValidationError
from .permissions import IsAdminRole
from .serializers import (
    UserSerializer, UserSummarySerializer, UserCreateSerializer,
    UserUpdateSerializer, LoginSerializer
)

User = get_user_model()
logger = logging.getLogger(__name__)


def _auth_payload(user, token):
    return {
        'user': UserSerializer(user).data,
        'token': str(token.access_token),
        'refresh': str(token),
    }


@api_view(['POST'])
@permission_classes([AllowAny])
def login(request):
    """Exchange email and password for a signed access token"""
    serializer = LoginSerializer(data=request.data, context={'request': request})
    serializer.is_valid(raise_exception=True)
    user = serializer.user
    logger.info(f"User {user.id} logged in")
    return Response(_auth_payload(user, LoginSerializer.get_token(user)))


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Token refresh that treats a deleted user as an invalid token"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except (ObjectDoesNotExist, User.DoesNotExist):
            raise InvalidToken('Token is invalid. User no longer exists.')


class CustomTokenRefreshView(TokenRefreshView):
    serializer_class = CustomTokenRefreshSerializer


@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """User registration endpoint"""
    serializer = UserCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    user = serializer.save()
    logger.info(f"Registered user {user.id} ({user.email})")
    return Response(_auth_payload(user, LoginSerializer.get_token(user)), status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Current user, without password"""
    return Response(UserSerializer(request.user).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_list(request):
    """All users; admins get full records, others the fields needed to forward a task"""
    users = User.objects.filter(is_active=True) if not request.user.is_admin else User.objects.all()
    if request.user.is_admin:
        return Response(UserSerializer(users, many=True).data)
    return Response(UserSummarySerializer(users, many=True).data)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminRole])
def user_detail(request, pk):
    """Retrieve, update or delete a user"""
    user = get_object_or_404(User, pk=pk)

    if request.method == 'GET':
        return Response(UserSerializer(user).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = UserUpdateSerializer(user, data=request.data, partial=request.method == 'PATCH')
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(UserSerializer(user).data)
    else:  # DELETE
        if user.pk == request.user.pk:
            raise DomainValidationError('You cannot delete your own account.')
        # Owned tasks fall back to general tasks (FK SET_NULL), the user's notifications go with them
        released = user.tasks.count()
        user.delete()
        logger.info(f"Deleted user {pk}; {released} task(s) moved to general")
        return Response(status=status.HTTP_204_NO_CONTENT)
