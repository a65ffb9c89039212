import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError, AuthenticationFailed
from django.contrib.auth import get_user_model
from django.core.exceptions import ObjectDoesNotExist
from django.shortcuts import get_object_or_404

from .filters import AuditLogFilter
from .models import AuditLog
from .permissions import IsMarketplaceAdmin
from .serializers import (
    UserSerializer, UserCreateSerializer, UserStatusSerializer, AuditLogSerializer
)
from .utils import create_audit_log

User = get_user_model()
logger = logging.getLogger('marketplace.core')


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        # Emails are matched case-insensitively; authenticate with the stored spelling
        email = (attrs.get(self.username_field) or '').strip()
        stored_email = User.objects.filter(email__iexact=email).values_list('email', flat=True).first()
        attrs[self.username_field] = stored_email or email
        data = super().validate(attrs)
        if not self.user.is_active:
            raise AuthenticationFailed('User account is disabled.')
        data['user'] = UserSerializer(self.user).data
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['email'] = user.email
        token['role'] = user.role
        return token


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Token refresh that reports deleted users as an invalid token"""
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
    """Register a vendor or supplier account and log it in"""
    serializer = UserCreateSerializer(data=request.data)
    if serializer.is_valid():
        user = serializer.save()
        token = CustomTokenObtainPairSerializer.get_token(user)
        logger.info(f"Registered {user.role} account {user.email}")
        return Response({
            'user': UserSerializer(user).data,
            'access': str(token.access_token),
            'refresh': str(token),
        }, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Get or update the current user's profile"""
    if request.method == 'GET':
        return Response(UserSerializer(request.user).data)
    serializer = UserSerializer(request.user, data=request.data, partial=True)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


# Admin user management
@api_view(['GET'])
@permission_classes([IsMarketplaceAdmin])
def admin_user_list(request):
    """List all users, optionally filtered by role"""
    users = User.objects.all().order_by('-created_at')
    role = request.query_params.get('role')
    if role:
        users = users.filter(role=role)
    return Response(UserSerializer(users, many=True).data)


@api_view(['PATCH'])
@permission_classes([IsMarketplaceAdmin])
def admin_user_status(request, pk):
    """Activate or deactivate a user account"""
    user = get_object_or_404(User, pk=pk)
    serializer = UserStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    if user.pk == request.user.pk and not serializer.validated_data['is_active']:
        return Response({'error': 'You cannot deactivate your own account'}, status=status.HTTP_400_BAD_REQUEST)

    old_status = user.is_active
    user.is_active = serializer.validated_data['is_active']
    user.save(update_fields=['is_active', 'updated_at'])
    create_audit_log(
        request=request,
        action='user_status',
        model_name='User',
        object_id=user.id,
        object_reference=user.email,
        changes={'is_active': {'old': old_status, 'new': user.is_active}},
    )
    logger.info(f"User {user.email} is_active set to {user.is_active} by {request.user.email}")
    return Response(UserSerializer(user).data)


# AuditLog views (read-only)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def audit_log_list(request):
    """List audit logs with filtering"""
    queryset = AuditLog.objects.select_related('user').order_by('-created_at')

    if not request.user.is_marketplace_admin:
        queryset = queryset.filter(user=request.user)

    log_filter = AuditLogFilter(request.query_params, queryset=queryset)
    if not log_filter.is_valid():
        return Response(log_filter.errors, status=status.HTTP_400_BAD_REQUEST)

    serializer = AuditLogSerializer(log_filter.qs, many=True)
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def audit_log_detail(request, pk):
    """Retrieve an audit log"""
    audit_log = get_object_or_404(AuditLog, pk=pk)

    if not request.user.is_marketplace_admin and audit_log.user_id != request.user.id:
        return Response({'error': 'Permission denied'}, status=status.HTTP_403_FORBIDDEN)

    serializer = AuditLogSerializer(audit_log)
    return Response(serializer.data)
