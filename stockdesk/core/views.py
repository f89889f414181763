from django.shortcuts import get_object_or_404, redirect
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated, IsAdminUser
from rest_framework.response import Response
from rest_framework_simplejwt.views import TokenObtainPairView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer
from rest_framework_simplejwt.exceptions import AuthenticationFailed

from .models import AuditLog
from .routes import SCREENS, INVENTORY_ROUTE, resolve_screen, screen_endpoint
from .serializers import AuditLogSerializer


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        data = super().validate(attrs)
        # Ensure user is active
        if not self.user.is_active:
            raise AuthenticationFailed('User account is disabled.')
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        # Claims read back by stateless token authentication
        token['username'] = user.username
        token['is_staff'] = user.is_staff
        return token


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Get the identity carried by the current token"""
    user = request.user
    return Response({
        'id': str(user.id),
        'username': getattr(user, 'username', ''),
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def screen_list(request):
    """List the navigation surface with the API entry point of each screen"""
    return Response([
        {
            'route': screen.route,
            'title': screen.title,
            'endpoint': screen_endpoint(screen),
        }
        for screen in SCREENS
    ])


def unknown_route_redirect(request):
    """Unknown paths land on the inventory view"""
    return redirect(screen_endpoint(resolve_screen(INVENTORY_ROUTE)))


# AuditLog views (read-only)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def audit_log_list(request):
    """List audit log entries, optionally filtered by action"""
    logs = AuditLog.objects.all()
    action = request.query_params.get('action')
    if action:
        logs = logs.filter(action=action)
    serializer = AuditLogSerializer(logs[:500], many=True)
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def audit_log_detail(request, pk):
    """Retrieve an audit log entry"""
    log = get_object_or_404(AuditLog, pk=pk)
    serializer = AuditLogSerializer(log)
    return Response(serializer.data)
