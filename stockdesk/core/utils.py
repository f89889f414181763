"""Utility functions for audit logging and data store error responses"""
import logging

from django.db import DatabaseError
from rest_framework import status
from rest_framework.response import Response

from .models import AuditLog

logger = logging.getLogger(__name__)


def get_client_ip(request):
    """Extract client IP address from request"""
    if not request or not hasattr(request, 'META'):
        return None
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or None


def create_audit_log(request=None, action=None, model_name=None, object_id=None,
                     changes=None, object_name=None, object_reference=None):
    """
    Create an audit log entry

    Args:
        request: Django/DRF request object (for user claims and IP)
        action: Action type (create, update, stock_entry, price_change, ...)
        model_name: Name of the record type being acted upon
        object_id: ID of the object (as string)
        changes: Dictionary of changes made
        object_name: Human-readable name of the object
        object_reference: Reference identifier (product code, order reference)

    Failures are logged and never propagate to the calling operation.
    """
    if not action or not model_name or not object_id:
        logger.warning(f"Audit log creation skipped: missing required fields (action={action}, model_name={model_name}, object_id={object_id})")
        return None

    user = getattr(request, 'user', None) if request else None
    user_id = None
    username = None
    if user is not None and getattr(user, 'is_authenticated', False):
        user_id = str(getattr(user, 'id', '') or '') or None
        username = getattr(user, 'username', None) or None

    try:
        return AuditLog.objects.create(
            user_id=user_id,
            username=username,
            action=action,
            model_name=model_name,
            object_id=str(object_id),
            object_name=object_name,
            object_reference=object_reference,
            changes=changes or {},
            ip_address=get_client_ip(request) if request else None,
        )
    except DatabaseError as e:
        # Don't fail the main operation if audit logging fails
        logger.error(f"Failed to create audit log: {str(e)}")
        return None


def store_error_response(error, message="Error al conectar con la base de datos o procesar datos."):
    """
    Generic alert returned when a write to the data store fails.
    Nothing is retried and nothing is redirected to the local mirror.
    """
    logger.error(f"Data store write failed: {str(error)}")
    return Response(
        {'error': 'Data store unavailable', 'message': message},
        status=status.HTTP_503_SERVICE_UNAVAILABLE,
    )


def query_list(request, name):
    """Multi-valued query parameter: repeated (?line=A&line=B) or comma separated (?line=A,B)"""
    values = []
    for raw in request.query_params.getlist(name):
        values.extend(part.strip() for part in raw.split(',') if part.strip())
    return values
