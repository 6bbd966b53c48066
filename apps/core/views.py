"""
Core API views.
"""
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from django.db import connection, DatabaseError
from drf_spectacular.utils import extend_schema
import logging

from apps.access.models import Page

logger = logging.getLogger(__name__)

HEALTH_RESPONSE = {
    'type': 'object',
    'properties': {
        'status': {'type': 'string'},
        'database': {'type': 'string'},
        'catalog': {'type': 'string'},
        'errors': {'type': 'array', 'items': {'type': 'string'}},
    }
}


class HealthCheckView(APIView):
    """
    Health check endpoint for load balancers.

    GET /v1/health

    Reports whether the database answers and whether the permission
    catalog tables can be read. Any failure turns the response into a 503,
    since every access check would fail closed in that state.
    """
    authentication_classes = []
    permission_classes = []

    @extend_schema(
        summary="Health check",
        description="Check database connectivity and permission catalog readability",
        responses={200: HEALTH_RESPONSE, 503: HEALTH_RESPONSE},
        tags=['Health']
    )
    def get(self, request):
        health_status = {
            'status': 'healthy',
            'database': 'unknown',
            'catalog': 'unknown',
        }
        errors = []

        try:
            with connection.cursor() as cursor:
                cursor.execute("SELECT 1")
            health_status['database'] = 'healthy'
        except DatabaseError as e:
            health_status['database'] = 'unhealthy'
            errors.append(f"Database: {e.__class__.__name__}")
            logger.error("Database health check failed", exc_info=True)

        # Skip the catalog probe when the connection itself is down
        if not errors:
            try:
                Page.objects.exists()
                health_status['catalog'] = 'healthy'
            except DatabaseError as e:
                health_status['catalog'] = 'unhealthy'
                errors.append(f"Catalog: {e.__class__.__name__}")
                logger.error("Permission catalog health check failed", exc_info=True)

        if errors:
            health_status['status'] = 'unhealthy'
            health_status['errors'] = errors
            return Response(health_status, status=status.HTTP_503_SERVICE_UNAVAILABLE)

        return Response(health_status, status=status.HTTP_200_OK)
