"""
Access API views: route permission checks and permission reports.
"""
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from django.db import DatabaseError
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes
import logging

from apps.access.permissions import IsSuperUser, get_resolver, request_identity
from apps.access.privileges import is_super_admin, is_super_user
from apps.access.serializers import (
    EffectivePermissionsSerializer,
    PrivilegesSerializer,
    RouteCheckQuerySerializer,
    RouteCheckResponseSerializer,
)
from apps.core.sentry_utils import capture_exception

logger = logging.getLogger(__name__)

CATALOG_UNAVAILABLE = 'Permission catalog unavailable'

ERROR_RESPONSE = {
    'type': 'object',
    'properties': {
        'error': {'type': 'string'},
        'details': {'type': 'object'}
    }
}


def catalog_unavailable_response(request, exc):
    logger.error(
        "Permission catalog unavailable",
        extra={
            'path': request.path,
            'request_id': getattr(request, 'request_id', None),
        },
        exc_info=True
    )
    capture_exception(exc)
    return Response(
        {'error': CATALOG_UNAVAILABLE},
        status=status.HTTP_503_SERVICE_UNAVAILABLE
    )


class CheckRoutePermissionView(APIView):
    """
    Ask whether the caller may open a dashboard route.

    GET /v1/access/check-route-permission?route=...&action=...

    A denial is a normal 200 answer with has_access false; the front end
    uses it to hide links and guard pages.
    """

    @extend_schema(
        summary="Check route permission",
        description="Resolve whether the authenticated caller may perform an action on a dashboard route",
        parameters=[
            OpenApiParameter(
                name='route',
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                required=True,
                description='Dashboard route, e.g. /dashboard/baseline-qol/add'
            ),
            OpenApiParameter(
                name='action',
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                description='Explicit action key; derived from the route when omitted'
            ),
        ],
        responses={
            200: RouteCheckResponseSerializer,
            400: ERROR_RESPONSE,
        },
        tags=['Access']
    )
    def get(self, request):
        """Resolve access for the caller."""
        query_serializer = RouteCheckQuerySerializer(data=request.query_params)
        if not query_serializer.is_valid():
            return Response(
                {
                    'error': 'Invalid query parameters',
                    'details': query_serializer.errors
                },
                status=status.HTTP_400_BAD_REQUEST
            )

        params = query_serializer.validated_data
        decision = get_resolver().resolve(
            request_identity(request),
            params['route'],
            params.get('action') or None,
        )

        data = {
            'success': True,
            'has_access': decision.allowed,
            'route': decision.route,
            'action': decision.action_key,
            'reason': decision.reason,
        }
        if not decision.allowed:
            data['message'] = decision.message

        return Response(data, status=status.HTTP_200_OK)


class MyPrivilegesView(APIView):
    """
    Super flags of the caller.

    GET /v1/access/me/privileges
    """

    @extend_schema(
        summary="Caller privileges",
        description="Whether the authenticated caller is a Super Admin and/or a Super User",
        responses={
            200: PrivilegesSerializer,
            503: ERROR_RESPONSE,
        },
        tags=['Access']
    )
    def get(self, request):
        identity = request_identity(request)
        catalog = get_resolver().catalog

        try:
            data = {
                'identity': identity,
                'is_super_admin': is_super_admin(catalog, identity),
                'is_super_user': is_super_user(catalog, identity),
            }
        except DatabaseError as e:
            return catalog_unavailable_response(request, e)

        return Response(PrivilegesSerializer(data).data, status=status.HTTP_200_OK)


class MyPermissionsView(APIView):
    """
    Effective permission report for the caller.

    GET /v1/access/me/permissions
    """

    @extend_schema(
        summary="My permissions",
        description="Roles, role grants and user overrides of the authenticated caller",
        responses={
            200: EffectivePermissionsSerializer,
            503: ERROR_RESPONSE,
        },
        tags=['Access']
    )
    def get(self, request):
        try:
            report = get_resolver().effective_permissions(request_identity(request))
        except DatabaseError as e:
            return catalog_unavailable_response(request, e)

        return Response(
            EffectivePermissionsSerializer(report.as_dict()).data,
            status=status.HTTP_200_OK
        )


class UserPermissionsView(APIView):
    """
    Effective permission report for any identity.

    GET /v1/access/users/{identity}/permissions

    Restricted to Super Users.
    """
    permission_classes = [IsSuperUser]

    @extend_schema(
        summary="User permissions",
        description="Roles, role grants and user overrides of any identity (Super Users only)",
        responses={
            200: EffectivePermissionsSerializer,
            403: ERROR_RESPONSE,
            503: ERROR_RESPONSE,
        },
        tags=['Access']
    )
    def get(self, request, identity):
        try:
            report = get_resolver().effective_permissions(identity)
        except DatabaseError as e:
            return catalog_unavailable_response(request, e)

        logger.info(
            "Permission report viewed",
            extra={
                'viewer': request_identity(request),
                'subject': identity,
                'request_id': getattr(request, 'request_id', None),
            }
        )
        return Response(
            EffectivePermissionsSerializer(report.as_dict()).data,
            status=status.HTTP_200_OK
        )
