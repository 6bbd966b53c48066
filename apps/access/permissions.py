"""
DRF permission classes and decorators for route permission enforcement.

This module provides:
- HasRoutePermission: DRF permission class that runs the route resolver
- @require_route_permission: Decorator to declare the route/action a view checks
- IsSuperUser: DRF permission class for operator-only endpoints

The resolver decides; this module only maps its decision onto HTTP:
no identity -> 401, denied -> 403 carrying the deny diagnostics.
"""
import logging
from functools import wraps

from django.apps import apps as django_apps
from django.db import DatabaseError
from rest_framework.permissions import BasePermission

from apps.access.privileges import is_super_user
from apps.core.exceptions import AuthenticationError, RouteAccessDenied
from apps.core.sentry_utils import capture_exception, set_access_context

logger = logging.getLogger(__name__)

UNAUTHORIZED_MESSAGE = 'Unauthorized'


def get_resolver():
    """The shared PermissionResolver built by AccessConfig.ready()."""
    return django_apps.get_app_config('access').resolver


def request_identity(request):
    """Raw identity of the authenticated caller, or None."""
    user = getattr(request, 'user', None)
    if user is None or not getattr(user, 'is_authenticated', False):
        return None
    identity = getattr(user, 'identity', None)
    if identity is None:
        return None
    identity = str(identity).strip()
    return identity or None


def check_route_access(request, route=None, action=None):
    """
    Resolve access for the caller of ``request``.

    Args:
        request: DRF request with an authenticated user
        route: Route to check; defaults to the request path
        action: Explicit action key; derived from the route when omitted

    Returns:
        The Allow decision

    Raises:
        AuthenticationError: No verified identity on the request
        RouteAccessDenied: The resolver denied; details carry the diagnostics
    """
    identity = request_identity(request)
    if not identity:
        raise AuthenticationError(UNAUTHORIZED_MESSAGE)

    if route is None:
        route = request.path

    set_access_context(identity, route, action)
    decision = get_resolver().resolve(identity, route, action)
    if not decision.allowed:
        logger.warning(
            f"Route permission denied: {decision.route} ({decision.action_key})",
            extra={
                'route': decision.route,
                'action_key': decision.action_key,
                'reason': decision.reason,
                'method': request.method,
                'path': request.path,
                'request_id': getattr(request, 'request_id', None),
            }
        )
        raise RouteAccessDenied(decision.message, details=decision.as_dict())

    return decision


class HasRoutePermission(BasePermission):
    """
    DRF permission class that enforces route permissions on API endpoints.

    The view may declare ``route_permission`` (the dashboard route it serves)
    and ``route_action`` (an explicit action key). Without them the request
    path is checked and the action is derived from it.

    Usage in views:
        class BaselineCreateView(APIView):
            permission_classes = [HasRoutePermission]
            route_permission = '/dashboard/baseline-qol/add'

    Or use with decorator:
        @require_route_permission('/dashboard/baseline-qol', action='ADD')
        class BaselineCreateView(APIView):
            ...
    """

    def has_permission(self, request, view):
        decision = check_route_access(
            request,
            route=getattr(view, 'route_permission', None),
            action=getattr(view, 'route_action', None),
        )
        request.route_decision = decision
        return True


def require_route_permission(route=None, action=None):
    """
    Decorator to declare the route (and optionally action) a view checks.

    On a view class this sets ``route_permission``/``route_action`` and adds
    HasRoutePermission to its permission classes. On a view method the
    check runs before the method body.

    Usage:
        @require_route_permission('/dashboard/finance/bank-information')
        class BankInformationView(APIView):
            def get(self, request):
                pass

    Or on individual methods:
        class BankInformationView(APIView):
            @require_route_permission('/dashboard/finance/bank-information', action='VIEW')
            def get(self, request):
                pass

            @require_route_permission('/dashboard/finance/bank-information/add')
            def post(self, request):
                pass

    Args:
        route: Dashboard route to check; the request path when None
        action: Explicit action key; derived from the route when None

    Returns:
        Decorator function
    """
    def decorator(view_or_method):
        if isinstance(view_or_method, type):
            view_or_method.route_permission = route
            view_or_method.route_action = action
            permission_classes = list(getattr(view_or_method, 'permission_classes', []))
            if HasRoutePermission not in permission_classes:
                permission_classes.append(HasRoutePermission)
            view_or_method.permission_classes = permission_classes
            return view_or_method

        @wraps(view_or_method)
        def wrapped(self, request, *args, **kwargs):
            request.route_decision = check_route_access(request, route=route, action=action)
            return view_or_method(self, request, *args, **kwargs)

        wrapped.route_permission = route
        wrapped.route_action = action
        return wrapped

    return decorator


class IsSuperUser(BasePermission):
    """
    Allow only back-office Super Users (Table_User admin or Supper_User).

    A catalog failure denies.
    """

    message = 'Super User privileges are required.'

    def has_permission(self, request, view):
        identity = request_identity(request)
        if not identity:
            return False

        try:
            allowed = is_super_user(get_resolver().catalog, identity)
        except DatabaseError as exc:
            logger.error(
                "Super User check failed closed: catalog unavailable",
                extra={'request_id': getattr(request, 'request_id', None)},
                exc_info=True
            )
            capture_exception(exc)
            return False

        if not allowed:
            logger.warning(
                "Super User check denied",
                extra={
                    'identity': identity,
                    'view': view.__class__.__name__,
                    'path': request.path,
                    'request_id': getattr(request, 'request_id', None),
                }
            )
        return allowed
