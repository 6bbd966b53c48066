"""
Tests for route permission classes and decorators.
"""
import pytest
from unittest.mock import Mock
from django.db import OperationalError
from django.test import RequestFactory
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.test import force_authenticate

from apps.access.permissions import (
    HasRoutePermission,
    IsSuperUser,
    check_route_access,
    request_identity,
    require_route_permission,
)
from apps.core.authentication import AuthenticatedIdentity
from apps.core.exceptions import AuthenticationError, RouteAccessDenied


@pytest.fixture
def request_factory():
    """Provide Django request factory."""
    return RequestFactory()


@pytest.fixture
def mock_view():
    """Provide mock view instance."""
    view = Mock(spec=APIView)
    view.__class__.__name__ = 'MockView'
    return view


@pytest.fixture
def make_request(request_factory):
    """Build a request for a path, authenticated as ``identity`` when given."""
    def _make_request(path='/dashboard/finance', identity='42'):
        request = request_factory.get(path)
        request.user = AuthenticatedIdentity(identity) if identity is not None else None
        request.request_id = 'req-123'
        return request
    return _make_request


@pytest.fixture
def finance_grant(catalog):
    """Identity 42 may VIEW /dashboard/finance."""
    permission_id = catalog.add_route_permission('/dashboard/finance', 'VIEW', 'Finance')
    catalog.grant_override('42', permission_id, 'Yes')
    return permission_id


class TestRequestIdentity:
    """Test request_identity."""

    def test_authenticated(self, make_request):
        """The identity of an authenticated caller is returned."""
        assert request_identity(make_request(identity=' 42 ')) == '42'

    def test_unauthenticated(self, make_request):
        """No user means no identity."""
        assert request_identity(make_request(identity=None)) is None

    def test_blank_identity(self, make_request):
        """A blank identity counts as none."""
        assert request_identity(make_request(identity='  ')) is None


class TestCheckRouteAccess:
    """Test check_route_access."""

    def test_allowed(self, installed_resolver, make_request, finance_grant):
        """Allowed checks return the decision."""
        decision = check_route_access(make_request(), route='/dashboard/finance')

        assert decision.allowed
        assert decision.permission_id == finance_grant

    def test_defaults_to_request_path(self, installed_resolver, make_request, finance_grant):
        """Without a route, the request path is checked."""
        decision = check_route_access(make_request('/dashboard/finance/loan-process'))

        assert decision.route == '/dashboard/finance/loan-process'

    def test_no_identity_raises_401(self, installed_resolver, make_request):
        """Unauthenticated callers get an authentication error, not a deny."""
        with pytest.raises(AuthenticationError) as exc_info:
            check_route_access(make_request(identity=None))

        assert exc_info.value.status_code == 401

    def test_denied_raises_403_with_diagnostics(self, installed_resolver, make_request, finance_grant):
        """Denied checks raise with the decision as details."""
        with pytest.raises(RouteAccessDenied) as exc_info:
            check_route_access(make_request(), route='/dashboard/finance', action='DELETE')

        exc = exc_info.value
        assert exc.status_code == 403
        assert exc.message == "Access denied. You don't have DELETE permission for Finance Section."
        assert exc.details['reason'] == 'no_grant'
        assert exc.details['granted_permission_ids'] == [finance_grant]
        assert exc.details['permission_exists_in_db'] is False


class TestHasRoutePermission:
    """Test HasRoutePermission permission class."""

    def test_view_route_attribute(self, installed_resolver, make_request, mock_view, finance_grant):
        """The view's declared route is checked instead of the request path."""
        mock_view.route_permission = '/dashboard/finance'
        mock_view.route_action = None
        request = make_request('/v1/finance/summary')

        assert HasRoutePermission().has_permission(request, mock_view) is True
        assert request.route_decision.route == '/dashboard/finance'

    def test_view_action_attribute(self, installed_resolver, make_request, mock_view, finance_grant):
        """The view's declared action overrides the derived one."""
        mock_view.route_permission = '/dashboard/finance'
        mock_view.route_action = 'EDIT'

        with pytest.raises(RouteAccessDenied):
            HasRoutePermission().has_permission(make_request(), mock_view)

    def test_request_path_fallback(self, installed_resolver, make_request, finance_grant):
        """Views without a declared route check the request path."""
        view = APIView()

        assert HasRoutePermission().has_permission(make_request('/dashboard/finance'), view) is True


class TestRequireRoutePermission:
    """Test require_route_permission decorator."""

    def test_class_decorator_sets_attributes(self):
        """Decorating a class declares the route and installs the permission class."""
        @require_route_permission('/dashboard/finance', action='VIEW')
        class FinanceView(APIView):
            pass

        assert FinanceView.route_permission == '/dashboard/finance'
        assert FinanceView.route_action == 'VIEW'
        assert HasRoutePermission in FinanceView.permission_classes

    def test_class_decorator_keeps_existing_permissions(self):
        """Existing permission classes are kept and not duplicated."""
        @require_route_permission('/dashboard/finance')
        class FinanceView(APIView):
            permission_classes = [HasRoutePermission]

        assert FinanceView.permission_classes == [HasRoutePermission]

    def test_decorated_view_allows(self, installed_resolver, finance_grant, request_factory):
        """A decorated view runs for callers holding the grant."""
        @require_route_permission('/dashboard/finance')
        class FinanceView(APIView):
            def get(self, request):
                return Response({'ok': True})

        request = request_factory.get('/v1/finance')
        force_authenticate(request, user=AuthenticatedIdentity('42'))

        response = FinanceView.as_view()(request)

        assert response.status_code == 200

    def test_decorated_view_denies(self, installed_resolver, request_factory):
        """A decorated view answers 403 with the deny details."""
        @require_route_permission('/dashboard/finance')
        class FinanceView(APIView):
            def get(self, request):
                return Response({'ok': True})

        request = request_factory.get('/v1/finance')
        force_authenticate(request, user=AuthenticatedIdentity('42'))

        response = FinanceView.as_view()(request)

        assert response.status_code == 403
        assert response.data['code'] == 'ROUTE_ACCESS_DENIED'
        assert response.data['details']['route'] == '/dashboard/finance'

    def test_method_decorator(self, installed_resolver, request_factory, finance_grant):
        """Decorated methods check before running."""
        class FinanceView(APIView):
            @require_route_permission('/dashboard/finance')
            def get(self, request):
                return Response({'ok': True})

            @require_route_permission('/dashboard/finance', action='DELETE')
            def delete(self, request):
                return Response(status=204)

        get_request = request_factory.get('/v1/finance')
        force_authenticate(get_request, user=AuthenticatedIdentity('42'))
        delete_request = request_factory.delete('/v1/finance')
        force_authenticate(delete_request, user=AuthenticatedIdentity('42'))

        assert FinanceView.as_view()(get_request).status_code == 200
        assert FinanceView.as_view()(delete_request).status_code == 403
        assert FinanceView.get.route_permission == '/dashboard/finance'


class TestIsSuperUser:
    """Test IsSuperUser permission class."""

    def test_super_user_allowed(self, installed_resolver, catalog, make_request, mock_view):
        """Super Users pass."""
        catalog.add_user('fo.khan', super_user='Yes')

        assert IsSuperUser().has_permission(make_request(identity='fo.khan'), mock_view) is True

    def test_other_users_denied(self, installed_resolver, catalog, make_request, mock_view):
        """Everyone else is refused, Super Admins included."""
        catalog.add_profile(42, 'officer@example.org', 'Super Admin')

        assert IsSuperUser().has_permission(make_request(identity='42'), mock_view) is False

    def test_unauthenticated_denied(self, installed_resolver, make_request, mock_view):
        """No identity, no access."""
        assert IsSuperUser().has_permission(make_request(identity=None), mock_view) is False

    def test_store_error_denies(self, installed_resolver, catalog, make_request, mock_view):
        """Catalog failures fail closed."""
        catalog.fail_with(OperationalError('gone'))

        assert IsSuperUser().has_permission(make_request(identity='admin'), mock_view) is False
