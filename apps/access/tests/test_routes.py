"""
Tests for route normalization, matching and action/section lookup.
"""
import pytest

from apps.access.routes import (
    ROUTE_ACTION_MAP,
    action_for,
    normalize_route,
    route_starts_with,
    routes_match,
    section_name_for,
)


class TestNormalizeRoute:
    """Test normalize_route."""

    @pytest.mark.parametrize('route', ['/a/b', '/a/b/', '/a/b?x=1', '/a/b/?x=1#top', '  /a/b  ', 'a/b'])
    def test_variants_converge(self, route):
        """Trailing slash, query string, fragment and whitespace are dropped."""
        assert normalize_route(route) == '/a/b'

    def test_root_keeps_slash(self):
        """The root route is '/' and not an empty string."""
        assert normalize_route('/') == '/'
        assert normalize_route('///') == '/'

    def test_collapses_leading_slashes_only(self):
        """Exactly one leading slash; inner double slashes are kept."""
        assert normalize_route('//a//b') == '/a//b'

    def test_removes_a_single_trailing_slash(self):
        """Only one trailing slash is dropped."""
        assert normalize_route('/a//') == '/a/'

    @pytest.mark.parametrize('route', [None, '', '   ', '?x=1', '#frag', 42, ['/a']])
    def test_malformed_input_is_empty(self, route):
        """Anything that is not a usable path becomes '' and never raises."""
        assert normalize_route(route) == ''

    def test_case_is_preserved(self):
        """Normalization does not lowercase; matching does that."""
        assert normalize_route('/Dashboard/Finance/') == '/Dashboard/Finance'


class TestRouteComparisons:
    """Test routes_match and route_starts_with."""

    def test_routes_match_after_normalization(self):
        """Two spellings of the same route match."""
        assert routes_match('/dashboard/finance/', '/dashboard/finance?tab=1')

    def test_empty_routes_never_match(self):
        """Two empty routes are not a match."""
        assert not routes_match('', None)

    def test_starts_with_same_route(self):
        """A route covers itself."""
        assert route_starts_with('/dashboard/finance', '/dashboard/finance/')

    def test_starts_with_is_segment_aware(self):
        """'/x' covers '/x/add' but not '/xy'."""
        assert route_starts_with('/dashboard/finance/loan-process', '/dashboard/finance')
        assert not route_starts_with('/dashboard/financed', '/dashboard/finance')

    def test_root_covers_only_itself(self):
        """'/' is not a prefix of other routes."""
        assert route_starts_with('/', '/')
        assert not route_starts_with('/dashboard', '/')
        assert not route_starts_with('/dashboard/settings', '/')

    def test_empty_prefix_covers_nothing(self):
        """An empty prefix matches nothing."""
        assert not route_starts_with('/dashboard', '')
        assert not route_starts_with('', '/dashboard')


class TestActionFor:
    """Test action_for."""

    def test_exact_entry(self):
        """Listed routes use their own action, uppercased."""
        assert action_for('/dashboard/baseline-qol/add') == 'ADD'
        assert action_for('/dashboard/others/delete-all') == 'DELETE'
        assert action_for('/dashboard/settings/edit') == 'EDIT'

    def test_longest_prefix_entry(self):
        """Unlisted routes inherit the action of their longest listed prefix."""
        assert action_for('/dashboard/baseline-qol/add/123') == 'ADD'
        assert action_for('/dashboard/documents/upload/batch') == 'ADD'

    def test_prefix_is_plain_string_prefix(self):
        """Action lookup uses string prefixes, not path segments."""
        assert action_for('/dashboard/baseline-qol/addendum') == 'ADD'

    def test_lookup_ignores_case(self):
        """Letter case in the URL does not change the action."""
        assert action_for('/Dashboard/Baseline-QOL/add') == 'ADD'
        assert action_for('/DASHBOARD/OTHERS/DELETE-ALL') == 'DELETE'

    def test_unknown_route_defaults_to_view(self):
        """Routes with no listed prefix are VIEW."""
        assert action_for('/reports') == 'VIEW'
        assert action_for('') == 'VIEW'
        assert action_for(None) == 'VIEW'

    def test_all_actions_are_known_verbs(self):
        """The table only uses the four canonical verbs."""
        assert {action.upper() for action in ROUTE_ACTION_MAP.values()} <= {'VIEW', 'ADD', 'EDIT', 'DELETE'}


class TestSectionNameFor:
    """Test section_name_for."""

    def test_known_section(self):
        """Known routes use their registered name."""
        assert section_name_for('/dashboard/finance') == 'Finance Section'

    def test_most_specific_section(self):
        """The longest registered prefix wins."""
        assert section_name_for('/dashboard/finance/bank-information/add') == 'Bank Information'

    def test_unknown_route_is_title_cased(self):
        """Unregistered routes get a readable fallback name."""
        assert section_name_for('/inventory/stock-levels') == 'Inventory Stock levels'

    def test_unknown_dashboard_route(self):
        """Unregistered dashboard pages fall under 'Dashboard'."""
        assert section_name_for('/dashboard/unknown-page') == 'Dashboard'
        assert section_name_for('/dashboard') == 'Dashboard'

    def test_empty_route(self):
        """An empty route falls back to 'Dashboard'."""
        assert section_name_for('') == 'Dashboard'
