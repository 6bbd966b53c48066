"""
Route helpers for dashboard permission checks.

Provides:
- normalize_route: canonical form used for every route comparison
- route_starts_with / routes_match: path-aware comparisons
- action_for: route -> action key (VIEW/ADD/EDIT/DELETE)
- section_name_for: route -> human-readable section name for messages
"""
from typing import Any, Dict

DEFAULT_ACTION = 'view'

# Route -> action performed on that route. Routes not listed inherit the
# action of their longest listed string prefix, then fall back to "view".
ROUTE_ACTION_MAP: Dict[str, str] = {
    # Dashboard
    '/dashboard': 'view',

    # Baseline QOL
    '/dashboard/baseline-qol': 'view',
    '/dashboard/baseline-qol/add': 'add',
    '/dashboard/baseline-qol/view': 'view',
    '/dashboard/baseline-qol/edit': 'edit',

    # Family Development Plan
    '/dashboard/family-development-plan': 'view',
    '/dashboard/family-development-plan/add': 'add',
    '/dashboard/family-development-plan/view': 'view',
    '/dashboard/family-development-plan/edit': 'edit',

    # Family Income
    '/dashboard/family-income': 'view',

    # ROPs
    '/dashboard/rops': 'view',

    # Actual Intervention
    '/dashboard/actual-intervention': 'view',
    '/dashboard/actual-intervention/add': 'add',
    '/dashboard/actual-intervention/view': 'view',
    '/dashboard/actual-intervention/edit': 'edit',

    # SWB Families
    '/dashboard/swb-families': 'view',
    '/dashboard/swb-families/add': 'add',
    '/dashboard/swb-families/view': 'view',
    '/dashboard/swb-families/edit': 'edit',

    # Finance
    '/dashboard/finance': 'view',
    '/dashboard/finance/loan-process': 'view',
    '/dashboard/finance/loan-process/add': 'add',
    '/dashboard/finance/loan-process/view': 'view',
    '/dashboard/finance/loan-process/edit': 'edit',
    '/dashboard/finance/bank-information': 'view',
    '/dashboard/finance/bank-information/add': 'add',
    '/dashboard/finance/bank-information/view': 'view',

    # Approval Section
    '/dashboard/approval-section': 'view',
    '/dashboard/approval-section/baseline-approval': 'view',
    '/dashboard/approval-section/feasibility-approval': 'view',
    '/dashboard/approval-section/family-development-plan-approval': 'view',
    '/dashboard/approval-section/intervention-approval': 'view',
    '/dashboard/approval-section/bank-account-approval': 'view',

    # Feasibility Approval
    '/dashboard/feasibility-approval': 'view',
    '/dashboard/feasibility-approval/view': 'view',

    # Family Approval CRC
    '/dashboard/family-approval-crc': 'view',
    '/dashboard/family-approval-crc/add': 'add',

    # Settings
    '/dashboard/settings': 'view',
    '/dashboard/settings/edit': 'edit',

    # Reports
    '/dashboard/reports': 'view',

    # Documents
    '/dashboard/documents': 'view',
    '/dashboard/documents/upload': 'add',

    # Profile
    '/dashboard/profile': 'view',

    # Others
    '/dashboard/others': 'view',
    '/dashboard/others/rop-update': 'edit',
    '/dashboard/others/delete-all': 'delete',
    '/dashboard/others/delete-family': 'delete',

    # Last Night Updates
    '/dashboard/last-night-updates': 'view',

    # Family Status
    '/dashboard/family-status': 'view',

    # EDO Dashboard
    '/dashboard/edo/dashboard': 'view',

    # Families Detailed
    '/dashboard/families-detailed': 'view',
}

SECTION_NAMES: Dict[str, str] = {
    '/dashboard': 'Dashboard',
    '/dashboard/baseline-qol': 'Baseline QOL',
    '/dashboard/family-development-plan': 'Family Development Plan',
    '/dashboard/family-income': 'Family Income',
    '/dashboard/rops': 'ROPs',
    '/dashboard/actual-intervention': 'Actual Intervention',
    '/dashboard/swb-families': 'SWB Families',
    '/dashboard/finance': 'Finance Section',
    '/dashboard/finance/loan-process': 'Loan Process',
    '/dashboard/finance/bank-information': 'Bank Information',
    '/dashboard/settings': 'Settings',
    '/dashboard/approval-section': 'Approval Section',
    '/dashboard/approval-section/baseline-approval': 'Baseline Approval',
    '/dashboard/approval-section/feasibility-approval': 'Feasibility Approval',
    '/dashboard/approval-section/family-development-plan-approval': 'Family Development Plan Approval',
    '/dashboard/approval-section/intervention-approval': 'Intervention Approval',
    '/dashboard/approval-section/bank-account-approval': 'Bank Account Approval',
    '/dashboard/feasibility-approval': 'Feasibility Approval',
    '/dashboard/reports': 'Reports',
    '/dashboard/documents': 'Documents',
    '/dashboard/others': 'Others',
}


def normalize_route(route: Any) -> str:
    """
    Return the canonical form of a route.

    Drops the query string and fragment, trims whitespace, removes a trailing
    slash (except for the root) and guarantees exactly one leading slash.
    Never raises: anything that is not a non-empty string becomes ''.

    Examples:
        >>> normalize_route('/a/b/?x=1')
        '/a/b'
        >>> normalize_route('a//b')
        '/a//b'
        >>> normalize_route('/')
        '/'
    """
    if not isinstance(route, str):
        return ''

    path = route.split('#', 1)[0].split('?', 1)[0].strip()
    if not path:
        return ''

    path = '/' + path.lstrip('/')
    if len(path) > 1 and path.endswith('/'):
        path = path[:-1]
    return path


def routes_match(route: Any, other: Any) -> bool:
    """True if both routes normalize to the same non-empty path."""
    normalized = normalize_route(route)
    return bool(normalized) and normalized == normalize_route(other)


def route_starts_with(route: Any, prefix: Any) -> bool:
    """
    True if ``route`` is ``prefix`` or lies below it.

    Comparison is by path segment, so '/x' covers '/x/add' but not '/xy'.
    The root only covers itself.
    """
    normalized_route = normalize_route(route)
    normalized_prefix = normalize_route(prefix)
    if not normalized_route or not normalized_prefix:
        return False
    if normalized_route == normalized_prefix:
        return True
    return normalized_route.startswith(normalized_prefix + '/')


def _longest_prefix_entry(route: str, table: Dict[str, str]):
    # Case-insensitive, like catalog route matching
    route = route.lower()
    folded = {key.lower(): value for key, value in table.items()}
    if route in folded:
        return folded[route]
    for key in sorted(folded, key=len, reverse=True):
        if route.startswith(key):
            return folded[key]
    return None


def action_for(route: Any) -> str:
    """
    Return the uppercase action key implied by ``route``.

    Exact entry first, then the entry whose key is the longest string
    prefix of the route, then VIEW.
    """
    if not isinstance(route, str):
        return DEFAULT_ACTION.upper()
    action = _longest_prefix_entry(route, ROUTE_ACTION_MAP) or DEFAULT_ACTION
    return action.upper()


def section_name_for(route: Any) -> str:
    """Human-readable section name for ``route``, used in denial messages."""
    route = normalize_route(route)
    name = _longest_prefix_entry(route, SECTION_NAMES)
    if name:
        return name

    cleaned = route
    if cleaned == '/dashboard' or cleaned.startswith('/dashboard/'):
        cleaned = cleaned[len('/dashboard'):]
    cleaned = cleaned.strip('/').replace('-', ' ')
    parts = [part[:1].upper() + part[1:] for part in cleaned.split('/') if part]
    return ' '.join(parts) or 'Dashboard'
