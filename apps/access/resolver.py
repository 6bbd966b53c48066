"""
Route permission resolver.

Decides whether an identity may perform an action on a dashboard route.
Checks run in order and stop at the first that answers:

1. bypass route (exact match)          -> Allow
2. RBAC_DISABLED kill-switch           -> Allow
3. Super Admin                         -> Allow
4. resolve action key, normalize route
5. user override grant, most specific  -> Allow
6. role grant, most specific           -> Allow
7. otherwise                           -> Deny with diagnostics

Any store failure denies (fail closed). The resolver never writes.
"""
import logging
from dataclasses import asdict, dataclass, field
from typing import Callable, ClassVar, Dict, Iterable, List, Optional, Tuple

from django.db import DatabaseError

from apps.access.catalog import OVERRIDE, ROLE, Catalog, GrantRecord
from apps.access.config import BypassRegistry, bypass_registry, is_rbac_disabled
from apps.access.identity import Identity, parse_identity
from apps.access.privileges import is_super_admin, is_super_user
from apps.access.routes import action_for, normalize_route, route_starts_with, section_name_for
from apps.access.values import to_bool
from apps.core.logging import SecurityLogger
from apps.core.sentry_utils import add_breadcrumb, capture_exception

logger = logging.getLogger(__name__)

# Decision reasons
BYPASS = 'bypass'
RBAC_DISABLED = 'rbac_disabled'
SUPER_ADMIN = 'super_admin'
USER_OVERRIDE = OVERRIDE
ROLE_GRANT = ROLE
NO_GRANT = 'no_grant'
STORE_ERROR = 'store_error'

GENERIC_DENIED_MESSAGE = "Access denied. You don't have permission to access this resource."


@dataclass(frozen=True)
class Decision:
    """Outcome of a route permission check."""

    allowed: ClassVar[bool] = False

    reason: str
    identity: str
    route: str
    action_key: Optional[str]

    def __bool__(self):
        return self.allowed

    def as_dict(self) -> Dict:
        data = {'allowed': self.allowed, **asdict(self)}
        for key, value in data.items():
            if isinstance(value, tuple):
                data[key] = list(value)
        return data


@dataclass(frozen=True)
class Allow(Decision):
    """
    Access granted.

    ``page_id``/``permission_id`` identify the grant that matched, and
    ``role_id`` the role it came through, when the reason is a grant.
    """

    allowed: ClassVar[bool] = True

    page_id: Optional[int] = None
    permission_id: Optional[int] = None
    role_id: Optional[int] = None


@dataclass(frozen=True)
class Deny(Decision):
    """
    Access refused, with diagnostics for operators and the front end.

    permission_exists_in_db: a usable Page + Permission matches the route and
        action key, regardless of who is asking.
    page_id / permission_id: the combination that would satisfy the request.
    granted_permission_ids: everything the identity is actually granted,
        through overrides or roles.
    user_permission_row_count: raw override rows for the identity, which
        separates "never provisioned" (0) from "provisioned but not allowed".

    The counts are None when the store failed before they could be read.
    """

    allowed: ClassVar[bool] = False

    message: str = GENERIC_DENIED_MESSAGE
    page_id: Optional[int] = None
    permission_id: Optional[int] = None
    granted_permission_ids: Tuple[int, ...] = ()
    permission_exists_in_db: Optional[bool] = None
    user_permission_row_count: Optional[int] = None


@dataclass(frozen=True)
class EffectivePermissions:
    """Read-only summary of everything an identity is granted."""

    identity: str
    identity_kind: str
    is_super_admin: bool
    is_super_user: bool
    roles: List[Dict] = field(default_factory=list)
    role_permissions: List[Dict] = field(default_factory=list)
    user_permissions: List[Dict] = field(default_factory=list)
    allowed_permission_ids: List[int] = field(default_factory=list)

    def as_dict(self) -> Dict:
        return asdict(self)


def _match_key(route) -> str:
    return normalize_route(route).lower()


def _route_covers(catalog_route, route_key: str) -> bool:
    """Catalog route equals the checked route or is a path prefix of it, ignoring case."""
    return route_starts_with(route_key, _match_key(catalog_route))


def _by_specificity(records: Iterable, route_key: str) -> List:
    """Records whose route covers ``route_key``, most specific route first."""
    matching = [record for record in records if _route_covers(record.route_path, route_key)]
    return sorted(
        matching,
        key=lambda record: (-len(_match_key(record.route_path)), record.permission_id)
    )


def most_specific_grant(grants: Iterable[GrantRecord], route) -> Optional[GrantRecord]:
    """
    The allowed grant with the longest route covering ``route``.

    Grants whose IsAllowed is not truthy are ignored; they never block a
    less specific allowed grant.
    """
    allowed = [grant for grant in grants if to_bool(grant.is_allowed)]
    ordered = _by_specificity(allowed, _match_key(route))
    return ordered[0] if ordered else None


class PermissionResolver:
    """
    Combine the bypass list, kill-switch, Super Admin flag and catalog grants
    into one decision.

    Args:
        catalog: Catalog client, built once and shared
        bypass: Callable returning the current BypassRegistry
        disabled: Callable returning the current kill-switch value
    """

    def __init__(
        self,
        catalog: Catalog,
        bypass: Callable[[], BypassRegistry] = bypass_registry,
        disabled: Callable[[], bool] = is_rbac_disabled,
    ):
        self.catalog = catalog
        self.bypass = bypass
        self.disabled = disabled

    def resolve(self, identity, route, action_key: Optional[str] = None) -> Decision:
        """
        Decide whether ``identity`` may perform ``action_key`` on ``route``.

        Args:
            identity: Raw identity from authentication, or an Identity
            route: Route as requested (normalized here)
            action_key: Explicit action; derived from the route when omitted

        Returns:
            Allow or Deny. Never raises for bad input or store failures.
        """
        identity = parse_identity(identity)
        try:
            return self._resolve(identity, route, action_key)
        except DatabaseError as exc:
            normalized = normalize_route(route)
            logger.error(
                "Route permission check failed closed: catalog unavailable",
                extra={
                    'identity': identity.raw,
                    'route': normalized,
                    'action_key': action_key,
                },
                exc_info=True
            )
            capture_exception(exc, access_check={'route': normalized, 'action_key': action_key})
            return Deny(
                reason=STORE_ERROR,
                identity=identity.raw,
                route=normalized,
                action_key=_canonical_action(action_key),
            )

    def has_access(self, identity, route, action_key: Optional[str] = None) -> bool:
        """Boolean form of resolve()."""
        return self.resolve(identity, route, action_key).allowed

    def _resolve(self, identity: Identity, route, action_key: Optional[str]) -> Decision:
        requested_action = _canonical_action(action_key)

        if self.bypass().is_bypassed(route):
            return self._allow(BYPASS, identity, normalize_route(route), requested_action)

        if self.disabled():
            return self._allow(RBAC_DISABLED, identity, normalize_route(route), requested_action)

        if is_super_admin(self.catalog, identity):
            return self._allow(SUPER_ADMIN, identity, normalize_route(route), requested_action)

        normalized = normalize_route(route)
        action = requested_action or action_for(normalized)

        grant = most_specific_grant(self.catalog.override_grants(identity, action), normalized)
        if grant is None:
            grant = most_specific_grant(self.catalog.role_grants(identity, action), normalized)

        if grant is not None:
            return self._allow(
                grant.source,
                identity,
                normalized,
                action,
                page_id=grant.page_id,
                permission_id=grant.permission_id,
                role_id=grant.role_id,
            )

        return self._deny(identity, normalized, action)

    def _allow(self, reason, identity, route, action_key, **grant) -> Allow:
        logger.debug(
            f"Route access allowed ({reason})",
            extra={
                'identity': identity.raw,
                'route': route,
                'action_key': action_key,
                'reason': reason,
            }
        )
        add_breadcrumb('access', f"allow {route} ({reason})", data={'action_key': action_key})
        return Allow(reason=reason, identity=identity.raw, route=route, action_key=action_key, **grant)

    def _deny(self, identity: Identity, route: str, action_key: str) -> Deny:
        """Build the deny decision. Diagnostics are only computed here."""
        candidates = _by_specificity(self.catalog.permissions_for_action(action_key), _match_key(route))
        target = candidates[0] if candidates else None

        granted_ids = sorted({
            grant.permission_id
            for grant in self.catalog.all_grants(identity)
            if to_bool(grant.is_allowed)
        })
        row_count = self.catalog.override_row_count(identity)

        decision = Deny(
            reason=NO_GRANT,
            identity=identity.raw,
            route=route,
            action_key=action_key,
            message=denial_message(route, action_key),
            page_id=target.page_id if target else None,
            permission_id=target.permission_id if target else None,
            granted_permission_ids=tuple(granted_ids),
            permission_exists_in_db=target is not None,
            user_permission_row_count=row_count,
        )

        SecurityLogger.log_route_access_denied(
            identity=identity.raw,
            route=route,
            action_key=action_key,
            permission_exists_in_db=decision.permission_exists_in_db,
            user_permission_row_count=row_count,
        )
        return decision

    def effective_permissions(self, identity) -> EffectivePermissions:
        """
        Everything ``identity`` is granted, for permission reports.

        Unlike resolve(), store errors propagate to the caller.
        """
        identity = parse_identity(identity)

        grants = self.catalog.all_grants(identity)
        user_permissions = [_grant_entry(grant) for grant in grants if grant.source == OVERRIDE]
        role_permissions = [_grant_entry(grant) for grant in grants if grant.source == ROLE]

        return EffectivePermissions(
            identity=identity.raw,
            identity_kind=identity.kind,
            is_super_admin=is_super_admin(self.catalog, identity),
            is_super_user=is_super_user(self.catalog, identity),
            roles=[
                {'role_id': role.role_id, 'role_name': role.role_name, 'is_active': role.is_active}
                for role in self.catalog.role_memberships(identity)
            ],
            role_permissions=role_permissions,
            user_permissions=user_permissions,
            allowed_permission_ids=sorted({
                grant.permission_id for grant in grants if to_bool(grant.is_allowed)
            }),
        )


def denial_message(route: str, action_key: str) -> str:
    """Message shown to the caller when a route check denies."""
    return (
        f"Access denied. You don't have {action_key} permission for "
        f"{section_name_for(route)}."
    )


def _canonical_action(action_key) -> Optional[str]:
    if not isinstance(action_key, str) or not action_key.strip():
        return None
    return action_key.strip().upper()


def _grant_entry(grant: GrantRecord) -> Dict:
    entry = {
        'permission_id': grant.permission_id,
        'page_id': grant.page_id,
        'page_name': grant.page_name,
        'route_path': normalize_route(grant.route_path),
        'action_key': (grant.action_key or '').strip().upper(),
        'is_allowed': to_bool(grant.is_allowed),
    }
    if grant.source == ROLE:
        entry['role_id'] = grant.role_id
        entry['role_name'] = grant.role_name
    return entry
