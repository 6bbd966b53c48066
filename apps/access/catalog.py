"""
Read-only client for the permission catalog.

The resolver depends on the ``Catalog`` interface rather than on the ORM so
that tests can hand it an in-memory catalog. ``DjangoCatalog`` is the
production implementation; one instance is built at startup by
``AccessConfig.ready()`` and shared by reference.

Queries narrow rows by identity, action key and active flags only. Route
matching, specificity ordering and IsAllowed canonicalization happen in the
resolver, because RoutePath and IsAllowed are stored in inconsistent forms.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from django.db.models import Q

from apps.access.identity import Identity
from apps.access.models import (
    AdminProfile,
    LegacyUser,
    Permission,
    RolePermission,
    UserPermission,
    UserRole,
)

OVERRIDE = 'user_override'
ROLE = 'role'


@dataclass(frozen=True)
class PermissionRecord:
    """A usable Page + Permission combination."""

    page_id: int
    permission_id: int
    route_path: str
    action_key: str
    page_name: str = ''


@dataclass(frozen=True)
class GrantRecord:
    """A grant row (override or role) joined to its usable Page + Permission."""

    source: str
    page_id: int
    permission_id: int
    route_path: str
    action_key: str
    is_allowed: object
    page_name: str = ''
    role_id: Optional[int] = None
    role_name: Optional[str] = None


@dataclass(frozen=True)
class RoleMembershipRecord:
    role_id: int
    role_name: str
    is_active: bool


@dataclass(frozen=True)
class AdminProfileRecord:
    user_id: int
    email_address: Optional[str]
    user_type: Optional[str]
    full_name: Optional[str] = None


@dataclass(frozen=True)
class LegacyUserRecord:
    username: str
    super_user: object
    user_type: Optional[str] = None
    full_name: Optional[str] = None


class Catalog(ABC):
    """
    Read-only view of the permission catalog.

    Every method is an idempotent read. Implementations may raise
    ``django.db.DatabaseError`` when the store is unavailable; the resolver
    treats that as a deny.
    """

    @abstractmethod
    def override_grants(self, identity: Identity, action_key: str) -> List[GrantRecord]:
        """User override rows for ``identity`` on usable permissions with ``action_key``."""

    @abstractmethod
    def role_grants(self, identity: Identity, action_key: str) -> List[GrantRecord]:
        """Role grant rows reachable through the identity's active roles for ``action_key``."""

    @abstractmethod
    def permissions_for_action(self, action_key: str) -> List[PermissionRecord]:
        """Usable Page + Permission combinations for ``action_key``, for any identity."""

    @abstractmethod
    def all_grants(self, identity: Identity) -> List[GrantRecord]:
        """Every override and role grant row of ``identity`` on usable permissions."""

    @abstractmethod
    def override_row_count(self, identity: Identity) -> int:
        """Raw number of override rows stored for ``identity``, allowed or not."""

    @abstractmethod
    def role_memberships(self, identity: Identity) -> List[RoleMembershipRecord]:
        """Roles the identity belongs to, active or not."""

    @abstractmethod
    def admin_profiles(self, identity: Identity) -> List[AdminProfileRecord]:
        """Dashboard profiles matching the identity by numeric id or email address."""

    @abstractmethod
    def legacy_users(self, identity: Identity) -> List[LegacyUserRecord]:
        """Back-office user rows whose username matches the identity."""


# Fields fetched for every grant row, relative to the grant model
GRANT_FIELDS = (
    'permission_id',
    'is_allowed',
    'permission__action_key',
    'permission__page__page_id',
    'permission__page__route_path',
    'permission__page__page_name',
)
ROLE_FIELDS = ('role_id', 'role__role_name')


def _grant_record(source, row):
    return GrantRecord(
        source=source,
        page_id=row['permission__page__page_id'],
        permission_id=row['permission_id'],
        route_path=row['permission__page__route_path'],
        action_key=row['permission__action_key'],
        is_allowed=row['is_allowed'],
        page_name=row['permission__page__page_name'] or '',
        role_id=row.get('role_id'),
        role_name=row.get('role__role_name'),
    )


class DjangoCatalog(Catalog):
    """Catalog backed by the unmanaged models in apps.access.models."""

    def __init__(self, using: Optional[str] = None):
        self.using = using

    def _manager(self, model):
        manager = model.objects
        return manager.db_manager(self.using) if self.using else manager

    def _overrides(self, identity):
        return self._manager(UserPermission).for_identity(identity)

    def _role_rows(self, identity):
        role_ids = self._manager(UserRole).for_identity(identity).values('role_id')
        return self._manager(RolePermission).filter(role__in=role_ids, role__is_active=True)

    def _permission_ids_for_action(self, action_key):
        return self._manager(Permission).for_action(action_key).values('permission_id')

    def override_grants(self, identity, action_key):
        if identity.is_empty:
            return []
        rows = self._overrides(identity).filter(
            permission__in=self._permission_ids_for_action(action_key)
        ).values(*GRANT_FIELDS)
        return [_grant_record(OVERRIDE, row) for row in rows]

    def role_grants(self, identity, action_key):
        if identity.is_empty:
            return []
        rows = self._role_rows(identity).filter(
            permission__in=self._permission_ids_for_action(action_key)
        ).values(*ROLE_FIELDS, *GRANT_FIELDS)
        return [_grant_record(ROLE, row) for row in rows]

    def permissions_for_action(self, action_key):
        rows = self._manager(Permission).for_action(action_key).values(
            'permission_id', 'action_key', 'page__page_id', 'page__route_path', 'page__page_name'
        )
        return [
            PermissionRecord(
                page_id=row['page__page_id'],
                permission_id=row['permission_id'],
                route_path=row['page__route_path'],
                action_key=row['action_key'],
                page_name=row['page__page_name'] or '',
            )
            for row in rows
        ]

    def all_grants(self, identity):
        if identity.is_empty:
            return []

        usable = Q(permission__is_active=True, permission__page__is_active=True)
        grants = [
            _grant_record(OVERRIDE, row)
            for row in self._overrides(identity).filter(usable).values(*GRANT_FIELDS)
        ]
        grants.extend(
            _grant_record(ROLE, row)
            for row in self._role_rows(identity).filter(usable).values(*ROLE_FIELDS, *GRANT_FIELDS)
        )
        return grants

    def override_row_count(self, identity):
        if identity.is_empty:
            return 0
        return self._overrides(identity).count()

    def role_memberships(self, identity):
        if identity.is_empty:
            return []
        rows = (
            self._manager(UserRole)
            .for_identity(identity)
            .values('role_id', 'role__role_name', 'role__is_active')
            .order_by('role_id')
            .distinct()
        )
        return [
            RoleMembershipRecord(
                role_id=row['role_id'],
                role_name=row['role__role_name'],
                is_active=bool(row['role__is_active']),
            )
            for row in rows
        ]

    def admin_profiles(self, identity):
        if identity.is_empty:
            return []

        match = Q(email_address__iexact=identity.raw)
        if identity.numeric_id is not None:
            match |= Q(user_id=identity.numeric_id)

        rows = self._manager(AdminProfile).filter(match).values(
            'user_id', 'email_address', 'user_type', 'full_name'
        )
        return [AdminProfileRecord(**row) for row in rows]

    def legacy_users(self, identity):
        if identity.is_empty:
            return []

        match = Q()
        for key in identity.lookup_keys:
            match |= Q(username__iexact=key)

        rows = self._manager(LegacyUser).filter(match).values(
            'username', 'super_user', 'user_type', 'full_name'
        )
        return [LegacyUserRecord(**row) for row in rows]
