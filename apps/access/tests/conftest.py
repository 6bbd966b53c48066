"""
Fixtures for access tests.

InMemoryCatalog stands in for DjangoCatalog so resolver tests run without a
database. It applies the same row filters (active flags, action key,
identity lookup keys) and leaves route matching to the resolver.
"""
import pytest
from django.db import DatabaseError

from apps.access.catalog import (
    OVERRIDE,
    ROLE,
    AdminProfileRecord,
    Catalog,
    GrantRecord,
    LegacyUserRecord,
    PermissionRecord,
    RoleMembershipRecord,
)
from apps.access.config import BypassRegistry
from apps.access.resolver import PermissionResolver


class InMemoryCatalog(Catalog):
    """Catalog kept in plain dicts and lists."""

    def __init__(self):
        self.pages = {}
        self.permissions = {}
        self.roles = {}
        self.role_permissions = []
        self.user_roles = []
        self.user_permissions = []
        self.profiles = []
        self.users = []
        self.error = None
        self.calls = []

    # Seeding helpers

    def add_page(self, route_path, page_name='', is_active=True):
        page_id = len(self.pages) + 1
        self.pages[page_id] = {
            'route_path': route_path,
            'page_name': page_name,
            'is_active': is_active,
        }
        return page_id

    def add_permission(self, page_id, action_key, is_active=True):
        permission_id = len(self.permissions) + 1
        self.permissions[permission_id] = {
            'page_id': page_id,
            'action_key': action_key,
            'is_active': is_active,
        }
        return permission_id

    def add_route_permission(self, route_path, action_key='VIEW', page_name=''):
        """Page + Permission in one step; returns the permission id."""
        return self.add_permission(self.add_page(route_path, page_name), action_key)

    def grant_override(self, user_id, permission_id, is_allowed='Yes'):
        self.user_permissions.append((str(user_id), permission_id, is_allowed))

    def add_role(self, role_name, is_active=True):
        role_id = len(self.roles) + 1
        self.roles[role_id] = {'role_name': role_name, 'is_active': is_active}
        return role_id

    def grant_role(self, role_id, permission_id, is_allowed=1):
        self.role_permissions.append((role_id, permission_id, is_allowed))

    def assign_role(self, user_id, role_id):
        self.user_roles.append((str(user_id), role_id))

    def add_profile(self, user_id, email_address=None, user_type=None, full_name=None):
        self.profiles.append(AdminProfileRecord(user_id, email_address, user_type, full_name))

    def add_user(self, username, super_user=None, user_type=None, full_name=None):
        self.users.append(LegacyUserRecord(username, super_user, user_type, full_name))

    def fail_with(self, error=None):
        """Make every subsequent read raise ``error``."""
        self.error = error or DatabaseError('connection refused')

    # Catalog interface

    def _read(self, name):
        self.calls.append(name)
        if self.error is not None:
            raise self.error

    def _usable(self, permission_id, action_key=None):
        permission = self.permissions.get(permission_id)
        if permission is None or not permission['is_active']:
            return False
        page = self.pages.get(permission['page_id'])
        if page is None or not page['is_active']:
            return False
        if action_key is None:
            return True
        return permission['action_key'].strip().upper() == action_key.strip().upper()

    def _grant(self, source, permission_id, is_allowed, role_id=None):
        permission = self.permissions[permission_id]
        page = self.pages[permission['page_id']]
        return GrantRecord(
            source=source,
            page_id=permission['page_id'],
            permission_id=permission_id,
            route_path=page['route_path'],
            action_key=permission['action_key'],
            is_allowed=is_allowed,
            page_name=page['page_name'],
            role_id=role_id,
            role_name=self.roles[role_id]['role_name'] if role_id else None,
        )

    def _active_role_ids(self, identity):
        return {
            role_id for user_id, role_id in self.user_roles
            if user_id in identity.lookup_keys
            and self.roles.get(role_id, {}).get('is_active')
        }

    def override_grants(self, identity, action_key):
        self._read('override_grants')
        return [
            self._grant(OVERRIDE, permission_id, is_allowed)
            for user_id, permission_id, is_allowed in self.user_permissions
            if user_id in identity.lookup_keys and self._usable(permission_id, action_key)
        ]

    def role_grants(self, identity, action_key):
        self._read('role_grants')
        role_ids = self._active_role_ids(identity)
        return [
            self._grant(ROLE, permission_id, is_allowed, role_id)
            for role_id, permission_id, is_allowed in self.role_permissions
            if role_id in role_ids and self._usable(permission_id, action_key)
        ]

    def permissions_for_action(self, action_key):
        self._read('permissions_for_action')
        return [
            PermissionRecord(
                page_id=permission['page_id'],
                permission_id=permission_id,
                route_path=self.pages[permission['page_id']]['route_path'],
                action_key=permission['action_key'],
                page_name=self.pages[permission['page_id']]['page_name'],
            )
            for permission_id, permission in self.permissions.items()
            if self._usable(permission_id, action_key)
        ]

    def all_grants(self, identity):
        self._read('all_grants')
        grants = [
            self._grant(OVERRIDE, permission_id, is_allowed)
            for user_id, permission_id, is_allowed in self.user_permissions
            if user_id in identity.lookup_keys and self._usable(permission_id)
        ]
        role_ids = self._active_role_ids(identity)
        grants.extend(
            self._grant(ROLE, permission_id, is_allowed, role_id)
            for role_id, permission_id, is_allowed in self.role_permissions
            if role_id in role_ids and self._usable(permission_id)
        )
        return grants

    def override_row_count(self, identity):
        self._read('override_row_count')
        return sum(1 for row in self.user_permissions if row[0] in identity.lookup_keys)

    def role_memberships(self, identity):
        self._read('role_memberships')
        role_ids = sorted({
            role_id for user_id, role_id in self.user_roles if user_id in identity.lookup_keys
        })
        return [
            RoleMembershipRecord(role_id, self.roles[role_id]['role_name'], self.roles[role_id]['is_active'])
            for role_id in role_ids
        ]

    def admin_profiles(self, identity):
        self._read('admin_profiles')
        raw = identity.raw.lower()
        return [
            profile for profile in self.profiles
            if (profile.email_address or '').lower() == raw
            or (identity.numeric_id is not None and profile.user_id == identity.numeric_id)
        ]

    def legacy_users(self, identity):
        self._read('legacy_users')
        keys = {key.lower() for key in identity.lookup_keys}
        return [user for user in self.users if user.username.lower() in keys]


@pytest.fixture
def catalog():
    """Empty in-memory catalog."""
    return InMemoryCatalog()


@pytest.fixture
def bypass_routes():
    """Bypass routes used by the resolver fixture; tests may mutate the list."""
    return ['/dashboard/approval-section/intervention-approval']


@pytest.fixture
def rbac_switch():
    """Mutable kill-switch read by the resolver fixture."""
    return {'disabled': False}


@pytest.fixture
def resolver(catalog, bypass_routes, rbac_switch):
    """Resolver over the in-memory catalog with test-controlled switches."""
    return PermissionResolver(
        catalog,
        bypass=lambda: BypassRegistry(bypass_routes),
        disabled=lambda: rbac_switch['disabled'],
    )


@pytest.fixture
def installed_resolver(resolver):
    """Install ``resolver`` as the app-wide resolver for the duration of a test."""
    from django.apps import apps

    config = apps.get_app_config('access')
    original = config.resolver
    config.resolver = resolver
    yield resolver
    config.resolver = original
