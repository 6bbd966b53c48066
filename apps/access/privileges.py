"""
The two unconditional-access flags.

Super Admin and Super User come from different profile tables with different
rules. They are kept as two separate predicates; do not merge them.

- Super Admin (PE_User): UserType is "Super Admin" (or the historical
  "Supper Admin"), or the profile email is SUPER_ADMIN_EMAIL. Consulted by
  the route permission resolver.
- Super User (Table_User): the username is SUPER_USER_USERNAME, or the
  Supper_User column is truthy. Gates the operator permission reports.
"""
import logging

from django.conf import settings

from apps.access.catalog import Catalog
from apps.access.identity import parse_identity
from apps.access.values import to_bool

logger = logging.getLogger(__name__)

SUPER_ADMIN_USER_TYPES = frozenset(['super admin', 'supper admin'])


def _folded(value) -> str:
    return value.strip().lower() if isinstance(value, str) else ''


def is_super_admin(catalog: Catalog, identity) -> bool:
    """
    True if a dashboard profile matching ``identity`` is a Super Admin.

    Store errors propagate; callers decide whether to fail closed.
    """
    identity = parse_identity(identity)
    if identity.is_empty:
        return False

    allowed_email = _folded(getattr(settings, 'SUPER_ADMIN_EMAIL', ''))
    for profile in catalog.admin_profiles(identity):
        if _folded(profile.user_type) in SUPER_ADMIN_USER_TYPES:
            return True
        if allowed_email and _folded(profile.email_address) == allowed_email:
            return True
    return False


def is_super_user(catalog: Catalog, identity) -> bool:
    """
    True if a back-office user row matching ``identity`` is a Super User.

    Store errors propagate; callers decide whether to fail closed.
    """
    identity = parse_identity(identity)
    if identity.is_empty:
        return False

    admin_username = _folded(getattr(settings, 'SUPER_USER_USERNAME', 'admin'))
    for user in catalog.legacy_users(identity):
        if admin_username and _folded(user.username) == admin_username:
            return True
        if to_bool(user.super_user):
            return True
    return False
