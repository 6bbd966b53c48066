"""
Sentry helpers for access checks.

All helpers are no-ops when SENTRY_DSN is not configured, so callers never
need to guard them.
"""
import sentry_sdk
from django.conf import settings

from apps.core.logging import PIIMasker


def _enabled():
    return bool(getattr(settings, 'SENTRY_DSN', None))


def set_access_context(identity, route, action_key=None):
    """
    Tag the current Sentry scope with the access check being made.

    The identity may be an email address, so it is masked before it is
    attached as the Sentry user.
    """
    if not _enabled():
        return

    sentry_sdk.set_user({'id': PIIMasker.mask_text(str(identity))})
    sentry_sdk.set_tag('access.route', route)
    if action_key:
        sentry_sdk.set_tag('access.action', action_key)


def add_breadcrumb(category, message, level="info", data=None):
    """
    Add a breadcrumb to Sentry for debugging.

    Args:
        category: Category of the breadcrumb (e.g., "access")
        message: Human-readable message
        level: Severity level (debug, info, warning, error)
        data: Optional dictionary of additional data
    """
    if not _enabled():
        return

    sentry_sdk.add_breadcrumb(
        category=category,
        message=message,
        level=level,
        data=data or {}
    )


def capture_exception(exception, **contexts):
    """
    Capture an exception in Sentry, attaching each keyword as a named context.

    capture_exception(exc, access_check={'route': '/dashboard', 'action_key': 'VIEW'})
    """
    if not _enabled():
        return

    with sentry_sdk.new_scope() as scope:
        for name, values in contexts.items():
            scope.set_context(name, values)
        sentry_sdk.capture_exception(exception)
