"""
Operational switches for route permission enforcement.

Both are plain settings read at check time, so they can be changed through
the environment (or override_settings in tests) without touching the
resolver.
"""
from typing import Iterable

from django.conf import settings

from apps.access.routes import normalize_route, route_starts_with


class BypassRegistry:
    """
    Routes exempt from permission checks.

    Authentication is still required upstream; the resolver simply allows
    these routes without consulting the catalog.
    """

    def __init__(self, routes: Iterable[str]):
        self.routes = frozenset(
            normalized for normalized in (normalize_route(route) for route in routes)
            if normalized
        )

    def is_bypassed(self, route) -> bool:
        """Exact match of the normalized route. This is what enforcement uses."""
        normalized = normalize_route(route)
        return bool(normalized) and normalized in self.routes

    def covers(self, route) -> bool:
        """True if ``route`` is a bypass route or lies below one."""
        return any(route_starts_with(route, bypass) for bypass in self.routes)

    def __contains__(self, route):
        return self.is_bypassed(route)

    def __len__(self):
        return len(self.routes)


def bypass_registry() -> BypassRegistry:
    """Registry built from the current RBAC_BYPASS_ROUTES setting."""
    return BypassRegistry(getattr(settings, 'RBAC_BYPASS_ROUTES', []))


def is_rbac_disabled() -> bool:
    """Current value of the RBAC_DISABLED kill-switch."""
    return bool(getattr(settings, 'RBAC_DISABLED', False))
