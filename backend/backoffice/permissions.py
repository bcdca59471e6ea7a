"""
Role allow-lists and the browser route tables.

Authorization is flat set membership: a role is allowed exactly when it is
listed for the (resource, action) pair. There is no role hierarchy, so ADMIN
does not inherit SUPER_ADMIN-only actions.

All tables are read-only mappings built once at import time.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterable

from .models.users import ADMIN, CONFIRMER, SHOP_AGENT, SUPER_ADMIN, USER_ROLES, WAREHOUSE_AGENT


ROLES = USER_ROLES


def is_allowed(role: str | None, allowed_roles: Iterable[str]) -> bool:
    return role in frozenset(allowed_roles)


def _roles(*roles: str) -> frozenset:
    return frozenset(roles)


_MANAGEMENT = _roles(SUPER_ADMIN, ADMIN)
_EVERYONE = _roles(*USER_ROLES)


# resource -> action -> roles
RESOURCE_PERMISSIONS = MappingProxyType({
    "dashboard": MappingProxyType({
        "view": _MANAGEMENT,
    }),
    "products": MappingProxyType({
        "view": _roles(SUPER_ADMIN, ADMIN, SHOP_AGENT),
        "create": _MANAGEMENT,
        "update": _MANAGEMENT,
        "delete": _roles(SUPER_ADMIN),
        "import": _MANAGEMENT,
    }),
    "stock": MappingProxyType({
        "view": _MANAGEMENT,
        "update": _MANAGEMENT,
    }),
    "orders": MappingProxyType({
        "view": _EVERYONE,
        "create": _roles(SUPER_ADMIN, ADMIN, SHOP_AGENT),
        "update": _roles(SUPER_ADMIN, ADMIN, WAREHOUSE_AGENT, CONFIRMER),
        "delete": _roles(SUPER_ADMIN),
        "stats": _MANAGEMENT,
    }),
    "scan_orders": MappingProxyType({
        "view": _roles(SUPER_ADMIN, ADMIN, WAREHOUSE_AGENT),
        "create": _roles(SUPER_ADMIN, ADMIN, WAREHOUSE_AGENT),
    }),
    "charges": MappingProxyType({
        "view": _MANAGEMENT,
        "manage": _MANAGEMENT,
    }),
    "ads_costs": MappingProxyType({
        "view": _MANAGEMENT,
        "manage": _MANAGEMENT,
    }),
    "salaries": MappingProxyType({
        "view": _MANAGEMENT,
        "manage": _MANAGEMENT,
    }),
    "admins": MappingProxyType({
        "view": _roles(SUPER_ADMIN),
        "manage": _roles(SUPER_ADMIN),
    }),
})

# Roles limited to changing an order's status (no payment / notes edits)
ORDER_STATUS_ONLY_ROLES = _roles(WAREHOUSE_AGENT, CONFIRMER)


def allowed_roles(resource: str, action: str) -> frozenset:
    """Unknown resource/action pairs allow nobody."""
    return RESOURCE_PERMISSIONS.get(resource, MappingProxyType({})).get(action, frozenset())


def can(role: str | None, resource: str, action: str) -> bool:
    return is_allowed(role, allowed_roles(resource, action))


# =============================================================================
# BROWSER ROUTES
# =============================================================================

ROLE_PATH_PREFIXES = MappingProxyType({
    SUPER_ADMIN: ("super-admin",),
    ADMIN: ("admin",),
    SHOP_AGENT: ("shop-agent",),
    WAREHOUSE_AGENT: ("warehouse-agent",),
    CONFIRMER: ("confirmer",),
})

DEFAULT_LANDING_PATHS = MappingProxyType({
    SUPER_ADMIN: "/super-admin/dashboard",
    ADMIN: "/admin/dashboard",
    SHOP_AGENT: "/shop-agent/orders",
    WAREHOUSE_AGENT: "/warehouse-agent/scan-orders",
    CONFIRMER: "/confirmer",
})

# Leading path segments that belong to a role dashboard
DASHBOARD_SEGMENTS = frozenset(
    segment for prefixes in ROLE_PATH_PREFIXES.values() for segment in prefixes
)

FALLBACK_LANDING_PATH = "/login"


def landing_path(role: str | None) -> str:
    return DEFAULT_LANDING_PATHS.get(role, FALLBACK_LANDING_PATH)


def first_segment(path: str) -> str:
    return path.strip("/").split("/", 1)[0]


def landing_redirect(role: str | None, path: str) -> str | None:
    """
    Where a role should be sent when it opens `path`, or None when it may stay.

    Only dashboard paths are checked; other paths are left alone.
    """
    segment = first_segment(path)
    if segment not in DASHBOARD_SEGMENTS:
        return None
    if segment in ROLE_PATH_PREFIXES.get(role, ()):
        return None
    return landing_path(role)
