# agencyhub/core/permissions.py
"""
Permission registry: every permission code, its label, category and type,
the legacy role -> permission mapping, and the default system roles.

Codes are stable identifiers. Never rename one; add a new code instead.
"""

from enum import Enum as PyEnum


class PermissionCategory(str, PyEnum):
    DASHBOARD = "dashboard"
    NOTIFICATIONS = "notifications"
    CLIENTS = "clients"
    SALES = "sales"
    CUSTOMS = "customs"
    TEAM = "team"
    COMMS = "comms"
    CONTENT = "content"
    AGENCIES = "agencies"
    SETTINGS = "settings"


class PermissionType(str, PyEnum):
    PAGE_ACCESS = "page_access"
    ACTION = "action"


class LegacyRole(str, PyEnum):
    OWNER = "owner"
    ADMIN = "admin"
    MANAGER = "manager"
    CHATTER = "chatter"
    PENDING = "pending"


# Hierarchy thresholds used for coarse-grained checks
MANAGER_LEVEL = 60
ADMIN_LEVEL = 80
OWNER_LEVEL = 100

_PAGE = PermissionType.PAGE_ACCESS
_ACTION = PermissionType.ACTION

# code -> (name, category, type)
PERMISSION_CATALOG: dict[str, tuple[str, PermissionCategory, PermissionType]] = {
    # Dashboard
    "dashboard.view": ("View dashboard", PermissionCategory.DASHBOARD, _PAGE),
    # Notifications
    "notifications.view": ("View notifications", PermissionCategory.NOTIFICATIONS, _PAGE),
    "notifications.manage": ("Manage notifications", PermissionCategory.NOTIFICATIONS, _ACTION),
    # Clients
    "clients.view": ("View clients", PermissionCategory.CLIENTS, _PAGE),
    "clients.list": ("Client list", PermissionCategory.CLIENTS, _PAGE),
    "clients.create": ("Create clients", PermissionCategory.CLIENTS, _ACTION),
    "clients.edit": ("Edit clients", PermissionCategory.CLIENTS, _ACTION),
    "clients.delete": ("Delete clients", PermissionCategory.CLIENTS, _ACTION),
    "clients.data": ("Client data management", PermissionCategory.CLIENTS, _PAGE),
    "clients.leads": ("Leads tracker", PermissionCategory.CLIENTS, _PAGE),
    "clients.platform_overview": ("Platform overview", PermissionCategory.CLIENTS, _PAGE),
    # Sales
    "sales.view": ("View sales", PermissionCategory.SALES, _PAGE),
    "sales.tracker": ("Sales tracker", PermissionCategory.SALES, _PAGE),
    "sales.submit": ("Submit sales", PermissionCategory.SALES, _ACTION),
    "sales.approve": ("Approve sales", PermissionCategory.SALES, _ACTION),
    "sales.delete": ("Delete sales", PermissionCategory.SALES, _ACTION),
    "sales.all": ("View all sales", PermissionCategory.SALES, _PAGE),
    "sales.performance": ("Chatter performance", PermissionCategory.SALES, _PAGE),
    "sales.payroll": ("Payroll", PermissionCategory.SALES, _PAGE),
    # Customs
    "customs.view": ("View customs", PermissionCategory.CUSTOMS, _PAGE),
    "customs.my_customs": ("My customs", PermissionCategory.CUSTOMS, _PAGE),
    "customs.all": ("All customs", PermissionCategory.CUSTOMS, _PAGE),
    "customs.pending_approval": ("Pending approval", PermissionCategory.CUSTOMS, _PAGE),
    "customs.pending_completion": ("Pending completion", PermissionCategory.CUSTOMS, _PAGE),
    "customs.pending_delivery": ("Pending delivery", PermissionCategory.CUSTOMS, _PAGE),
    "customs.calls": ("Calls", PermissionCategory.CUSTOMS, _PAGE),
    "customs.create": ("Create customs", PermissionCategory.CUSTOMS, _ACTION),
    "customs.approve": ("Approve customs", PermissionCategory.CUSTOMS, _ACTION),
    "customs.complete": ("Complete customs", PermissionCategory.CUSTOMS, _ACTION),
    "customs.deliver": ("Deliver customs", PermissionCategory.CUSTOMS, _ACTION),
    "customs.delete": ("Delete customs", PermissionCategory.CUSTOMS, _ACTION),
    # Team
    "team.view": ("View team", PermissionCategory.TEAM, _PAGE),
    "team.attendance": ("Attendance", PermissionCategory.TEAM, _PAGE),
    "team.assignments": ("Assignments", PermissionCategory.TEAM, _PAGE),
    "team.user_approvals": ("User approvals", PermissionCategory.TEAM, _PAGE),
    "team.approve_users": ("Approve users", PermissionCategory.TEAM, _ACTION),
    "team.edit_members": ("Edit team members", PermissionCategory.TEAM, _ACTION),
    "team.invite": ("Invite team members", PermissionCategory.TEAM, _ACTION),
    "team.record_attendance": ("Record attendance", PermissionCategory.TEAM, _ACTION),
    # Communications
    "comms.chats": ("Chats", PermissionCategory.COMMS, _PAGE),
    "comms.sms": ("SMS", PermissionCategory.COMMS, _PAGE),
    "comms.send_sms": ("Send SMS", PermissionCategory.COMMS, _ACTION),
    "comms.view_threads": ("View threads", PermissionCategory.COMMS, _PAGE),
    # Content
    "content.scenes": ("Scene library", PermissionCategory.CONTENT, _PAGE),
    "content.assignments": ("Scene assignments", PermissionCategory.CONTENT, _PAGE),
    "content.create_scene": ("Create scenes", PermissionCategory.CONTENT, _ACTION),
    "content.edit_scene": ("Edit scenes", PermissionCategory.CONTENT, _ACTION),
    "content.delete_scene": ("Delete scenes", PermissionCategory.CONTENT, _ACTION),
    "content.assign": ("Assign scenes", PermissionCategory.CONTENT, _ACTION),
    # Agencies
    "agencies.view": ("View agencies", PermissionCategory.AGENCIES, _PAGE),
    "agencies.create": ("Create agencies", PermissionCategory.AGENCIES, _ACTION),
    "agencies.edit": ("Edit agencies", PermissionCategory.AGENCIES, _ACTION),
    "agencies.delete": ("Delete agencies", PermissionCategory.AGENCIES, _ACTION),
    # Settings
    "settings.roles": ("View roles", PermissionCategory.SETTINGS, _PAGE),
    "settings.manage_roles": ("Manage roles", PermissionCategory.SETTINGS, _ACTION),
    "settings.tenant": ("Tenant settings", PermissionCategory.SETTINGS, _PAGE),
}

ALL_PERMISSION_CODES: frozenset[str] = frozenset(PERMISSION_CATALOG)

CATEGORY_ORDER: list[PermissionCategory] = list(PermissionCategory)

_BASE = {"dashboard.view", "notifications.view", "notifications.manage"}

# Legacy role -> granted permission codes.
# Used when a team member has no role_id, or their role cannot be loaded.
LEGACY_ROLE_PERMISSIONS: dict[LegacyRole, frozenset[str]] = {
    LegacyRole.OWNER: ALL_PERMISSION_CODES,
    LegacyRole.ADMIN: ALL_PERMISSION_CODES - {"settings.manage_roles"},
    LegacyRole.MANAGER: frozenset(
        _BASE
        | {
            "clients.view", "clients.list", "clients.create", "clients.edit", "clients.platform_overview",
            "sales.view", "sales.tracker", "sales.submit", "sales.approve", "sales.all", "sales.performance",
            "customs.view", "customs.my_customs", "customs.all", "customs.pending_approval",
            "customs.pending_completion", "customs.pending_delivery", "customs.calls",
            "customs.create", "customs.approve", "customs.complete", "customs.deliver",
            "team.view", "team.attendance", "team.assignments", "team.user_approvals",
            "team.approve_users", "team.record_attendance",
            "agencies.view",
        }
    ),
    LegacyRole.CHATTER: frozenset(
        _BASE
        | {
            "clients.view",
            "sales.tracker", "sales.submit",
            "customs.view", "customs.my_customs", "customs.create",
        }
    ),
    LegacyRole.PENDING: frozenset(),
}

# Legacy roles that satisfy each hierarchy tier when no role record is resolved
LEGACY_MANAGER_OR_ABOVE = frozenset({LegacyRole.OWNER, LegacyRole.ADMIN, LegacyRole.MANAGER})
LEGACY_ADMIN_OR_ABOVE = frozenset({LegacyRole.OWNER, LegacyRole.ADMIN})
LEGACY_OWNER = frozenset({LegacyRole.OWNER})

# Default roles seeded into every new tenant:
# slug -> (name, color, hierarchy_level, is_immutable)
SYSTEM_ROLE_DEFAULTS: dict[LegacyRole, tuple[str, str, int, bool]] = {
    LegacyRole.OWNER: ("Owner", "purple", OWNER_LEVEL, True),
    LegacyRole.ADMIN: ("Admin", "red", ADMIN_LEVEL, False),
    LegacyRole.MANAGER: ("Manager", "blue", MANAGER_LEVEL, False),
    LegacyRole.CHATTER: ("Chatter", "green", 20, False),
    LegacyRole.PENDING: ("Pending", "gray", 0, False),
}


def parse_legacy_role(value: str | None) -> LegacyRole | None:
    """
    Map a raw legacy role string onto LegacyRole. Matching is exact:
    unknown values, including other casings, give None.
    """
    if not value:
        return None
    try:
        return LegacyRole(value)
    except ValueError:
        return None


def legacy_permissions_for(value: str | None) -> frozenset[str]:
    role = parse_legacy_role(value)
    if role is None:
        return frozenset()
    return LEGACY_ROLE_PERMISSIONS[role]
