import uuid
from types import SimpleNamespace

import pytest

from agencyhub.core.permissions import (
    ALL_PERMISSION_CODES,
    LEGACY_ROLE_PERMISSIONS,
    LegacyRole,
)
from agencyhub.models.permission_catalog import PermissionCatalog
from agencyhub.services.permission_service import (
    ResolvedByRole,
    ResolvedLegacy,
    ResolvedNone,
    ResolvedPlatformAdmin,
    RoleInfo,
    build_effective_access,
    load_resolution,
    refresh_access,
    resolve_access,
)


def _member(**overrides):
    fields = dict(
        id=uuid.uuid4(),
        tenant_id=uuid.uuid4(),
        role="chatter",
        role_id=None,
        is_platform_admin=False,
        is_active=True,
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


def _role_info(level: int) -> RoleInfo:
    return RoleInfo(
        id=uuid.uuid4(),
        name="Custom",
        slug="custom",
        color="gray",
        hierarchy_level=level,
        is_system_default=False,
        is_immutable=False,
    )


# -------------------------
# Pure construction
# -------------------------
def test_platform_admin_gets_catalog_and_every_flag():
    member = _member(is_platform_admin=True, role="pending")
    access = build_effective_access(ResolvedPlatformAdmin(catalog=frozenset({"a.b", "c.d"})), member)

    assert access.permissions == frozenset({"a.b", "c.d"})
    assert access.source == "platform_admin"
    assert access.is_platform_admin
    assert access.is_manager_or_above and access.is_admin_or_above and access.is_owner
    # Platform admins pass checks even for codes outside the snapshot.
    assert access.has_permission("sales.approve")
    assert access.has_all_permissions(["x.y", "sales.delete"])


@pytest.mark.parametrize(
    "level, manager, admin, owner",
    [
        (0, False, False, False),
        (59, False, False, False),
        (60, True, False, False),
        (79, True, False, False),
        (80, True, True, False),
        (99, True, True, False),
        (100, True, True, True),
    ],
)
def test_role_hierarchy_flags_follow_level(level, manager, admin, owner):
    access = build_effective_access(
        ResolvedByRole(role=_role_info(level), permissions=frozenset()),
        _member(),
    )
    assert (access.is_manager_or_above, access.is_admin_or_above, access.is_owner) == (manager, admin, owner)
    # Flags are monotonic.
    assert not access.is_owner or access.is_admin_or_above
    assert not access.is_admin_or_above or access.is_manager_or_above


def test_role_grant_is_used_verbatim():
    codes = frozenset({"customs.view", "customs.create"})
    access = build_effective_access(ResolvedByRole(role=_role_info(20), permissions=codes), _member(role="owner"))

    assert access.permissions == codes
    assert access.source == "role"
    assert access.role.hierarchy_level == 20
    # The legacy column does not leak into role-based flags.
    assert not access.is_owner


@pytest.mark.parametrize("legacy", list(LegacyRole))
def test_legacy_resolution_matches_static_table(legacy):
    access = build_effective_access(ResolvedLegacy(legacy_role=legacy.value), _member(role=legacy.value))
    assert access.permissions == LEGACY_ROLE_PERMISSIONS[legacy]
    assert access.source == "legacy"


def test_legacy_flags():
    manager = build_effective_access(ResolvedLegacy("manager"), _member(role="manager"))
    admin = build_effective_access(ResolvedLegacy("admin"), _member(role="admin"))
    chatter = build_effective_access(ResolvedLegacy("chatter"), _member(role="chatter"))

    assert manager.is_manager_or_above and not manager.is_admin_or_above
    assert admin.is_admin_or_above and not admin.is_owner
    assert not chatter.is_manager_or_above


def test_unrecognized_legacy_role_resolves_to_nothing():
    access = build_effective_access(ResolvedLegacy("intern"), _member(role="intern"))
    assert access.permissions == frozenset()
    assert not access.is_manager_or_above


def test_no_membership_resolves_to_nothing():
    access = build_effective_access(ResolvedNone(), None)
    assert access.permissions == frozenset()
    assert access.member_id is None
    assert not access.has_any_permission(["dashboard.view"])


def test_unknown_resolution_type_is_rejected():
    with pytest.raises(TypeError):
        build_effective_access(object(), _member())


def test_permissions_in_category():
    access = build_effective_access(ResolvedLegacy("chatter"), _member())
    assert access.permissions_in_category("customs") == ["customs.create", "customs.my_customs", "customs.view"]


def test_chatter_cannot_approve_customs():
    access = build_effective_access(ResolvedLegacy("chatter"), _member())
    assert access.has_permission("customs.create")
    assert not access.has_permission("customs.approve")


# -------------------------
# Database-backed resolution
# -------------------------
def test_assigned_role_is_resolved_from_grants(db, make_member):
    member = make_member("manager")
    access = resolve_access(db, member)

    assert access.source == "role"
    assert access.role.slug == "manager"
    assert access.permissions == LEGACY_ROLE_PERMISSIONS[LegacyRole.MANAGER]
    assert access.is_manager_or_above and not access.is_admin_or_above


def test_missing_role_falls_back_to_legacy(db, make_member):
    member = make_member("chatter", with_role=False)
    member.role_id = uuid.uuid4()  # dangling reference

    assert isinstance(load_resolution(db, member), ResolvedLegacy)
    access = resolve_access(db, member)
    assert access.source == "legacy"
    assert access.permissions == LEGACY_ROLE_PERMISSIONS[LegacyRole.CHATTER]


def test_role_from_another_tenant_is_ignored(db, agency, make_member):
    from agencyhub.services.tenant_service import create_tenant

    _, other_owner = create_tenant(db, name="Other Agency", owner_email="o@other.test", owner_name="Other")
    db.commit()

    member = make_member("chatter", with_role=False)
    member.role_id = other_owner.role_id

    access = resolve_access(db, member)
    assert access.source == "legacy"
    assert not access.is_owner


def test_inactive_member_has_no_access(db, make_member):
    member = make_member("owner", is_active=False)
    access = resolve_access(db, member)
    assert access.source == "none"
    assert access.permissions == frozenset()


def test_platform_admin_gets_active_catalog_only(db, make_member):
    member = make_member("pending", is_platform_admin=True)
    retired = db.query(PermissionCatalog).filter(PermissionCatalog.code == "comms.sms").one()
    retired.is_active = False
    db.commit()

    access = resolve_access(db, member)
    assert access.source == "platform_admin"
    assert access.permissions == ALL_PERMISSION_CODES - {"comms.sms"}


def test_platform_admin_with_empty_catalog_uses_static_codes(db):
    from agencyhub.models.team_member import TeamMember

    admin = TeamMember(email="root@platform.test", full_name="Root", role="owner", is_platform_admin=True)
    db.add(admin)
    db.commit()

    access = resolve_access(db, admin)
    assert access.permissions == ALL_PERMISSION_CODES


def test_refresh_picks_up_role_change(db, agency, make_member):
    _, _, roles = agency
    member = make_member("chatter")
    assert not resolve_access(db, member).is_manager_or_above

    member.role_id = roles["manager"].id
    db.commit()

    access = refresh_access(db, member.id)
    assert access.is_manager_or_above
    assert "customs.approve" in access.permissions


def test_role_lookup_error_falls_back_to_legacy(db, make_member, monkeypatch):
    from sqlalchemy.exc import OperationalError

    from agencyhub.models.tenant_role import TenantRole

    member = make_member("manager")
    real_query = db.query

    def failing_query(*entities, **kwargs):
        if entities and entities[0] is TenantRole:
            raise OperationalError("SELECT tenant_roles", {}, Exception("connection reset"))
        return real_query(*entities, **kwargs)

    monkeypatch.setattr(db, "query", failing_query)

    access = resolve_access(db, member)
    assert access.source == "legacy"
    assert access.role is None
    assert access.permissions == LEGACY_ROLE_PERMISSIONS[LegacyRole.MANAGER]
    assert access.is_manager_or_above


def test_deactivated_platform_admin_has_no_access(db, make_member):
    member = make_member("owner", with_role=False, is_platform_admin=True, is_active=False)

    access = resolve_access(db, member)
    assert access.source == "none"
    assert not access.is_platform_admin
    assert not access.has_permission("customs.approve")


def test_deactivated_platform_admin_is_rejected_by_api(client, make_member, headers_for):
    member = make_member("owner", with_role=False, is_platform_admin=True, is_active=False)

    resp = client.get("/api/v1/roles", headers=headers_for(member))
    assert resp.status_code == 403


@pytest.mark.parametrize("raw", ["Owner", "OWNER", " owner", "manager "])
def test_legacy_role_matching_is_exact(raw):
    access = build_effective_access(ResolvedLegacy(raw), _member(role=raw))
    assert access.permissions == frozenset()
    assert not access.is_manager_or_above
