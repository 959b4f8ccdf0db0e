import pytest
from fastapi import status

from agencyhub.core.permissions import LegacyRole
from agencyhub.services import role_service, team_member_service
from agencyhub.services.permission_service import resolve_access
from agencyhub.services.team_member_service import RoleAssignmentError, TeamMemberStateError

BASE = "/api/v1/team-members"


def test_assign_system_role_syncs_legacy_column(db, agency, make_member):
    _, owner, roles = agency
    member = make_member("chatter")

    updated = team_member_service.assign_role(db, resolve_access(db, owner), member, roles["manager"].id)
    assert updated.role_id == roles["manager"].id
    assert updated.role == "manager"
    assert resolve_access(db, updated).is_manager_or_above


def test_assign_custom_role_keeps_legacy_column(db, agency, make_member):
    tenant, owner, _ = agency
    custom = role_service.create_role(db, tenant.id, name="Night Shift", permission_codes=["customs.view"])
    member = make_member("chatter")

    updated = team_member_service.assign_role(db, resolve_access(db, owner), member, custom.id)
    assert updated.role_id == custom.id
    assert updated.role == "chatter"
    assert resolve_access(db, updated).permissions == frozenset({"customs.view"})


def test_role_from_other_tenant_cannot_be_assigned(db, agency, make_member):
    from agencyhub.services.tenant_service import create_tenant

    _, owner, _ = agency
    _, other_owner = create_tenant(db, name="Rival Agency", owner_email="boss@rival.test", owner_name="Boss")
    db.commit()
    member = make_member("chatter")

    with pytest.raises(RoleAssignmentError):
        team_member_service.assign_role(db, resolve_access(db, owner), member, other_owner.role_id)


def test_only_owner_hands_out_owner_role(db, agency, make_member):
    _, _, roles = agency
    admin = make_member("admin")
    member = make_member("chatter")

    with pytest.raises(RoleAssignmentError):
        team_member_service.assign_role(db, resolve_access(db, admin), member, roles["owner"].id)


def test_members_cannot_change_their_own_role(db, agency, make_member):
    _, _, roles = agency
    admin = make_member("admin")

    with pytest.raises(RoleAssignmentError):
        team_member_service.assign_role(db, resolve_access(db, admin), admin, roles["manager"].id)


def test_approve_pending_member(db, agency, make_member):
    _, owner, _ = agency
    pending = make_member("pending", with_role=False)

    approved = team_member_service.approve_member(
        db, resolve_access(db, owner), pending, legacy_role=LegacyRole.CHATTER
    )
    assert approved.role == "chatter"
    assert approved.approved_by == owner.id
    assert approved.approved_at is not None
    assert resolve_access(db, approved).has_permission("customs.create")

    with pytest.raises(TeamMemberStateError):
        team_member_service.approve_member(db, resolve_access(db, owner), approved, legacy_role=LegacyRole.MANAGER)


def test_deactivated_member_loses_access(db, agency, make_member):
    _, owner, _ = agency
    manager = make_member("manager")

    team_member_service.deactivate_member(db, resolve_access(db, owner), manager)
    assert resolve_access(db, manager).permissions == frozenset()

    with pytest.raises(TeamMemberStateError):
        team_member_service.deactivate_member(db, resolve_access(db, owner), owner)


def test_team_members_api(client, agency, make_member, headers_for):
    _, owner, roles = agency
    pending = make_member("pending", with_role=False)
    chatter = make_member("chatter")

    listed = client.get(BASE, params={"pending_only": True}, headers=headers_for(owner))
    assert listed.status_code == 200
    assert [m["id"] for m in listed.json()] == [str(pending.id)]

    forbidden = client.patch(
        f"{BASE}/{pending.id}/approve", json={"legacy_role": "chatter"}, headers=headers_for(chatter)
    )
    assert forbidden.status_code == status.HTTP_403_FORBIDDEN

    both = client.patch(
        f"{BASE}/{pending.id}/approve",
        json={"legacy_role": "chatter", "role_id": str(roles["chatter"].id)},
        headers=headers_for(owner),
    )
    assert both.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    approved = client.patch(
        f"{BASE}/{pending.id}/approve", json={"role_id": str(roles["chatter"].id)}, headers=headers_for(owner)
    )
    assert approved.status_code == 200, approved.text
    assert approved.json()["role"] == "chatter"
