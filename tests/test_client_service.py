import pytest
from fastapi import status

from agencyhub.services import client_service
from agencyhub.services.client_service import ClientNotFoundError, ClientUsernameConflictError

BASE = "/api/v1/clients"


def test_create_and_list(db, agency):
    tenant, _, _ = agency
    created = client_service.create_client(db, tenant.id, username="mira", display_name="Mira")
    assert created.is_active is True

    listed = client_service.list_clients(db, tenant.id)
    assert [c.username for c in listed] == ["mira"]


def test_username_is_unique_per_agency(db, agency, agency_client):
    tenant, _, _ = agency
    with pytest.raises(ClientUsernameConflictError):
        client_service.create_client(db, tenant.id, username="lunabelle")

    other = client_service.create_client(db, tenant.id, username="sunny")
    with pytest.raises(ClientUsernameConflictError):
        client_service.update_client(db, other, {"username": "lunabelle"})


def test_update_rejects_unknown_fields(db, agency_client):
    with pytest.raises(ValueError):
        client_service.update_client(db, agency_client, {"tenant_id": None})

    renamed = client_service.update_client(db, agency_client, {"display_name": "Luna"})
    assert renamed.display_name == "Luna"


def test_deactivate_hides_client_but_keeps_it(db, agency, agency_client):
    tenant, _, _ = agency
    client_service.deactivate_client(db, agency_client)

    assert client_service.list_clients(db, tenant.id) == []
    assert len(client_service.list_clients(db, tenant.id, include_inactive=True)) == 1
    assert client_service.get_client(db, tenant.id, agency_client.id).is_active is False


def test_client_from_another_agency_is_not_found(db, agency_client):
    from agencyhub.services.tenant_service import create_tenant

    rival, _ = create_tenant(db, name="Rival Agency", owner_email="boss@rival.test", owner_name="Boss")
    db.commit()

    with pytest.raises(ClientNotFoundError):
        client_service.get_client(db, rival.id, agency_client.id)


# -------------------------
# API
# -------------------------
def test_manager_creates_client(client, make_member, headers_for):
    manager = make_member("manager")
    resp = client.post(BASE, json={"username": "  @stella ", "display_name": "Stella"}, headers=headers_for(manager))
    assert resp.status_code == status.HTTP_201_CREATED, resp.text
    assert resp.json()["username"] == "stella"

    dup = client.post(BASE, json={"username": "stella"}, headers=headers_for(manager))
    assert dup.status_code == status.HTTP_409_CONFLICT


def test_chatter_can_view_but_not_create(client, make_member, headers_for, agency_client):
    chatter = make_member("chatter")
    listed = client.get(BASE, headers=headers_for(chatter))
    assert listed.status_code == 200
    assert [c["username"] for c in listed.json()] == ["lunabelle"]

    resp = client.post(BASE, json={"username": "stella"}, headers=headers_for(chatter))
    assert resp.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.parametrize("body", [{"username": None}, {"username": "  "}, {"username": "@"}])
def test_edit_rejects_empty_username(client, make_member, headers_for, agency_client, body):
    manager = make_member("manager")
    resp = client.patch(f"{BASE}/{agency_client.id}", json=body, headers=headers_for(manager))
    assert resp.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_deactivate_needs_clients_delete(client, agency, make_member, headers_for, agency_client, custom_request_payload):
    _, owner, _ = agency
    manager = make_member("manager")
    url = f"{BASE}/{agency_client.id}/deactivate"

    assert client.patch(url, headers=headers_for(manager)).status_code == status.HTTP_403_FORBIDDEN

    resp = client.patch(url, headers=headers_for(owner))
    assert resp.status_code == 200
    assert resp.json()["is_active"] is False

    # No new work can be logged against an inactive client.
    custom = client.post("/api/v1/custom-requests", json=custom_request_payload, headers=headers_for(manager))
    assert custom.status_code == status.HTTP_404_NOT_FOUND
