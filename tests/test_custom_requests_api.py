import uuid

import pytest
from fastapi import status

from agencyhub.models.custom_request import CustomRequest

BASE = "/api/v1/custom-requests"


def _create(client, headers, payload):
    resp = client.post(BASE, json=payload, headers=headers)
    assert resp.status_code == status.HTTP_201_CREATED, resp.text
    return resp.json()


def test_create_starts_pending_with_balance(client, make_member, headers_for, custom_request_payload):
    chatter = make_member("chatter")
    body = _create(client, headers_for(chatter), custom_request_payload)

    assert body["status"] == "pending"
    assert body["priority"] == "medium"
    assert body["created_by"] == str(chatter.id)
    assert body["version"] == 1
    assert body["pending_balance"] in ("60.00", "60.0", "60")
    assert body["client_username"] == "lunabelle"


def test_create_requires_customs_create(client, make_member, headers_for, custom_request_payload):
    pending = make_member("pending")
    resp = client.post(BASE, json=custom_request_payload, headers=headers_for(pending))
    assert resp.status_code == status.HTTP_403_FORBIDDEN


def test_negative_amount_is_rejected(client, make_member, headers_for, custom_request_payload):
    chatter = make_member("chatter")
    payload = dict(custom_request_payload, proposed_amount="-5")
    resp = client.post(BASE, json=payload, headers=headers_for(chatter))
    assert resp.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_unauthenticated_request_is_rejected(client):
    assert client.get(BASE).status_code == status.HTTP_401_UNAUTHORIZED


def test_chatter_cannot_team_approve(client, make_member, headers_for, custom_request_payload):
    chatter = make_member("chatter")
    created = _create(client, headers_for(chatter), custom_request_payload)

    resp = client.patch(f"{BASE}/{created['id']}/team-approve", json={"version": 1}, headers=headers_for(chatter))
    assert resp.status_code == status.HTTP_403_FORBIDDEN

    fetched = client.get(f"{BASE}/{created['id']}", headers=headers_for(chatter)).json()
    assert fetched["status"] == "pending"
    assert fetched["version"] == 1


def test_full_lifecycle(client, make_member, headers_for, custom_request_payload):
    chatter = make_member("chatter")
    manager = make_member("manager")
    mh = headers_for(manager)
    created = _create(client, headers_for(chatter), custom_request_payload)
    rid = created["id"]

    approved = client.patch(f"{BASE}/{rid}/team-approve", json={"version": 1}, headers=mh)
    assert approved.status_code == 200, approved.text
    assert approved.json()["status"] == "pending_client_approval"
    assert approved.json()["team_approved_by"] == str(manager.id)

    missing_date = client.patch(f"{BASE}/{rid}/client-approve", json={"version": 2}, headers=mh)
    assert missing_date.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    in_progress = client.patch(
        f"{BASE}/{rid}/client-approve",
        json={"version": 2, "estimated_delivery_date": "2026-11-01"},
        headers=mh,
    )
    assert in_progress.status_code == 200, in_progress.text
    assert in_progress.json()["status"] == "in_progress"
    assert in_progress.json()["estimated_delivery_date"] == "2026-11-01"

    completed = client.patch(f"{BASE}/{rid}/complete", json={"version": 3}, headers=mh)
    assert completed.status_code == 200
    assert completed.json()["status"] == "completed"
    assert completed.json()["date_completed"] is not None

    delivered = client.patch(f"{BASE}/{rid}/deliver", json={"version": 4}, headers=mh)
    assert delivered.status_code == 200
    assert delivered.json()["status"] == "delivered"
    assert delivered.json()["delivered_at"] is not None

    # Terminal: nothing else is allowed.
    again = client.patch(f"{BASE}/{rid}/team-deny", json={"version": 5}, headers=mh)
    assert again.status_code == status.HTTP_400_BAD_REQUEST
    assert "already delivered" in again.json()["detail"]


def test_stale_version_is_a_conflict(client, make_member, headers_for, custom_request_payload):
    chatter = make_member("chatter")
    manager = make_member("manager")
    created = _create(client, headers_for(chatter), custom_request_payload)
    rid = created["id"]

    first = client.patch(f"{BASE}/{rid}/team-approve", json={"version": 1}, headers=headers_for(manager))
    assert first.status_code == 200

    stale = client.patch(f"{BASE}/{rid}/team-deny", json={"version": 1}, headers=headers_for(manager))
    assert stale.status_code == status.HTTP_409_CONFLICT


def test_team_deny_retains_cancelled_record(db, client, make_member, headers_for, custom_request_payload):
    chatter = make_member("chatter")
    manager = make_member("manager")
    created = _create(client, headers_for(chatter), custom_request_payload)

    resp = client.patch(
        f"{BASE}/{created['id']}/team-deny",
        json={"version": 1, "reason": "Not something we offer"},
        headers=headers_for(manager),
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "cancelled"
    assert body["cancelled_by"] == str(manager.id)
    assert body["cancellation_reason"] == "Not something we offer"

    assert db.query(CustomRequest).count() == 1


def test_edit_by_creator_keeps_status(client, make_member, headers_for, custom_request_payload):
    chatter = make_member("chatter")
    created = _create(client, headers_for(chatter), custom_request_payload)

    resp = client.patch(
        f"{BASE}/{created['id']}",
        json={"version": 1, "amount_paid": "150.00", "notes": "Paid extra as a tip"},
        headers=headers_for(chatter),
    )
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["status"] == "pending"
    assert body["version"] == 2
    # Overpayment is allowed and never produces a negative balance.
    assert float(body["pending_balance"]) == 0


def test_edit_by_other_chatter_is_forbidden(client, make_member, headers_for, custom_request_payload):
    author = make_member("chatter")
    other = make_member("chatter")
    created = _create(client, headers_for(author), custom_request_payload)

    resp = client.patch(f"{BASE}/{created['id']}", json={"version": 1, "notes": "x"}, headers=headers_for(other))
    assert resp.status_code == status.HTTP_403_FORBIDDEN


def test_status_cannot_be_patched(client, make_member, headers_for, custom_request_payload):
    chatter = make_member("chatter")
    created = _create(client, headers_for(chatter), custom_request_payload)

    resp = client.patch(
        f"{BASE}/{created['id']}",
        json={"version": 1, "status": "delivered"},
        headers=headers_for(chatter),
    )
    assert resp.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    fetched = client.get(f"{BASE}/{created['id']}", headers=headers_for(chatter)).json()
    assert fetched["status"] == "pending"


def test_list_scopes_to_own_requests_without_customs_all(client, make_member, headers_for, custom_request_payload):
    alice = make_member("chatter")
    bob = make_member("chatter")
    manager = make_member("manager")
    _create(client, headers_for(alice), custom_request_payload)
    _create(client, headers_for(bob), custom_request_payload)

    own = client.get(BASE, headers=headers_for(alice)).json()
    assert own["total"] == 1
    assert own["items"][0]["created_by"] == str(alice.id)

    everyone = client.get(BASE, headers=headers_for(manager)).json()
    assert everyone["total"] == 2

    pending_only = client.get(BASE, params={"status": "pending,in_progress"}, headers=headers_for(manager)).json()
    assert pending_only["total"] == 2

    bad = client.get(BASE, params={"status": "archived"}, headers=headers_for(manager))
    assert bad.status_code == 400


def test_other_tenant_cannot_see_request(db, client, make_member, headers_for, custom_request_payload):
    from agencyhub.services.tenant_service import create_tenant

    chatter = make_member("chatter")
    created = _create(client, headers_for(chatter), custom_request_payload)

    _, outsider = create_tenant(db, name="Rival Agency", owner_email="boss@rival.test", owner_name="Boss")
    db.commit()

    resp = client.get(f"{BASE}/{created['id']}", headers=headers_for(outsider))
    assert resp.status_code == status.HTTP_404_NOT_FOUND


def test_attachments_upload_and_list(client, storage_root, make_member, headers_for, custom_request_payload):
    chatter = make_member("chatter")
    created = _create(client, headers_for(chatter), custom_request_payload)
    rid = created["id"]

    resp = client.post(
        f"{BASE}/{rid}/attachments",
        files=[
            ("files", ("Outfit.PNG", b"\x89PNG fake", "image/png")),
            ("files", ("notes.txt", b"hello", "text/plain")),
        ],
        headers=headers_for(chatter),
    )
    assert resp.status_code == status.HTTP_201_CREATED, resp.text
    body = resp.json()
    assert body["failed"] == []
    paths = sorted(u["file_path"] for u in body["uploaded"])
    assert paths[0].startswith(f"{rid}/ref-") and paths[0].endswith("-0.png")
    assert paths[1].endswith("-1.txt")
    assert (storage_root / paths[0]).read_bytes() == b"\x89PNG fake"

    listed = client.get(f"{BASE}/{rid}/attachments", headers=headers_for(chatter)).json()
    assert len(listed) == 2

    png = next(u for u in body["uploaded"] if u["file_name"] == "Outfit.PNG")
    download = client.get(f"{BASE}/{rid}/attachments/{png['id']}/download", headers=headers_for(chatter))
    assert download.status_code == 200
    assert download.content == b"\x89PNG fake"
    assert download.headers["content-type"] == "image/png"


def test_download_missing_attachment(client, storage_root, make_member, headers_for, custom_request_payload):
    chatter = make_member("chatter")
    created = _create(client, headers_for(chatter), custom_request_payload)
    rid = created["id"]

    unknown = client.get(f"{BASE}/{rid}/attachments/{uuid.uuid4()}/download", headers=headers_for(chatter))
    assert unknown.status_code == status.HTTP_404_NOT_FOUND

    resp = client.post(
        f"{BASE}/{rid}/attachments",
        files=[("files", ("clip.mp4", b"frames", "video/mp4"))],
        headers=headers_for(chatter),
    )
    upload = resp.json()["uploaded"][0]
    (storage_root / upload["file_path"]).unlink()

    gone = client.get(f"{BASE}/{rid}/attachments/{upload['id']}/download", headers=headers_for(chatter))
    assert gone.status_code == status.HTTP_404_NOT_FOUND
    assert gone.json()["detail"] == "File not found on storage."


@pytest.mark.parametrize(
    "changes",
    [
        {"fan_name": None},
        {"fan_name": "   "},
        {"description": None},
        {"proposed_amount": None},
        {"priority": None},
    ],
)
def test_edit_rejects_null_and_blank_values(client, make_member, headers_for, custom_request_payload, changes):
    chatter = make_member("chatter")
    created = _create(client, headers_for(chatter), custom_request_payload)

    resp = client.patch(f"{BASE}/{created['id']}", json=dict(changes, version=1), headers=headers_for(chatter))
    assert resp.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    fetched = client.get(f"{BASE}/{created['id']}", headers=headers_for(chatter)).json()
    assert fetched["fan_name"] == "Big Spender"
    assert fetched["version"] == 1


# -------------------------
# Notes
# -------------------------
def test_notes_thread(client, make_member, headers_for, custom_request_payload):
    chatter = make_member("chatter")
    manager = make_member("manager")
    created = _create(client, headers_for(chatter), custom_request_payload)
    rid = created["id"]

    first = client.post(f"{BASE}/{rid}/notes", json={"content": "Fan asked for extra lighting"}, headers=headers_for(chatter))
    assert first.status_code == status.HTTP_201_CREATED, first.text
    assert first.json()["author_name"] == "Chatter Member"
    assert first.json()["created_by"] == str(chatter.id)

    second = client.post(f"{BASE}/{rid}/notes", json={"content": "Approved the outfit"}, headers=headers_for(manager))
    assert second.status_code == status.HTTP_201_CREATED

    listed = client.get(f"{BASE}/{rid}/notes", headers=headers_for(chatter)).json()
    assert [n["content"] for n in listed] == ["Fan asked for extra lighting", "Approved the outfit"]
    assert listed[1]["author_name"] == "Manager Member"

    # Notes live beside the request; its version is unchanged.
    fetched = client.get(f"{BASE}/{rid}", headers=headers_for(chatter)).json()
    assert fetched["version"] == 1


def test_blank_note_is_rejected(client, make_member, headers_for, custom_request_payload):
    chatter = make_member("chatter")
    created = _create(client, headers_for(chatter), custom_request_payload)

    resp = client.post(f"{BASE}/{created['id']}/notes", json={"content": "  "}, headers=headers_for(chatter))
    assert resp.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_only_author_can_change_note(client, make_member, headers_for, custom_request_payload):
    author = make_member("chatter")
    manager = make_member("manager")
    created = _create(client, headers_for(author), custom_request_payload)
    rid = created["id"]
    note = client.post(f"{BASE}/{rid}/notes", json={"content": "Draft"}, headers=headers_for(author)).json()
    note_url = f"{BASE}/{rid}/notes/{note['id']}"

    forbidden = client.patch(note_url, json={"content": "Hijacked"}, headers=headers_for(manager))
    assert forbidden.status_code == status.HTTP_403_FORBIDDEN
    assert client.delete(note_url, headers=headers_for(manager)).status_code == status.HTTP_403_FORBIDDEN

    edited = client.patch(note_url, json={"content": "Final"}, headers=headers_for(author))
    assert edited.status_code == 200
    assert edited.json()["content"] == "Final"

    assert client.delete(note_url, headers=headers_for(author)).status_code == status.HTTP_204_NO_CONTENT
    assert client.get(f"{BASE}/{rid}/notes", headers=headers_for(author)).json() == []
    assert client.delete(note_url, headers=headers_for(author)).status_code == status.HTTP_404_NOT_FOUND


def test_pending_member_cannot_add_note(client, make_member, headers_for, custom_request_payload):
    chatter = make_member("chatter")
    pending = make_member("pending")
    created = _create(client, headers_for(chatter), custom_request_payload)

    resp = client.post(f"{BASE}/{created['id']}/notes", json={"content": "Hi"}, headers=headers_for(pending))
    assert resp.status_code == status.HTTP_403_FORBIDDEN
