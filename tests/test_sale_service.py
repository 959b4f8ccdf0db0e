import uuid
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest
from fastapi import status
from sqlalchemy.orm import Session

from agencyhub.models.sale import Sale, SaleStatus
from agencyhub.services import sale_service
from agencyhub.services.permission_service import resolve_access
from agencyhub.services.sale_service import (
    SaleAlreadyReviewedError,
    SalePermissionError,
    SaleVersionConflictError,
    net_revenue,
    summarize_sales,
)

BASE = "/api/v1/sales"


def _sale(status: SaleStatus, gross: str, chatter_id=None, sale_id=None):
    return SimpleNamespace(
        id=sale_id or uuid.uuid4(),
        chatter_id=chatter_id or uuid.uuid4(),
        status=status,
        gross_amount=Decimal(gross),
    )


@pytest.mark.parametrize(
    "gross, expected",
    [
        ("100.00", Decimal("80.0000")),
        ("0", Decimal("0")),
        ("12.34", Decimal("9.872")),
        ("1000000.00", Decimal("800000.0000")),
    ],
)
def test_net_revenue_is_eighty_percent_of_gross(gross, expected):
    assert net_revenue(Decimal(gross)) == expected


def test_net_revenue_accepts_explicit_rate():
    assert net_revenue(50, Decimal("0.5")) == Decimal("25.0")


def test_summary_counts_valid_revenue_once():
    alice, bob = uuid.uuid4(), uuid.uuid4()
    repeated = _sale(SaleStatus.VALID, "100.00", chatter_id=alice)
    sales = [
        repeated,
        repeated,
        _sale(SaleStatus.VALID, "50.00", chatter_id=bob),
        _sale(SaleStatus.PENDING, "30.00", chatter_id=bob),
        _sale(SaleStatus.INVALID, "999.00", chatter_id=alice),
    ]

    summary = summarize_sales(sales)

    assert summary.total_count == 4
    assert summary.counts_by_status == {"pending": 1, "valid": 2, "invalid": 1}
    assert summary.valid_gross == Decimal("150.00")
    assert summary.valid_net == Decimal("120.0000")
    assert summary.pending_gross == Decimal("30.00")

    assert [t.chatter_id for t in summary.by_chatter] == [alice, bob]
    assert summary.by_chatter[0].valid_net == Decimal("80.0000")
    assert summary.by_chatter[1].pending_gross == Decimal("30.00")


def test_empty_summary():
    summary = summarize_sales([])
    assert summary.total_count == 0
    assert summary.valid_net == 0
    assert summary.by_chatter == []


# -------------------------
# Database-backed
# -------------------------
def _submit(db, member, agency_client, gross="100.00"):
    return sale_service.create_sale(
        db,
        resolve_access(db, member),
        client_id=agency_client.id,
        sale_date=date(2026, 3, 1),
        gross_amount=Decimal(gross),
    )


def test_review_marks_sale_valid_once(db, make_member, agency_client):
    chatter = make_member("chatter")
    manager = make_member("manager")
    sale = _submit(db, chatter, agency_client)
    assert sale.status == SaleStatus.PENDING

    access = resolve_access(db, manager)
    reviewed = sale_service.review_sale(db, access, sale, decision=SaleStatus.VALID)
    assert reviewed.status == SaleStatus.VALID
    assert reviewed.approved_by == manager.id
    assert reviewed.approved_at is not None

    with pytest.raises(SaleAlreadyReviewedError):
        sale_service.review_sale(db, access, reviewed, decision=SaleStatus.INVALID)


def test_chatter_cannot_review(db, make_member, agency_client):
    chatter = make_member("chatter")
    sale = _submit(db, chatter, agency_client)

    with pytest.raises(SalePermissionError):
        sale_service.review_sale(db, resolve_access(db, chatter), sale, decision=SaleStatus.VALID)
    assert sale.status == SaleStatus.PENDING


def test_list_sales_scopes_to_own_without_sales_all(db, make_member, agency_client):
    alice = make_member("chatter")
    bob = make_member("chatter")
    manager = make_member("manager")
    _submit(db, alice, agency_client)
    _submit(db, bob, agency_client)

    own = sale_service.list_sales(db, resolve_access(db, alice))
    assert [s.chatter_id for s in own] == [alice.id]
    assert len(sale_service.list_sales(db, resolve_access(db, manager))) == 2


def test_update_by_other_chatter_is_rejected(db, make_member, agency_client):
    alice = make_member("chatter")
    bob = make_member("chatter")
    sale = _submit(db, alice, agency_client)

    with pytest.raises(SalePermissionError):
        sale_service.update_sale(db, resolve_access(db, bob), sale, {"notes": "mine now"})


# -------------------------
# API
# -------------------------
def test_sales_api_review_and_summary(client, make_member, headers_for, agency_client):
    chatter = make_member("chatter")
    manager = make_member("manager")

    created = client.post(
        BASE,
        json={"client_id": str(agency_client.id), "sale_date": "2026-03-01", "gross_amount": "250.00"},
        headers=headers_for(chatter),
    )
    assert created.status_code == status.HTTP_201_CREATED, created.text
    sale_id = created.json()["id"]
    assert Decimal(created.json()["net_amount"]) == Decimal("200")

    denied = client.patch(f"{BASE}/{sale_id}/review", json={"decision": "valid"}, headers=headers_for(chatter))
    assert denied.status_code == status.HTTP_403_FORBIDDEN

    reviewed = client.patch(f"{BASE}/{sale_id}/review", json={"decision": "valid"}, headers=headers_for(manager))
    assert reviewed.status_code == 200, reviewed.text
    assert reviewed.json()["status"] == "valid"

    again = client.patch(f"{BASE}/{sale_id}/review", json={"decision": "invalid"}, headers=headers_for(manager))
    assert again.status_code == status.HTTP_400_BAD_REQUEST

    summary = client.get(f"{BASE}/summary", headers=headers_for(manager)).json()
    assert summary["total_count"] == 1
    assert Decimal(summary["valid_net"]) == Decimal("200")


def test_negative_gross_is_rejected(client, make_member, headers_for, agency_client):
    chatter = make_member("chatter")
    resp = client.post(
        BASE,
        json={"client_id": str(agency_client.id), "sale_date": "2026-03-01", "gross_amount": "-1"},
        headers=headers_for(chatter),
    )
    assert resp.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_concurrent_sale_edit_is_a_version_conflict(db, make_member, agency_client):
    chatter = make_member("chatter")
    manager = make_member("manager")
    sale = _submit(db, chatter, agency_client)

    with Session(bind=db.get_bind()) as other:
        theirs = other.get(Sale, sale.id)
        theirs.notes = "Fixed the screenshot"
        other.commit()

    with pytest.raises(SaleVersionConflictError):
        sale_service.review_sale(db, resolve_access(db, manager), sale, decision=SaleStatus.VALID)

    db.expire_all()
    reloaded = db.get(Sale, sale.id)
    assert reloaded.status == SaleStatus.PENDING
    assert reloaded.notes == "Fixed the screenshot"


@pytest.mark.parametrize("changes", [{"gross_amount": None}, {"sale_date": None}, {"client_id": None}])
def test_sale_edit_rejects_nulls(client, make_member, headers_for, agency_client, changes):
    chatter = make_member("chatter")
    created = client.post(
        BASE,
        json={"client_id": str(agency_client.id), "sale_date": "2026-03-01", "gross_amount": "50.00"},
        headers=headers_for(chatter),
    ).json()

    resp = client.patch(f"{BASE}/{created['id']}", json=changes, headers=headers_for(chatter))
    assert resp.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    fetched = client.get(f"{BASE}/{created['id']}", headers=headers_for(chatter)).json()
    assert Decimal(fetched["gross_amount"]) == Decimal("50")
