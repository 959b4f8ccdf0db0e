# agencyhub/services/sale_service.py
"""
Chatter sale submissions and their one-time manager review.

Net revenue is never stored. It is always `gross * sale_net_revenue_rate`
(0.80 by default), computed by `net_revenue` below.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from agencyhub.core.config import get_settings
from agencyhub.models.client import Client
from agencyhub.models.sale import Sale, SaleStatus
from agencyhub.services.permission_service import EffectiveAccess
from agencyhub.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

EDITABLE_FIELDS = frozenset({"client_id", "sale_date", "sale_time", "gross_amount", "screenshot_url", "notes"})


class SaleNotFoundError(Exception):
    pass


class SaleClientNotFoundError(Exception):
    pass


class SalePermissionError(Exception):
    pass


class SaleAlreadyReviewedError(Exception):
    pass


class SaleVersionConflictError(Exception):
    pass


def net_revenue(gross: Decimal | int | str, rate: Decimal | None = None) -> Decimal:
    """
    Agency revenue after chatter commission: gross * rate.
    """
    if rate is None:
        rate = get_settings().sale_net_revenue_rate
    return Decimal(str(gross)) * Decimal(str(rate))


# -------------------------
# Summary
# -------------------------
@dataclass
class ChatterTotals:
    chatter_id: uuid.UUID
    sale_count: int = 0
    valid_count: int = 0
    valid_gross: Decimal = ZERO
    valid_net: Decimal = ZERO
    pending_gross: Decimal = ZERO


@dataclass
class SalesSummary:
    total_count: int = 0
    counts_by_status: dict[str, int] = field(default_factory=lambda: {s.value: 0 for s in SaleStatus})
    valid_gross: Decimal = ZERO
    valid_net: Decimal = ZERO
    pending_gross: Decimal = ZERO
    by_chatter: list[ChatterTotals] = field(default_factory=list)


def summarize_sales(sales: Iterable[Sale], rate: Decimal | None = None) -> SalesSummary:
    """
    Aggregate a batch of sales. Revenue totals only count `valid` rows,
    each row exactly once; pending gross is reported separately.
    """
    summary = SalesSummary()
    per_chatter: dict[uuid.UUID, ChatterTotals] = {}
    seen: set[uuid.UUID] = set()

    for sale in sales:
        if sale.id in seen:
            continue
        seen.add(sale.id)

        summary.total_count += 1
        summary.counts_by_status[sale.status.value] += 1
        totals = per_chatter.setdefault(sale.chatter_id, ChatterTotals(chatter_id=sale.chatter_id))
        totals.sale_count += 1

        gross = Decimal(str(sale.gross_amount))
        if sale.status == SaleStatus.VALID:
            net = net_revenue(gross, rate)
            summary.valid_gross += gross
            summary.valid_net += net
            totals.valid_count += 1
            totals.valid_gross += gross
            totals.valid_net += net
        elif sale.status == SaleStatus.PENDING:
            summary.pending_gross += gross
            totals.pending_gross += gross

    summary.by_chatter = sorted(per_chatter.values(), key=lambda t: (-t.valid_gross, str(t.chatter_id)))
    return summary


# -------------------------
# Persistence
# -------------------------
def _scoped(query, access: EffectiveAccess):
    if access.is_platform_admin:
        return query
    return query.filter(Sale.tenant_id == access.tenant_id)


def _require_client(db: Session, tenant_id: uuid.UUID | None, client_id: uuid.UUID) -> None:
    client = db.query(Client).filter(Client.id == client_id, Client.tenant_id == tenant_id).first()
    if not client:
        raise SaleClientNotFoundError("Client not found")


def _commit(db: Session, sale: Sale) -> Sale:
    try:
        db.commit()
    except StaleDataError as exc:
        db.rollback()
        raise SaleVersionConflictError("This sale was changed by someone else. Reload and try again.") from exc
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(sale)
    return sale


def create_sale(
    db: Session,
    access: EffectiveAccess,
    *,
    client_id: uuid.UUID,
    sale_date: date,
    gross_amount: Decimal,
    **fields: Any,
) -> Sale:
    """
    Submit a sale as the acting chatter. Always starts `pending`.
    """
    _require_client(db, access.tenant_id, client_id)
    sale = Sale(
        tenant_id=access.tenant_id,
        chatter_id=access.member_id,
        client_id=client_id,
        sale_date=sale_date,
        gross_amount=gross_amount,
        status=SaleStatus.PENDING,
        **fields,
    )
    try:
        db.add(sale)
        db.commit()
        db.refresh(sale)
    except SQLAlchemyError:
        db.rollback()
        raise

    logger.info("Sale %s submitted by %s gross=%s", sale.id, access.member_id, sale.gross_amount)
    return sale


def get_sale(db: Session, access: EffectiveAccess, sale_id: uuid.UUID) -> Sale:
    sale = _scoped(db.query(Sale), access).filter(Sale.id == sale_id).first()
    if not sale:
        raise SaleNotFoundError("Sale not found")
    if not access.has_permission("sales.all") and sale.chatter_id != access.member_id:
        raise SaleNotFoundError("Sale not found")
    return sale


def list_sales(
    db: Session,
    access: EffectiveAccess,
    *,
    status: SaleStatus | None = None,
    chatter_id: uuid.UUID | None = None,
    client_id: uuid.UUID | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
) -> list[Sale]:
    """
    Members without `sales.all` only ever see their own submissions.
    """
    query = _scoped(db.query(Sale), access)

    if not access.has_permission("sales.all"):
        query = query.filter(Sale.chatter_id == access.member_id)
    elif chatter_id:
        query = query.filter(Sale.chatter_id == chatter_id)

    if status:
        query = query.filter(Sale.status == status)
    if client_id:
        query = query.filter(Sale.client_id == client_id)
    if date_from:
        query = query.filter(Sale.sale_date >= date_from)
    if date_to:
        query = query.filter(Sale.sale_date <= date_to)

    return query.order_by(Sale.sale_date.desc(), Sale.created_at.desc()).all()


def update_sale(db: Session, access: EffectiveAccess, sale: Sale, updates: dict[str, Any]) -> Sale:
    """
    The submitter or any `sales.approve` holder may edit, whatever the status.
    """
    if sale.chatter_id != access.member_id and not access.has_permission("sales.approve"):
        raise SalePermissionError("You can only edit your own sales.")

    unknown = sorted(set(updates) - EDITABLE_FIELDS)
    if unknown:
        raise SalePermissionError(f"Fields cannot be edited: {', '.join(unknown)}")

    if "client_id" in updates and updates["client_id"] != sale.client_id:
        _require_client(db, sale.tenant_id, updates["client_id"])

    for key, value in updates.items():
        setattr(sale, key, value)
    return _commit(db, sale)


def review_sale(
    db: Session,
    access: EffectiveAccess,
    sale: Sale,
    *,
    decision: SaleStatus,
    notes: str | None = None,
) -> Sale:
    """
    Mark a pending sale valid or invalid. A sale is reviewed exactly once.
    """
    if not (access.has_permission("sales.approve") and access.is_manager_or_above):
        raise SalePermissionError("Only managers with sales approval rights can review sales.")
    if decision not in (SaleStatus.VALID, SaleStatus.INVALID):
        raise ValueError("A review decision must be 'valid' or 'invalid'.")
    if sale.status != SaleStatus.PENDING:
        raise SaleAlreadyReviewedError(f"Sale has already been reviewed as {sale.status.value}.")

    sale.status = decision
    sale.approved_by = access.member_id
    sale.approved_at = utc_now()
    if notes is not None:
        sale.notes = notes

    sale = _commit(db, sale)
    logger.info("Sale %s reviewed as %s by %s", sale.id, decision.value, access.member_id)
    return sale


def delete_sale(db: Session, sale: Sale) -> None:
    try:
        db.delete(sale)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    logger.info("Sale %s deleted", sale.id)
