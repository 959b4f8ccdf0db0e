# agencyhub/api/v1/endpoints/sales.py
from __future__ import annotations

from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from agencyhub.core.database import get_db
from agencyhub.core.tenant_context import TenantContext, get_tenant_context
from agencyhub.dependencies.authz import require_any_permission, require_manager, require_permission
from agencyhub.models.sale import Sale, SaleStatus
from agencyhub.schemas.sale import (
    SaleCreate,
    SaleResponse,
    SaleReviewRequest,
    SalesSummaryResponse,
    SaleUpdate,
)
from agencyhub.services import sale_service
from agencyhub.services.sale_service import (
    SaleAlreadyReviewedError,
    SaleClientNotFoundError,
    SaleNotFoundError,
    SalePermissionError,
    SaleVersionConflictError,
)

router = APIRouter()

_VIEW_SALES = ("sales.view", "sales.tracker", "sales.all")


def _build_response(sale: Sale) -> SaleResponse:
    response = SaleResponse.model_validate(sale)
    response.net_amount = sale_service.net_revenue(sale.gross_amount)
    return response


def _load_sale(db: Session, ctx: TenantContext, sale_id: UUID) -> Sale:
    try:
        return sale_service.get_sale(db, ctx.access, sale_id)
    except SaleNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


def _parse_status(value: Optional[str]) -> SaleStatus | None:
    if not value:
        return None
    try:
        return SaleStatus(value)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid status: {str(e)}")


@router.post("", response_model=SaleResponse, status_code=status.HTTP_201_CREATED)
def submit_sale(
    payload: SaleCreate,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(require_permission("sales.submit")),
) -> SaleResponse:
    ctx.require_tenant_id()
    try:
        sale = sale_service.create_sale(db, ctx.access, **payload.model_dump())
    except SaleClientNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to submit sale.")
    return _build_response(sale)


@router.get("", response_model=list[SaleResponse])
def list_sales(
    status_filter: Optional[str] = Query(None, alias="status"),
    chatter_id: Optional[UUID] = Query(None),
    client_id: Optional[UUID] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(require_any_permission(*_VIEW_SALES)),
) -> list[SaleResponse]:
    sales = sale_service.list_sales(
        db,
        ctx.access,
        status=_parse_status(status_filter),
        chatter_id=chatter_id,
        client_id=client_id,
        date_from=date_from,
        date_to=date_to,
    )
    return [_build_response(s) for s in sales]


@router.get("/summary", response_model=SalesSummaryResponse)
def sales_summary(
    chatter_id: Optional[UUID] = Query(None),
    client_id: Optional[UUID] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(require_any_permission(*_VIEW_SALES)),
) -> SalesSummaryResponse:
    """
    Totals over the sales the caller can see. Revenue counts valid sales only.
    """
    sales = sale_service.list_sales(
        db,
        ctx.access,
        chatter_id=chatter_id,
        client_id=client_id,
        date_from=date_from,
        date_to=date_to,
    )
    return SalesSummaryResponse.model_validate(sale_service.summarize_sales(sales))


@router.get("/{sale_id}", response_model=SaleResponse)
def get_sale(
    sale_id: UUID,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(require_any_permission(*_VIEW_SALES)),
) -> SaleResponse:
    return _build_response(_load_sale(db, ctx, sale_id))


@router.patch("/{sale_id}", response_model=SaleResponse)
def update_sale(
    sale_id: UUID,
    payload: SaleUpdate,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context),
) -> SaleResponse:
    sale = _load_sale(db, ctx, sale_id)
    try:
        sale = sale_service.update_sale(db, ctx.access, sale, payload.model_dump(exclude_unset=True))
    except SalePermissionError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc))
    except SaleClientNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except SaleVersionConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to update sale.")
    return _build_response(sale)


@router.patch("/{sale_id}/review", response_model=SaleResponse)
def review_sale(
    sale_id: UUID,
    payload: SaleReviewRequest,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(require_manager("sales.approve")),
) -> SaleResponse:
    sale = _load_sale(db, ctx, sale_id)
    try:
        sale = sale_service.review_sale(
            db,
            ctx.access,
            sale,
            decision=SaleStatus(payload.decision),
            notes=payload.notes,
        )
    except SalePermissionError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc))
    except SaleAlreadyReviewedError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except SaleVersionConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to review sale.")
    return _build_response(sale)


@router.delete("/{sale_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_sale(
    sale_id: UUID,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(require_permission("sales.delete")),
) -> None:
    sale = _load_sale(db, ctx, sale_id)
    try:
        sale_service.delete_sale(db, sale)
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to delete sale.")
