# agencyhub/api/v1/endpoints/clients.py
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from agencyhub.core.database import get_db
from agencyhub.core.tenant_context import TenantContext
from agencyhub.dependencies.authz import require_any_permission, require_permission
from agencyhub.models.client import Client
from agencyhub.schemas.client import ClientCreate, ClientResponse, ClientUpdate
from agencyhub.services import client_service
from agencyhub.services.client_service import ClientNotFoundError, ClientUsernameConflictError

router = APIRouter()


def _load_client(db: Session, ctx: TenantContext, client_id: UUID) -> Client:
    try:
        return client_service.get_client(db, ctx.require_tenant_id(), client_id)
    except ClientNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.get("", response_model=list[ClientResponse])
def list_clients(
    include_inactive: bool = Query(False),
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(require_any_permission("clients.view", "clients.list")),
) -> list[ClientResponse]:
    clients = client_service.list_clients(db, ctx.require_tenant_id(), include_inactive=include_inactive)
    return [ClientResponse.model_validate(c) for c in clients]


@router.get("/{client_id}", response_model=ClientResponse)
def get_client(
    client_id: UUID,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(require_any_permission("clients.view", "clients.list")),
) -> ClientResponse:
    return ClientResponse.model_validate(_load_client(db, ctx, client_id))


@router.post("", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
def create_client(
    payload: ClientCreate,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(require_permission("clients.create")),
) -> ClientResponse:
    try:
        client = client_service.create_client(db, ctx.require_tenant_id(), **payload.model_dump())
    except ClientUsernameConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to create client.")
    return ClientResponse.model_validate(client)


@router.patch("/{client_id}", response_model=ClientResponse)
def update_client(
    client_id: UUID,
    payload: ClientUpdate,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(require_permission("clients.edit")),
) -> ClientResponse:
    client = _load_client(db, ctx, client_id)
    try:
        client = client_service.update_client(db, client, payload.model_dump(exclude_unset=True))
    except ClientUsernameConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to update client.")
    return ClientResponse.model_validate(client)


@router.patch("/{client_id}/deactivate", response_model=ClientResponse)
def deactivate_client(
    client_id: UUID,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(require_permission("clients.delete")),
) -> ClientResponse:
    """
    Clients are deactivated, not deleted: their customs and sales stay intact.
    """
    client = _load_client(db, ctx, client_id)
    try:
        client = client_service.deactivate_client(db, client)
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to deactivate client.")
    return ClientResponse.model_validate(client)
