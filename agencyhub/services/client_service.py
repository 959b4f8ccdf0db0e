# agencyhub/services/client_service.py
from __future__ import annotations

import logging
import uuid
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from agencyhub.models.client import Client

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset({"username", "display_name"})


class ClientNotFoundError(Exception):
    pass


class ClientUsernameConflictError(Exception):
    pass


def _username_taken(db: Session, tenant_id: uuid.UUID, username: str, exclude_id: uuid.UUID | None = None) -> bool:
    query = db.query(Client.id).filter(Client.tenant_id == tenant_id, Client.username == username)
    if exclude_id is not None:
        query = query.filter(Client.id != exclude_id)
    return query.first() is not None


def _commit(db: Session, client: Client) -> Client:
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(client)
    return client


def list_clients(db: Session, tenant_id: uuid.UUID, *, include_inactive: bool = False) -> list[Client]:
    query = db.query(Client).filter(Client.tenant_id == tenant_id)
    if not include_inactive:
        query = query.filter(Client.is_active.is_(True))
    return query.order_by(Client.created_at.desc(), Client.username).all()


def get_client(db: Session, tenant_id: uuid.UUID, client_id: uuid.UUID) -> Client:
    client = db.query(Client).filter(Client.id == client_id, Client.tenant_id == tenant_id).first()
    if not client:
        raise ClientNotFoundError("Client not found")
    return client


def create_client(
    db: Session,
    tenant_id: uuid.UUID,
    *,
    username: str,
    display_name: str | None = None,
) -> Client:
    """
    Usernames are unique per agency, active or not.
    """
    if _username_taken(db, tenant_id, username):
        raise ClientUsernameConflictError("A client with this username already exists.")

    client = Client(tenant_id=tenant_id, username=username, display_name=display_name, is_active=True)
    db.add(client)
    client = _commit(db, client)
    logger.info("Client %s (%s) created in tenant %s", client.username, client.id, tenant_id)
    return client


def update_client(db: Session, client: Client, updates: dict[str, Any]) -> Client:
    unknown = sorted(set(updates) - EDITABLE_FIELDS)
    if unknown:
        raise ValueError(f"Fields cannot be edited: {', '.join(unknown)}")

    username = updates.get("username")
    if username is not None and username != client.username:
        if _username_taken(db, client.tenant_id, username, exclude_id=client.id):
            raise ClientUsernameConflictError("A client with this username already exists.")

    for key, value in updates.items():
        setattr(client, key, value)
    return _commit(db, client)


def deactivate_client(db: Session, client: Client) -> Client:
    """
    Soft delete. Custom requests and sales keep pointing at the row,
    but no new ones can be created for it.
    """
    if not client.is_active:
        return client
    client.is_active = False
    client = _commit(db, client)
    logger.info("Client %s deactivated", client.id)
    return client
