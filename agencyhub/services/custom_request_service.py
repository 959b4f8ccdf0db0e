# agencyhub/services/custom_request_service.py
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload
from sqlalchemy.orm.exc import StaleDataError

from agencyhub.models.client import Client
from agencyhub.models.content_upload import ContentUpload
from agencyhub.models.custom_note import CustomNote
from agencyhub.models.custom_request import CustomRequest, CustomRequestPriority, CustomRequestStatus
from agencyhub.services.custom_request_lifecycle import Transition
from agencyhub.services.permission_service import EffectiveAccess
from agencyhub.utils.datetime_utils import epoch_millis, utc_today
from agencyhub.utils.file_storage import build_attachment_path, save_bytes_to_storage

logger = logging.getLogger(__name__)


class CustomRequestNotFoundError(Exception):
    pass


class ClientNotFoundError(Exception):
    pass


class VersionConflictError(Exception):
    pass


class AttachmentNotFoundError(Exception):
    pass


class CustomNoteNotFoundError(Exception):
    pass


class CustomNotePermissionError(Exception):
    pass


@dataclass
class AttachmentInput:
    file_name: str
    data: bytes
    content_type: str | None = None


@dataclass
class AttachmentResult:
    uploads: list[ContentUpload] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


def _scoped(query, access: EffectiveAccess):
    # Platform admins see every tenant.
    if access.is_platform_admin:
        return query
    return query.filter(CustomRequest.tenant_id == access.tenant_id)


def create_custom_request(
    db: Session,
    *,
    tenant_id: uuid.UUID,
    created_by: uuid.UUID,
    client_id: uuid.UUID,
    fan_name: str,
    description: str,
    proposed_amount,
    priority: CustomRequestPriority | None = None,
    **fields: Any,
) -> CustomRequest:
    """
    New requests always start in `pending`, dated today, owned by the creator.
    """
    client = (
        db.query(Client)
        .filter(Client.id == client_id, Client.tenant_id == tenant_id, Client.is_active.is_(True))
        .first()
    )
    if not client:
        raise ClientNotFoundError("Client not found")

    request = CustomRequest(
        tenant_id=tenant_id,
        client_id=client_id,
        created_by=created_by,
        fan_name=fan_name,
        description=description,
        proposed_amount=proposed_amount,
        priority=priority or CustomRequestPriority.MEDIUM,
        status=CustomRequestStatus.PENDING,
        date_submitted=utc_today(),
        **fields,
    )

    try:
        db.add(request)
        db.commit()
        db.refresh(request)
    except SQLAlchemyError:
        db.rollback()
        raise

    logger.info("Custom request %s created by %s", request.id, created_by)
    return request


def get_custom_request(db: Session, access: EffectiveAccess, request_id: uuid.UUID) -> CustomRequest:
    request = (
        _scoped(db.query(CustomRequest), access)
        .options(joinedload(CustomRequest.client))
        .filter(CustomRequest.id == request_id)
        .first()
    )
    if not request:
        raise CustomRequestNotFoundError("Custom request not found")
    return request


def list_custom_requests(
    db: Session,
    access: EffectiveAccess,
    *,
    statuses: Iterable[CustomRequestStatus] | None = None,
    client_id: uuid.UUID | None = None,
    created_by: uuid.UUID | None = None,
    mine: bool = False,
    offset: int = 0,
    limit: int = 50,
) -> tuple[list[CustomRequest], int]:
    """
    Tenant-scoped listing, newest first. Returns (items, total).

    Members without `customs.all` only see the requests they created.
    """
    query = _scoped(db.query(CustomRequest), access).options(joinedload(CustomRequest.client))

    if mine or not access.has_permission("customs.all"):
        query = query.filter(CustomRequest.created_by == access.member_id)
    elif created_by:
        query = query.filter(CustomRequest.created_by == created_by)

    status_list = list(statuses or [])
    if status_list:
        query = query.filter(CustomRequest.status.in_(status_list))
    if client_id:
        query = query.filter(CustomRequest.client_id == client_id)

    total = query.count()
    items = (
        query.order_by(CustomRequest.created_at.desc(), CustomRequest.id)
        .offset(offset)
        .limit(limit)
        .all()
    )
    return items, total


def apply_transition(
    db: Session,
    request: CustomRequest,
    transition: Transition,
    expected_version: int,
) -> CustomRequest:
    """
    Persist a transition if nobody has touched the row since the caller read it.

    The caller's `expected_version` is checked first; the UPDATE itself is then
    guarded by the mapper's version column, so a concurrent writer that slips in
    between surfaces as StaleDataError. Both become VersionConflictError.
    """
    if request.version != expected_version:
        raise VersionConflictError(
            "This custom request was changed by someone else. Reload and try again."
        )

    for key, value in transition.all_changes().items():
        setattr(request, key, value)

    try:
        db.commit()
    except StaleDataError as exc:
        db.rollback()
        raise VersionConflictError(
            "This custom request was changed by someone else. Reload and try again."
        ) from exc
    except SQLAlchemyError:
        db.rollback()
        raise

    db.refresh(request)
    logger.info(
        "Custom request %s: %s -> status=%s version=%s",
        request.id,
        transition.name,
        request.status.value,
        request.version,
    )
    return request


def add_attachments(
    db: Session,
    request: CustomRequest,
    files: list[AttachmentInput],
    *,
    uploaded_by_id: uuid.UUID | None,
    uploaded_by: str = "team",
    prefix: str = "ref",
) -> AttachmentResult:
    """
    Store files for a request and record a ContentUpload row for each.

    Each file is handled on its own: one that fails to store is logged and
    reported in `failed`, the others (and the request itself) are kept.
    """
    result = AttachmentResult()
    timestamp_ms = epoch_millis()

    for index, item in enumerate(files):
        path = build_attachment_path(str(request.id), prefix, index, item.file_name, timestamp_ms)
        try:
            stored = save_bytes_to_storage(item.data, path)
        except (OSError, ValueError):
            logger.exception("Non-fatal: attachment %s for custom request %s failed", item.file_name, request.id)
            result.failed.append(item.file_name)
            continue

        upload = ContentUpload(
            custom_request_id=request.id,
            uploaded_by_id=uploaded_by_id,
            file_name=item.file_name,
            file_path=stored,
            file_size=len(item.data),
            file_type=item.content_type,
            uploaded_by=uploaded_by,
        )
        db.add(upload)
        result.uploads.append(upload)

    if not result.uploads:
        return result

    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Non-fatal: could not record attachments for custom request %s", request.id)
        result.failed.extend(u.file_name for u in result.uploads)
        result.uploads = []
        return result

    for upload in result.uploads:
        db.refresh(upload)
    return result


def list_attachments(db: Session, request: CustomRequest) -> list[ContentUpload]:
    return (
        db.query(ContentUpload)
        .filter(ContentUpload.custom_request_id == request.id)
        .order_by(ContentUpload.created_at, ContentUpload.file_path)
        .all()
    )


def get_attachment(db: Session, request: CustomRequest, upload_id: uuid.UUID) -> ContentUpload:
    upload = (
        db.query(ContentUpload)
        .filter(ContentUpload.id == upload_id, ContentUpload.custom_request_id == request.id)
        .first()
    )
    if not upload:
        raise AttachmentNotFoundError("Attachment not found")
    return upload


# -------------------------
# Notes
# -------------------------
def list_notes(db: Session, request: CustomRequest) -> list[CustomNote]:
    """
    Oldest first, so the thread reads top to bottom.
    """
    return (
        db.query(CustomNote)
        .options(joinedload(CustomNote.author))
        .filter(CustomNote.custom_request_id == request.id)
        .order_by(CustomNote.created_at, CustomNote.id)
        .all()
    )


def get_note(db: Session, request: CustomRequest, note_id: uuid.UUID) -> CustomNote:
    note = (
        db.query(CustomNote)
        .filter(CustomNote.id == note_id, CustomNote.custom_request_id == request.id)
        .first()
    )
    if not note:
        raise CustomNoteNotFoundError("Note not found")
    return note


def add_note(db: Session, request: CustomRequest, *, author_id: uuid.UUID, content: str) -> CustomNote:
    note = CustomNote(custom_request_id=request.id, created_by=author_id, content=content)
    try:
        db.add(note)
        db.commit()
        db.refresh(note)
    except SQLAlchemyError:
        db.rollback()
        raise

    logger.info("Note %s added to custom request %s by %s", note.id, request.id, author_id)
    return note


def _require_author(note: CustomNote, access: EffectiveAccess) -> None:
    if note.created_by != access.member_id:
        raise CustomNotePermissionError("You can only change your own notes.")


def update_note(db: Session, access: EffectiveAccess, note: CustomNote, content: str) -> CustomNote:
    _require_author(note, access)
    note.content = content
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(note)
    return note


def delete_note(db: Session, access: EffectiveAccess, note: CustomNote) -> None:
    _require_author(note, access)
    try:
        db.delete(note)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    logger.info("Note %s deleted by %s", note.id, access.member_id)
