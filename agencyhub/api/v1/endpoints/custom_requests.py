# agencyhub/api/v1/endpoints/custom_requests.py
from __future__ import annotations

import logging
from typing import Callable, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from agencyhub.core.config import get_settings
from agencyhub.core.database import get_db
from agencyhub.core.tenant_context import TenantContext, get_tenant_context
from agencyhub.dependencies.authz import require_any_permission, require_permission
from agencyhub.models.custom_request import CustomRequest, CustomRequestStatus
from agencyhub.schemas.custom_request import (
    AttachmentUploadResponse,
    ContentUploadResponse,
    CustomNoteCreate,
    CustomNoteResponse,
    CustomRequestCreate,
    CustomRequestListResponse,
    CustomRequestResponse,
    CustomRequestUpdate,
)
from agencyhub.schemas.custom_request_actions import (
    CustomRequestClientApproveRequest,
    CustomRequestCompleteRequest,
    CustomRequestDeliverRequest,
    CustomRequestTeamApproveRequest,
    CustomRequestTeamDenyRequest,
)
from agencyhub.services import custom_request_lifecycle as lifecycle
from agencyhub.services.custom_request_service import (
    AttachmentInput,
    AttachmentNotFoundError,
    ClientNotFoundError,
    CustomNoteNotFoundError,
    CustomNotePermissionError,
    CustomRequestNotFoundError,
    VersionConflictError,
    add_attachments,
    add_note,
    apply_transition,
    create_custom_request,
    delete_note,
    get_attachment,
    get_custom_request,
    get_note,
    list_attachments,
    list_custom_requests,
    list_notes,
    update_note,
)
from agencyhub.utils.datetime_utils import utc_now, utc_today
from agencyhub.utils.file_storage import resolve_storage_path

router = APIRouter()
logger = logging.getLogger(__name__)

P = lifecycle.REQUIRED_PERMISSIONS


# -------------------------
# Helpers
# -------------------------
def _load_request(db: Session, ctx: TenantContext, request_id: UUID) -> CustomRequest:
    try:
        return get_custom_request(db, ctx.access, request_id)
    except CustomRequestNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


def _build_response(request: CustomRequest) -> CustomRequestResponse:
    response = CustomRequestResponse.model_validate(request)
    response.pending_balance = lifecycle.pending_balance(request.proposed_amount, request.amount_paid)
    response.client_username = request.client.username if request.client else None
    return response


def _run_transition(
    db: Session,
    request: CustomRequest,
    build: Callable[[CustomRequestStatus], lifecycle.Transition],
    version: int,
) -> CustomRequestResponse:
    """
    Validate the transition against the current status, then persist it with
    the caller's version.
    """
    try:
        transition = build(request.status)
    except lifecycle.InvalidTransitionError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    try:
        request = apply_transition(db, request, transition, version)
    except VersionConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    except SQLAlchemyError:
        logger.exception("Failed to apply %s to custom request %s", transition.name, request.id)
        raise HTTPException(status_code=500, detail="Failed to update custom request.")

    return _build_response(request)


# -------------------------
# CRUD
# -------------------------
@router.post(
    "",
    response_model=CustomRequestResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_request(
    payload: CustomRequestCreate,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(require_any_permission(*P["create"])),
) -> CustomRequestResponse:
    data = payload.model_dump()
    try:
        request = create_custom_request(
            db,
            tenant_id=ctx.require_tenant_id(),
            created_by=ctx.member_id,
            **data,
        )
    except ClientNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to create custom request.")
    return _build_response(request)


@router.get("", response_model=CustomRequestListResponse)
def list_requests(
    status_filter: Optional[str] = Query(None, alias="status", description="Comma-separated statuses"),
    client_id: Optional[UUID] = Query(None),
    created_by: Optional[UUID] = Query(None),
    mine: bool = Query(False, description="Only requests I created"),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(require_permission("customs.view")),
):
    statuses: list[CustomRequestStatus] = []
    if status_filter:
        parts = [s.strip() for s in status_filter.split(",") if s.strip()]
        try:
            statuses = [CustomRequestStatus(s) for s in parts]
        except ValueError as e:
            raise HTTPException(status_code=400, detail=f"Invalid status: {str(e)}")

    items, total = list_custom_requests(
        db,
        ctx.access,
        statuses=statuses,
        client_id=client_id,
        created_by=created_by,
        mine=mine,
        offset=(page - 1) * page_size,
        limit=page_size,
    )
    return {
        "items": [_build_response(r) for r in items],
        "total": total,
        "page": page,
        "page_size": page_size,
    }


@router.get("/{request_id}", response_model=CustomRequestResponse)
def get_request(
    request_id: UUID,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(require_permission("customs.view")),
) -> CustomRequestResponse:
    request = _load_request(db, ctx, request_id)
    if request.created_by != ctx.member_id and not ctx.access.has_permission("customs.all"):
        raise HTTPException(status_code=403, detail="You can only view custom requests you created.")
    return _build_response(request)


# -------------------------
# Generic PATCH (restricted)
# -------------------------
@router.patch("/{request_id}", response_model=CustomRequestResponse)
def update_request(
    request_id: UUID,
    payload: CustomRequestUpdate,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context),
) -> CustomRequestResponse:
    """
    Restricted PATCH endpoint: field edits only.

    Status never changes here; use the action endpoints instead:
    - /team-approve
    - /team-deny
    - /client-approve
    - /complete
    - /deliver

    Allowed for the creator, or anyone manager-or-above.
    """
    request = _load_request(db, ctx, request_id)
    if request.created_by != ctx.member_id and not ctx.access.is_manager_or_above:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the creator or a manager can edit this custom request.",
        )

    updates = payload.model_dump(exclude_unset=True, exclude={"version"})
    return _run_transition(db, request, lambda current: lifecycle.edit(current, updates), payload.version)


# -------------------------
# Action endpoints
# -------------------------
@router.patch("/{request_id}/team-approve", response_model=CustomRequestResponse)
def team_approve_request(
    request_id: UUID,
    payload: CustomRequestTeamApproveRequest,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(require_any_permission(*P["team_approve"])),
) -> CustomRequestResponse:
    request = _load_request(db, ctx, request_id)
    return _run_transition(
        db,
        request,
        lambda current: lifecycle.team_approve(current, approver_id=ctx.member_id, now=utc_now()),
        payload.version,
    )


@router.patch("/{request_id}/team-deny", response_model=CustomRequestResponse)
def team_deny_request(
    request_id: UUID,
    payload: CustomRequestTeamDenyRequest,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(require_any_permission(*P["team_deny"])),
) -> CustomRequestResponse:
    request = _load_request(db, ctx, request_id)
    return _run_transition(
        db,
        request,
        lambda current: lifecycle.team_deny(
            current, actor_id=ctx.member_id, now=utc_now(), reason=payload.reason
        ),
        payload.version,
    )


@router.patch("/{request_id}/client-approve", response_model=CustomRequestResponse)
def client_approve_request(
    request_id: UUID,
    payload: CustomRequestClientApproveRequest,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(require_any_permission(*P["client_approve"])),
) -> CustomRequestResponse:
    request = _load_request(db, ctx, request_id)
    return _run_transition(
        db,
        request,
        lambda current: lifecycle.client_approve(
            current, estimated_delivery_date=payload.estimated_delivery_date, now=utc_now()
        ),
        payload.version,
    )


@router.patch("/{request_id}/complete", response_model=CustomRequestResponse)
def complete_request(
    request_id: UUID,
    payload: CustomRequestCompleteRequest,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(require_any_permission(*P["mark_completed"])),
) -> CustomRequestResponse:
    request = _load_request(db, ctx, request_id)
    return _run_transition(
        db,
        request,
        lambda current: lifecycle.mark_completed(current, today=utc_today()),
        payload.version,
    )


@router.patch("/{request_id}/deliver", response_model=CustomRequestResponse)
def deliver_request(
    request_id: UUID,
    payload: CustomRequestDeliverRequest,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(require_any_permission(*P["mark_delivered"])),
) -> CustomRequestResponse:
    request = _load_request(db, ctx, request_id)
    return _run_transition(
        db,
        request,
        lambda current: lifecycle.mark_delivered(current, now=utc_now()),
        payload.version,
    )


# -------------------------
# Attachments
# -------------------------
@router.post(
    "/{request_id}/attachments",
    response_model=AttachmentUploadResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_attachments(
    request_id: UUID,
    files: list[UploadFile] = File(...),
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(require_any_permission("customs.create", "customs.approve")),
) -> AttachmentUploadResponse:
    """
    Upload reference files. Files that fail to store are listed in `failed`;
    the request itself is never rolled back because of them.
    """
    request = _load_request(db, ctx, request_id)

    max_files = get_settings().attachment_max_files
    if len(files) > max_files:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"At most {max_files} files can be uploaded at once.",
        )

    inputs = []
    for upload in files:
        inputs.append(
            AttachmentInput(
                file_name=upload.filename or "upload",
                data=await upload.read(),
                content_type=upload.content_type,
            )
        )

    result = add_attachments(db, request, inputs, uploaded_by_id=ctx.member_id)
    return AttachmentUploadResponse(
        uploaded=[ContentUploadResponse.model_validate(u) for u in result.uploads],
        failed=result.failed,
    )


@router.get("/{request_id}/attachments", response_model=list[ContentUploadResponse])
def get_attachments(
    request_id: UUID,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(require_permission("customs.view")),
) -> list[ContentUploadResponse]:
    request = _load_request(db, ctx, request_id)
    return [ContentUploadResponse.model_validate(u) for u in list_attachments(db, request)]


@router.get("/{request_id}/attachments/{upload_id}/download")
def download_attachment(
    request_id: UUID,
    upload_id: UUID,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(require_permission("customs.view")),
):
    request = _load_request(db, ctx, request_id)
    try:
        upload = get_attachment(db, request, upload_id)
    except AttachmentNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))

    file_path = resolve_storage_path(upload.file_path)
    if not file_path.exists():
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="File not found on storage.",
        )

    return FileResponse(
        path=str(file_path),
        media_type=upload.file_type or "application/octet-stream",
        filename=upload.file_name,
    )


# -------------------------
# Notes
# -------------------------
def _note_response(note) -> CustomNoteResponse:
    response = CustomNoteResponse.model_validate(note)
    response.author_name = note.author.full_name if note.author else None
    return response


@router.get("/{request_id}/notes", response_model=list[CustomNoteResponse])
def get_notes(
    request_id: UUID,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(require_permission("customs.view")),
) -> list[CustomNoteResponse]:
    request = _load_request(db, ctx, request_id)
    return [_note_response(n) for n in list_notes(db, request)]


@router.post("/{request_id}/notes", response_model=CustomNoteResponse, status_code=status.HTTP_201_CREATED)
def create_note(
    request_id: UUID,
    payload: CustomNoteCreate,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(require_any_permission("customs.create", "customs.approve")),
) -> CustomNoteResponse:
    """
    Notes are written on their own; the request row and its version are untouched.
    """
    request = _load_request(db, ctx, request_id)
    try:
        note = add_note(db, request, author_id=ctx.member_id, content=payload.content)
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to add note.")
    return _note_response(note)


@router.patch("/{request_id}/notes/{note_id}", response_model=CustomNoteResponse)
def edit_note(
    request_id: UUID,
    note_id: UUID,
    payload: CustomNoteCreate,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(require_permission("customs.view")),
) -> CustomNoteResponse:
    request = _load_request(db, ctx, request_id)
    try:
        note = update_note(db, ctx.access, get_note(db, request, note_id), payload.content)
    except CustomNoteNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except CustomNotePermissionError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc))
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to update note.")
    return _note_response(note)


@router.delete("/{request_id}/notes/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_note(
    request_id: UUID,
    note_id: UUID,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(require_permission("customs.view")),
) -> None:
    request = _load_request(db, ctx, request_id)
    try:
        delete_note(db, ctx.access, get_note(db, request, note_id))
    except CustomNoteNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except CustomNotePermissionError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc))
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to delete note.")
