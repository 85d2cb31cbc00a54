"""Recycle bin API endpoints.

Provides:
- ``GET /trash`` -- Paginated trash items visible to the caller
- ``GET /trash/stats`` -- Counts by type and items close to expiry
- ``POST /trash/restore/{item_id}`` -- Restore one item
- ``DELETE /trash/{item_id}`` -- Permanently delete one item
- ``POST /trash/batch/restore`` / ``POST /trash/batch/delete`` -- Per-item batch operations
- ``POST /trash/empty`` -- Delete every item (admin)
- ``POST /trash/purge-expired`` -- Delete items past retention (admin)
"""

import logging
from datetime import datetime
from typing import NoReturn

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from pawlegal.constants import LogAction
from pawlegal.database import get_db
from pawlegal.models import TrashItem, User
from pawlegal.services import trash_service
from pawlegal.services.audit_log import log_action
from pawlegal.services.auth_service import get_current_user, require_admin
from pawlegal.utils.messages import msg

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/trash", tags=["trash"])


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------


class DeletedBy(BaseModel):
    id: int
    name: str
    email: str


class TrashItemResponse(BaseModel):
    id: int
    item_type: str
    original_id: int
    item_data: dict
    deleted_by: DeletedBy | None
    deleted_at: datetime
    expires_at: datetime
    origin: str
    original_owner_id: int | None
    metadata: dict | None


class TrashListResponse(BaseModel):
    items: list[TrashItemResponse]
    total: int
    page: int
    limit: int
    pages: int


class TypeCount(BaseModel):
    item_type: str
    count: int


class TrashStatsResponse(BaseModel):
    total: int
    by_type: list[TypeCount]
    expiring_soon: int
    retention_days: int


class RestoreResponse(BaseModel):
    message: str
    item_type: str
    original_id: int


class MessageResponse(BaseModel):
    message: str
    count: int | None = None


class BatchRequest(BaseModel):
    ids: list[int] = Field(default_factory=list)


class BatchItemResult(BaseModel):
    id: int
    status: str
    detail: str | None = None


class BatchResponse(BaseModel):
    results: list[BatchItemResult]
    succeeded: int
    failed: int


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _to_response(item: TrashItem, deleter: User | None) -> TrashItemResponse:
    return TrashItemResponse(
        id=item.id,
        item_type=item.item_type,
        original_id=item.original_id,
        item_data=item.item_data,
        deleted_by=(
            DeletedBy(id=deleter.id, name=deleter.full_name or deleter.email, email=deleter.email)
            if deleter is not None
            else None
        ),
        deleted_at=item.deleted_at,
        expires_at=trash_service.expires_at(item),
        origin=item.origin,
        original_owner_id=item.original_owner_id,
        metadata=item.item_metadata,
    )


def _raise_for(exc: trash_service.TrashError, *, forbidden_key: str) -> NoReturn:
    if isinstance(exc, trash_service.TrashItemNotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=msg("trash.not_found")) from exc
    if isinstance(exc, trash_service.TrashPermissionError):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=msg(forbidden_key)) from exc
    if isinstance(exc, trash_service.RestoreConflictError):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=msg("trash.already_exists")) from exc
    if isinstance(exc, trash_service.UnsupportedItemTypeError):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=msg("trash.unsupported_type", item_type=str(exc)),
        ) from exc
    raise exc


def _require_ids(body: BatchRequest) -> None:
    if not body.ids:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=msg("trash.empty_batch"))


def _batch_response(outcomes: list[trash_service.BatchOutcome], success_status: str) -> BatchResponse:
    succeeded = sum(1 for o in outcomes if o.status == success_status)
    return BatchResponse(
        results=[BatchItemResult(id=o.id, status=o.status, detail=o.detail) for o in outcomes],
        succeeded=succeeded,
        failed=len(outcomes) - succeeded,
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get("", response_model=TrashListResponse)
async def list_trash_items(
    item_type: str | None = Query(None, description="Filter by item type"),  # noqa: B008
    origin: str | None = Query(None, description="Filter by origin"),  # noqa: B008
    page: int = Query(1, ge=1),  # noqa: B008
    limit: int = Query(50, ge=1, le=200),  # noqa: B008
    current_user: dict = Depends(get_current_user),  # noqa: B008
    db: AsyncSession = Depends(get_db),  # noqa: B008
) -> TrashListResponse:
    """Return trash items newest first. Non-admins only see their own."""
    rows, total = await trash_service.list_trash(
        db, current_user, item_type=item_type, origin=origin, page=page, limit=limit
    )
    return TrashListResponse(
        items=[_to_response(item, deleter) for item, deleter in rows],
        total=total,
        page=page,
        limit=limit,
        pages=(total + limit - 1) // limit,
    )


@router.get("/stats", response_model=TrashStatsResponse)
async def trash_stats(
    current_user: dict = Depends(get_current_user),  # noqa: B008
    db: AsyncSession = Depends(get_db),  # noqa: B008
) -> TrashStatsResponse:
    stats = await trash_service.get_stats(db, current_user)
    return TrashStatsResponse(**stats)


@router.post("/batch/restore", response_model=BatchResponse)
async def batch_restore_items(
    body: BatchRequest,
    request: Request,
    current_user: dict = Depends(get_current_user),  # noqa: B008
    db: AsyncSession = Depends(get_db),  # noqa: B008
) -> BatchResponse:
    """Restore several items; each succeeds or fails on its own."""
    _require_ids(body)
    outcomes = await trash_service.batch_restore(db, body.ids, current_user)
    response = _batch_response(outcomes, "restored")
    if response.succeeded:
        await log_action(
            db,
            LogAction.TRASH_RESTORED,
            f"{response.succeeded} élément(s) restauré(s) depuis la corbeille",
            current_user,
            request=request,
            metadata={"ids": [o.id for o in outcomes if o.status == "restored"]},
        )
    return response


@router.post("/batch/delete", response_model=BatchResponse)
async def batch_delete_items(
    body: BatchRequest,
    request: Request,
    current_user: dict = Depends(get_current_user),  # noqa: B008
    db: AsyncSession = Depends(get_db),  # noqa: B008
) -> BatchResponse:
    """Permanently delete several items; each succeeds or fails on its own."""
    _require_ids(body)
    outcomes = await trash_service.batch_delete(db, body.ids, current_user)
    response = _batch_response(outcomes, "deleted")
    if response.succeeded:
        await log_action(
            db,
            LogAction.TRASH_PURGED,
            f"{response.succeeded} élément(s) supprimé(s) définitivement",
            current_user,
            request=request,
            metadata={"ids": [o.id for o in outcomes if o.status == "deleted"]},
        )
    return response


@router.post("/empty", response_model=MessageResponse)
async def empty_trash(
    request: Request,
    admin: dict = Depends(require_admin),  # noqa: B008
    db: AsyncSession = Depends(get_db),  # noqa: B008
) -> MessageResponse:
    count = await trash_service.empty_trash(db)
    await log_action(
        db,
        LogAction.TRASH_EMPTIED,
        msg("trash.emptied"),
        admin,
        request=request,
        metadata={"count": count},
    )
    return MessageResponse(message=msg("trash.emptied"), count=count)


@router.post("/purge-expired", response_model=MessageResponse)
async def purge_expired_items(
    request: Request,
    admin: dict = Depends(require_admin),  # noqa: B008
    db: AsyncSession = Depends(get_db),  # noqa: B008
) -> MessageResponse:
    count = await trash_service.purge_expired(db)
    text = msg("trash.expired_purged", count=count)
    if count:
        await log_action(
            db,
            LogAction.TRASH_PURGED,
            text,
            admin,
            request=request,
            metadata={"count": count, "trigger": "manual"},
        )
    return MessageResponse(message=text, count=count)


@router.post("/restore/{item_id}", response_model=RestoreResponse)
async def restore_item(
    item_id: int,
    request: Request,
    current_user: dict = Depends(get_current_user),  # noqa: B008
    db: AsyncSession = Depends(get_db),  # noqa: B008
) -> RestoreResponse:
    """Re-create the original entity with its original id."""
    try:
        item = await trash_service.restore(db, item_id, current_user)
    except trash_service.TrashError as e:
        _raise_for(e, forbidden_key="trash.restore_forbidden")
    item_type, original_id = item.item_type, item.original_id

    await log_action(
        db,
        LogAction.TRASH_RESTORED,
        f"{item_type} #{original_id} restauré depuis la corbeille",
        current_user,
        request=request,
        dossier_id=original_id if item_type == "dossier" else None,
        metadata={"trash_item_id": item_id, "item_type": item_type, "original_id": original_id},
    )
    return RestoreResponse(message=msg("trash.restored"), item_type=item_type, original_id=original_id)


@router.delete("/{item_id}", response_model=MessageResponse)
async def delete_item_permanently(
    item_id: int,
    request: Request,
    current_user: dict = Depends(get_current_user),  # noqa: B008
    db: AsyncSession = Depends(get_db),  # noqa: B008
) -> MessageResponse:
    try:
        item = await trash_service.purge_permanently(db, item_id, current_user)
    except trash_service.TrashError as e:
        _raise_for(e, forbidden_key="trash.delete_forbidden")

    await log_action(
        db,
        LogAction.TRASH_PURGED,
        f"{item.item_type} #{item.original_id} supprimé définitivement",
        current_user,
        request=request,
        metadata={"trash_item_id": item_id, "item_type": item.item_type, "original_id": item.original_id},
    )
    return MessageResponse(message=msg("trash.purged"))
