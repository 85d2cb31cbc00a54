"""Trash service: copy-on-delete, restore and purge of deleted entities.

Every deletion of a trashable entity stores a TrashItem holding a full
column snapshot of the row (``item_data``) before the row is removed.
Items stay restorable for ``TRASH_RETENTION_DAYS``; past that window they
are treated as gone and are removed by :func:`purge_expired`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from typing import Any

from sqlalchemy import DateTime, delete, desc, func, or_, select
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from pawlegal.config import get_settings
from pawlegal.constants import TrashItemType
from pawlegal.database import Base
from pawlegal.models import (
    Appointment,
    Document,
    Dossier,
    Message,
    Notification,
    Task,
    Temoignage,
    TrashItem,
    User,
)
from pawlegal.services.auth_service import is_admin
from pawlegal.utils.datetime_utils import datetime_from_iso, ensure_utc

logger = logging.getLogger(__name__)

MODEL_MAP: dict[str, type[Base]] = {
    TrashItemType.MESSAGE: Message,
    TrashItemType.DOCUMENT: Document,
    TrashItemType.DOSSIER: Dossier,
    TrashItemType.APPOINTMENT: Appointment,
    TrashItemType.TEMOIGNAGE: Temoignage,
    TrashItemType.USER: User,
    TrashItemType.TASK: Task,
    TrashItemType.NOTIFICATION: Notification,
}

# Attribute holding the owner of each entity type (client-side visibility)
_OWNER_FIELD: dict[str, str] = {
    TrashItemType.MESSAGE: "expediteur_id",
    TrashItemType.DOCUMENT: "user_id",
    TrashItemType.DOSSIER: "user_id",
    TrashItemType.APPOINTMENT: "user_id",
    TrashItemType.TEMOIGNAGE: "user_id",
    TrashItemType.USER: "id",
    TrashItemType.TASK: "created_by_id",
    TrashItemType.NOTIFICATION: "user_id",
}

# Attributes copied into ``item_metadata`` for list display
_SUMMARY_FIELDS: dict[str, tuple[str, ...]] = {
    TrashItemType.MESSAGE: ("sujet", "dossier_id"),
    TrashItemType.DOCUMENT: ("nom", "dossier_id"),
    TrashItemType.DOSSIER: ("titre", "numero", "categorie", "statut"),
    TrashItemType.APPOINTMENT: ("date", "heure", "nom", "prenom"),
    TrashItemType.TEMOIGNAGE: ("nom", "note"),
    TrashItemType.USER: ("email", "first_name", "last_name", "role"),
    TrashItemType.TASK: ("titre", "statut", "dossier_id"),
    TrashItemType.NOTIFICATION: ("titre", "type"),
}


class TrashError(Exception):
    """Base class for trash operation failures."""


class TrashItemNotFoundError(TrashError):
    """The trash item does not exist or is past the retention window."""


class TrashPermissionError(TrashError):
    """The viewer may not act on this trash item."""


class RestoreConflictError(TrashError):
    """A live entity already holds the identity, or the re-insert was rejected."""


class UnsupportedItemTypeError(TrashError):
    """The item type has no restorable model."""


@dataclass
class BatchOutcome:
    id: int
    status: str
    detail: str | None = None


# ---------------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------------


def _serialize_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return ensure_utc(value).isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return value


def snapshot_entity(entity: Base) -> dict:
    """Return every column value of *entity* as a JSON-compatible dict."""
    mapper = sa_inspect(entity).mapper
    return {attr.key: _serialize_value(getattr(entity, attr.key)) for attr in mapper.column_attrs}


def rebuild_entity(model: type[Base], data: dict) -> Base:
    """Build a transient *model* instance from a snapshot produced by :func:`snapshot_entity`."""
    values: dict[str, Any] = {}
    for attr in sa_inspect(model).column_attrs:
        if attr.key not in data:
            continue
        value = data[attr.key]
        column = attr.columns[0]
        if isinstance(column.type, DateTime) and isinstance(value, str):
            value = datetime_from_iso(value)
        values[attr.key] = value
    return model(**values)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def owner_id_of(item_type: str, entity: Base) -> int | None:
    """Return the id of the user who owns *entity*, if the type has an owner."""
    field = _OWNER_FIELD.get(item_type)
    return getattr(entity, field) if field else None


def retention_cutoff(now: datetime | None = None) -> datetime:
    """Items deleted before this instant are past retention."""
    now = now or datetime.now(UTC)
    return now - timedelta(days=get_settings().TRASH_RETENTION_DAYS)


def expires_at(item: TrashItem) -> datetime:
    return ensure_utc(item.deleted_at) + timedelta(days=get_settings().TRASH_RETENTION_DAYS)


def _visibility_clause(viewer: dict):
    """Admins see everything; others only what they deleted or own."""
    if is_admin(viewer):
        return None
    user_id = viewer["user_id"]
    return or_(TrashItem.deleted_by_id == user_id, TrashItem.original_owner_id == user_id)


def _can_act(item: TrashItem, viewer: dict) -> bool:
    if is_admin(viewer):
        return True
    user_id = viewer["user_id"]
    return item.deleted_by_id == user_id or item.original_owner_id == user_id


async def get_active_item(db: AsyncSession, item_id: int, now: datetime | None = None) -> TrashItem:
    result = await db.execute(
        select(TrashItem).where(TrashItem.id == item_id, TrashItem.deleted_at >= retention_cutoff(now))
    )
    item = result.scalar_one_or_none()
    if item is None:
        raise TrashItemNotFoundError(item_id)
    return item


# ---------------------------------------------------------------------------
# Copy-on-delete
# ---------------------------------------------------------------------------


async def move_to_trash(
    db: AsyncSession,
    entity: Base,
    item_type: str,
    deleted_by_id: int,
    *,
    origin: str | None = None,
    original_owner_id: int | None = None,
    metadata: dict | None = None,
) -> TrashItem:
    """Snapshot *entity* into a TrashItem and delete the live row.

    Both writes happen in the caller's transaction.
    """
    # Load server-generated columns so the snapshot is complete
    await db.refresh(entity)
    data = snapshot_entity(entity)

    if original_owner_id is None and item_type in _OWNER_FIELD:
        original_owner_id = data.get(_OWNER_FIELD[item_type])
    if metadata is None:
        metadata = {f: data.get(f) for f in _SUMMARY_FIELDS.get(item_type, ())}

    item = TrashItem(
        item_type=item_type,
        original_id=data["id"],
        item_data=data,
        deleted_by_id=deleted_by_id,
        deleted_at=datetime.now(UTC),
        origin=(origin or "unknown")[:500],
        original_owner_id=original_owner_id,
        item_metadata=metadata,
    )
    db.add(item)
    await db.delete(entity)
    await db.flush()
    logger.info("Moved %s #%s to trash (trash item #%s)", item_type, item.original_id, item.id)
    return item


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def list_trash(
    db: AsyncSession,
    viewer: dict,
    *,
    item_type: str | None = None,
    origin: str | None = None,
    page: int = 1,
    limit: int = 50,
    now: datetime | None = None,
) -> tuple[list[tuple[TrashItem, User | None]], int]:
    """Return one page of visible, non-expired trash items and the total count."""
    conditions = [TrashItem.deleted_at >= retention_cutoff(now)]
    visibility = _visibility_clause(viewer)
    if visibility is not None:
        conditions.append(visibility)
    if item_type:
        conditions.append(TrashItem.item_type == item_type)
    if origin:
        conditions.append(TrashItem.origin == origin)

    total_result = await db.execute(select(func.count(TrashItem.id)).where(*conditions))
    total = total_result.scalar() or 0

    query = (
        select(TrashItem, User)
        .outerjoin(User, User.id == TrashItem.deleted_by_id)
        .where(*conditions)
        .order_by(desc(TrashItem.deleted_at), desc(TrashItem.id))
        .offset((page - 1) * limit)
        .limit(limit)
    )
    result = await db.execute(query)
    return [(row[0], row[1]) for row in result.all()], total


async def get_stats(db: AsyncSession, viewer: dict, *, now: datetime | None = None) -> dict:
    """Aggregate counts by type plus items expiring within the warning window."""
    settings = get_settings()
    now = now or datetime.now(UTC)
    cutoff = retention_cutoff(now)

    conditions = [TrashItem.deleted_at >= cutoff]
    visibility = _visibility_clause(viewer)
    if visibility is not None:
        conditions.append(visibility)

    count_col = func.count(TrashItem.id)
    by_type_result = await db.execute(
        select(TrashItem.item_type, count_col).where(*conditions).group_by(TrashItem.item_type).order_by(desc(count_col))
    )
    by_type = [{"item_type": row[0], "count": row[1]} for row in by_type_result.all()]

    # expires within N days  <=>  deleted_at <= now - (retention - N)
    soon_limit = cutoff + timedelta(days=settings.TRASH_EXPIRING_SOON_DAYS)
    soon_result = await db.execute(
        select(func.count(TrashItem.id)).where(*conditions, TrashItem.deleted_at <= soon_limit)
    )

    return {
        "total": sum(entry["count"] for entry in by_type),
        "by_type": by_type,
        "expiring_soon": soon_result.scalar() or 0,
        "retention_days": settings.TRASH_RETENTION_DAYS,
    }


# ---------------------------------------------------------------------------
# Restore / purge
# ---------------------------------------------------------------------------


async def restore(db: AsyncSession, item_id: int, viewer: dict, *, now: datetime | None = None) -> TrashItem:
    """Re-create the live entity from its snapshot and drop the trash item.

    Returns the consumed trash item so callers can report what came back.
    """
    item = await get_active_item(db, item_id, now)
    if not _can_act(item, viewer):
        raise TrashPermissionError(item_id)

    model = MODEL_MAP.get(item.item_type)
    if model is None:
        raise UnsupportedItemTypeError(item.item_type)

    if await db.get(model, item.original_id) is not None:
        raise RestoreConflictError(f"{item.item_type} #{item.original_id} already exists")

    entity = rebuild_entity(model, item.item_data)
    try:
        async with db.begin_nested():
            db.add(entity)
            await db.flush()
            await db.delete(item)
    except IntegrityError as e:
        logger.warning("Restore of trash item #%s rejected: %s", item_id, e.orig)
        raise RestoreConflictError(str(e.orig)) from e

    logger.info("Restored %s #%s from trash item #%s", item.item_type, item.original_id, item_id)
    return item


async def purge_permanently(db: AsyncSession, item_id: int, viewer: dict, *, now: datetime | None = None) -> TrashItem:
    """Irreversibly delete one trash item."""
    item = await get_active_item(db, item_id, now)
    if not _can_act(item, viewer):
        raise TrashPermissionError(item_id)
    await db.delete(item)
    await db.flush()
    return item


async def empty_trash(db: AsyncSession) -> int:
    """Delete every trash item, expired or not."""
    result = await db.execute(delete(TrashItem))
    return result.rowcount or 0


async def purge_expired(db: AsyncSession, now: datetime | None = None) -> int:
    """Delete trash items older than the retention window."""
    result = await db.execute(delete(TrashItem).where(TrashItem.deleted_at < retention_cutoff(now)))
    count = result.rowcount or 0
    if count:
        logger.info("Purged %d expired trash item(s)", count)
    return count


# ---------------------------------------------------------------------------
# Batch operations
# ---------------------------------------------------------------------------


def _outcome_for(item_id: int, exc: TrashError) -> BatchOutcome:
    if isinstance(exc, TrashItemNotFoundError):
        return BatchOutcome(item_id, "not_found")
    if isinstance(exc, TrashPermissionError):
        return BatchOutcome(item_id, "forbidden")
    if isinstance(exc, RestoreConflictError):
        return BatchOutcome(item_id, "conflict", str(exc))
    return BatchOutcome(item_id, "unsupported", str(exc))


async def batch_restore(db: AsyncSession, ids: list[int], viewer: dict) -> list[BatchOutcome]:
    """Restore each id in its own SAVEPOINT; failures do not undo earlier successes."""
    outcomes: list[BatchOutcome] = []
    for item_id in dict.fromkeys(ids):
        try:
            async with db.begin_nested():
                await restore(db, item_id, viewer)
        except TrashError as e:
            outcomes.append(_outcome_for(item_id, e))
        else:
            outcomes.append(BatchOutcome(item_id, "restored"))
    return outcomes


async def batch_delete(db: AsyncSession, ids: list[int], viewer: dict) -> list[BatchOutcome]:
    """Purge each id independently."""
    outcomes: list[BatchOutcome] = []
    for item_id in dict.fromkeys(ids):
        try:
            async with db.begin_nested():
                await purge_permanently(db, item_id, viewer)
        except TrashError as e:
            outcomes.append(_outcome_for(item_id, e))
        else:
            outcomes.append(BatchOutcome(item_id, "deleted"))
    return outcomes
