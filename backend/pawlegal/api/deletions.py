"""DELETE endpoints for trashable entities.

Every deletion goes through the trash: the row is snapshotted into a
TrashItem, removed, and an audit log entry is written.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from pawlegal.constants import LogAction, TrashItemType
from pawlegal.database import Base, get_db
from pawlegal.models import Appointment, Document, Dossier, Message, Notification, Task, Temoignage, User
from pawlegal.services import trash_service
from pawlegal.services.audit_log import get_trigger_name, log_action
from pawlegal.services.auth_service import get_current_user, is_admin, require_admin
from pawlegal.utils.messages import msg

logger = logging.getLogger(__name__)
router = APIRouter(tags=["deletions"])

_LABELS: dict[str, str] = {
    TrashItemType.DOSSIER: "Dossier",
    TrashItemType.DOCUMENT: "Document",
    TrashItemType.MESSAGE: "Message",
    TrashItemType.APPOINTMENT: "Rendez-vous",
    TrashItemType.TEMOIGNAGE: "Témoignage",
    TrashItemType.TASK: "Tâche",
    TrashItemType.NOTIFICATION: "Notification",
    TrashItemType.USER: "Utilisateur",
}


class DeletionResponse(BaseModel):
    message: str
    trash_item_id: int


def resolve_origin(request: Request, origin: str | None) -> str:
    """Explicit ``origin`` parameter, then the Referer header, then ``unknown``."""
    return origin or request.headers.get("referer") or "unknown"


async def _delete_entity(
    db: AsyncSession,
    request: Request,
    current_user: dict,
    *,
    model: type[Base],
    item_type: str,
    entity_id: int,
    action: str,
    origin: str | None,
    owner_only: bool = True,
) -> DeletionResponse:
    label = _LABELS[item_type]
    entity = await db.get(model, entity_id)
    if entity is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=msg("entity.not_found", label=label))

    owner_id = trash_service.owner_id_of(item_type, entity)
    if owner_only and not is_admin(current_user) and owner_id != current_user["user_id"]:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=msg("entity.forbidden"))

    dossier_id = entity_id if item_type == TrashItemType.DOSSIER else getattr(entity, "dossier_id", None)
    target_user_email = entity.email if item_type == TrashItemType.USER else None

    item = await trash_service.move_to_trash(
        db,
        entity,
        item_type,
        current_user["user_id"],
        origin=resolve_origin(request, origin),
        original_owner_id=owner_id,
    )
    await log_action(
        db,
        action,
        f"{label} #{entity_id} supprimé(e) par {get_trigger_name(current_user)}",
        current_user,
        request=request,
        target_user_email=target_user_email,
        dossier_id=dossier_id,
        metadata={"trash_item_id": item.id, "item_type": item_type, "original_id": entity_id},
    )
    return DeletionResponse(message=msg("entity.deleted", label=label), trash_item_id=item.id)


@router.delete("/dossiers/{dossier_id}", response_model=DeletionResponse)
async def delete_dossier(
    dossier_id: int,
    request: Request,
    origin: str | None = Query(None),  # noqa: B008
    admin: dict = Depends(require_admin),  # noqa: B008
    db: AsyncSession = Depends(get_db),  # noqa: B008
) -> DeletionResponse:
    return await _delete_entity(
        db,
        request,
        admin,
        model=Dossier,
        item_type=TrashItemType.DOSSIER,
        entity_id=dossier_id,
        action=LogAction.DOSSIER_DELETED,
        origin=origin,
        owner_only=False,
    )


@router.delete("/users/{user_id}", response_model=DeletionResponse)
async def delete_user(
    user_id: int,
    request: Request,
    origin: str | None = Query(None),  # noqa: B008
    admin: dict = Depends(require_admin),  # noqa: B008
    db: AsyncSession = Depends(get_db),  # noqa: B008
) -> DeletionResponse:
    if user_id == admin["user_id"]:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=msg("entity.self_delete"))
    return await _delete_entity(
        db,
        request,
        admin,
        model=User,
        item_type=TrashItemType.USER,
        entity_id=user_id,
        action=LogAction.USER_DELETED,
        origin=origin,
        owner_only=False,
    )


@router.delete("/documents/{document_id}", response_model=DeletionResponse)
async def delete_document(
    document_id: int,
    request: Request,
    origin: str | None = Query(None),  # noqa: B008
    current_user: dict = Depends(get_current_user),  # noqa: B008
    db: AsyncSession = Depends(get_db),  # noqa: B008
) -> DeletionResponse:
    return await _delete_entity(
        db,
        request,
        current_user,
        model=Document,
        item_type=TrashItemType.DOCUMENT,
        entity_id=document_id,
        action=LogAction.DOCUMENT_DELETED,
        origin=origin,
    )


@router.delete("/messages/{message_id}", response_model=DeletionResponse)
async def delete_message(
    message_id: int,
    request: Request,
    origin: str | None = Query(None),  # noqa: B008
    current_user: dict = Depends(get_current_user),  # noqa: B008
    db: AsyncSession = Depends(get_db),  # noqa: B008
) -> DeletionResponse:
    return await _delete_entity(
        db,
        request,
        current_user,
        model=Message,
        item_type=TrashItemType.MESSAGE,
        entity_id=message_id,
        action=LogAction.MESSAGE_DELETED,
        origin=origin,
    )


@router.delete("/appointments/{appointment_id}", response_model=DeletionResponse)
async def delete_appointment(
    appointment_id: int,
    request: Request,
    origin: str | None = Query(None),  # noqa: B008
    current_user: dict = Depends(get_current_user),  # noqa: B008
    db: AsyncSession = Depends(get_db),  # noqa: B008
) -> DeletionResponse:
    return await _delete_entity(
        db,
        request,
        current_user,
        model=Appointment,
        item_type=TrashItemType.APPOINTMENT,
        entity_id=appointment_id,
        action=LogAction.APPOINTMENT_DELETED,
        origin=origin,
    )


@router.delete("/temoignages/{temoignage_id}", response_model=DeletionResponse)
async def delete_temoignage(
    temoignage_id: int,
    request: Request,
    origin: str | None = Query(None),  # noqa: B008
    current_user: dict = Depends(get_current_user),  # noqa: B008
    db: AsyncSession = Depends(get_db),  # noqa: B008
) -> DeletionResponse:
    return await _delete_entity(
        db,
        request,
        current_user,
        model=Temoignage,
        item_type=TrashItemType.TEMOIGNAGE,
        entity_id=temoignage_id,
        action=LogAction.TEMOIGNAGE_DELETED,
        origin=origin,
    )


@router.delete("/tasks/{task_id}", response_model=DeletionResponse)
async def delete_task(
    task_id: int,
    request: Request,
    origin: str | None = Query(None),  # noqa: B008
    current_user: dict = Depends(get_current_user),  # noqa: B008
    db: AsyncSession = Depends(get_db),  # noqa: B008
) -> DeletionResponse:
    return await _delete_entity(
        db,
        request,
        current_user,
        model=Task,
        item_type=TrashItemType.TASK,
        entity_id=task_id,
        action=LogAction.TASK_DELETED,
        origin=origin,
    )


@router.delete("/notifications/{notification_id}", response_model=DeletionResponse)
async def delete_notification(
    notification_id: int,
    request: Request,
    origin: str | None = Query(None),  # noqa: B008
    current_user: dict = Depends(get_current_user),  # noqa: B008
    db: AsyncSession = Depends(get_db),  # noqa: B008
) -> DeletionResponse:
    return await _delete_entity(
        db,
        request,
        current_user,
        model=Notification,
        item_type=TrashItemType.NOTIFICATION,
        entity_id=notification_id,
        action=LogAction.NOTIFICATION_DELETED,
        origin=origin,
    )
