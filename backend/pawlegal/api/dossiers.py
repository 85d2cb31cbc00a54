"""Dossier recap endpoints.

Provides:
- ``GET /dossiers/{dossier_id}/recap`` -- Everything related to a dossier, as JSON
- ``GET /dossiers/{dossier_id}/recap/pdf`` -- The same recap as a branded PDF
"""

import logging
from datetime import UTC, datetime
from io import BytesIO
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from pawlegal.database import get_db
from pawlegal.models import Dossier
from pawlegal.services.auth_service import get_current_user
from pawlegal.services.dossier_recap import build_recap, can_access_dossier
from pawlegal.services.pdf.recap import recap_filename, render_dossier_recap
from pawlegal.utils.messages import msg

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/dossiers", tags=["dossiers"])


class DossierRecapResponse(BaseModel):
    dossier: dict[str, Any]
    client: dict[str, Any]
    equipe: dict[str, Any]
    documents: dict[str, Any]
    taches: dict[str, Any]
    messages: dict[str, Any]
    rendez_vous: dict[str, Any]
    transmissions: list[dict[str, Any]]
    historique: list[dict[str, Any]]
    statistiques: dict[str, int]


async def _get_accessible_dossier(db: AsyncSession, dossier_id: int, current_user: dict) -> Dossier:
    dossier = await db.get(Dossier, dossier_id)
    if dossier is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=msg("dossier.not_found"))
    if not await can_access_dossier(db, dossier, current_user):
        logger.warning("Dossier #%s recap refused to user %s", dossier_id, current_user["user_id"])
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=msg("dossier.forbidden"))
    return dossier


@router.get("/{dossier_id}/recap", response_model=DossierRecapResponse)
async def get_dossier_recap(
    dossier_id: int,
    current_user: dict = Depends(get_current_user),  # noqa: B008
    db: AsyncSession = Depends(get_db),  # noqa: B008
) -> DossierRecapResponse:
    dossier = await _get_accessible_dossier(db, dossier_id, current_user)
    recap = await build_recap(db, dossier)
    return DossierRecapResponse(**recap)


@router.get("/{dossier_id}/recap/pdf")
async def get_dossier_recap_pdf(
    dossier_id: int,
    current_user: dict = Depends(get_current_user),  # noqa: B008
    db: AsyncSession = Depends(get_db),  # noqa: B008
) -> StreamingResponse:
    dossier = await _get_accessible_dossier(db, dossier_id, current_user)
    recap = await build_recap(db, dossier)

    try:
        pdf = render_dossier_recap(recap).build()
    except Exception:
        logger.exception("Recap PDF generation failed for dossier #%s", dossier_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=msg("pdf.failed")
        ) from None

    filename = recap_filename(dossier.numero, dossier.id, datetime.now(UTC).date())
    return StreamingResponse(
        BytesIO(pdf),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
