"""Audit log API endpoints (superadmin only).

Provides:
- ``GET /logs`` -- Paginated, filterable audit log
- ``GET /logs/stats`` -- Totals, logins, counts by action and by day
- ``GET /logs/dlog/pdf`` -- One-day activity journal as a PDF download
"""

import logging
import re
from datetime import date, datetime
from io import BytesIO

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import StreamingResponse
from pydantic import BaseModel
from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from pawlegal.constants import DLOG_DATE_PATTERN, LogAction
from pawlegal.database import get_db
from pawlegal.models import Log, User
from pawlegal.services.auth_service import require_superadmin
from pawlegal.services.pdf.dlog import dlog_filename, render_dlog
from pawlegal.services.users import load_users
from pawlegal.utils.datetime_utils import local_day_bounds
from pawlegal.utils.messages import msg

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/logs", tags=["logs"])

_DATE_RE = re.compile(DLOG_DATE_PATTERN)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class UserSummary(BaseModel):
    id: int
    name: str
    email: str
    role: str


class LogItem(BaseModel):
    id: int
    action: str
    user: UserSummary | None
    user_email: str
    target_user: UserSummary | None
    target_user_email: str | None
    description: str
    ip_address: str | None
    user_agent: str | None
    dossier_id: int | None
    metadata: dict | None
    created_at: datetime


class LogListResponse(BaseModel):
    items: list[LogItem]
    total: int
    page: int
    limit: int
    pages: int


class ActionCount(BaseModel):
    action: str
    count: int


class DayCount(BaseModel):
    day: str
    count: int


class LogStatsResponse(BaseModel):
    total_actions: int
    login_count: int
    by_action: list[ActionCount]
    by_day: list[DayCount]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def parse_day(value: str | None) -> date:
    """Validate a ``YYYY-MM-DD`` string; 400 with a French message otherwise."""
    if not value:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=msg("logs.date_required"))
    if not _DATE_RE.match(value):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=msg("logs.date_format"))
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=msg("logs.date_invalid")) from None


def _range_conditions(start_date: str | None, end_date: str | None) -> list:
    conditions = []
    if start_date:
        conditions.append(Log.created_at >= local_day_bounds(parse_day(start_date))[0])
    if end_date:
        conditions.append(Log.created_at < local_day_bounds(parse_day(end_date))[1])
    return conditions


def _summary(user: User | None) -> UserSummary | None:
    if user is None:
        return None
    return UserSummary(id=user.id, name=user.full_name or user.email, email=user.email, role=user.role)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get("", response_model=LogListResponse)
async def list_logs(
    action: str | None = Query(None),  # noqa: B008
    user_id: int | None = Query(None),  # noqa: B008
    target_user_id: int | None = Query(None),  # noqa: B008
    start_date: str | None = Query(None, description="YYYY-MM-DD, inclusive"),  # noqa: B008
    end_date: str | None = Query(None, description="YYYY-MM-DD, inclusive"),  # noqa: B008
    page: int = Query(1, ge=1),  # noqa: B008
    limit: int = Query(100, ge=1, le=500),  # noqa: B008
    current_user: dict = Depends(require_superadmin),  # noqa: B008
    db: AsyncSession = Depends(get_db),  # noqa: B008
) -> LogListResponse:
    """Return audit logs, newest first."""
    conditions = _range_conditions(start_date, end_date)
    if action:
        conditions.append(Log.action == action)
    if user_id is not None:
        conditions.append(Log.user_id == user_id)
    if target_user_id is not None:
        conditions.append(Log.target_user_id == target_user_id)

    total_result = await db.execute(select(func.count(Log.id)).where(*conditions))
    total = total_result.scalar() or 0

    result = await db.execute(
        select(Log)
        .where(*conditions)
        .order_by(desc(Log.created_at), desc(Log.id))
        .offset((page - 1) * limit)
        .limit(limit)
    )
    logs = result.scalars().all()
    users = await load_users(db, [log.user_id for log in logs] + [log.target_user_id for log in logs])

    return LogListResponse(
        items=[
            LogItem(
                id=log.id,
                action=log.action,
                user=_summary(users.get(log.user_id)),
                user_email=log.user_email,
                target_user=_summary(users.get(log.target_user_id)),
                target_user_email=log.target_user_email,
                description=log.description,
                ip_address=log.ip_address,
                user_agent=log.user_agent,
                dossier_id=log.dossier_id,
                metadata=log.log_metadata,
                created_at=log.created_at,
            )
            for log in logs
        ],
        total=total,
        page=page,
        limit=limit,
        pages=(total + limit - 1) // limit,
    )


@router.get("/stats", response_model=LogStatsResponse)
async def log_stats(
    start_date: str | None = Query(None),  # noqa: B008
    end_date: str | None = Query(None),  # noqa: B008
    current_user: dict = Depends(require_superadmin),  # noqa: B008
    db: AsyncSession = Depends(get_db),  # noqa: B008
) -> LogStatsResponse:
    conditions = _range_conditions(start_date, end_date)

    count_col = func.count(Log.id)
    by_action_result = await db.execute(
        select(Log.action, count_col).where(*conditions).group_by(Log.action).order_by(desc(count_col))
    )
    by_action = [ActionCount(action=row[0], count=row[1]) for row in by_action_result.all()]

    day_col = func.date(Log.created_at)
    by_day_result = await db.execute(
        select(day_col, count_col).where(*conditions).group_by(day_col).order_by(desc(day_col)).limit(30)
    )
    by_day = [DayCount(day=str(row[0]), count=row[1]) for row in by_day_result.all()]

    return LogStatsResponse(
        total_actions=sum(entry.count for entry in by_action),
        login_count=sum(entry.count for entry in by_action if entry.action == LogAction.LOGIN),
        by_action=by_action,
        by_day=by_day,
    )


@router.get("/dlog/pdf")
async def export_dlog_pdf(
    day: str | None = Query(None, alias="date", description="YYYY-MM-DD"),  # noqa: B008
    current_user: dict = Depends(require_superadmin),  # noqa: B008
    db: AsyncSession = Depends(get_db),  # noqa: B008
) -> StreamingResponse:
    """Render every audit log of one day (display timezone) as a branded PDF.

    Entries that fail to render are replaced by a marker line; the export
    itself only fails if the document cannot be built at all.
    """
    selected = parse_day(day)
    start, end = local_day_bounds(selected)

    result = await db.execute(
        select(Log).where(Log.created_at >= start, Log.created_at < end).order_by(Log.created_at, Log.id)
    )
    logs = result.scalars().all()
    if not logs:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=msg("logs.no_logs_for_date", date=selected.isoformat()),
        )

    users = await load_users(db, [log.user_id for log in logs] + [log.target_user_id for log in logs])

    try:
        document = render_dlog(logs, users, selected)
        pdf = document.build()
    except Exception:
        logger.exception("DLOG generation failed for %s", selected)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=msg("pdf.failed")
        ) from None

    if document.skipped_entries:
        logger.warning("DLOG %s: %d entries skipped", selected, len(document.skipped_entries))
    logger.info("DLOG %s exported by %s (%d actions)", selected, current_user["email"], len(logs))

    return StreamingResponse(
        BytesIO(pdf),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{dlog_filename(selected)}"'},
    )
