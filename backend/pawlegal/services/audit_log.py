"""Thin helper for writing audit log entries."""

import logging

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pawlegal.models import Log

logger = logging.getLogger(__name__)


def get_trigger_name(user: dict) -> str:
    """Extract display name from current_user dict for log descriptions."""
    return user.get("email") or user.get("username") or str(user.get("user_id") or "unknown")


def _client_ip(request: Request | None) -> str | None:
    if request is None:
        return None
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


async def log_action(
    db: AsyncSession,
    action: str,
    description: str,
    user: dict,
    *,
    request: Request | None = None,
    target_user_id: int | None = None,
    target_user_email: str | None = None,
    dossier_id: int | None = None,
    metadata: dict | None = None,
) -> None:
    """Add one Log row inside a SAVEPOINT.

    A failing write is logged and dropped; it never aborts the caller's
    transaction.
    """
    details = dict(metadata or {})
    if request is not None:
        details.setdefault("method", request.method)
        details.setdefault("path", request.url.path)

    try:
        async with db.begin_nested():
            db.add(
                Log(
                    action=action,
                    user_id=user.get("user_id"),
                    user_email=get_trigger_name(user),
                    target_user_id=target_user_id,
                    target_user_email=target_user_email,
                    description=description,
                    ip_address=_client_ip(request),
                    user_agent=request.headers.get("user-agent") if request is not None else None,
                    dossier_id=dossier_id,
                    log_metadata=details,
                )
            )
    except SQLAlchemyError:
        logger.exception("Failed to write audit log (action=%s)", action)
