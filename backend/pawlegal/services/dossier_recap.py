"""Dossier recap: everything known about one dossier, gathered for display or export."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from pawlegal.constants import TASK_DONE_STATUSES, LogAction, TransmissionStatus, UserRole
from pawlegal.models import Appointment, Document, Dossier, DossierTransmission, Log, Message, Task, User
from pawlegal.services.auth_service import is_admin
from pawlegal.services.users import load_users
from pawlegal.utils.datetime_utils import ensure_utc

logger = logging.getLogger(__name__)

RECENT_MESSAGES = 10
RECENT_HISTORY = 20
UNKNOWN = "Inconnu"


async def can_access_dossier(db: AsyncSession, dossier: Dossier, viewer: dict) -> bool:
    """Admins, the owner, the assignee, the team leader, or a partner it was sent to."""
    if is_admin(viewer):
        return True
    user_id = viewer["user_id"]
    if user_id in (dossier.user_id, dossier.assigned_to_id, dossier.team_leader_id):
        return True
    if viewer.get("role") != UserRole.PARTENAIRE:
        return False
    result = await db.execute(
        select(DossierTransmission.id).where(
            DossierTransmission.dossier_id == dossier.id,
            DossierTransmission.partenaire_id == user_id,
            DossierTransmission.status != TransmissionStatus.REFUSED,
        )
    )
    return result.first() is not None


def _name(users: dict[int, User], user_id: int | None, default: str = UNKNOWN) -> str:
    user = users.get(user_id) if user_id is not None else None
    if user is None:
        return default
    return user.full_name or user.email


def _person(users: dict[int, User], user_id: int | None) -> dict | None:
    user = users.get(user_id) if user_id is not None else None
    if user is None:
        return None
    return {"nom": user.full_name, "email": user.email, "role": user.role}


def _days_between(start: datetime | None, end: datetime) -> int:
    if start is None:
        return 0
    return (end - ensure_utc(start)).days


async def build_recap(db: AsyncSession, dossier: Dossier, *, now: datetime | None = None) -> dict[str, Any]:
    """Collect the dossier's related records into a nested dict."""
    now = now or datetime.now(UTC)

    documents = (
        await db.execute(select(Document).where(Document.dossier_id == dossier.id).order_by(desc(Document.created_at)))
    ).scalars().all()
    tasks = (
        await db.execute(select(Task).where(Task.dossier_id == dossier.id).order_by(desc(Task.created_at)))
    ).scalars().all()
    messages = (
        await db.execute(select(Message).where(Message.dossier_id == dossier.id).order_by(desc(Message.created_at)))
    ).scalars().all()
    appointments = (
        await db.execute(
            select(Appointment).where(Appointment.dossier_id == dossier.id).order_by(desc(Appointment.date))
        )
    ).scalars().all()
    transmissions = (
        await db.execute(
            select(DossierTransmission)
            .where(DossierTransmission.dossier_id == dossier.id)
            .order_by(desc(DossierTransmission.transmitted_at))
        )
    ).scalars().all()
    logs = (
        await db.execute(
            select(Log).where(Log.dossier_id == dossier.id).order_by(desc(Log.created_at), desc(Log.id))
        )
    ).scalars().all()

    user_ids: list[int | None] = [
        dossier.user_id,
        dossier.created_by_id,
        dossier.assigned_to_id,
        dossier.team_leader_id,
    ]
    user_ids += [d.user_id for d in documents]
    for task in tasks:
        user_ids += [task.created_by_id, task.completed_by_id, *(task.assigned_to_ids or [])]
    for message in messages[:RECENT_MESSAGES]:
        user_ids += [message.expediteur_id, *(message.destinataire_ids or [])]
    for transmission in transmissions:
        user_ids += [transmission.partenaire_id, transmission.transmitted_by_id]
    user_ids += [log.user_id for log in logs[:RECENT_HISTORY]]
    users = await load_users(db, user_ids)

    owner = users.get(dossier.user_id) if dossier.user_id is not None else None
    if owner is not None:
        client = {
            "nom": owner.full_name,
            "email": owner.email,
            "telephone": owner.phone,
            "inscrit_depuis": owner.created_at,
        }
    else:
        client = {
            "nom": f"{dossier.client_prenom or ''} {dossier.client_nom or ''}".strip(),
            "email": dossier.client_email,
            "telephone": dossier.client_telephone,
            "inscrit_depuis": None,
        }

    partners = []
    for transmission in transmissions:
        partner = users.get(transmission.partenaire_id)
        partners.append(
            {
                "partenaire": (
                    {"nom": partner.organisme or partner.full_name, "email": partner.email} if partner else None
                ),
                "transmis_par": _name(users, transmission.transmitted_by_id),
                "date_transmission": transmission.transmitted_at,
                "statut": transmission.status,
                "date_acceptation": transmission.acknowledged_at,
                "notes": transmission.notes,
            }
        )

    days_since_creation = _days_between(dossier.created_at, now)

    recap = {
        "dossier": {
            "id": dossier.id,
            "numero": dossier.numero,
            "titre": dossier.titre,
            "description": dossier.description,
            "categorie": dossier.categorie,
            "type": dossier.type,
            "statut": dossier.statut,
            "priorite": dossier.priorite,
            "date_echeance": dossier.date_echeance,
            "motif_refus": dossier.motif_refus,
            "notes": dossier.notes,
            "created_at": dossier.created_at,
            "updated_at": dossier.updated_at,
        },
        "client": client,
        "equipe": {
            "createur": _person(users, dossier.created_by_id),
            "chef_equipe": _person(users, dossier.team_leader_id),
            "assigne_a": _person(users, dossier.assigned_to_id),
        },
        "documents": {
            "total": len(documents),
            "liste": [
                {
                    "nom": d.nom,
                    "type": d.type_mime or d.categorie,
                    "taille": d.taille,
                    "description": d.description,
                    "upload_par": _name(users, d.user_id),
                    "date_upload": d.created_at,
                }
                for d in documents
            ],
        },
        "taches": {
            "total": len(tasks),
            "en_cours": sum(1 for t in tasks if t.statut not in TASK_DONE_STATUSES and not t.effectue),
            "terminees": sum(1 for t in tasks if t.statut == "termine" or t.effectue),
            "liste": [
                {
                    "titre": t.titre,
                    "description": t.description,
                    "statut": t.statut,
                    "priorite": t.priorite,
                    "cree_par": _name(users, t.created_by_id),
                    "assigne_a": ", ".join(_name(users, uid) for uid in t.assigned_to_ids or []) or "Non assigné",
                    "date_echeance": t.date_echeance,
                    "date_creation": t.created_at,
                    "date_completion": t.date_effectue,
                    "complete_par": _name(users, t.completed_by_id) if t.completed_by_id else None,
                }
                for t in tasks
            ],
        },
        "messages": {
            "total": len(messages),
            "liste": [
                {
                    "sujet": m.sujet,
                    "expediteur": _name(users, m.expediteur_id),
                    "destinataires": ", ".join(_name(users, uid) for uid in m.destinataire_ids or [])
                    or "Non spécifié",
                    "date": m.created_at,
                }
                for m in messages[:RECENT_MESSAGES]
            ],
        },
        "rendez_vous": {
            "total": len(appointments),
            "passes": sum(1 for a in appointments if ensure_utc(a.date) < now),
            "a_venir": sum(1 for a in appointments if ensure_utc(a.date) >= now),
            "liste": [
                {"date": a.date, "heure": a.heure, "statut": a.statut, "motif": a.motif, "notes": a.notes}
                for a in appointments
            ],
        },
        "transmissions": partners,
        "historique": [
            {
                "action": log.action,
                "description": log.description,
                "utilisateur": _name(users, log.user_id, log.user_email or UNKNOWN),
                "date": log.created_at,
                "details": log.log_metadata,
            }
            for log in logs[:RECENT_HISTORY]
        ],
        "statistiques": {
            "duree_traitement": days_since_creation,
            "jours_depuis_creation": days_since_creation,
            "jours_depuis_derniere_maj": _days_between(dossier.updated_at, now),
            "nombre_modifications": sum(1 for log in logs if log.action == LogAction.DOSSIER_UPDATED),
            "nombre_changements_statut": sum(1 for log in logs if (log.log_metadata or {}).get("new_statut")),
        },
    }
    logger.debug("Built recap for dossier #%s (%d logs)", dossier.id, len(logs))
    return recap
