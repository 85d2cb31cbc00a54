"""DLOG: one-day activity journal rendered from audit Log rows."""

from __future__ import annotations

from collections import Counter
from collections.abc import Mapping, Sequence
from datetime import UTC, date, datetime

from pawlegal.models import Log, User
from pawlegal.services.pdf.document_header import BrandedDocument, create_document_with_header, safe_stringify
from pawlegal.utils.datetime_utils import format_datetime_fr, format_long_date_fr, format_time_fr

UNKNOWN_USER = "Utilisateur inconnu"


def dlog_filename(day: date) -> str:
    return f"DLOG_{day.strftime('%Y_%m_%d')}.pdf"


def _display_name(user: User | None, fallback: str | None) -> str:
    if user is not None:
        name = user.full_name
        if name:
            return name
    return fallback or UNKNOWN_USER


def _render_log(doc: BrandedDocument, index: int, log: Log, users: Mapping[int, User]) -> None:
    doc.add_paragraph(f"Action #{index}", "muted", indent=4)
    doc.add_paragraph(f"Heure : {format_time_fr(log.created_at)}", "muted", indent=8)
    doc.add_paragraph(f"Type : {log.action}", "accent", indent=8)
    doc.add_paragraph(
        f"Utilisateur : {_display_name(users.get(log.user_id), log.user_email)}", indent=8
    )
    if log.target_user_id is not None or log.target_user_email:
        target = _display_name(users.get(log.target_user_id), log.target_user_email)
        doc.add_paragraph(f"Utilisateur cible : {target}", indent=8)
    doc.add_paragraph(f"Description : {log.description}", indent=8)
    if log.ip_address:
        doc.add_paragraph(f"IP : {log.ip_address}", "muted", indent=8)
    if log.log_metadata:
        doc.add_paragraph("Métadonnées :", "muted", indent=8)
        for key, value in log.log_metadata.items():
            doc.add_paragraph(f"{key}: {safe_stringify(value)}", "muted", indent=12)
    doc.add_separator()


def render_dlog(
    logs: Sequence[Log],
    users: Mapping[int, User],
    day: date,
    *,
    compress: bool | None = None,
) -> BrandedDocument:
    """Lay out the DLOG for *day* and return the document (call ``build()``).

    *logs* must be sorted oldest first; *users* maps ids referenced by the
    logs to their User rows for display names.
    """
    doc = create_document_with_header(
        "DLOG - Journal des Activités",
        f"DLOG {day.strftime('%d/%m/%Y')}",
        compress=compress,
    )
    doc.add_title("DLOG - Journal des Activités")
    doc.add_subtitle(f"Date : {format_long_date_fr(day)}")
    doc.add_subtitle(f"Généré le : {format_datetime_fr(datetime.now(UTC))}")
    doc.add_spacer(6)

    doc.add_heading("Synthèse")
    doc.add_paragraph(f"Nombre total d'actions : {len(logs)}", indent=4)
    by_action = Counter(log.action for log in logs)
    if by_action:
        doc.add_paragraph("Répartition par type d'action :", indent=4)
        doc.add_bullets((f"{action} : {count}" for action, count in by_action.most_common()), indent=8)
    doc.add_separator()

    doc.add_heading("Détail des Actions")
    if not logs:
        doc.add_paragraph("Aucune action enregistrée pour cette date.", "muted", indent=4)
    for index, log in enumerate(logs, start=1):
        doc.add_entry(index, lambda d, i=index, entry=log: _render_log(d, i, entry, users))
    return doc
