"""French user-facing messages for API responses and audit logs.

Usage:
    from pawlegal.utils.messages import msg
    msg("trash.not_found")                    # → "Élément non trouvé dans la corbeille"
    msg("logs.no_logs_for_date", date="2024-12-25")
"""

from __future__ import annotations

_MESSAGES: dict[str, str] = {
    # Generic
    "auth.forbidden": "Accès non autorisé",
    "auth.admin_required": "Accès réservé aux administrateurs",
    "auth.superadmin_required": "Accès réservé au super administrateur",
    # Trash
    "trash.not_found": "Élément non trouvé dans la corbeille",
    "trash.restore_forbidden": "Vous n'avez pas la permission de restaurer cet élément",
    "trash.delete_forbidden": "Vous n'avez pas la permission de supprimer définitivement cet élément",
    "trash.unsupported_type": "Type d'élément non supporté: {item_type}",
    "trash.already_exists": "Cet élément existe déjà. Il a peut-être déjà été restauré.",
    "trash.restore_rejected": "La restauration a été refusée par la base de données",
    "trash.restored": "Élément restauré avec succès",
    "trash.purged": "Élément supprimé définitivement",
    "trash.emptied": "Corbeille vidée avec succès",
    "trash.expired_purged": "{count} élément(s) expiré(s) supprimé(s) définitivement",
    "trash.empty_batch": "Aucun élément sélectionné",
    # Logs
    "logs.date_required": "La date est requise (format: YYYY-MM-DD)",
    "logs.date_format": "Format de date invalide. Utilisez le format YYYY-MM-DD (ex: 2024-12-25)",
    "logs.date_invalid": "Date invalide. Veuillez vérifier la date fournie",
    "logs.no_logs_for_date": "Aucun log trouvé pour la date {date}",
    # PDF exports
    "pdf.failed": "Erreur serveur lors de la génération du PDF",
    # Dossiers
    "dossier.not_found": "Dossier non trouvé",
    "dossier.forbidden": "Accès non autorisé à ce dossier",
    # Deletions
    "entity.not_found": "{label} non trouvé(e)",
    "entity.forbidden": "Vous n'avez pas la permission de supprimer cet élément",
    "entity.deleted": "{label} déplacé(e) dans la corbeille",
    "entity.self_delete": "Vous ne pouvez pas supprimer votre propre compte",
}


def msg(key: str, **kwargs: object) -> str:
    """Return the French message for *key*, formatted with *kwargs*.

    Unknown keys are returned as-is so a missing entry never breaks a response.
    """
    template = _MESSAGES.get(key)
    if template is None:
        return key
    if kwargs:
        return template.format(**kwargs)
    return template
