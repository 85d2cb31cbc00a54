from enum import StrEnum


class UserRole(StrEnum):
    CLIENT = "client"
    ADMIN = "admin"
    SUPERADMIN = "superadmin"
    ASSISTANT = "assistant"
    COMPTABLE = "comptable"
    SECRETAIRE = "secretaire"
    JURISTE = "juriste"
    STAGIAIRE = "stagiaire"
    VISITEUR = "visiteur"
    PARTENAIRE = "partenaire"


ADMIN_ROLES = frozenset({UserRole.ADMIN, UserRole.SUPERADMIN})


class TrashItemType(StrEnum):
    MESSAGE = "message"
    DOCUMENT = "document"
    DOSSIER = "dossier"
    APPOINTMENT = "appointment"
    TEMOIGNAGE = "temoignage"
    USER = "user"
    TASK = "task"
    NOTIFICATION = "notification"
    OTHER = "other"


class LogAction(StrEnum):
    LOGIN = "login"
    LOGOUT = "logout"
    USER_CREATED = "user_created"
    USER_UPDATED = "user_updated"
    USER_DELETED = "user_deleted"
    USER_ACTIVATED = "user_activated"
    USER_DEACTIVATED = "user_deactivated"
    PROFILE_UPDATED = "profile_updated"
    PASSWORD_CHANGED = "password_changed"
    APPOINTMENT_CREATED = "appointment_created"
    APPOINTMENT_UPDATED = "appointment_updated"
    APPOINTMENT_DELETED = "appointment_deleted"
    DOSSIER_CREATED = "dossier_created"
    DOSSIER_UPDATED = "dossier_updated"
    DOSSIER_DELETED = "dossier_deleted"
    DOCUMENT_UPLOADED = "document_uploaded"
    DOCUMENT_DELETED = "document_deleted"
    MESSAGE_SENT = "message_sent"
    MESSAGE_DELETED = "message_deleted"
    TASK_DELETED = "task_deleted"
    NOTIFICATION_DELETED = "notification_deleted"
    TEMOIGNAGE_CREATED = "temoignage_created"
    TEMOIGNAGE_VALIDATED = "temoignage_validated"
    TEMOIGNAGE_DELETED = "temoignage_deleted"
    TRASH_RESTORED = "trash_restored"
    TRASH_PURGED = "trash_purged"
    TRASH_EMPTIED = "trash_emptied"
    OTHER = "other"


class TransmissionStatus(StrEnum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REFUSED = "refused"


# Task states that count as finished in dossier recaps
TASK_DONE_STATUSES = frozenset({"termine", "annule"})

DLOG_DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
