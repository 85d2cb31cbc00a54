from datetime import UTC, datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from pawlegal.database import Base, JSONType

# References to users and dossiers are plain ids without FK constraints. Both
# can be moved to the trash and restored with their original primary key, so
# dependent rows keep pointing at them instead of being cascaded or nulled.


def _utcnow() -> datetime:
    return datetime.now(UTC)


class User(Base):
    """Platform account: client, staff member or partner organisation."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    first_name: Mapped[str] = mapped_column(String(100), default="")
    last_name: Mapped[str] = mapped_column(String(100), default="")
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    role: Mapped[str] = mapped_column(String(20), default="client")
    organisme: Mapped[str | None] = mapped_column(String(255), nullable=True)  # partenaire only
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


class Dossier(Base):
    """Legal case file."""

    __tablename__ = "dossiers"

    id: Mapped[int] = mapped_column(primary_key=True)
    numero: Mapped[str | None] = mapped_column(String(50), unique=True, nullable=True)
    titre: Mapped[str] = mapped_column(String(500))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    categorie: Mapped[str | None] = mapped_column(String(100), nullable=True)
    type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    statut: Mapped[str] = mapped_column(String(50), default="recu")
    priorite: Mapped[str] = mapped_column(String(20), default="normale")
    date_echeance: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    motif_refus: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Client may not have an account yet: contact fields are kept inline
    user_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    client_nom: Mapped[str | None] = mapped_column(String(100), nullable=True)
    client_prenom: Mapped[str | None] = mapped_column(String(100), nullable=True)
    client_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    client_telephone: Mapped[str | None] = mapped_column(String(30), nullable=True)

    created_by_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    assigned_to_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    team_leader_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (Index("idx_dossiers_statut", "statut"),)


class DossierTransmission(Base):
    """Dossier shared with a partner organisation."""

    __tablename__ = "dossier_transmissions"

    id: Mapped[int] = mapped_column(primary_key=True)
    dossier_id: Mapped[int] = mapped_column(Integer, index=True)
    partenaire_id: Mapped[int] = mapped_column(Integer, index=True)
    transmitted_by_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="pending")
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    transmitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    acknowledged_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class Document(Base):
    """Uploaded document attached to a user and optionally a dossier."""

    __tablename__ = "documents"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    dossier_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    nom: Mapped[str] = mapped_column(String(500))
    nom_fichier: Mapped[str] = mapped_column(String(500))
    chemin_fichier: Mapped[str] = mapped_column(String(1024))
    type_mime: Mapped[str | None] = mapped_column(String(100), nullable=True)
    taille: Mapped[int | None] = mapped_column(Integer, nullable=True)
    categorie: Mapped[str] = mapped_column(String(50), default="autre")
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class Message(Base):
    """Internal message between clients, staff and partners."""

    __tablename__ = "messages"

    id: Mapped[int] = mapped_column(primary_key=True)
    expediteur_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    destinataire_ids: Mapped[list | None] = mapped_column(JSONType, nullable=True)  # [user_id, ...]
    dossier_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    type_message: Mapped[str] = mapped_column(String(50), default="user_to_admins")
    sujet: Mapped[str] = mapped_column(String(500))
    contenu: Mapped[str] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class Appointment(Base):
    """Rendez-vous booked by a client."""

    __tablename__ = "appointments"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    dossier_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    nom: Mapped[str] = mapped_column(String(100))
    prenom: Mapped[str] = mapped_column(String(100))
    email: Mapped[str] = mapped_column(String(255))
    telephone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    heure: Mapped[str] = mapped_column(String(5))  # "HH:MM"
    motif: Mapped[str | None] = mapped_column(String(255), nullable=True)
    statut: Mapped[str] = mapped_column(String(20), default="en_attente")
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class Temoignage(Base):
    """Client testimonial shown on the public site once validated."""

    __tablename__ = "temoignages"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    nom: Mapped[str] = mapped_column(String(200))
    role: Mapped[str | None] = mapped_column(String(200), nullable=True)
    texte: Mapped[str] = mapped_column(Text)
    note: Mapped[int] = mapped_column(Integer, default=5)
    valide: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class Task(Base):
    """Work item assigned to staff, optionally linked to a dossier."""

    __tablename__ = "tasks"

    id: Mapped[int] = mapped_column(primary_key=True)
    titre: Mapped[str] = mapped_column(String(500))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    statut: Mapped[str] = mapped_column(String(20), default="a_faire")
    priorite: Mapped[str] = mapped_column(String(20), default="normale")
    created_by_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    assigned_to_ids: Mapped[list | None] = mapped_column(JSONType, nullable=True)  # [user_id, ...]
    dossier_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    date_echeance: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    effectue: Mapped[bool] = mapped_column(Boolean, default=False)
    date_effectue: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_by_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class Notification(Base):
    """In-app notification for a single user."""

    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, index=True)
    type: Mapped[str] = mapped_column(String(50), default="other")
    titre: Mapped[str] = mapped_column(String(255))
    message: Mapped[str] = mapped_column(Text, default="")
    lu: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class Log(Base):
    """Audit log of user actions (source of the DLOG export)."""

    __tablename__ = "logs"

    id: Mapped[int] = mapped_column(primary_key=True)
    action: Mapped[str] = mapped_column(String(50), index=True)
    user_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    user_email: Mapped[str] = mapped_column(String(255))
    target_user_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    target_user_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str] = mapped_column(Text)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(512), nullable=True)
    dossier_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    log_metadata: Mapped[dict | None] = mapped_column("metadata", JSONType, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), index=True
    )

    __table_args__ = (
        Index("idx_logs_action_created", "action", "created_at"),
        Index("idx_logs_user_created", "user_id", "created_at"),
    )


class TrashItem(Base):
    """Snapshot of a deleted entity, restorable until the retention window ends."""

    __tablename__ = "trash_items"

    id: Mapped[int] = mapped_column(primary_key=True)
    item_type: Mapped[str] = mapped_column(String(20), nullable=False)
    original_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    item_data: Mapped[dict] = mapped_column(JSONType, nullable=False)
    deleted_by_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    deleted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False
    )
    origin: Mapped[str] = mapped_column(String(500), default="unknown", nullable=False)
    original_owner_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    item_metadata: Mapped[dict | None] = mapped_column("metadata", JSONType, nullable=True)

    __table_args__ = (Index("idx_trash_items_deleted_type", "deleted_at", "item_type"),)
