"""Create initial schema: users, dossiers, related records, audit logs and trash.

Revision ID: 001_initial_schema
Revises: None
Create Date: 2026-10-01 08:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSONB = postgresql.JSONB(astext_type=sa.Text())


def _timestamps(*, updated: bool = True) -> list[sa.Column]:
    columns = [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]
    if updated:
        columns.append(
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())
        )
    return columns


def _ref(name: str, *, index: bool = False, nullable: bool = True) -> sa.Column:
    """Id of a user or dossier row. No FK: both are restored from the trash
    under their original id, so dependents must survive the delete untouched."""
    return sa.Column(name, sa.Integer, nullable=nullable, index=index)


def upgrade() -> None:
    """Apply schema migrations."""
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("first_name", sa.String(100), nullable=False, server_default=""),
        sa.Column("last_name", sa.String(100), nullable=False, server_default=""),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(30), nullable=True),
        sa.Column("role", sa.String(20), nullable=False, server_default="client"),
        sa.Column("organisme", sa.String(255), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "dossiers",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("numero", sa.String(50), nullable=True, unique=True),
        sa.Column("titre", sa.String(500), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("categorie", sa.String(100), nullable=True),
        sa.Column("type", sa.String(100), nullable=True),
        sa.Column("statut", sa.String(50), nullable=False, server_default="recu"),
        sa.Column("priorite", sa.String(20), nullable=False, server_default="normale"),
        sa.Column("date_echeance", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("motif_refus", sa.Text, nullable=True),
        _ref("user_id", index=True),
        sa.Column("client_nom", sa.String(100), nullable=True),
        sa.Column("client_prenom", sa.String(100), nullable=True),
        sa.Column("client_email", sa.String(255), nullable=True),
        sa.Column("client_telephone", sa.String(30), nullable=True),
        _ref("created_by_id"),
        _ref("assigned_to_id"),
        _ref("team_leader_id"),
        *_timestamps(),
    )
    op.create_index("idx_dossiers_statut", "dossiers", ["statut"])

    op.create_table(
        "dossier_transmissions",
        sa.Column("id", sa.Integer, primary_key=True),
        _ref("dossier_id", index=True, nullable=False),
        _ref("partenaire_id", index=True, nullable=False),
        _ref("transmitted_by_id"),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("transmitted_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("acknowledged_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "documents",
        sa.Column("id", sa.Integer, primary_key=True),
        _ref("user_id", index=True),
        _ref("dossier_id", index=True),
        sa.Column("nom", sa.String(500), nullable=False),
        sa.Column("nom_fichier", sa.String(500), nullable=False),
        sa.Column("chemin_fichier", sa.String(1024), nullable=False),
        sa.Column("type_mime", sa.String(100), nullable=True),
        sa.Column("taille", sa.Integer, nullable=True),
        sa.Column("categorie", sa.String(50), nullable=False, server_default="autre"),
        sa.Column("description", sa.Text, nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "messages",
        sa.Column("id", sa.Integer, primary_key=True),
        _ref("expediteur_id", index=True),
        sa.Column("destinataire_ids", JSONB, nullable=True),
        _ref("dossier_id", index=True),
        sa.Column("type_message", sa.String(50), nullable=False, server_default="user_to_admins"),
        sa.Column("sujet", sa.String(500), nullable=False),
        sa.Column("contenu", sa.Text, nullable=False),
        *_timestamps(updated=False),
    )

    op.create_table(
        "appointments",
        sa.Column("id", sa.Integer, primary_key=True),
        _ref("user_id", index=True),
        _ref("dossier_id", index=True),
        sa.Column("nom", sa.String(100), nullable=False),
        sa.Column("prenom", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("telephone", sa.String(30), nullable=True),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("heure", sa.String(5), nullable=False),
        sa.Column("motif", sa.String(255), nullable=True),
        sa.Column("statut", sa.String(20), nullable=False, server_default="en_attente"),
        sa.Column("notes", sa.Text, nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "temoignages",
        sa.Column("id", sa.Integer, primary_key=True),
        _ref("user_id", index=True),
        sa.Column("nom", sa.String(200), nullable=False),
        sa.Column("role", sa.String(200), nullable=True),
        sa.Column("texte", sa.Text, nullable=False),
        sa.Column("note", sa.Integer, nullable=False, server_default="5"),
        sa.Column("valide", sa.Boolean, nullable=False, server_default="false"),
        *_timestamps(updated=False),
    )

    op.create_table(
        "tasks",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("titre", sa.String(500), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("statut", sa.String(20), nullable=False, server_default="a_faire"),
        sa.Column("priorite", sa.String(20), nullable=False, server_default="normale"),
        _ref("created_by_id", index=True),
        sa.Column("assigned_to_ids", JSONB, nullable=True),
        _ref("dossier_id", index=True),
        sa.Column("date_echeance", sa.DateTime(timezone=True), nullable=True),
        sa.Column("effectue", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("date_effectue", sa.DateTime(timezone=True), nullable=True),
        _ref("completed_by_id"),
        *_timestamps(),
    )

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer, primary_key=True),
        _ref("user_id", index=True, nullable=False),
        sa.Column("type", sa.String(50), nullable=False, server_default="other"),
        sa.Column("titre", sa.String(255), nullable=False),
        sa.Column("message", sa.Text, nullable=False, server_default=""),
        sa.Column("lu", sa.Boolean, nullable=False, server_default="false"),
        *_timestamps(updated=False),
    )

    op.create_table(
        "logs",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("action", sa.String(50), nullable=False, index=True),
        _ref("user_id", index=True),
        sa.Column("user_email", sa.String(255), nullable=False),
        _ref("target_user_id"),
        sa.Column("target_user_email", sa.String(255), nullable=True),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.String(512), nullable=True),
        sa.Column("dossier_id", sa.Integer, nullable=True, index=True),
        sa.Column("metadata", JSONB, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now(), index=True),
    )
    op.create_index("idx_logs_action_created", "logs", ["action", "created_at"])
    op.create_index("idx_logs_user_created", "logs", ["user_id", "created_at"])

    op.create_table(
        "trash_items",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("item_type", sa.String(20), nullable=False),
        sa.Column("original_id", sa.Integer, nullable=False, index=True),
        sa.Column("item_data", JSONB, nullable=False),
        _ref("deleted_by_id", index=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("origin", sa.String(500), nullable=False, server_default="unknown"),
        sa.Column("original_owner_id", sa.Integer, nullable=True, index=True),
        sa.Column("metadata", JSONB, nullable=True),
    )
    op.create_index("idx_trash_items_deleted_type", "trash_items", ["deleted_at", "item_type"])


def downgrade() -> None:
    """Revert schema migrations."""
    op.drop_index("idx_trash_items_deleted_type", table_name="trash_items")
    op.drop_table("trash_items")

    op.drop_index("idx_logs_user_created", table_name="logs")
    op.drop_index("idx_logs_action_created", table_name="logs")
    op.drop_table("logs")

    for table in ("notifications", "tasks", "temoignages", "appointments", "messages", "documents"):
        op.drop_table(table)

    op.drop_table("dossier_transmissions")
    op.drop_index("idx_dossiers_statut", table_name="dossiers")
    op.drop_table("dossiers")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
