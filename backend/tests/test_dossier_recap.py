"""Tests for dossier access rules, the recap payload and its PDF export."""

from datetime import UTC, date, datetime, timedelta

import pytest

from pawlegal.constants import LogAction
from pawlegal.models import Appointment, DossierTransmission, Log, Message, Task
from pawlegal.services.dossier_recap import build_recap, can_access_dossier
from pawlegal.services.pdf.recap import recap_filename, render_dossier_recap
from tests.conftest import create_user, make_auth_headers, viewer_of


async def _transmit(db, dossier, partner, status="pending"):
    db.add(DossierTransmission(dossier_id=dossier.id, partenaire_id=partner.id, status=status))
    await db.flush()


class TestAccess:
    @pytest.mark.asyncio
    async def test_owner_admin_and_stranger(self, test_db, dossier, client_user, other_client, admin):
        assert await can_access_dossier(test_db, dossier, viewer_of(client_user))
        assert await can_access_dossier(test_db, dossier, viewer_of(admin))
        assert not await can_access_dossier(test_db, dossier, viewer_of(other_client))

    @pytest.mark.asyncio
    async def test_team_leader(self, test_db, dossier):
        leader = await create_user(test_db, "chef@pawlegal.fr", role="juriste")
        assert not await can_access_dossier(test_db, dossier, viewer_of(leader))
        dossier.team_leader_id = leader.id
        assert await can_access_dossier(test_db, dossier, viewer_of(leader))

    @pytest.mark.asyncio
    async def test_partner_needs_live_transmission(self, test_db, dossier):
        partner = await create_user(test_db, "asso@example.org", role="partenaire", organisme="Asso Droits")
        assert not await can_access_dossier(test_db, dossier, viewer_of(partner))

        await _transmit(test_db, dossier, partner, status="refused")
        assert not await can_access_dossier(test_db, dossier, viewer_of(partner))

        await _transmit(test_db, dossier, partner, status="accepted")
        assert await can_access_dossier(test_db, dossier, viewer_of(partner))


class TestBuildRecap:
    @pytest.mark.asyncio
    async def test_collects_related_records(self, test_db, dossier, document, client_user, admin):
        now = datetime.now(UTC)
        test_db.add_all(
            [
                Task(titre="Préparer le dossier", dossier_id=dossier.id, created_by_id=admin.id,
                     assigned_to_ids=[admin.id]),
                Task(titre="Envoyer", dossier_id=dossier.id, statut="termine", effectue=True),
                Appointment(user_id=client_user.id, dossier_id=dossier.id, nom="Test", prenom="Alice",
                            email=client_user.email, date=now - timedelta(days=3), heure="10:00"),
                Appointment(user_id=client_user.id, dossier_id=dossier.id, nom="Test", prenom="Alice",
                            email=client_user.email, date=now + timedelta(days=3), heure="14:30"),
                Log(action=LogAction.DOSSIER_UPDATED, user_id=admin.id, user_email=admin.email,
                    description="Statut modifié", dossier_id=dossier.id,
                    log_metadata={"old_statut": "recu", "new_statut": "en_cours"}),
            ]
        )
        for i in range(12):
            test_db.add(
                Message(expediteur_id=client_user.id, destinataire_ids=[admin.id], dossier_id=dossier.id,
                        sujet=f"Question {i}", contenu="...")
            )
        await test_db.flush()

        recap = await build_recap(test_db, dossier, now=now)

        assert recap["dossier"]["numero"] == "DOS-2024-001"
        assert recap["client"]["nom"] == "Alice Test"
        assert recap["equipe"]["assigne_a"]["email"] == "admin@pawlegal.fr"
        assert recap["equipe"]["chef_equipe"] is None
        assert recap["documents"]["total"] == 1
        assert recap["documents"]["liste"][0]["upload_par"] == "Alice Test"
        assert recap["taches"]["total"] == 2
        assert recap["taches"]["en_cours"] == 1
        assert recap["taches"]["terminees"] == 1
        assert recap["messages"]["total"] == 12
        assert len(recap["messages"]["liste"]) == 10
        assert recap["messages"]["liste"][0]["destinataires"] == "Admin Test"
        assert recap["rendez_vous"]["passes"] == 1
        assert recap["rendez_vous"]["a_venir"] == 1
        assert recap["historique"][0]["utilisateur"] == "Admin Test"
        assert recap["statistiques"]["nombre_modifications"] == 1
        assert recap["statistiques"]["nombre_changements_statut"] == 1

    @pytest.mark.asyncio
    async def test_client_without_account(self, test_db, admin):
        from pawlegal.models import Dossier

        dossier = Dossier(
            titre="Naturalisation",
            client_nom="Diallo",
            client_prenom="Awa",
            client_email="awa@example.com",
            created_by_id=admin.id,
        )
        test_db.add(dossier)
        await test_db.flush()
        await test_db.refresh(dossier)

        recap = await build_recap(test_db, dossier)
        assert recap["client"] == {
            "nom": "Awa Diallo",
            "email": "awa@example.com",
            "telephone": None,
            "inscrit_depuis": None,
        }


class TestRecapPdf:
    def test_filename(self):
        assert recap_filename("DOS-2024-001", 7, date(2025, 1, 2)) == "Recit_Dossier_DOS-2024-001_2025-01-02.pdf"
        assert recap_filename(None, 7, date(2025, 1, 2)) == "Recit_Dossier_7_2025-01-02.pdf"

    @pytest.mark.asyncio
    async def test_broken_section_is_skipped(self, test_db, dossier):
        recap = await build_recap(test_db, dossier)
        del recap["taches"]

        doc = render_dossier_recap(recap, compress=False)
        pdf = doc.build()
        assert doc.skipped_entries == [5]
        assert b"Erreur sur la section #5" in pdf
        assert b"(Page 1 - Dossier DOS-2024-001) Tj" in pdf

    @pytest.mark.asyncio
    async def test_recap_json_endpoint(self, test_client, dossier, client_user):
        response = await test_client.get(f"/api/dossiers/{dossier.id}/recap", headers=make_auth_headers(client_user))
        assert response.status_code == 200
        data = response.json()
        assert data["dossier"]["titre"] == "Titre de séjour"
        assert data["statistiques"]["jours_depuis_creation"] == 0

    @pytest.mark.asyncio
    async def test_recap_pdf_endpoint(self, test_client, dossier, client_user):
        response = await test_client.get(
            f"/api/dossiers/{dossier.id}/recap/pdf", headers=make_auth_headers(client_user)
        )
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        today = datetime.now(UTC).date().isoformat()
        assert f'filename="Recit_Dossier_DOS-2024-001_{today}.pdf"' in response.headers["content-disposition"]
        assert response.content.startswith(b"%PDF")

    @pytest.mark.asyncio
    async def test_recap_forbidden_for_stranger(self, test_client, dossier, other_client):
        response = await test_client.get(f"/api/dossiers/{dossier.id}/recap", headers=make_auth_headers(other_client))
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_recap_missing_dossier(self, test_client, admin):
        response = await test_client.get("/api/dossiers/999/recap", headers=make_auth_headers(admin))
        assert response.status_code == 404
