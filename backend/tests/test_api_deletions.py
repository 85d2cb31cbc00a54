"""API tests for entity deletion through the trash."""

import pytest
from sqlalchemy import func, select

from pawlegal.constants import LogAction
from pawlegal.models import Document, Dossier, DossierTransmission, Log, Notification, TrashItem, User
from tests.conftest import create_user, make_auth_headers


async def _only_log(db, action) -> Log:
    return (await db.execute(select(Log).where(Log.action == action))).scalar_one()


async def _count(db, model, *conditions) -> int:
    return (await db.execute(select(func.count()).select_from(model).where(*conditions))).scalar_one()


class TestDocumentDeletion:
    @pytest.mark.asyncio
    async def test_owner_deletes_document(self, test_client, test_db, client_user, document):
        doc_id = document.id

        response = await test_client.delete(
            f"/api/documents/{doc_id}",
            headers={**make_auth_headers(client_user), "Referer": "http://localhost:3000/client/documents"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Document déplacé(e) dans la corbeille"

        item = await test_db.get(TrashItem, data["trash_item_id"])
        assert item.item_type == "document"
        assert item.original_id == doc_id
        assert item.origin == "http://localhost:3000/client/documents"
        assert item.deleted_by_id == client_user.id
        assert item.original_owner_id == client_user.id
        assert await test_db.get(Document, doc_id) is None

        log = await _only_log(test_db, LogAction.DOCUMENT_DELETED)
        assert log.dossier_id == document.dossier_id
        assert log.log_metadata["trash_item_id"] == item.id

    @pytest.mark.asyncio
    async def test_origin_parameter_wins_over_referer(self, test_client, test_db, admin, document):
        response = await test_client.delete(
            f"/api/documents/{document.id}",
            params={"origin": "/admin/dossiers/1"},
            headers={**make_auth_headers(admin), "Referer": "http://localhost:3000/ignored"},
        )
        item = await test_db.get(TrashItem, response.json()["trash_item_id"])
        assert item.origin == "/admin/dossiers/1"

    @pytest.mark.asyncio
    async def test_origin_unknown_without_hint(self, test_client, test_db, admin, document):
        response = await test_client.delete(f"/api/documents/{document.id}", headers=make_auth_headers(admin))
        item = await test_db.get(TrashItem, response.json()["trash_item_id"])
        assert item.origin == "unknown"

    @pytest.mark.asyncio
    async def test_stranger_cannot_delete(self, test_client, test_db, other_client, document):
        response = await test_client.delete(f"/api/documents/{document.id}", headers=make_auth_headers(other_client))
        assert response.status_code == 403
        assert await test_db.get(Document, document.id) is not None

    @pytest.mark.asyncio
    async def test_missing_document(self, test_client, admin):
        response = await test_client.delete("/api/documents/999", headers=make_auth_headers(admin))
        assert response.status_code == 404
        assert response.json()["detail"] == "Document non trouvé(e)"


class TestAdminDeletions:
    @pytest.mark.asyncio
    async def test_dossier_requires_admin(self, test_client, client_user, dossier):
        response = await test_client.delete(f"/api/dossiers/{dossier.id}", headers=make_auth_headers(client_user))
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_admin_deletes_dossier(self, test_client, test_db, admin, dossier):
        dossier_id = dossier.id

        response = await test_client.delete(f"/api/dossiers/{dossier_id}", headers=make_auth_headers(admin))
        assert response.status_code == 200
        assert await test_db.get(Dossier, dossier_id) is None

        item = await test_db.get(TrashItem, response.json()["trash_item_id"])
        assert item.item_metadata["numero"] == "DOS-2024-001"
        log = await _only_log(test_db, LogAction.DOSSIER_DELETED)
        assert log.dossier_id == dossier_id

    @pytest.mark.asyncio
    async def test_admin_cannot_delete_self(self, test_client, admin):
        response = await test_client.delete(f"/api/users/{admin.id}", headers=make_auth_headers(admin))
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_user_deletion_keeps_email_in_log(self, test_client, test_db, admin, other_client):
        user_id = other_client.id

        response = await test_client.delete(f"/api/users/{user_id}", headers=make_auth_headers(admin))
        assert response.status_code == 200
        assert await test_db.get(User, user_id) is None

        log = await _only_log(test_db, LogAction.USER_DELETED)
        assert log.target_user_email == "bob@example.com"
        assert log.target_user_id is None


class TestNotificationDeletion:
    @pytest.mark.asyncio
    async def test_recipient_deletes_own_notification(self, test_client, test_db, client_user):
        notification = Notification(user_id=client_user.id, titre="Nouveau document", message="...")
        test_db.add(notification)
        await test_db.flush()

        response = await test_client.delete(
            f"/api/notifications/{notification.id}", headers=make_auth_headers(client_user)
        )
        assert response.status_code == 200
        item = await test_db.get(TrashItem, response.json()["trash_item_id"])
        assert item.item_type == "notification"
        assert item.item_metadata == {"titre": "Nouveau document", "type": "other"}


class TestRestoreKeepsDependents:
    """Deleting a user or dossier leaves the rows that point at it untouched."""

    @pytest.mark.asyncio
    async def test_user_delete_then_restore(self, test_client, test_db, admin, client_user, dossier):
        user_id, dossier_id = client_user.id, dossier.id
        test_db.add(Notification(user_id=user_id, titre="Rendez-vous confirmé", message="..."))
        await test_db.flush()
        headers = make_auth_headers(admin)

        response = await test_client.delete(f"/api/users/{user_id}", headers=headers)
        assert response.status_code == 200
        assert await _count(test_db, Notification, Notification.user_id == user_id) == 1

        restored = await test_client.post(f"/api/trash/restore/{response.json()['trash_item_id']}", headers=headers)
        assert restored.status_code == 200

        owner = await test_db.execute(select(Dossier.user_id).where(Dossier.id == dossier_id))
        assert owner.scalar_one() == user_id
        assert await _count(test_db, Notification, Notification.user_id == user_id) == 1
        assert await _count(test_db, TrashItem) == 0

    @pytest.mark.asyncio
    async def test_dossier_delete_then_restore(self, test_client, test_db, admin, dossier, document):
        dossier_id, doc_id = dossier.id, document.id
        partner = await create_user(test_db, "asso@example.org", role="partenaire", organisme="Asso Droits")
        test_db.add(DossierTransmission(dossier_id=dossier_id, partenaire_id=partner.id, status="accepted"))
        await test_db.flush()
        headers = make_auth_headers(admin)

        response = await test_client.delete(f"/api/dossiers/{dossier_id}", headers=headers)
        assert response.status_code == 200
        restored = await test_client.post(f"/api/trash/restore/{response.json()['trash_item_id']}", headers=headers)
        assert restored.status_code == 200

        transmissions = DossierTransmission.dossier_id == dossier_id
        assert await _count(test_db, DossierTransmission, transmissions) == 1
        linked = await test_db.execute(select(Document.dossier_id).where(Document.id == doc_id))
        assert linked.scalar_one() == dossier_id
