import os
from collections.abc import AsyncGenerator
from datetime import UTC, datetime

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

# Set test environment variables before importing app modules
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./pawlegal_test.db")
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-testing-only")
os.environ.setdefault("TRASH_PURGE_ENABLED", "false")
os.environ.setdefault("PDF_COMPRESSION", "false")


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


def _enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    """Let SQLAlchemy emit BEGIN itself so SAVEPOINT / ROLLBACK TO behave on pysqlite,
    and enforce foreign keys like PostgreSQL does."""

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


@pytest_asyncio.fixture(scope="function")
async def db_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Per-test SQLite database with all tables created."""
    from pawlegal import models  # noqa: F401 - Import to register models with Base
    from pawlegal.database import Base

    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    _enable_sqlite_savepoints(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def test_db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Provide an async database session on a fresh per-test database."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def test_app(test_db: AsyncSession):
    """Provide a FastAPI app instance with test database override."""
    from pawlegal.database import get_db
    from pawlegal.main import app

    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def test_client(test_app) -> AsyncGenerator[AsyncClient, None]:
    """Provide an async HTTP client for testing with test database."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


def make_auth_headers(user) -> dict[str, str]:
    """Create Authorization headers with a valid access token for *user*."""
    from pawlegal.services.auth_service import create_access_token

    token = create_access_token(data={"sub": user.email, "user_id": user.id, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


def viewer_of(user) -> dict:
    """The current-user dict that ``get_current_user`` would build for *user*."""
    return {"email": user.email, "user_id": user.id, "role": user.role}


# ---------------------------------------------------------------------------
# Data factories
# ---------------------------------------------------------------------------


async def create_user(db: AsyncSession, email: str, role: str = "client", **kwargs):
    from pawlegal.models import User

    kwargs.setdefault("first_name", email.split("@")[0].capitalize())
    kwargs.setdefault("last_name", "Test")
    user = User(email=email, role=role, **kwargs)
    db.add(user)
    await db.flush()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture
async def superadmin(test_db: AsyncSession):
    return await create_user(test_db, "root@pawlegal.fr", role="superadmin")


@pytest_asyncio.fixture
async def admin(test_db: AsyncSession):
    return await create_user(test_db, "admin@pawlegal.fr", role="admin")


@pytest_asyncio.fixture
async def client_user(test_db: AsyncSession):
    return await create_user(test_db, "alice@example.com", role="client")


@pytest_asyncio.fixture
async def other_client(test_db: AsyncSession):
    return await create_user(test_db, "bob@example.com", role="client")


@pytest_asyncio.fixture
async def dossier(test_db: AsyncSession, client_user, admin):
    from pawlegal.models import Dossier

    dossier = Dossier(
        numero="DOS-2024-001",
        titre="Titre de séjour",
        description="Demande de renouvellement",
        categorie="sejour",
        statut="en_cours",
        user_id=client_user.id,
        created_by_id=admin.id,
        assigned_to_id=admin.id,
        date_echeance=datetime(2025, 1, 15, 10, 0, tzinfo=UTC),
    )
    test_db.add(dossier)
    await test_db.flush()
    await test_db.refresh(dossier)
    return dossier


@pytest_asyncio.fixture
async def document(test_db: AsyncSession, client_user, dossier):
    from pawlegal.models import Document

    doc = Document(
        user_id=client_user.id,
        dossier_id=dossier.id,
        nom="Passeport",
        nom_fichier="passeport.pdf",
        chemin_fichier="/uploads/passeport.pdf",
        type_mime="application/pdf",
        taille=20480,
    )
    test_db.add(doc)
    await test_db.flush()
    await test_db.refresh(doc)
    return doc
