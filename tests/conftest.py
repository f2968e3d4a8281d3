"""Shared test fixtures for the lead orchestrator tests.

Uses an in-memory SQLite async engine so tests run without PostgreSQL.
External providers (LLM, Twilio, SendGrid, CRM) are replaced with mocks.
"""

from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from lead_orchestrator.core.database import Base, get_db
from lead_orchestrator.core.dependencies import get_orchestrator
from lead_orchestrator.main import app
from lead_orchestrator.models.lead import Lead, LeadStatus, Persona, Intent, Priority
from lead_orchestrator.schemas.classification import Classification, ExtractedEntities
from lead_orchestrator.services.orchestration import LeadOrchestrator
from lead_orchestrator.services.security_service import recent_requests

# Import all models to ensure they're registered with Base.metadata
from lead_orchestrator.models import Interaction, Task  # noqa: F401


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)
TestSession = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

FIXED_NOW = datetime(2026, 3, 2, 10, 0, 0)


@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def reset_rate_limits():
    """Each test starts with an empty request window."""
    recent_requests.clear()
    yield
    recent_requests.clear()


async def override_get_db():
    async with TestSession() as session:
        yield session


app.dependency_overrides[get_db] = override_get_db


@pytest_asyncio.fixture
async def client():
    """Async HTTP test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def db():
    """Direct DB session for test setup/assertions."""
    async with TestSession() as session:
        yield session


def make_classification(
    persona: Persona = Persona.UNKNOWN,
    intent: Intent = Intent.GENERAL_INQUIRY,
    score: float = 0.3,
    **entities,
) -> Classification:
    return Classification(
        persona=persona,
        intent=intent,
        lead_score=score,
        reasoning="test",
        extracted_entities=ExtractedEntities(**entities),
    )


def make_classifier(classification: Classification, message: str = "Here is what you asked for.") -> MagicMock:
    classifier = MagicMock()
    classifier.classify = AsyncMock(return_value=classification)
    classifier.generate_message = AsyncMock(return_value=message)
    return classifier


@pytest.fixture
def providers():
    """Mocked outbound collaborators for the orchestrator."""
    whatsapp = MagicMock()
    whatsapp.send = AsyncMock(return_value=True)
    email = MagicMock()
    email.send_email = AsyncMock(return_value=True)
    crm = MagicMock()
    crm.sync_lead = AsyncMock(return_value=True)
    crm.update_status = AsyncMock(return_value=True)
    return {
        "whatsapp": whatsapp,
        "email": email,
        "enrich": AsyncMock(return_value=None),
        "crm": crm,
    }


@pytest_asyncio.fixture
async def build_orchestrator(providers):
    """Factory: orchestrator with a canned classification and a fixed clock."""
    built = []

    def build(classification: Classification) -> LeadOrchestrator:
        orchestrator = LeadOrchestrator(
            classifier=make_classifier(classification),
            clock=lambda: FIXED_NOW,
            high_value_threshold=0.8,
            catalog_url="",
            **providers,
        )
        built.append(orchestrator)
        return orchestrator

    yield build

    for orchestrator in built:
        await orchestrator.drain()


@pytest.fixture
def use_orchestrator():
    """Route the app's orchestrator dependency to a test instance."""

    def install(orchestrator: LeadOrchestrator) -> LeadOrchestrator:
        app.dependency_overrides[get_orchestrator] = lambda: orchestrator
        return orchestrator

    yield install

    app.dependency_overrides.pop(get_orchestrator, None)


async def create_lead(db: AsyncSession, **fields) -> Lead:
    """Insert a lead directly for endpoint tests."""
    values = {
        "name": "Test Lead",
        "email": "lead@example.com",
        "phone": "+919800000000",
        "inquiry": "Looking for flooring",
        "status": LeadStatus.NEW,
        "priority": Priority.LOW,
    }
    values.update(fields)
    lead = Lead(**values)
    db.add(lead)
    await db.commit()
    await db.refresh(lead)
    return lead
