"""Tests for the lead orchestration workflow."""

from datetime import timedelta

import pytest
from sqlalchemy import select

from lead_orchestrator.models.lead import Lead, LeadStatus, Persona, Intent, Priority
from lead_orchestrator.models.task import Task, TaskType
from lead_orchestrator.schemas.lead import LeadIntake
from lead_orchestrator.services.orchestration import NURTURE_SCHEDULE, RouteAction, select_route
from conftest import FIXED_NOW, make_classification


def _intake(**overrides) -> LeadIntake:
    values = {
        "name": "Rahul Mehta",
        "email": "rahul@mehta-architects.in",
        "phone": "+919876543210",
        "inquiry": "Specifying flooring for a 40,000 sq ft office",
        "material_type": "Engineered Wood",
    }
    values.update(overrides)
    return LeadIntake(**values)


async def _tasks(db, lead_id):
    result = await db.execute(select(Task).where(Task.lead_id == lead_id).order_by(Task.due_at))
    return result.scalars().all()


@pytest.mark.parametrize(
    "persona,intent,score,expected",
    [
        (Persona.ARCHITECT, Intent.PRICE_INQUIRY, 0.95, RouteAction.ESCALATE_ARCHITECT),
        (Persona.ARCHITECT, Intent.GENERAL_INQUIRY, 0.8, RouteAction.ESCALATE_ARCHITECT),
        (Persona.ARCHITECT, Intent.TECHNICAL_SPECS, 0.79, RouteAction.SEND_TECHNICAL_SPECS),
        (Persona.CONTRACTOR, Intent.TECHNICAL_SPECS, 0.95, RouteAction.SEND_TECHNICAL_SPECS),
        (Persona.HOMEOWNER, Intent.PRICE_INQUIRY, 0.6, RouteAction.QUOTE_PRICE),
        (Persona.DEALER, Intent.DEALER_LOCATOR, 0.9, RouteAction.NURTURE),
        (Persona.UNKNOWN, Intent.GENERAL_INQUIRY, 0.3, RouteAction.NURTURE),
    ],
)
def test_select_route_precedence(persona, intent, score, expected):
    assert select_route(make_classification(persona, intent, score), 0.8) == expected


@pytest.mark.asyncio
async def test_high_value_architect_escalates(db, build_orchestrator, providers):
    orchestrator = build_orchestrator(make_classification(Persona.ARCHITECT, Intent.PRICE_INQUIRY, 0.95))

    result = await orchestrator.run(db, _intake())
    await orchestrator.drain()

    assert result.status == LeadStatus.HOT
    assert result.persona == Persona.ARCHITECT
    assert result.score == 0.95

    lead = await db.get(Lead, result.lead_id)
    assert lead.status == LeadStatus.HOT
    assert lead.priority == Priority.HIGH
    assert lead.lead_score == 0.95

    [task] = await _tasks(db, result.lead_id)
    assert task.type == TaskType.REVIEW_LEAD
    assert task.priority == Priority.URGENT
    assert task.due_at == FIXED_NOW + timedelta(minutes=5)

    providers["whatsapp"].send.assert_awaited_once()
    assert providers["whatsapp"].send.await_args.kwargs["lead_id"] == result.lead_id
    providers["email"].send_email.assert_not_awaited()


@pytest.mark.asyncio
async def test_architect_acknowledgment_attaches_catalog(db, build_orchestrator, providers):
    orchestrator = build_orchestrator(make_classification(Persona.ARCHITECT, Intent.SAMPLE_REQUEST, 0.9))
    orchestrator.catalog_url = "https://cdn.test/catalog.pdf"

    await orchestrator.run(db, _intake())

    assert providers["whatsapp"].send.await_args.kwargs["media_url"] == "https://cdn.test/catalog.pdf"


@pytest.mark.asyncio
async def test_technical_specs_sends_email_and_one_follow_up(db, build_orchestrator, providers):
    orchestrator = build_orchestrator(make_classification(Persona.CONTRACTOR, Intent.TECHNICAL_SPECS, 0.7))

    result = await orchestrator.run(db, _intake(material_type="SPC Flooring"))

    assert result.status == LeadStatus.CONTACTED
    [task] = await _tasks(db, result.lead_id)
    assert task.type == TaskType.FOLLOW_UP
    assert task.priority == Priority.MEDIUM
    assert task.due_at == FIXED_NOW + timedelta(days=3)

    providers["whatsapp"].send.assert_awaited_once()
    email_kwargs = providers["email"].send_email.await_args.kwargs
    assert email_kwargs["template"] == "technical-specs"
    assert email_kwargs["to"] == "rahul@mehta-architects.in"
    assert email_kwargs["subject"] == "Technical Specifications - SPC Flooring"


@pytest.mark.asyncio
@pytest.mark.parametrize("score,priority", [(0.6, Priority.HIGH), (0.4, Priority.MEDIUM)])
async def test_price_inquiry_schedules_call(db, build_orchestrator, providers, score, priority):
    orchestrator = build_orchestrator(make_classification(Persona.HOMEOWNER, Intent.PRICE_INQUIRY, score))

    result = await orchestrator.run(db, _intake(email="vikram.singh@gmail.com"))

    assert result.status == LeadStatus.CONTACTED
    [task] = await _tasks(db, result.lead_id)
    assert task.type == TaskType.CALL_LEAD
    assert task.priority == priority
    assert task.due_at == FIXED_NOW + timedelta(hours=24)
    providers["email"].send_email.assert_not_awaited()


@pytest.mark.asyncio
async def test_generic_lead_enters_nurture_sequence(db, build_orchestrator, providers):
    orchestrator = build_orchestrator(make_classification())

    result = await orchestrator.run(db, _intake(email="meera.iyer@yahoo.com", material_type=None))

    assert result.status == LeadStatus.NURTURING
    lead = await db.get(Lead, result.lead_id)
    assert lead.nurture_stage == 1
    assert lead.priority == Priority.LOW

    tasks = await _tasks(db, result.lead_id)
    assert len(tasks) == 4
    assert [t.due_at for t in tasks] == [FIXED_NOW + timedelta(days=d) for d in (1, 3, 5, 7)]
    assert all(t.type == TaskType.FOLLOW_UP and t.priority == Priority.LOW for t in tasks)
    assert [content in t.title for t, (_, content) in zip(tasks, NURTURE_SCHEDULE)] == [True] * 4


@pytest.mark.asyncio
async def test_classification_fields_are_stored(db, build_orchestrator):
    classification = make_classification(
        Persona.CONTRACTOR,
        Intent.PRICE_INQUIRY,
        0.75,
        location="Pune",
        budget="10 lakh",
        material_type="Vinyl",
        urgency="HIGH",
    )
    orchestrator = build_orchestrator(classification)

    result = await orchestrator.run(db, _intake(material_type=None))

    lead = await db.get(Lead, result.lead_id)
    assert lead.persona == Persona.CONTRACTOR
    assert lead.intent == Intent.PRICE_INQUIRY
    assert lead.priority == Priority.MEDIUM
    assert lead.location == "Pune"
    assert lead.budget == "10 lakh"
    assert lead.urgency == "HIGH"
    assert lead.material_type == "Vinyl"
    assert lead.classification_reasoning == "test"


@pytest.mark.asyncio
async def test_enrichment_and_crm_run_detached(db, build_orchestrator, providers):
    orchestrator = build_orchestrator(make_classification())

    result = await orchestrator.run(db, _intake())
    await orchestrator.drain()

    providers["enrich"].assert_awaited_once_with(result.lead_id, "rahul@mehta-architects.in", "+919876543210")
    providers["crm"].sync_lead.assert_awaited_once_with(result.lead_id)


@pytest.mark.asyncio
async def test_enrichment_and_crm_failures_do_not_change_result(db, build_orchestrator, providers):
    providers["enrich"].side_effect = RuntimeError("enrichment provider down")
    providers["crm"].sync_lead.side_effect = RuntimeError("crm down")
    orchestrator = build_orchestrator(make_classification(Persona.ARCHITECT, Intent.PRICE_INQUIRY, 0.95))

    result = await orchestrator.run(db, _intake())
    await orchestrator.drain()

    assert result.status == LeadStatus.HOT
    assert result.score == 0.95
    providers["enrich"].assert_awaited_once()
    providers["crm"].sync_lead.assert_awaited_once()


@pytest.mark.asyncio
async def test_send_failures_do_not_change_result(db, build_orchestrator, providers):
    providers["whatsapp"].send.return_value = False
    providers["email"].send_email.return_value = False
    orchestrator = build_orchestrator(make_classification(Persona.CONTRACTOR, Intent.TECHNICAL_SPECS, 0.7))

    result = await orchestrator.run(db, _intake())

    assert result.status == LeadStatus.CONTACTED
    assert len(await _tasks(db, result.lead_id)) == 1


@pytest.mark.asyncio
async def test_duplicate_submissions_create_separate_leads(db, build_orchestrator):
    orchestrator = build_orchestrator(make_classification())

    first = await orchestrator.run(db, _intake())
    second = await orchestrator.run(db, _intake())

    assert first.lead_id != second.lead_id
    count = len((await db.execute(select(Lead))).scalars().all())
    assert count == 2


@pytest.mark.asyncio
async def test_long_entities_fit_lead_columns(db, build_orchestrator):
    orchestrator = build_orchestrator(make_classification(
        Persona.HOMEOWNER,
        Intent.PRICE_INQUIRY,
        0.6,
        location="x" * 300,
        project_size="y" * 300,
        budget="z" * 300,
    ))

    result = await orchestrator.run(db, _intake())

    lead = await db.get(Lead, result.lead_id)
    assert len(lead.location) == 255
    assert len(lead.project_size) == 255
    assert len(lead.budget) == 255
    assert result.status == LeadStatus.CONTACTED


@pytest.mark.asyncio
async def test_request_metadata_is_stored(db, build_orchestrator):
    orchestrator = build_orchestrator(make_classification())

    result = await orchestrator.run(db, _intake(), ip_address="10.0.0.7", user_agent="Mozilla/5.0")

    lead = await db.get(Lead, result.lead_id)
    assert lead.source == "website"
    assert lead.ip_address == "10.0.0.7"
    assert lead.user_agent == "Mozilla/5.0"
