"""Tests for the analytics endpoints."""

from datetime import datetime, timedelta
from unittest.mock import patch

import pytest

from lead_orchestrator.models.interaction import Channel, Direction, Interaction, InteractionStatus, InteractionType
from lead_orchestrator.models.lead import LeadStatus, Persona, Intent, Priority
from conftest import create_lead


async def _seed(db):
    """Three architects (two converted), one homeowner lost, one dealer nurturing."""
    base = datetime(2026, 3, 2, 10, 0)
    await create_lead(db, persona=Persona.ARCHITECT, intent=Intent.TECHNICAL_SPECS, status=LeadStatus.CONVERTED,
                      priority=Priority.HIGH, created_at=base, last_contacted_at=base + timedelta(minutes=2))
    await create_lead(db, persona=Persona.ARCHITECT, intent=Intent.PRICE_INQUIRY, status=LeadStatus.CONVERTED,
                      priority=Priority.HIGH, created_at=base, last_contacted_at=base + timedelta(minutes=4))
    await create_lead(db, persona=Persona.ARCHITECT, intent=Intent.PRICE_INQUIRY, status=LeadStatus.HOT,
                      priority=Priority.HIGH, created_at=base - timedelta(days=30))
    await create_lead(db, persona=Persona.HOMEOWNER, intent=Intent.PRICE_INQUIRY, status=LeadStatus.LOST,
                      priority=Priority.MEDIUM, created_at=base, last_contacted_at=base + timedelta(minutes=60))
    await create_lead(db, persona=Persona.DEALER, intent=Intent.GENERAL_INQUIRY, status=LeadStatus.NURTURING,
                      engagement_score=0.4, created_at=base)


@pytest.mark.asyncio
async def test_conversion_rates(client, db):
    await _seed(db)

    data = (await client.get("/api/analytics/conversion-rates")).json()["data"]

    assert data["overall"] == {"total": 5, "converted": 2, "rate": 40.0}
    by_persona = {row["persona"]: row for row in data["by_persona"]}
    assert by_persona["ARCHITECT"] == {"persona": "ARCHITECT", "total": 3, "converted": 2, "rate": 66.67}
    assert by_persona["HOMEOWNER"]["rate"] == 0.0
    by_intent = {row["intent"]: row for row in data["by_intent"]}
    assert by_intent["PRICE_INQUIRY"]["total"] == 3
    assert by_intent["PRICE_INQUIRY"]["converted"] == 1


@pytest.mark.asyncio
async def test_conversion_rates_date_window(client, db):
    await _seed(db)

    resp = await client.get(
        "/api/analytics/conversion-rates",
        params={"start_date": "2026-03-01T00:00:00", "end_date": "2026-03-03T00:00:00"},
    )

    assert resp.json()["data"]["overall"] == {"total": 4, "converted": 2, "rate": 50.0}


@pytest.mark.asyncio
async def test_conversion_rates_empty(client):
    data = (await client.get("/api/analytics/conversion-rates")).json()["data"]
    assert data["overall"] == {"total": 0, "converted": 0, "rate": 0.0}
    assert data["by_persona"] == []


@pytest.mark.asyncio
async def test_response_times(client, db):
    await _seed(db)

    data = (await client.get("/api/analytics/response-times")).json()["data"]

    by_persona = {row["persona"]: row for row in data["by_persona"]}
    assert by_persona["ARCHITECT"] == {"persona": "ARCHITECT", "avg_minutes": 3, "count": 2}
    assert by_persona["HOMEOWNER"]["avg_minutes"] == 60
    by_priority = {row["priority"]: row for row in data["by_priority"]}
    assert by_priority["HIGH"]["count"] == 2
    assert by_priority["MEDIUM"]["avg_minutes"] == 60


@pytest.mark.asyncio
async def test_funnel(client, db):
    await _seed(db)

    data = (await client.get("/api/analytics/funnel")).json()["data"]

    assert data["total_leads"] == 5
    stages = {row["status"]: row for row in data["funnel"]}
    assert set(stages) == {s.value for s in LeadStatus}
    assert stages["CONVERTED"] == {"status": "CONVERTED", "count": 2, "percentage": 40.0}
    assert stages["NEW"]["count"] == 0
    assert sum(row["count"] for row in data["funnel"]) == 5


@pytest.mark.asyncio
async def test_engagement(client, db):
    lead = await create_lead(db, persona=Persona.DEALER, engagement_score=0.3)
    for status in (InteractionStatus.SENT, InteractionStatus.SENT, InteractionStatus.FAILED):
        db.add(Interaction(
            lead_id=lead.id,
            type=InteractionType.INITIAL_RESPONSE,
            channel=Channel.WHATSAPP,
            direction=Direction.OUTBOUND,
            message="hello",
            status=status,
            meta={},
        ))
    await db.commit()

    data = (await client.get("/api/analytics/engagement")).json()["data"]

    channel_stats = {(r["channel"], r["status"]): r["count"] for r in data["channel_stats"]}
    assert channel_stats == {("WHATSAPP", "SENT"): 2, ("WHATSAPP", "FAILED"): 1}
    assert data["message_types"] == [{"type": "INITIAL_RESPONSE", "count": 3}]
    assert data["engagement_distribution"] == [{"persona": "DEALER", "avg_engagement_score": 0.3, "count": 1}]


@pytest.mark.asyncio
async def test_roi(client, db):
    await _seed(db)

    with patch("lead_orchestrator.core.config.settings.AVG_DEAL_VALUE", 800_000), \
         patch("lead_orchestrator.core.config.settings.MARKETING_SPEND", 1_000_000):
        data = (await client.get("/api/analytics/roi")).json()["data"]

    assert data["total_leads"] == 5
    assert data["converted_leads"] == 2
    assert data["lost_leads"] == 1
    assert data["capture_rate"] == 80.0
    assert data["conversion_rate"] == 40.0
    assert data["revenue"] == 1_600_000
    assert data["marketing_spend"] == 1_000_000
    assert data["roi"] == 60.0
    assert data["revenue_per_lead"] == 320_000
