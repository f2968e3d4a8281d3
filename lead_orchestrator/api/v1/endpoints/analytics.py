"""Analytics endpoints for reporting.

- GET /api/analytics/conversion-rates → overall, by persona, by intent
- GET /api/analytics/response-times → minutes to first contact
- GET /api/analytics/funnel → leads per status
- GET /api/analytics/engagement → channel and message-type activity
- GET /api/analytics/roi → revenue against marketing spend

Rates are percentages rounded to two decimals.
"""

import logging
from collections import defaultdict
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lead_orchestrator.core.config import settings
from lead_orchestrator.core.database import get_db
from lead_orchestrator.models.interaction import Interaction
from lead_orchestrator.models.lead import Lead, LeadStatus

router = APIRouter()
logger = logging.getLogger(__name__)


def _percent(part: int, whole: int) -> float:
    return round(part / whole * 100, 2) if whole else 0.0


def _value(enum_member) -> Optional[str]:
    return enum_member.value if enum_member is not None else None


@router.get("/conversion-rates")
async def conversion_rates(
    start_date: Optional[datetime] = Query(None, description="Only leads created at or after"),
    end_date: Optional[datetime] = Query(None, description="Only leads created at or before"),
    db: AsyncSession = Depends(get_db),
):
    """Share of leads that reached CONVERTED, overall and per segment."""
    filters = []
    if start_date:
        filters.append(Lead.created_at >= start_date)
    if end_date:
        filters.append(Lead.created_at <= end_date)

    is_converted = func.sum(case((Lead.status == LeadStatus.CONVERTED, 1), else_=0))

    async def segment(column):
        rows = await db.execute(
            select(column, func.count(Lead.id), is_converted).where(*filters).group_by(column)
        )
        return [
            {
                column.key: _value(key),
                "total": total,
                "converted": converted or 0,
                "rate": _percent(converted or 0, total),
            }
            for key, total, converted in rows.all()
        ]

    overall_total, overall_converted = (
        await db.execute(select(func.count(Lead.id), is_converted).where(*filters))
    ).one()
    overall_converted = overall_converted or 0

    return {
        "success": True,
        "data": {
            "overall": {
                "total": overall_total,
                "converted": overall_converted,
                "rate": _percent(overall_converted, overall_total),
            },
            "by_persona": await segment(Lead.persona),
            "by_intent": await segment(Lead.intent),
        },
    }


@router.get("/response-times")
async def response_times(db: AsyncSession = Depends(get_db)):
    """Average minutes from lead creation to last contact."""
    rows = await db.execute(
        select(Lead.persona, Lead.priority, Lead.created_at, Lead.last_contacted_at).where(
            Lead.last_contacted_at.is_not(None)
        )
    )

    by_persona = defaultdict(list)
    by_priority = defaultdict(list)
    for persona, priority, created_at, last_contacted_at in rows.all():
        minutes = (last_contacted_at - created_at).total_seconds() / 60
        if persona:
            by_persona[persona.value].append(minutes)
        by_priority[priority.value].append(minutes)

    def summarize(groups, key):
        return [
            {key: name, "avg_minutes": round(sum(times) / len(times)), "count": len(times)}
            for name, times in groups.items()
        ]

    return {
        "success": True,
        "data": {
            "by_persona": summarize(by_persona, "persona"),
            "by_priority": summarize(by_priority, "priority"),
        },
    }


@router.get("/funnel")
async def funnel(db: AsyncSession = Depends(get_db)):
    counts = dict((await db.execute(select(Lead.status, func.count(Lead.id)).group_by(Lead.status))).all())
    total = sum(counts.values())
    stages = [
        {"status": status.value, "count": counts.get(status, 0), "percentage": _percent(counts.get(status, 0), total)}
        for status in LeadStatus
    ]
    return {"success": True, "data": {"funnel": stages, "total_leads": total}}


@router.get("/engagement")
async def engagement(db: AsyncSession = Depends(get_db)):
    channel_rows = await db.execute(
        select(Interaction.channel, Interaction.status, func.count(Interaction.id)).group_by(
            Interaction.channel, Interaction.status
        )
    )
    type_rows = await db.execute(
        select(Interaction.type, func.count(Interaction.id)).group_by(Interaction.type)
    )
    persona_rows = await db.execute(
        select(Lead.persona, func.avg(Lead.engagement_score), func.count(Lead.id)).group_by(Lead.persona)
    )

    return {
        "success": True,
        "data": {
            "channel_stats": [
                {"channel": channel.value, "status": status.value, "count": count}
                for channel, status, count in channel_rows.all()
            ],
            "message_types": [{"type": t.value, "count": count} for t, count in type_rows.all()],
            "engagement_distribution": [
                {
                    "persona": _value(persona),
                    "avg_engagement_score": round(float(avg or 0.0), 2),
                    "count": count,
                }
                for persona, avg, count in persona_rows.all()
            ],
        },
    }


@router.get("/roi")
async def roi(db: AsyncSession = Depends(get_db)):
    """Revenue from converted leads against configured marketing spend."""
    counts = dict((await db.execute(select(Lead.status, func.count(Lead.id)).group_by(Lead.status))).all())
    total = sum(counts.values())
    converted = counts.get(LeadStatus.CONVERTED, 0)
    lost = counts.get(LeadStatus.LOST, 0)

    revenue = converted * settings.AVG_DEAL_VALUE
    spend = settings.MARKETING_SPEND
    roi_percent = round((revenue - spend) / spend * 100, 2) if spend else 0.0

    return {
        "success": True,
        "data": {
            "total_leads": total,
            "converted_leads": converted,
            "lost_leads": lost,
            "capture_rate": _percent(total - lost, total),
            "conversion_rate": _percent(converted, total),
            "revenue": revenue,
            "marketing_spend": spend,
            "roi": roi_percent,
            "revenue_per_lead": round(revenue / total) if total else 0,
        },
    }
