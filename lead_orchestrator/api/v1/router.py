from fastapi import APIRouter
from lead_orchestrator.api.v1.endpoints import webhooks, dashboard, analytics

api_router = APIRouter()
api_router.include_router(webhooks.router, prefix="/webhook", tags=["webhook"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
api_router.include_router(analytics.router, prefix="/analytics", tags=["analytics"])
