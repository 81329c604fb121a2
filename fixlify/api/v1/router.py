"""API v1 router aggregation."""

from fastapi import APIRouter

from fixlify.api.v1.endpoints import automations, health, workflows

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(automations.router, prefix="/automations", tags=["automations"])
api_router.include_router(workflows.router, prefix="/workflows", tags=["workflows"])
