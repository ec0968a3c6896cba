"""Dashboard counters."""

from __future__ import annotations

from fastapi import APIRouter

from src.models.dashboard import DashboardStats
from src.services.dashboard import DashboardServiceDependency

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get(
    "/stats",
    response_model=DashboardStats,
    summary="Product count plus today's order count and revenue",
)
async def read_stats(service: DashboardServiceDependency) -> DashboardStats:
    return await service.stats()
