"""Aggregate catalog and sales counters for the dashboard."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal
from typing import Annotated

from fastapi import Depends

from src.models.dashboard import DashboardStats
from src.services.storage.row_store import RowStore, RowStoreDependency


class DashboardService:
    def __init__(self, row_store: RowStore) -> None:
        self._row_store = row_store

    async def stats(self, now: datetime | None = None) -> DashboardStats:
        now = now or datetime.now(UTC)
        day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)

        product_count = await self._row_store.count_products()
        orders = await self._row_store.orders_since(day_start)
        revenue = sum((Decimal(order["total"]) for order in orders), Decimal("0"))

        return DashboardStats(
            product_count=product_count,
            orders_today=len(orders),
            revenue_today=revenue,
        )


def get_dashboard_service(row_store: RowStoreDependency) -> DashboardService:
    """FastAPI dependency factory."""

    return DashboardService(row_store)


DashboardServiceDependency = Annotated[DashboardService, Depends(get_dashboard_service)]
