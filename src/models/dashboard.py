"""Dashboard response schema."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field


class DashboardStats(BaseModel):
    """Plain counters shown on the console landing page."""

    product_count: int = Field(..., ge=0)
    orders_today: int = Field(..., ge=0)
    revenue_today: Decimal = Field(..., description="Sum of today's order totals")
