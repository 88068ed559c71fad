# app/schemas/analytics.py
"""
Schemas for article analytics endpoints.

GET /api/articles        - Paginated list of imported article metrics
GET /api/articles/stats  - Per-source totals
"""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

ArticleSort = Literal["date", "views", "open_rate", "new_paid_subs"]


class ArticleMetricItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    published_date: date
    source: str
    views: int = 0
    open_rate: float = Field(0.0, description="Fraction, e.g. 0.45 for 45%")
    new_paid_subs: int = 0
    new_free_subs: int = 0
    estimated_revenue: float = 0.0
    engagement_rate: float = 0.0
    recipients: int = 0
    shares: int = 0
    article_type: str = "essay"
    author: str | None = None
    updated_at: datetime | None = None


class ArticleListResponse(BaseModel):
    articles: list[ArticleMetricItem]
    total: int = Field(..., description="Rows matching the filter, ignoring limit/offset")
    limit: int
    offset: int


class SourceStats(BaseModel):
    source: str
    article_count: int
    total_views: int
    avg_open_rate: float
    total_new_paid_subs: int


class ArticleStatsResponse(BaseModel):
    sources: list[SourceStats]
