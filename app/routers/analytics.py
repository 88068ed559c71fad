# app/routers/analytics.py
"""
Article analytics endpoints.

GET /api/articles        - List imported article metrics
GET /api/articles/stats  - Totals per source
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func
from sqlalchemy.orm import Session

from app import models
from app.auth import require_app_password
from app.database import get_db
from app.schemas.analytics import (
    ArticleListResponse,
    ArticleMetricItem,
    ArticleSort,
    ArticleStatsResponse,
    SourceStats,
)

router = APIRouter(prefix="/api/articles", tags=["analytics"], dependencies=[Depends(require_app_password)])

SORT_COLUMNS = {
    "date": models.ArticleMetric.published_date,
    "views": models.ArticleMetric.views,
    "open_rate": models.ArticleMetric.open_rate,
    "new_paid_subs": models.ArticleMetric.new_paid_subs,
}


@router.get("", response_model=ArticleListResponse)
def list_articles(
    db: Session = Depends(get_db),
    source: str | None = Query(None, description="Filter by source, e.g. ym"),
    sort: ArticleSort = Query("date", description="Sort column (descending)"),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
) -> ArticleListResponse:
    query = db.query(models.ArticleMetric)
    if source:
        query = query.filter(models.ArticleMetric.source == source)

    total = query.count()
    rows = (
        query.order_by(SORT_COLUMNS[sort].desc(), models.ArticleMetric.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return ArticleListResponse(
        articles=[ArticleMetricItem.model_validate(r) for r in rows],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/stats", response_model=ArticleStatsResponse)
def article_stats(db: Session = Depends(get_db)) -> ArticleStatsResponse:
    rows = (
        db.query(
            models.ArticleMetric.source,
            func.count(models.ArticleMetric.id),
            func.coalesce(func.sum(models.ArticleMetric.views), 0),
            func.coalesce(func.avg(models.ArticleMetric.open_rate), 0.0),
            func.coalesce(func.sum(models.ArticleMetric.new_paid_subs), 0),
        )
        .group_by(models.ArticleMetric.source)
        .order_by(models.ArticleMetric.source)
        .all()
    )
    return ArticleStatsResponse(
        sources=[
            SourceStats(
                source=source,
                article_count=count,
                total_views=int(views),
                avg_open_rate=round(float(open_rate), 4),
                total_new_paid_subs=int(paid),
            )
            for source, count, views, open_rate, paid in rows
        ]
    )
