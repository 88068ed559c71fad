# app/models.py
"""
Article analytics models.

Tables:
- ArticleMetric: per-article performance numbers imported from newsletter
  platform CSV exports, one row per (title, published_date, source)
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)

from app.database import Base


class ArticleType(str, Enum):
    ESSAY = "essay"
    INTERVIEW = "interview"
    PODCAST = "podcast"
    ROUNDUP = "roundup"


class ArticleMetric(Base):
    """
    Performance numbers for one published article.

    Re-importing an export overwrites the counters of an existing row rather
    than adding a duplicate.
    """
    __tablename__ = "articles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(Text, nullable=False)
    published_date = Column(Date, nullable=False)
    source = Column(String(64), nullable=False)  # e.g., "ym", "persuasion"

    # Counters from the export
    views = Column(Integer, default=0, nullable=False)
    open_rate = Column(Float, default=0.0, nullable=False)  # 0.45 == 45%
    new_paid_subs = Column(Integer, default=0, nullable=False)
    new_free_subs = Column(Integer, default=0, nullable=False)
    estimated_revenue = Column(Float, default=0.0, nullable=False)
    engagement_rate = Column(Float, default=0.0, nullable=False)
    recipients = Column(Integer, default=0, nullable=False)
    shares = Column(Integer, default=0, nullable=False)

    article_type = Column(String(32), default=ArticleType.ESSAY.value, nullable=False)
    author = Column(String(255), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("title", "published_date", "source", name="uq_article_title_date_source"),
        Index("ix_articles_source_date", "source", "published_date"),
    )

    def __repr__(self) -> str:
        return f"<ArticleMetric {self.source}:{self.published_date} {self.title[:40]!r}>"
