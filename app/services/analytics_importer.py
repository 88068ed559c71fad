# app/services/analytics_importer.py
"""
Import article performance numbers from newsletter CSV exports.

Expected columns (header row is skipped):
    title, date, views, open rate, new paid subscribers

Exports format numbers for humans ("1.2k", "45%", "Jan 17"), so each field
has a lenient parser. Rows without a title or a readable date are skipped
and counted. Rows are upserted on (title, published_date, source).
"""

import csv
import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from app import models

logger = logging.getLogger(__name__)

DEFAULT_YEAR = 2026

# Tried in order; formats without a year get DEFAULT_YEAR appended
_DATE_FORMATS = ("%B %d, %Y", "%b %d, %Y", "%m/%d/%Y")
_NO_YEAR_FORMATS = ("%b %d", "%B %d")


def parse_views(value: Optional[str]) -> int:
    """'1.2k' -> 1200, '3,456' -> 3456, junk -> 0."""
    if not value:
        return 0
    text = value.strip().lower().replace(",", "")
    multiplier = 1
    if text.endswith("k"):
        multiplier, text = 1000, text[:-1]
    elif text.endswith("m"):
        multiplier, text = 1_000_000, text[:-1]
    try:
        return round(float(text) * multiplier)
    except ValueError:
        return 0


def parse_open_rate(value: Optional[str]) -> float:
    """'45%' -> 0.45; percentages are always given out of 100."""
    if not value:
        return 0.0
    try:
        return float(value.strip().replace("%", "")) / 100
    except ValueError:
        return 0.0


def parse_int(value: Optional[str]) -> int:
    if not value:
        return 0
    match = re.match(r"-?\d+", value.strip().replace(",", ""))
    return int(match.group()) if match else 0


def parse_published_date(value: Optional[str], default_year: int = DEFAULT_YEAR) -> Optional[date]:
    """
    Parse the date formats seen in exports.

    Accepts ISO dates (with or without a time part), 'January 29, 2025',
    'Jan 29, 2025', '1/29/2025' and year-less 'Jan 17' (uses default_year).
    """
    if not value or not value.strip():
        return None
    text = re.sub(r"\s+", " ", value.strip())

    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        pass

    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    for fmt in _NO_YEAR_FORMATS:
        try:
            return datetime.strptime(f"{text} {default_year}", f"{fmt} %Y").date()
        except ValueError:
            continue

    return None


@dataclass
class ArticleRow:
    title: str
    published_date: date
    source: str
    views: int = 0
    open_rate: float = 0.0
    new_paid_subs: int = 0


@dataclass
class ImportResult:
    imported: int = 0
    updated: int = 0
    skipped: int = 0
    skipped_titles: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.imported + self.updated + self.skipped


def parse_rows(
    rows: Iterable[list[str]],
    source: str,
    default_year: int = DEFAULT_YEAR,
    result: Optional[ImportResult] = None,
) -> list[ArticleRow]:
    """Turn raw CSV rows (header already removed) into ArticleRows."""
    result = result if result is not None else ImportResult()
    parsed = []
    for fields in rows:
        if not any(f.strip() for f in fields):
            continue
        fields = fields + [""] * (5 - len(fields))
        title = fields[0].strip()
        published = parse_published_date(fields[1], default_year)
        if not title or published is None:
            result.skipped += 1
            result.skipped_titles.append(title or "(untitled)")
            logger.warning(f"Skipping row {title!r}: unreadable date {fields[1]!r}")
            continue
        parsed.append(
            ArticleRow(
                title=title,
                published_date=published,
                source=source,
                views=parse_views(fields[2]),
                open_rate=parse_open_rate(fields[3]),
                new_paid_subs=parse_int(fields[4]),
            )
        )
    return parsed


def upsert_articles(db: Session, articles: list[ArticleRow], result: Optional[ImportResult] = None) -> ImportResult:
    result = result if result is not None else ImportResult()
    for article in articles:
        existing = (
            db.query(models.ArticleMetric)
            .filter(
                models.ArticleMetric.title == article.title,
                models.ArticleMetric.published_date == article.published_date,
                models.ArticleMetric.source == article.source,
            )
            .first()
        )
        if existing:
            existing.views = article.views
            existing.open_rate = article.open_rate
            existing.new_paid_subs = article.new_paid_subs
            existing.updated_at = datetime.utcnow()
            result.updated += 1
        else:
            db.add(
                models.ArticleMetric(
                    title=article.title,
                    published_date=article.published_date,
                    source=article.source,
                    views=article.views,
                    open_rate=article.open_rate,
                    new_paid_subs=article.new_paid_subs,
                )
            )
            # Flush so a repeated row later in the same file updates instead of colliding
            db.flush()
            result.imported += 1
    db.commit()
    return result


def import_csv(db: Session, csv_path: str | Path, source: str, default_year: int = DEFAULT_YEAR) -> ImportResult:
    """Read one export file and upsert its rows."""
    path = Path(csv_path)
    result = ImportResult()
    with path.open(newline="", encoding="utf-8-sig") as f:
        reader = csv.reader(f)
        next(reader, None)  # header
        articles = parse_rows(reader, source, default_year, result)

    upsert_articles(db, articles, result)
    logger.info(
        f"Imported {path.name} as {source}: {result.imported} new, "
        f"{result.updated} updated, {result.skipped} skipped"
    )
    return result
