# app/cli/import_articles.py
"""
Import article analytics from a newsletter CSV export.

Usage:
    python -m app.cli.import_articles data/ym-articles.csv --source ym
    python -m app.cli.import_articles data/persuasion.csv --source persuasion --default-year 2025
"""

import argparse
import sys

from dotenv import load_dotenv
load_dotenv()


def get_db_session():
    """Get a database session (creates tables on first use)."""
    from app.database import SessionLocal, init_db
    init_db()
    return SessionLocal()


def run(csv_path: str, source: str, default_year: int) -> int:
    from app.services.analytics_importer import import_csv

    db = get_db_session()
    try:
        result = import_csv(db, csv_path, source, default_year=default_year)
    except FileNotFoundError:
        print(f"CSV not found: {csv_path}")
        return 1
    finally:
        db.close()

    print(f"Imported {result.imported} new articles, updated {result.updated}, skipped {result.skipped}")
    for title in result.skipped_titles:
        print(f"  skipped: {title}")
    return 0


def main():
    from app.services.analytics_importer import DEFAULT_YEAR

    parser = argparse.ArgumentParser(description="Import article analytics from a CSV export")
    parser.add_argument("csv_path", help="Path to the CSV export")
    parser.add_argument("--source", required=True, help="Publication key, e.g. ym or persuasion")
    parser.add_argument(
        "--default-year",
        type=int,
        default=DEFAULT_YEAR,
        help=f"Year for dates like 'Jan 17' (default {DEFAULT_YEAR})",
    )
    args = parser.parse_args()

    sys.exit(run(args.csv_path, args.source, args.default_year))


if __name__ == "__main__":
    main()
