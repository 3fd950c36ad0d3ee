# modules/portfolio/helpers.py
# Jinja filters for the public sections (also used by the admin lists).
from datetime import date, datetime
from typing import List, Optional, Tuple

DEFAULT_SITE_NAME = "My Portfolio"
PROJECTS_ON_PAGE = 6


def month_year(value) -> str:
    """date(2023, 1, 15) -> 'Jan 2023'"""
    if not value:
        return ""
    if isinstance(value, str):
        try:
            value = date.fromisoformat(value[:10])
        except ValueError:
            return value
    if isinstance(value, datetime):
        value = value.date()
    return value.strftime("%b %Y")


def date_range(start, end=None) -> str:
    """'Jan 2023 – Present' when there is no end date."""
    return f"{month_year(start)} – {month_year(end) if end else 'Present'}"


def split_rows(items: Optional[list]) -> Tuple[List, List]:
    """Two marquee rows: first half rounded up, then the rest."""
    items = list(items or [])
    half = (len(items) + 1) // 2
    return items[:half], items[half:]


def site_name(profile: Optional[dict]) -> str:
    return (profile or {}).get("name") or DEFAULT_SITE_NAME


def register_filters(app) -> None:
    app.jinja_env.filters.update(
        month_year=month_year,
        date_range=date_range,
        split_rows=split_rows,
        site_name=site_name,
    )
