"""Jinja2 filters for EPUB package templates."""

from datetime import date, datetime, timezone


def format_modified(value: datetime) -> str:
    """Format a datetime as an EPUB 3 ``dcterms:modified`` value.

    Naive datetimes are taken to be UTC.

    Examples:
        >>> format_modified(datetime(2026, 1, 29, 6, 51, 50))
        '2026-01-29T06:51:50Z'
    """
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%SZ")


def format_iso_date(value: date | str) -> str:
    """Format a date as ``YYYY-MM-DD``; strings pass through unchanged.

    Examples:
        >>> format_iso_date(date(2026, 1, 5))
        '2026-01-05'
    """
    if isinstance(value, str):
        return value
    return value.isoformat()[:10]


# Registry of all filters for easy registration with Jinja2
FILTERS = {
    "format_modified": format_modified,
    "format_iso_date": format_iso_date,
}
