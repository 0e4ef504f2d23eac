"""
Report Date Normalization

Automation passes the report date as free text. These helpers turn it into a
calendar date or None, never raising.
"""

import re
from datetime import date, datetime
from typing import Optional

ISO_DATE_LENGTH = 10

_ISO_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def clean_report_date_text(raw: Optional[str]) -> str:
    """
    Normalize the raw text before parsing.

    None becomes an empty string, CR/LF characters are removed wherever they
    occur and surrounding whitespace is stripped. Any text containing a "T"
    (either case) is cut to its first 10 characters so that
    "2023-12-29T07:00:00Z" yields "2023-12-29".
    """
    txt = (raw or "").replace("\r", "").replace("\n", "").strip()
    if "T" in txt.upper():
        txt = txt[:ISO_DATE_LENGTH]
    return txt


def parse_iso_date(txt: str) -> Optional[date]:
    """Strict YYYY-MM-DD parse; None for anything else, including impossible dates"""
    if not _ISO_DATE_RE.fullmatch(txt):
        return None
    try:
        return datetime.strptime(txt, "%Y-%m-%d").date()
    except ValueError:
        return None


def normalize_report_date(raw: Optional[str]) -> Optional[date]:
    """
    Convert automation input into a report date.

    Args:
        raw: Text date; may be None, blank, a plain date or an ISO timestamp

    Returns:
        The parsed date, or None when the input is not a valid date

    Example:
        >>> normalize_report_date(" 2023-12-29T07:00:00Z\\r\\n")
        datetime.date(2023, 12, 29)
        >>> normalize_report_date("not-a-date") is None
        True
    """
    return parse_iso_date(clean_report_date_text(raw))
