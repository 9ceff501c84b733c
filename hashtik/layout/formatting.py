"""
Text formatting for card fields.
Pure functions - no rendering imports.
"""

from __future__ import annotations

import re
from datetime import date

NO_PASSWORD_TEXT = "(no password)"

_HEX_RE = re.compile(r"^#?([a-f\d]{2})([a-f\d]{2})([a-f\d]{2})$", re.IGNORECASE)

_ARABIC_INDIC_DIGITS = str.maketrans("0123456789", "٠١٢٣٤٥٦٧٨٩")
_ASCII_DIGITS = str.maketrans("٠١٢٣٤٥٦٧٨٩", "0123456789")
_RLM = "\u200f"


def hex_to_rgb(color: str) -> tuple[int, int, int]:
    """Parse ``#rrggbb`` (hash optional). Anything else is black."""
    match = _HEX_RE.match(color or "")
    if not match:
        return (0, 0, 0)
    return tuple(int(part, 16) for part in match.groups())  # type: ignore[return-value]


def password_text(password: str) -> str:
    """Printed password; empty passwords get a placeholder."""
    return password or NO_PASSWORD_TEXT


def serial_text(serial_start_number: int, card_index: int) -> str:
    return str(serial_start_number + card_index)


def format_card_date(day: date, locale: str = "ar-EG") -> str:
    """Format *day* for printing.

    ``ar-EG`` matches the browser rendering of that locale: day/month/year,
    Arabic-Indic digits, a right-to-left mark after day and month
    (``\u0661\u0667\u200f/...``).  ``iso`` gives ``2026-10-17``.
    """
    if locale == "iso":
        return day.isoformat()
    if locale == "ar-EG":
        text = f"{day.day}{_RLM}/{day.month}{_RLM}/{day.year}"
        return text.translate(_ARABIC_INDIC_DIGITS)
    raise ValueError(f"Unsupported date locale: {locale!r}")


def latin1_text(text: str) -> str:
    """Rendition of *text* drawable with a Latin-1 core font.

    Arabic-Indic digits become ASCII digits, bidi marks are dropped and
    any other unencodable character becomes ``?``.  Preview and export
    both apply this when no TrueType font is configured, so they show the
    same characters.
    """
    text = text.translate(_ASCII_DIGITS).replace(_RLM, "").replace("\u200e", "")
    return text.encode("latin-1", errors="replace").decode("latin-1")
