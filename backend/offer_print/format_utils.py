"""Consistent formatting for offer amounts and dates. Never render raw floats."""
from __future__ import annotations

import math
import re
from datetime import date, datetime
from typing import Any

CURRENCY_LABELS = {"en": "EGP", "ar": "جنيه"}
MAX_FRACTION_DIGITS = 3


def numeric_or_none(value: Any) -> float | None:
    if value in (None, "") or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        parsed = float(value)
        if not math.isfinite(parsed):
            return None
        return parsed
    text = str(value).strip()
    if not text:
        return None
    # Accepts display forms such as "1,234.5 EGP"
    match = re.search(r"-?\d+(?:,\d{3})*(?:\.\d+)?", text)
    if not match:
        return None
    try:
        parsed = float(match.group(0).replace(",", ""))
    except ValueError:
        return None
    return parsed if math.isfinite(parsed) else None


def format_amount(value: Any) -> str:
    """Group digits en-US style with up to three fraction digits: 1234.5 -> '1,234.5'."""
    n = numeric_or_none(value)
    if n is None:
        n = 0.0
    text = f"{round(n, MAX_FRACTION_DIGITS):,.{MAX_FRACTION_DIGITS}f}"
    text = text.rstrip("0").rstrip(".")
    if text in ("-0", ""):
        return "0"
    return text


def format_currency(value: Any, language: str = "en") -> str:
    label = CURRENCY_LABELS.get(language, CURRENCY_LABELS["en"])
    return f"{format_amount(value)} {label}"


def parse_date(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value:
        return None
    text = str(value).strip()
    if not text:
        return None
    for candidate in (text.replace("Z", "+00:00"), text[:10]):
        try:
            return datetime.fromisoformat(candidate).date()
        except ValueError:
            continue
    for fmt in ("%d/%m/%Y", "%m/%d/%Y", "%d.%m.%Y", "%Y/%m/%d", "%d-%m-%Y"):
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def format_date(value: Any) -> str:
    """dd/mm/yyyy for every language."""
    if value is None:
        return "—"
    d = parse_date(value)
    if d is not None:
        return d.strftime("%d/%m/%Y")
    text = str(value).strip()
    return text or "—"
