"""
Value formatting used while building the context and rendering loop items.

Dutch conventions: "15 januari 2024", "€ 1.234,56", "J.P.", IBANs in
blocks of four.
"""

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from config import DUTCH_MONTHS
from models import parse_date


def format_date(value: Any, fmt: Optional[str] = None) -> str:
    """Long Dutch date ("15 januari 2024"), or strftime(fmt) when given."""
    parsed = value if isinstance(value, date) else parse_date(value)
    if parsed is None:
        return ""
    if isinstance(parsed, datetime):
        parsed = parsed.date()
    if fmt:
        return parsed.strftime(fmt)
    return f"{parsed.day} {DUTCH_MONTHS[parsed.month - 1]} {parsed.year}"


def format_currency(value: Any) -> str:
    """€ 1.234,56 (empty for missing or non-numeric input)"""
    if value is None or value == "":
        return ""
    try:
        amount = Decimal(str(value).replace("€", "").strip())
    except InvalidOperation:
        # Already formatted upstream
        return str(value)
    text = f"{amount:,.2f}"  # 1,234.56
    text = text.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"€ {text}"


def format_full_name(first_names: str, prefix: Optional[str], surname: str) -> str:
    """Jan, van der, Berg -> 'Jan van der Berg'"""
    return " ".join(part.strip() for part in (first_names, prefix, surname) if part and part.strip())


def format_surname(prefix: Optional[str], surname: str) -> str:
    return " ".join(part.strip() for part in (prefix, surname) if part and part.strip())


def format_initials(first_names: Optional[str]) -> str:
    """'Jan Peter Marie' -> 'J.P.M.'"""
    if not first_names:
        return ""
    return "".join(f"{name[0].upper()}." for name in first_names.split() if name)


def format_address(street: Optional[str], postal_code: Optional[str], city: Optional[str]) -> str:
    """'Kerkstraat 1, 1234 AB Amsterdam'"""
    place = " ".join(part for part in (postal_code, city) if part)
    return ", ".join(part for part in (street, place) if part)


_IBAN_CHARS = re.compile(r'\s+')


def format_iban(value: Optional[str]) -> str:
    """NL91ABNA0417164300 -> 'NL91 ABNA 0417 1643 00'; already grouped input is unchanged."""
    if not value:
        return ""
    compact = _IBAN_CHARS.sub("", value).upper()
    return " ".join(compact[i:i + 4] for i in range(0, len(compact), 4))


def humanize_code(value: Optional[str]) -> str:
    """'doorlopend_krediet' -> 'Doorlopend krediet'"""
    if not value:
        return ""
    text = value.replace("_", " ").strip()
    return text[:1].upper() + text[1:]
