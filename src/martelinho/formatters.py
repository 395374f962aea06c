"""Display formatting for Brazilian Portuguese screens and documents."""

from __future__ import annotations

import hashlib
import re
import secrets
import string
from datetime import date
from typing import Any, Iterable

from martelinho.dates import MONTH_NAMES, as_calendar_date

_AUTH_CODE_ALPHABET = string.ascii_uppercase + string.digits


def format_currency(value: float) -> str:
    """Format a value as BRL: ``R$ 1.234,56`` / ``-R$ 1.234,56``."""
    text = f"R$ {abs(float(value)):,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")
    return f"-{text}" if value < 0 else text


def format_date(value: Any) -> str:
    """Format a calendar date as ``dd/MM/yyyy``; unreadable input gives ``Data inválida``."""
    try:
        return as_calendar_date(value).strftime("%d/%m/%Y")
    except ValueError:
        return "Data inválida"


def format_long_date(value: date) -> str:
    """Format as ``10 de fevereiro de 2024``."""
    return f"{value.day:02d} de {MONTH_NAMES[value.month - 1]} de {value.year}"


def capitalize_part(part: str) -> str:
    part = part.strip()
    return part[:1].upper() + part[1:].lower()


def format_repaired_parts(parts: Iterable[str] | None) -> str:
    """Join parts for display, capitalized; ``-`` when there are none."""
    formatted = [capitalize_part(p) for p in (parts or []) if p and p.strip()]
    return ", ".join(formatted) if formatted else "-"


def format_growth(value: float | None) -> str:
    """Format a growth percentage; ``-`` when not applicable."""
    if value is None:
        return "-"
    sign = "+" if value > 0 else ""
    return f"{sign}{value:.1f}%".replace(".", ",")


def format_phone(value: str) -> str:
    """Mask a phone number as it is typed: ``(11) 91234-5678``."""
    numbers = re.sub(r"\D", "", value)
    if not numbers:
        return ""
    if len(numbers) <= 2:
        return f"({numbers}"
    if len(numbers) <= 6:
        return f"({numbers[:2]}) {numbers[2:]}"
    if len(numbers) <= 10:
        return f"({numbers[:2]}) {numbers[2:6]}-{numbers[6:]}"
    return f"({numbers[:2]}) {numbers[2:7]}-{numbers[7:11]}"


def generate_auth_code() -> str:
    """Return a service authentication code such as ``AC4K9Z2Q``."""
    return "AC" + "".join(secrets.choice(_AUTH_CODE_ALPHABET) for _ in range(6))


def auth_code_for(service_id: str) -> str:
    """Return a stable authentication code derived from a service id.

    Used for records stored without an `auth_code`, so the same service
    always prints the same code.
    """
    digest = hashlib.sha256(service_id.encode("utf-8")).digest()
    return "AC" + "".join(_AUTH_CODE_ALPHABET[b % len(_AUTH_CODE_ALPHABET)] for b in digest[:6])
