"""Validation utilities for documents read from the `services` collection.

Older documents carry loosely-typed fields: monetary values stored as
strings, a single `repaired_part` string instead of the `repaired_parts`
list, or parts stored as an object. This module normalizes those shapes
and validates each document against `ServiceRecord`, so code downstream of
the repository only ever sees well-typed records.
"""
from __future__ import annotations

import logging
import math
from decimal import Decimal
from typing import Any, Iterable

from pydantic import ValidationError

from martelinho.models import ServiceRecord

log = logging.getLogger(__name__)


def parse_money(value: Any) -> float | None:
    """Parse a monetary value stored as a number or a numeric string.

    Accepts ``150``, ``"150.5"``, ``"1,234.56"`` and the Brazilian
    ``"1.234,56"`` form. A comma is the decimal separator only when it comes
    after the last dot.

    Returns:
        The value as float, or ``None`` when it cannot be read as a finite
        number.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip().replace("R$", "").replace(" ", "")
        if text.rfind(",") > text.rfind("."):
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", "")
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def normalize_parts(doc: dict[str, Any]) -> list[str]:
    """Return the repaired parts of a document as a list of strings."""
    parts = doc.get("repaired_parts")
    if parts is None and doc.get("repaired_part"):
        parts = doc["repaired_part"]

    if isinstance(parts, str):
        parts = [parts]
    elif isinstance(parts, dict):
        parts = [v for v in parts.values() if v]
    elif not isinstance(parts, (list, tuple)):
        return []

    return [str(p).strip() for p in parts if p is not None and str(p).strip()]


def normalize_document(doc: dict[str, Any]) -> dict[str, Any]:
    """Convert a raw `services` document into `ServiceRecord` input."""
    rec = dict(doc)
    if "id" not in rec and "_id" in rec:
        rec["id"] = str(rec["_id"])
    rec.pop("_id", None)

    value = parse_money(rec.get("service_value"))
    if value is None:
        log.warning(
            "Service %s has a malformed service_value %r; counting it as 0",
            rec.get("id"),
            rec.get("service_value"),
        )
        value = 0.0
    rec["service_value"] = value
    rec["repaired_parts"] = normalize_parts(rec)
    rec.pop("repaired_part", None)
    if "observacoes" in rec and not rec.get("notes"):
        rec["notes"] = rec.pop("observacoes")
    return rec


def validate_documents(docs: Iterable[dict[str, Any]]) -> tuple[list[ServiceRecord], int]:
    """Validate raw documents using Pydantic.

    Args:
        docs: Documents as returned by the `services` collection.

    Returns:
        A tuple of (list_of_validated_records, bad_count).
    """
    good: list[ServiceRecord] = []
    bad = 0

    for doc in docs:
        try:
            good.append(ServiceRecord.model_validate(normalize_document(doc)))
        except ValidationError as exc:
            log.warning("Skipping invalid service document %s: %s", doc.get("_id", doc.get("id")), exc)
            bad += 1

    return good, bad
