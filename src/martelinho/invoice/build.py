"""Invoice data derived from a service record."""
from __future__ import annotations

from datetime import date
from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP

from pydantic import BaseModel, ConfigDict, Field

from martelinho.formatters import auth_code_for, capitalize_part
from martelinho.models import ServiceRecord

CENT = Decimal("0.01")


class InvoiceItem(BaseModel):
    """One line of the services table."""
    model_config = ConfigDict(extra="forbid")
    description: str
    value: float = Field(..., ge=0)


class Invoice(BaseModel):
    """Data printed on a service invoice.

    Attributes:
        client_name: Client's name.
        client_phone: Client's phone, when known.
        car_model: Vehicle model.
        car_plate: Vehicle plate.
        items: One item per repaired part.
        service_date: Date of the service.
        total: Service value.
        auth_code: Authentication code printed in the footer.
        order_number: Short order number derived from the service id.
        notes: Observations; the section is omitted when empty.
    """
    model_config = ConfigDict(extra="forbid")
    client_name: str
    client_phone: str | None = None
    car_model: str
    car_plate: str
    items: list[InvoiceItem]
    service_date: date
    total: float = Field(..., ge=0)
    auth_code: str
    order_number: str | None = None
    notes: str | None = None


def split_value(total: float, parts: int) -> list[float]:
    """Split `total` evenly in cents; the last share takes the leftover cents."""
    if parts <= 0:
        return []
    amount = Decimal(str(total)).quantize(CENT, rounding=ROUND_HALF_UP)
    share = (amount / parts).quantize(CENT, rounding=ROUND_DOWN)
    shares = [share] * (parts - 1)
    shares.append(amount - share * (parts - 1))
    return [float(s) for s in shares]


def service_to_invoice(record: ServiceRecord, client_phone: str | None = None) -> Invoice:
    """Build the invoice of a service, one item per repaired part."""
    values = split_value(record.service_value, len(record.repaired_parts))
    items = [
        InvoiceItem(description=capitalize_part(part), value=value)
        for part, value in zip(record.repaired_parts, values)
    ]
    return Invoice(
        client_name=record.client_name,
        client_phone=client_phone or None,
        car_model=record.car_model,
        car_plate=record.car_plate,
        items=items,
        service_date=record.service_date,
        total=record.service_value,
        auth_code=record.auth_code or auth_code_for(record.id),
        order_number=record.id[:8].upper() if record.id else None,
        notes=record.notes,
    )


def invoice_filename(invoice: Invoice) -> str:
    return f"nota-fiscal-{invoice.auth_code}.pdf"
