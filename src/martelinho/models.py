"""Pydantic models used for service records, report outputs and accounts.

These models define the strict shapes the rest of the application relies
on. Raw storage documents are normalized and validated into `ServiceRecord`
once, right after they are fetched (see `martelinho.services.validate`).
"""

from __future__ import annotations

from datetime import date, datetime
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator

from martelinho.dates import as_calendar_date

REPAIRED_PARTS: tuple[str, ...] = (
    "capo",
    "teto",
    "tampa traseira",
    "paralama dianteiro esquerdo",
    "paralama dianteiro direito",
    "porta dianteira esquerda",
    "porta dianteira direita",
    "porta traseira esquerda",
    "porta traseira direita",
    "lateral traseira esquerda",
    "lateral traseira direita",
    "parachoque dianteiro",
    "parachoque traseiro",
    "coluna lado esquerdo",
    "coluna lado direito",
    "polimento",
    "pintura",
    "outros",
)


def _validate_parts(parts: list[str]) -> list[str]:
    seen: list[str] = []
    for part in parts:
        key = part.strip().lower()
        if key not in REPAIRED_PARTS:
            raise ValueError(f"unknown repaired part: {part!r}")
        if key not in seen:
            seen.append(key)
    return seen


class ServiceDraft(BaseModel):
    """Schema for the service form (create and edit).

    Attributes:
        client_name: Client's name.
        service_date: Calendar date the service was performed.
        car_plate: Vehicle plate.
        car_model: Vehicle model.
        service_value: Amount charged, in BRL.
        repaired_parts: One or more parts from `REPAIRED_PARTS`.
        notes: Optional observations printed on the invoice.
    """
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)
    client_name: str = Field(..., min_length=1)
    service_date: date
    car_plate: str = Field(..., min_length=1)
    car_model: str = Field(..., min_length=1)
    service_value: float = Field(..., ge=0)
    repaired_parts: list[str] = Field(..., min_length=1)
    notes: str | None = None

    @field_validator("repaired_parts")
    @classmethod
    def _known_parts(cls, parts: list[str]) -> list[str]:
        return _validate_parts(parts)

    @field_validator("service_date", mode="before")
    @classmethod
    def _calendar_date(cls, value: object) -> object:
        return value if value is None else as_calendar_date(value)

    @field_validator("notes")
    @classmethod
    def _blank_notes(cls, notes: str | None) -> str | None:
        return notes or None


class ServiceRecord(BaseModel):
    """Schema for a stored service record owned by one tenant."""
    model_config = ConfigDict(extra="ignore")
    id: str
    tenant_id: str
    client_name: str
    service_date: date
    car_plate: str
    car_model: str
    service_value: float = Field(..., ge=0)
    repaired_parts: list[str] = Field(..., min_length=1)
    created_at: datetime
    updated_at: datetime
    auth_code: str | None = None
    notes: str | None = None

    @field_validator("service_date", mode="before")
    @classmethod
    def _calendar_date(cls, value: object) -> object:
        return value if value is None else as_calendar_date(value)

    @field_validator("repaired_parts")
    @classmethod
    def _known_parts(cls, parts: list[str]) -> list[str]:
        return _validate_parts(parts)


class TimeWindow(BaseModel):
    """A named, inclusive calendar-date range used as an aggregation bucket."""
    model_config = ConfigDict(extra="forbid", frozen=True)
    label: str
    start: date
    end: date

    @model_validator(mode="after")
    def _ordered(self) -> "TimeWindow":
        if self.start > self.end:
            raise ValueError(f"window {self.label!r} starts after it ends")
        return self

    def contains(self, value: date) -> bool:
        return self.start <= value <= self.end


class PeriodSummary(BaseModel):
    """Total value and number of services for one time window."""
    model_config = ConfigDict(extra="forbid", frozen=True)
    period: str
    total: float = Field(..., ge=0)
    count: int = Field(..., ge=0)

    @property
    def average(self) -> float:
        return self.total / self.count if self.count else 0.0


class MonthDetail(BaseModel):
    """Records of one calendar month with their total and average value.

    `total`, `count` and `average` cover every stored service of the month,
    the same figures the monthly summary reports. `records` holds only the
    documents that parse as `ServiceRecord`, so it can be shorter than
    `count`.
    """
    model_config = ConfigDict(extra="forbid")
    month: TimeWindow
    records: list[ServiceRecord]
    total: float = Field(..., ge=0)
    count: int = Field(..., ge=0)
    average: float = Field(..., ge=0)

    @property
    def skipped(self) -> int:
        return self.count - len(self.records)


class UserProfile(BaseModel):
    """Account owner; the profile id is the tenant id of their records."""
    model_config = ConfigDict(extra="ignore")
    id: str
    email: str
    full_name: str
    company_name: str
    phone: str = ""
    created_at: datetime
    updated_at: datetime


class Session(BaseModel):
    """A signed-in user."""
    model_config = ConfigDict(extra="forbid", frozen=True)
    user: UserProfile
    signed_in_at: datetime

    @property
    def tenant_id(self) -> str:
        return self.user.id
