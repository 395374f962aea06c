"""Tenant-scoped repository over the `services` MongoDB collection.

Every read and write is filtered by an explicit `tenant_id`; the repository
never infers the tenant from a signed-in user. Dates are stored as
``yyyy-MM-dd`` strings, which sort and compare lexicographically in the same
order as the dates themselves, so range filters work directly on them. Older
documents may carry a time suffix (``2024-02-29T12:00:00Z``); the upper bound
is exclusive on the following day so those still fall in their calendar day.

Any `PyMongoError` surfaces as `StorageUnavailableError`.
"""
from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterator, Sequence

from pymongo import DESCENDING
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from martelinho.dates import to_query_date
from martelinho.formatters import generate_auth_code
from martelinho.models import ServiceDraft, ServiceRecord
from martelinho.services.validate import validate_documents

log = logging.getLogger(__name__)


class StorageUnavailableError(RuntimeError):
    """A storage query failed; the caller's request cannot be completed."""


class ServiceNotFoundError(LookupError):
    """No service with the given id exists for the tenant."""


@contextmanager
def storage_errors(action: str) -> Iterator[None]:
    """Re-raise PyMongo failures as `StorageUnavailableError`."""
    try:
        yield
    except PyMongoError as exc:
        log.error("Storage failure while %s: %s", action, exc)
        raise StorageUnavailableError(f"Erro ao {action}: {exc}") from exc


def _require_tenant(tenant_id: str) -> str:
    if not tenant_id:
        raise ValueError("tenant_id is required")
    return tenant_id


class ServiceRepository:
    """CRUD and range queries for one `services` collection.

    Args:
        collection: PyMongo collection holding service documents.
    """

    def __init__(self, collection: Collection[dict[str, Any]]) -> None:
        self._collection = collection

    # --------------------------------------------------
    # Reads
    # --------------------------------------------------
    def find_in_range(
        self,
        tenant_id: str,
        start: date,
        end: date,
        fields: Sequence[str] | None = None,
    ) -> list[dict[str, Any]]:
        """Return raw documents whose `service_date` is within [start, end].

        Args:
            tenant_id: Owner of the documents.
            start: Inclusive lower bound.
            end: Inclusive upper bound.
            fields: Optional column selection; ``None`` returns whole documents.
        """
        query = {
            "tenant_id": _require_tenant(tenant_id),
            "service_date": {
                "$gte": to_query_date(start),
                "$lt": to_query_date(end + timedelta(days=1)),
            },
        }
        projection = {f: 1 for f in fields} if fields else None
        with storage_errors("buscar serviços do período"):
            return list(self._collection.find(query, projection))

    def list_services(self, tenant_id: str) -> list[ServiceRecord]:
        """Return all validated records of a tenant sorted by date descending."""
        with storage_errors("carregar os serviços"):
            docs = list(
                self._collection.find({"tenant_id": _require_tenant(tenant_id)}).sort(
                    "service_date", DESCENDING
                )
            )
        records, bad = validate_documents(docs)
        if bad:
            log.warning("Ignored %d invalid service documents for tenant %s", bad, tenant_id)
        return records

    def get_service(self, tenant_id: str, service_id: str) -> ServiceRecord:
        """Return one record of the tenant.

        Raises:
            ServiceNotFoundError: if the id does not exist for the tenant or
                the stored document is not a valid record.
        """
        with storage_errors("buscar o serviço"):
            doc = self._collection.find_one(
                {"_id": service_id, "tenant_id": _require_tenant(tenant_id)}
            )
        if doc is None:
            raise ServiceNotFoundError(service_id)
        records, _ = validate_documents([doc])
        if not records:
            raise ServiceNotFoundError(service_id)
        return records[0]

    # --------------------------------------------------
    # Writes
    # --------------------------------------------------
    def create_service(
        self,
        tenant_id: str,
        draft: ServiceDraft,
        now: datetime | None = None,
    ) -> ServiceRecord:
        """Insert a new service for the tenant and return the stored record."""
        now = now or datetime.now(timezone.utc)
        service_id = str(uuid.uuid4())
        doc = {
            "_id": service_id,
            "tenant_id": _require_tenant(tenant_id),
            **_draft_fields(draft),
            "auth_code": generate_auth_code(),
            "created_at": now,
            "updated_at": now,
        }
        with storage_errors("cadastrar o serviço"):
            self._collection.insert_one(doc)
        log.info("Service %s created for tenant %s", service_id, tenant_id)
        return ServiceRecord.model_validate({**doc, "id": service_id})

    def update_service(
        self,
        tenant_id: str,
        service_id: str,
        draft: ServiceDraft,
        now: datetime | None = None,
    ) -> ServiceRecord:
        """Replace the editable fields of an existing service.

        Raises:
            ServiceNotFoundError: if the id does not exist for the tenant.
        """
        now = now or datetime.now(timezone.utc)
        with storage_errors("atualizar o serviço"):
            result = self._collection.update_one(
                {"_id": service_id, "tenant_id": _require_tenant(tenant_id)},
                {"$set": {**_draft_fields(draft), "updated_at": now}},
            )
        if result.matched_count == 0:
            raise ServiceNotFoundError(service_id)
        log.info("Service %s updated for tenant %s", service_id, tenant_id)
        return self.get_service(tenant_id, service_id)

    def delete_service(self, tenant_id: str, service_id: str) -> None:
        """Delete a service of the tenant.

        Raises:
            ServiceNotFoundError: if the id does not exist for the tenant.
        """
        with storage_errors("excluir o serviço"):
            result = self._collection.delete_one(
                {"_id": service_id, "tenant_id": _require_tenant(tenant_id)}
            )
        if result.deleted_count == 0:
            raise ServiceNotFoundError(service_id)
        log.info("Service %s deleted for tenant %s", service_id, tenant_id)


def _draft_fields(draft: ServiceDraft) -> dict[str, Any]:
    fields = draft.model_dump()
    fields["service_date"] = to_query_date(draft.service_date)
    return fields


def search_services(records: Sequence[ServiceRecord], term: str) -> list[ServiceRecord]:
    """Filter records by client name or plate, case-insensitively.

    An empty or blank term returns every record.
    """
    needle = term.strip().lower()
    if not needle:
        return list(records)
    return [
        r for r in records
        if needle in r.client_name.lower() or needle in r.car_plate.lower()
    ]
