"""Record store: the single seam between the API and the database.

Collections are addressed by the names the mobile and web clients already
use (``overheadLineInspections``, ``loadMonitoring`` ...) and resolved to
Django models lazily through the app registry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from django.apps import apps
from django.db import DatabaseError
from django.db.models import ForeignKey, QuerySet

from .query_filters import QuerySpec

logger = logging.getLogger(__name__)

DEFAULT_COLLECTIONS: Dict[str, str] = {
    "regions": "uams.Region",
    "districts": "uams.District",
    "roles": "uams.Role",
    "users": "uams.UserProfile",
    "targets": "uams.Target",
    "feeders": "uams.Feeder",
    "overheadLineInspections": "uams.OverheadLineInspection",
    "substationInspections": "uams.SubstationInspection",
    "loadMonitoring": "uams.LoadMonitoringRecord",
    "vitAssets": "uams.VITAsset",
    "vitInspections": "uams.VITInspection",
    "op5Faults": "uams.OP5Fault",
    "controlOutages": "uams.ControlOutage",
    "equipmentFailureReports": "uams.EquipmentFailureReport",
    "substationStatus": "uams.SubstationStatus",
    "staffIds": "uams.StaffId",
}


class StorageError(RuntimeError):
    """Raised when a collection is unknown or the database query fails."""


@dataclass
class QueryResult:
    records: List[Any] = field(default_factory=list)
    total: int = 0


class RecordStore:
    def __init__(self, collections: Optional[Mapping[str, str]] = None):
        self.collections = dict(collections or DEFAULT_COLLECTIONS)

    def model_for(self, collection: str):
        label = self.collections.get(collection)
        if label is None:
            raise StorageError(f"Unknown collection '{collection}'.")
        try:
            return apps.get_model(label)
        except LookupError as exc:
            raise StorageError(f"Collection '{collection}' is not available.") from exc

    def queryset(self, collection: str) -> QuerySet:
        model = self.model_for(collection)
        related = [
            f.name for f in model._meta.get_fields() if isinstance(f, ForeignKey) and f.name in ("region", "district")
        ]
        queryset = model.objects.all()
        if related:
            queryset = queryset.select_related(*related)
        return queryset

    def _filtered(self, collection: str, spec: QuerySpec) -> QuerySet:
        model = self.model_for(collection)
        return self.queryset(collection).filter(spec.filter_q(model))

    def query(self, collection: str, spec: QuerySpec) -> QueryResult:
        """Run ``spec`` against ``collection``; ``total`` ignores pagination."""

        try:
            queryset = self._filtered(collection, spec)
            total = queryset.count()
            if spec.count_only:
                return QueryResult(records=[], total=total)
            if spec.ordering:
                queryset = queryset.order_by(*spec.ordering)
            if spec.limit is not None:
                queryset = queryset[spec.offset : spec.offset + spec.limit]
            elif spec.offset:
                queryset = queryset[spec.offset :]
            return QueryResult(records=list(queryset), total=total)
        except DatabaseError as exc:
            logger.error("Query on %s failed: %s", collection, exc)
            raise StorageError(f"Query on '{collection}' failed.") from exc

    def count(self, collection: str, spec: QuerySpec) -> int:
        try:
            return self._filtered(collection, spec).count()
        except DatabaseError as exc:
            logger.error("Count on %s failed: %s", collection, exc)
            raise StorageError(f"Count on '{collection}' failed.") from exc

    def fetch(self, collection: str, spec: QuerySpec) -> List[Any]:
        """All records matching ``spec``, ordered but not paginated."""

        try:
            queryset = self._filtered(collection, spec)
            if spec.ordering:
                queryset = queryset.order_by(*spec.ordering)
            return list(queryset)
        except DatabaseError as exc:
            logger.error("Fetch on %s failed: %s", collection, exc)
            raise StorageError(f"Fetch on '{collection}' failed.") from exc

    def all(self, collection: str) -> List[Any]:
        """Every record of ``collection``, unfiltered."""

        try:
            return list(self.queryset(collection))
        except DatabaseError as exc:
            logger.error("Listing %s failed: %s", collection, exc)
            raise StorageError(f"Listing '{collection}' failed.") from exc


_default_store: Optional[RecordStore] = None


def get_record_store() -> RecordStore:
    """Return the process wide store used by the views and commands."""

    global _default_store
    if _default_store is None:
        _default_store = RecordStore()
    return _default_store


def set_record_store(store: Optional[RecordStore]) -> None:
    """Swap the process wide store; ``None`` restores the default."""

    global _default_store
    _default_store = store
