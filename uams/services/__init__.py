from . import access_scope, performance, query_filters, storage
from .access_scope import ScopeFilter, ScopeViolation, UserContext, resolve_scope
from .performance import (
    PerformanceInputError,
    compute_district_performance,
    compute_region_performance,
    feeder_length_km,
)
from .query_filters import FilterValidationError, build_query_spec
from .storage import RecordStore, StorageError, get_record_store

__all__ = [
    "access_scope",
    "performance",
    "query_filters",
    "storage",
    "ScopeFilter",
    "ScopeViolation",
    "UserContext",
    "resolve_scope",
    "PerformanceInputError",
    "compute_district_performance",
    "compute_region_performance",
    "feeder_length_km",
    "FilterValidationError",
    "build_query_spec",
    "RecordStore",
    "StorageError",
    "get_record_store",
]
