"""Pydantic schemas for stringbank records and filters."""

from .record import StringProperties, AnalysisRecord
from .filters import FilterName, TypedFilterSet

__all__ = [
    # Records
    "StringProperties",
    "AnalysisRecord",
    # Filters
    "FilterName",
    "TypedFilterSet",
]
