"""
app/services package marker.

Only the leaf services are re-exported here; import the ingestion service
from app.services.dataset_ingestion_service so that the normalizers can
depend on the reader and detector without an import cycle.
"""

from app.services.dataset_type_detector import (
    classify_headers,
    detect_dataset_type,
    detect_dataset_type_or_none,
    resolve_dataset_type,
)
from app.services.tabular_reader import read_headers, read_table

__all__ = [
    "classify_headers",
    "detect_dataset_type",
    "detect_dataset_type_or_none",
    "read_headers",
    "read_table",
    "resolve_dataset_type",
]
