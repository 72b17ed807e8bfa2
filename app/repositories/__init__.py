"""
app/repositories package marker.
"""

from app.repositories.dataset_repository import DatasetRepository
from app.repositories.reference_data_repository import ReferenceDataRepository

__all__ = [
    "DatasetRepository",
    "ReferenceDataRepository",
]
