"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.account import Account
from db.models.corporate_account_mapping import CorporateAccountMapping
from db.models.dataset import Dataset
from db.models.manual_adjustment_row import ManualAdjustmentRowRecord
from db.models.product_alias import ProductAlias
from db.models.quota_attainment_transaction import QuotaAttainmentTransactionRecord
from db.models.raw_usage_row import RawUsageRowRecord

__all__ = [
    "Account",
    "CorporateAccountMapping",
    "Dataset",
    "ManualAdjustmentRowRecord",
    "ProductAlias",
    "QuotaAttainmentTransactionRecord",
    "RawUsageRowRecord",
]
