"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.parameter import Parameter, ParameterValidValue
from db.models.pricing_file import PricingFile, PricingFileStatus
from db.models.product import Product, ProductValue
from db.models.rejection_log import RejectionLog, RejectionReasonCode

__all__ = [
    "Parameter",
    "ParameterValidValue",
    "PricingFile",
    "PricingFileStatus",
    "Product",
    "ProductValue",
    "RejectionLog",
    "RejectionReasonCode",
]
