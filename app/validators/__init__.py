"""
app/validators package marker.
"""

from app.validators.parameter_catalog import (
    ParameterCatalog,
    ParameterCatalogSource,
    SQLAlchemyCatalogSource,
)
from app.validators.record_validator import RecordValidator
from app.validators.structure_validator import REQUIRED_METADATA_FIELDS, StructureValidator

__all__ = [
    "ParameterCatalog",
    "ParameterCatalogSource",
    "RecordValidator",
    "REQUIRED_METADATA_FIELDS",
    "SQLAlchemyCatalogSource",
    "StructureValidator",
]
