"""
app/domain package marker.
"""

from app.domain.pricing_submission import (
    ControlledValue,
    ParameterDefinition,
    ParsedRecord,
    ProcessingSummary,
    RowRejection,
    StructureValidationResult,
    ValidationOutcome,
)

__all__ = [
    "ControlledValue",
    "ParameterDefinition",
    "ParsedRecord",
    "ProcessingSummary",
    "RowRejection",
    "StructureValidationResult",
    "ValidationOutcome",
]
