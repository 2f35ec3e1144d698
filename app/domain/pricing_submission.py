"""
app/domain/pricing_submission.py

Domain models used by the pricing workbook ingestion flow.
"""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field
from typing import Any

_WHITESPACE = re.compile(r"\s+")

PBM_PARAMETER = "PHARMACYBENEFITSMANAGER"
DECREMENTED_RATE_PARAMETER = "DECREMENTEDRATE"


def normalize_parameter_name(name: str) -> str:
    """
    Upper-case a parameter or metadata name and strip all whitespace.
    """

    return _WHITESPACE.sub("", str(name)).upper()


@dataclass(frozen=True)
class ParameterDefinition:
    """
    One active catalog parameter as seen by validation.
    """

    parameter_id: str
    name: str
    normalized_name: str
    is_pbm_specific: bool
    allows_free_text: bool = True


@dataclass(frozen=True)
class ControlledValue:
    """
    One allow-listed value; ``pbm_id`` None means valid for every PBM.
    """

    parameter_id: str
    value: str
    pbm_id: str | None = None


@dataclass(frozen=True)
class ParsedRecord:
    """
    One populated data row of a pricing workbook.

    ``metadata`` keys are normalized (EFFECTIVEDATE, ...); ``parameters`` keys
    keep the header's case; ``values`` keys are ``Category|Subcategory|FIELD``.
    """

    row_number: int
    metadata: dict[str, Any] = field(default_factory=dict)
    parameters: dict[str, Any] = field(default_factory=dict)
    values: dict[str, Any] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not (self.metadata or self.parameters or self.values)

    def to_payload(self) -> dict[str, Any]:
        return {
            "metadata": dict(self.metadata),
            "parameters": dict(self.parameters),
            "values": dict(self.values),
        }


@dataclass(frozen=True)
class ValidationOutcome:
    """
    Result of validating one record: accepted data or a rejection reason.
    """

    is_valid: bool
    parameters: dict[str, str] | None = None
    values: dict[str, Any] | None = None
    reason: str | None = None

    @classmethod
    def accepted(cls, *, parameters: dict[str, str], values: dict[str, Any]) -> ValidationOutcome:
        return cls(is_valid=True, parameters=parameters, values=values)

    @classmethod
    def rejected(cls, reason: str) -> ValidationOutcome:
        return cls(is_valid=False, reason=reason)


@dataclass(frozen=True)
class StructureValidationResult:
    """
    Outcome of header-level workbook validation.
    """

    is_valid: bool
    reason: str | None = None
    normalized_parameter_names: list[str] = field(default_factory=list)
    metadata_fields: list[str] = field(default_factory=list)
    parameter_fields: list[str] = field(default_factory=list)
    product_value_fields: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class RowRejection:
    """
    One rejected row awaiting its rejection log write.
    """

    row_number: int
    reason_code: str
    reason_description: str
    rejected_data: dict[str, Any]


@dataclass(frozen=True)
class ProcessingSummary:
    """
    End-of-run ingestion summary for one pricing file.
    """

    file_id: uuid.UUID
    status: str
    total_records: int
    success_count: int
    failure_count: int
    rejections: list[RowRejection] = field(default_factory=list)
