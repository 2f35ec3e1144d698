"""
app/validators/record_validator.py

Row-level validation of parsed pricing records against the parameter catalog.

Checks run in a fixed order and the first failure is returned:

    1. record shape
    2. required metadata (EffectiveDate, PriceRecordName)
    3. PharmacyBenefitsManager presence (scope for PBM-specific lookups)
    4. each populated parameter against its controlled vocabulary
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from app.domain.pricing_submission import (
    DECREMENTED_RATE_PARAMETER,
    PBM_PARAMETER,
    ParameterDefinition,
    ParsedRecord,
    ValidationOutcome,
    normalize_parameter_name,
)
from app.validators.parameter_catalog import ParameterCatalog

logger = logging.getLogger(__name__)


class RecordValidator:
    def __init__(self, *, catalog: ParameterCatalog) -> None:
        self._catalog = catalog

    def validate_record(
        self,
        record: ParsedRecord | Mapping[str, Any],
        parameter_map: Mapping[str, ParameterDefinition] | None = None,
    ) -> ValidationOutcome:
        """
        Validate one record; ``parameter_map`` restricts lookups to a stored
        parameter-name snapshot when given.
        """

        self._catalog.initialize()

        parsed = _as_record(record)
        if parsed is None or not (parsed.metadata and parsed.parameters and parsed.values):
            return ValidationOutcome.rejected(
                "Invalid record structure. Record must contain metadata, parameters, and values objects."
            )

        if _is_blank(parsed.metadata.get("EFFECTIVEDATE")):
            return ValidationOutcome.rejected("Missing required metadata field: EffectiveDate")
        # ExpiryDate may be empty: the price record never expires.
        if _is_blank(parsed.metadata.get("PRICERECORDNAME")):
            return ValidationOutcome.rejected("Missing required metadata field: PriceRecordName")

        pbm_value = _find_pbm(parsed.parameters)
        if pbm_value is None:
            return ValidationOutcome.rejected("Missing required parameter: PharmacyBenefitsManager")

        parameters: dict[str, str] = {}
        for parameter_name, raw_value in parsed.parameters.items():
            if _is_blank(raw_value):
                continue

            normalized_name = normalize_parameter_name(parameter_name)
            definition = self._resolve(normalized_name, parameter_map)
            if definition is None:
                logger.warning("Unknown parameter in record: %s", parameter_name)
                continue

            if normalized_name == DECREMENTED_RATE_PARAMETER:
                value = normalize_decremented_rate(raw_value)
            else:
                value = stringify_value(raw_value)

            parameters[definition.parameter_id] = value

            if self._catalog.is_free_text_field(definition.parameter_id):
                continue

            scope = pbm_value if definition.is_pbm_specific else None
            if self._catalog.is_valid_value(definition.parameter_id, value, scope):
                continue

            valid_values = ", ".join(self._catalog.get_valid_values(definition.parameter_id, scope))
            if definition.is_pbm_specific:
                reason = (
                    f'Invalid value "{value}" for parameter {definition.name} with PBM {pbm_value}. '
                    f"Valid values are: {valid_values}"
                )
            else:
                reason = (
                    f'Invalid value "{value}" for parameter {definition.name}. '
                    f"Valid values are: {valid_values}"
                )
            return ValidationOutcome.rejected(reason)

        return ValidationOutcome.accepted(parameters=parameters, values=dict(parsed.values))

    def _resolve(
        self,
        normalized_name: str,
        parameter_map: Mapping[str, ParameterDefinition] | None,
    ) -> ParameterDefinition | None:
        if parameter_map is not None:
            return parameter_map.get(normalized_name)
        return self._catalog.get_parameter(normalized_name)


def normalize_decremented_rate(value: Any) -> str:
    """
    Render bare numeric decremented rates as percentages: ``2`` -> ``"2%"``.
    """

    if isinstance(value, bool):
        return stringify_value(value)
    if isinstance(value, (int, float)):
        return f"{stringify_value(value)}%"

    text = str(value).strip()
    if "%" not in text:
        try:
            float(text)
        except ValueError:
            return text
        return f"{text}%"
    return text


def stringify_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _find_pbm(parameters: Mapping[str, Any]) -> str | None:
    for name, value in parameters.items():
        if normalize_parameter_name(name) == PBM_PARAMETER:
            return None if _is_blank(value) else stringify_value(value)
    return None


def _as_record(record: ParsedRecord | Mapping[str, Any]) -> ParsedRecord | None:
    if isinstance(record, ParsedRecord):
        return record
    if not isinstance(record, Mapping):
        return None

    metadata = record.get("metadata")
    parameters = record.get("parameters")
    values = record.get("values")
    if not all(isinstance(bucket, Mapping) for bucket in (metadata, parameters, values)):
        return None
    return ParsedRecord(
        row_number=int(record.get("row_number") or 0),
        metadata=dict(metadata),
        parameters=dict(parameters),
        values=dict(values),
    )


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    return str(value).strip() == ""
