"""
app/validators/structure_validator.py

Header-level validation of a pricing workbook, run before any row is read.

Every structural problem is collected and reported together so the submitter
can fix the workbook in one pass.
"""

from __future__ import annotations

import logging

from openpyxl.workbook.workbook import Workbook

from app.domain.pricing_submission import StructureValidationResult, normalize_parameter_name
from app.errors import WorkbookParseError
from app.parsers.workbook_parser import PARAMETER_PREFIX, ColumnKind, WorkbookParser
from app.validators.parameter_catalog import ParameterCatalog

logger = logging.getLogger(__name__)

REQUIRED_METADATA_FIELDS: tuple[str, ...] = (
    "METADATA_EFFECTIVEDATE",
    "METADATA_EXPIRYDATE",
    "METADATA_PRICERECORDNAME",
)


class StructureValidator:
    """
    Checks header prefixes, required metadata columns and catalog coverage.
    """

    def __init__(
        self,
        *,
        catalog: ParameterCatalog,
        parser: WorkbookParser | None = None,
    ) -> None:
        self._catalog = catalog
        self._parser = parser or WorkbookParser()

    def validate_file_structure(self, workbook: Workbook) -> StructureValidationResult:
        self._catalog.initialize()

        try:
            worksheet = self._parser.first_worksheet(workbook)
        except WorkbookParseError as exc:
            return StructureValidationResult(is_valid=False, reason=str(exc))

        header = self._parser.read_header(worksheet)
        metadata_fields = header.headers_of(ColumnKind.METADATA)
        parameter_fields = header.headers_of(ColumnKind.PARAMETER)
        product_value_fields = header.headers_of(ColumnKind.PRODUCT_VALUE)

        errors: list[str] = []

        if not metadata_fields:
            errors.append(
                'No metadata fields found. Excel file must contain columns with "Metadata_" prefix.'
            )
        if not parameter_fields:
            errors.append(
                'No parameter fields found. Excel file must contain columns with "Parameter_" prefix.'
            )
        if not product_value_fields:
            errors.append(
                'No product value fields found. Excel file must contain columns with "ProductValue_" prefix.'
            )

        present_metadata = {normalize_parameter_name(field) for field in metadata_fields}
        missing_metadata = [field for field in REQUIRED_METADATA_FIELDS if field not in present_metadata]
        if missing_metadata:
            errors.append(f"Missing required metadata fields: {', '.join(missing_metadata)}")

        normalized_parameter_names = [
            normalize_parameter_name(field[len(PARAMETER_PREFIX):]) for field in parameter_fields
        ]
        present_parameters = set(normalized_parameter_names)
        missing_parameters = [
            definition.name
            for definition in self._catalog.definitions()
            if definition.normalized_name not in present_parameters
        ]
        if missing_parameters:
            errors.append(f"Missing required parameters: {', '.join(missing_parameters)}")

        if errors:
            reason = " ".join(errors)
            logger.info("Workbook structure validation failed: %s", reason)
            return StructureValidationResult(
                is_valid=False,
                reason=reason,
                metadata_fields=metadata_fields,
                parameter_fields=parameter_fields,
                product_value_fields=product_value_fields,
            )

        return StructureValidationResult(
            is_valid=True,
            normalized_parameter_names=normalized_parameter_names,
            metadata_fields=metadata_fields,
            parameter_fields=parameter_fields,
            product_value_fields=product_value_fields,
        )
