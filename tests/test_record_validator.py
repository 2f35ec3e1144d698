from __future__ import annotations

import unittest

from app.domain.pricing_submission import ParsedRecord
from app.validators.parameter_catalog import ParameterCatalog
from app.validators.record_validator import (
    RecordValidator,
    normalize_decremented_rate,
    stringify_value,
)
from conftest import static_catalog_source


def _record(**parameter_overrides) -> ParsedRecord:
    parameters = {
        "PharmacyBenefitsManager": "CVS",
        "Formulary": "Standard",
        "Decremented Rate": 2,
        "ClientName": "Acme Corp",
    }
    parameters.update(parameter_overrides)
    return ParsedRecord(
        row_number=4,
        metadata={
            "PRICERECORDNAME": "Acme Retail 2026",
            "EFFECTIVEDATE": "2026-01-01",
            "EXPIRYDATE": "2026-12-31",
        },
        parameters={name: value for name, value in parameters.items() if value is not None},
        values={"Retail|Brand|DISCOUNT": 0.18},
    )


class TestRecordValidator(unittest.TestCase):
    def setUp(self) -> None:
        self.catalog = ParameterCatalog(static_catalog_source())
        self.validator = RecordValidator(catalog=self.catalog)
        self.catalog.initialize()
        self.ids = {
            definition.normalized_name: definition.parameter_id
            for definition in self.catalog.definitions()
        }

    def test_valid_record_is_accepted_with_parameters_keyed_by_id(self) -> None:
        outcome = self.validator.validate_record(_record())

        self.assertTrue(outcome.is_valid)
        self.assertEqual(
            outcome.parameters,
            {
                self.ids["PHARMACYBENEFITSMANAGER"]: "CVS",
                self.ids["FORMULARY"]: "Standard",
                self.ids["DECREMENTEDRATE"]: "2%",
                self.ids["CLIENTNAME"]: "Acme Corp",
            },
        )
        self.assertEqual(outcome.values, {"Retail|Brand|DISCOUNT": 0.18})

    def test_bare_decremented_rate_is_rendered_as_percentage(self) -> None:
        outcome = self.validator.validate_record(_record(**{"Decremented Rate": 2}))

        self.assertTrue(outcome.is_valid)
        assert outcome.parameters is not None
        self.assertEqual(outcome.parameters[self.ids["DECREMENTEDRATE"]], "2%")

    def test_record_without_values_is_rejected_as_malformed(self) -> None:
        record = ParsedRecord(row_number=4, metadata={"EFFECTIVEDATE": "2026-01-01"}, parameters={"A": 1})

        outcome = self.validator.validate_record(record)

        self.assertFalse(outcome.is_valid)
        self.assertEqual(
            outcome.reason,
            "Invalid record structure. Record must contain metadata, parameters, and values objects.",
        )

    def test_missing_effective_date_is_rejected(self) -> None:
        record = _record()
        record.metadata.pop("EFFECTIVEDATE")

        outcome = self.validator.validate_record(record)

        self.assertEqual(outcome.reason, "Missing required metadata field: EffectiveDate")

    def test_missing_price_record_name_is_rejected(self) -> None:
        record = _record()
        record.metadata["PRICERECORDNAME"] = "  "

        outcome = self.validator.validate_record(record)

        self.assertEqual(outcome.reason, "Missing required metadata field: PriceRecordName")

    def test_empty_expiry_date_is_accepted(self) -> None:
        record = _record()
        record.metadata.pop("EXPIRYDATE")

        self.assertTrue(self.validator.validate_record(record).is_valid)

    def test_missing_pbm_is_rejected(self) -> None:
        outcome = self.validator.validate_record(_record(PharmacyBenefitsManager=None))

        self.assertEqual(outcome.reason, "Missing required parameter: PharmacyBenefitsManager")

    def test_invalid_global_value_names_parameter_and_valid_values(self) -> None:
        outcome = self.validator.validate_record(_record(**{"Decremented Rate": "7%"}))

        self.assertFalse(outcome.is_valid)
        self.assertEqual(
            outcome.reason,
            'Invalid value "7%" for parameter Decremented Rate. Valid values are: 2%, 3%',
        )

    def test_invalid_pbm_specific_value_names_pbm(self) -> None:
        outcome = self.validator.validate_record(
            _record(PharmacyBenefitsManager="ESI", Formulary="Premium")
        )

        self.assertFalse(outcome.is_valid)
        self.assertEqual(
            outcome.reason,
            'Invalid value "Premium" for parameter Formulary with PBM ESI. Valid values are: Standard',
        )

    def test_pbm_specific_value_is_accepted_for_its_pbm(self) -> None:
        outcome = self.validator.validate_record(_record(Formulary="Premium"))

        self.assertTrue(outcome.is_valid)

    def test_invalid_pbm_value_is_rejected(self) -> None:
        outcome = self.validator.validate_record(_record(PharmacyBenefitsManager="OptumRx"))

        self.assertFalse(outcome.is_valid)
        self.assertIn("parameter PharmacyBenefitsManager", outcome.reason or "")

    def test_first_failure_wins(self) -> None:
        outcome = self.validator.validate_record(
            _record(PharmacyBenefitsManager="OptumRx", Formulary="Unknown")
        )

        self.assertIn('"OptumRx"', outcome.reason or "")
        self.assertNotIn('"Unknown"', outcome.reason or "")

    def test_unknown_parameters_are_ignored(self) -> None:
        outcome = self.validator.validate_record(_record(Region="West"))

        self.assertTrue(outcome.is_valid)
        assert outcome.parameters is not None
        self.assertNotIn("West", outcome.parameters.values())

    def test_parameter_map_restricts_lookups(self) -> None:
        parameter_map = self.catalog.build_parameter_map(["PHARMACYBENEFITSMANAGER", "FORMULARY"])

        outcome = self.validator.validate_record(_record(**{"Decremented Rate": "99%"}), parameter_map)

        self.assertTrue(outcome.is_valid)
        assert outcome.parameters is not None
        self.assertNotIn(self.ids["DECREMENTEDRATE"], outcome.parameters)

    def test_mapping_records_are_accepted(self) -> None:
        record = _record()
        payload = {"row_number": 9, **record.to_payload()}

        self.assertTrue(self.validator.validate_record(payload).is_valid)


class TestValueNormalization(unittest.TestCase):
    def test_decremented_rate_forms(self) -> None:
        self.assertEqual(normalize_decremented_rate(2), "2%")
        self.assertEqual(normalize_decremented_rate(2.0), "2%")
        self.assertEqual(normalize_decremented_rate(2.5), "2.5%")
        self.assertEqual(normalize_decremented_rate("3"), "3%")
        self.assertEqual(normalize_decremented_rate("3%"), "3%")
        self.assertEqual(normalize_decremented_rate("none"), "none")

    def test_integral_floats_drop_decimal(self) -> None:
        self.assertEqual(stringify_value(30.0), "30")
        self.assertEqual(stringify_value(" Brand "), "Brand")

    def test_boolean_cells_are_lower_case(self) -> None:
        self.assertEqual(stringify_value(True), "true")
        self.assertEqual(stringify_value(False), "false")
