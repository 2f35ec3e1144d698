from __future__ import annotations

import unittest

from app.mappers.product_value_structurer import (
    EMPTY_PRODUCT_VALUES,
    empty_product_values,
    flatten_product_values,
    structure_product_values,
)


class TestStructureProductValues(unittest.TestCase):
    def test_empty_input_yields_all_null_schema(self) -> None:
        structured = structure_product_values({})

        self.assertEqual(structured, EMPTY_PRODUCT_VALUES)
        self.assertEqual(
            set(structured),
            {
                "overallFeeAndCredit",
                "retail",
                "retail90",
                "maintenance",
                "mail",
                "specialtyMail",
                "specialtyRetail",
                "limitedDistributionMail",
                "limitedDistributionRetail",
                "blendedSpecialty",
            },
        )
        self.assertEqual(set(structured["mail"]["generic"]), {"discount", "dispensingFee"})

    def test_channel_fields_are_placed_by_subcategory(self) -> None:
        structured = structure_product_values(
            {
                "Retail|Brand|DISCOUNT": 0.18,
                "Retail 90|Generic|DISPENSING FEE": 0.5,
                "Specialty Mail|Brand|REBATE": 120,
            }
        )

        self.assertEqual(structured["retail"]["brand"]["discount"], 0.18)
        self.assertEqual(structured["retail90"]["generic"]["dispensingFee"], 0.5)
        self.assertEqual(structured["specialtyMail"]["brand"]["rebate"], 120)
        self.assertIsNone(structured["retail"]["generic"]["discount"])

    def test_overall_fees_and_blended_specialty_ignore_subcategory(self) -> None:
        structured = structure_product_values(
            {
                "Overall Fee & Credit||PEPM REBATE CREDIT": 4.0,
                "Overall Fee & Credit|Any|INHOUSE PHARMACY FEE": 1.25,
                "LDD Blended Specialty||DISCOUNT": 0.2,
                "Non-LDD Blended Specialty||DISPENSING FEE": 3,
            }
        )

        self.assertEqual(structured["overallFeeAndCredit"]["pepmRebateCredit"], 4.0)
        self.assertEqual(structured["overallFeeAndCredit"]["inHousePharmacyFee"], 1.25)
        self.assertEqual(structured["blendedSpecialty"]["ldd"]["discount"], 0.2)
        self.assertEqual(structured["blendedSpecialty"]["nonLdd"]["dispensingFee"], 3)

    def test_legacy_keys_fill_retail_brand(self) -> None:
        structured = structure_product_values({"DISCOUNT": 0.15, "REBATE": 50, "DISPENSING FEE": 1.1})

        self.assertEqual(
            structured["retail"]["brand"],
            {"discount": 0.15, "dispensingFee": 1.1, "rebate": 50},
        )

    def test_unknown_combinations_are_dropped(self) -> None:
        with self.assertLogs("app.mappers.product_value_structurer", level="WARNING"):
            structured = structure_product_values(
                {
                    "Retail|Generic|REBATE": 10,
                    "Hospital|Brand|DISCOUNT": 0.1,
                    "Retail|Brand|COPAY": 5,
                    "Retail|Specialty|DISCOUNT": 0.3,
                    "Retail|Brand": 1,
                }
            )

        self.assertEqual(structured, EMPTY_PRODUCT_VALUES)

    def test_null_and_empty_values_are_skipped(self) -> None:
        structured = structure_product_values({"Retail|Brand|DISCOUNT": None, "Mail|Brand|DISCOUNT": ""})

        self.assertIsNone(structured["retail"]["brand"]["discount"])
        self.assertIsNone(structured["mail"]["brand"]["discount"])

    def test_result_does_not_share_state_with_template(self) -> None:
        structured = structure_product_values({"Retail|Brand|DISCOUNT": 0.18})

        self.assertIsNone(EMPTY_PRODUCT_VALUES["retail"]["brand"]["discount"])
        self.assertIsNone(empty_product_values()["retail"]["brand"]["discount"])
        self.assertEqual(structured["retail"]["brand"]["discount"], 0.18)


class TestFlattenProductValues(unittest.TestCase):
    def test_round_trip_keeps_known_fields_and_drops_unknown_keys(self) -> None:
        flat = {
            "Overall Fee & Credit||PRICING FEE": 2.25,
            "Retail|Brand|DISCOUNT": 0.18,
            "Retail|Generic|DISPENSING FEE": 0.75,
            "Limited Distribution Retail|Brand|REBATE": 30,
            "LDD Blended Specialty||REBATE": 150,
            "Non-LDD Blended Specialty||DISCOUNT": 0.22,
        }
        unknown = {"Retail|Generic|REBATE": 9, "Nowhere|Brand|DISCOUNT": 1}

        round_tripped = flatten_product_values(structure_product_values({**flat, **unknown}))

        self.assertEqual(round_tripped, flat)

    def test_empty_schema_flattens_to_nothing(self) -> None:
        self.assertEqual(flatten_product_values(empty_product_values()), {})
