"""
app/mappers/product_value_structurer.py

Maps flat ``Category|Subcategory|FieldType`` product values onto the nested
pricing schema stored with each product.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from typing import Any

logger = logging.getLogger(__name__)

_BRAND_FIELDS = ("discount", "dispensingFee", "rebate")
_GENERIC_FIELDS = ("discount", "dispensingFee")
_CHANNELS = (
    "retail",
    "retail90",
    "maintenance",
    "mail",
    "specialtyMail",
    "specialtyRetail",
    "limitedDistributionMail",
    "limitedDistributionRetail",
)

OVERALL_FEE_CATEGORY = "Overall Fee & Credit"

CATEGORY_KEYS: dict[str, tuple[str, ...]] = {
    OVERALL_FEE_CATEGORY: ("overallFeeAndCredit",),
    "Retail": ("retail",),
    "Retail 90": ("retail90",),
    "Maintenance": ("maintenance",),
    "Mail": ("mail",),
    "Specialty Mail": ("specialtyMail",),
    "Specialty Retail": ("specialtyRetail",),
    "Limited Distribution Mail": ("limitedDistributionMail",),
    "Limited Distribution Retail": ("limitedDistributionRetail",),
    "LDD Blended Specialty": ("blendedSpecialty", "ldd"),
    "Non-LDD Blended Specialty": ("blendedSpecialty", "nonLdd"),
}

FIELD_TYPE_KEYS: dict[str, str] = {
    "DISCOUNT": "discount",
    "DISPENSING FEE": "dispensingFee",
    "REBATE": "rebate",
    "PEPM REBATE CREDIT": "pepmRebateCredit",
    "PRICING FEE": "pricingFee",
    "INHOUSE PHARMACY FEE": "inHousePharmacyFee",
}

# Single-channel files from before the category header rows existed.
LEGACY_RETAIL_BRAND_KEYS: dict[str, str] = {
    "DISCOUNT": "discount",
    "REBATE": "rebate",
    "DISPENSING FEE": "dispensingFee",
}


def _empty_schema() -> dict[str, Any]:
    schema: dict[str, Any] = {
        "overallFeeAndCredit": {
            "pepmRebateCredit": None,
            "pricingFee": None,
            "inHousePharmacyFee": None,
        },
    }
    for channel in _CHANNELS:
        schema[channel] = {
            "brand": dict.fromkeys(_BRAND_FIELDS),
            "generic": dict.fromkeys(_GENERIC_FIELDS),
        }
    schema["blendedSpecialty"] = {
        "ldd": dict.fromkeys(_BRAND_FIELDS),
        "nonLdd": dict.fromkeys(_BRAND_FIELDS),
    }
    return schema


EMPTY_PRODUCT_VALUES: dict[str, Any] = _empty_schema()


def empty_product_values() -> dict[str, Any]:
    return copy.deepcopy(EMPTY_PRODUCT_VALUES)


def structure_product_values(flat_values: Mapping[str, Any]) -> dict[str, Any]:
    """
    Build the nested product value structure from flat workbook keys.

    Leaves default to None. Keys whose category, subcategory or field type the
    schema does not define are dropped with a warning.
    """

    structured = empty_product_values()

    for legacy_key, field_key in LEGACY_RETAIL_BRAND_KEYS.items():
        if legacy_key in flat_values and not _is_empty(flat_values[legacy_key]):
            structured["retail"]["brand"][field_key] = flat_values[legacy_key]

    for key, value in flat_values.items():
        if _is_empty(value) or "|" not in key:
            continue

        parts = key.split("|")
        if len(parts) != 3:
            logger.warning("Malformed product value key: %s", key)
            continue
        category, subcategory, field_type = (part.strip() for part in parts)

        category_path = CATEGORY_KEYS.get(category)
        if category_path is None:
            logger.warning("Unknown category: %s", category)
            continue

        field_key = FIELD_TYPE_KEYS.get(field_type.upper())
        if field_key is None:
            logger.warning("Unknown field type: %s", field_type)
            continue

        if len(category_path) == 2 or category == OVERALL_FEE_CATEGORY:
            path = category_path
        else:
            path = (category_path[0], subcategory.lower())

        container = _resolve_container(structured, path)
        if container is None or field_key not in container:
            logger.warning("Unknown product value combination: %s", key)
            continue
        container[field_key] = value

    return structured


def flatten_product_values(structured: Mapping[str, Any]) -> dict[str, Any]:
    """
    Inverse of ``structure_product_values`` over non-null leaves.

    Keys use the canonical category and field spellings from the lookup tables.
    """

    flat: dict[str, Any] = {}
    field_names = {field_key: field_type for field_type, field_key in FIELD_TYPE_KEYS.items()}

    for category, path in CATEGORY_KEYS.items():
        if category == OVERALL_FEE_CATEGORY:
            containers = [("", _resolve_container(structured, path))]
        elif len(path) == 2:
            containers = [("", _resolve_container(structured, path))]
        else:
            containers = [
                (subcategory.capitalize(), _resolve_container(structured, (path[0], subcategory)))
                for subcategory in ("brand", "generic")
            ]

        for subcategory, container in containers:
            if not container:
                continue
            for field_key, value in container.items():
                if value is None:
                    continue
                flat[f"{category}|{subcategory}|{field_names[field_key]}"] = value

    return flat


def _resolve_container(structured: Mapping[str, Any], path: tuple[str, ...]) -> dict[str, Any] | None:
    node: Any = structured
    for part in path:
        if not isinstance(node, Mapping) or part not in node:
            return None
        node = node[part]
    return node if isinstance(node, dict) else None


def _is_empty(value: Any) -> bool:
    return value is None or value == ""
