"""
app/mappers package marker.
"""

from app.mappers.product_value_structurer import (
    EMPTY_PRODUCT_VALUES,
    empty_product_values,
    flatten_product_values,
    structure_product_values,
)

__all__ = [
    "EMPTY_PRODUCT_VALUES",
    "empty_product_values",
    "flatten_product_values",
    "structure_product_values",
]
