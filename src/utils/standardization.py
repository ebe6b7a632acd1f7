"""
Standardization Rules

Every categorical field's code -> label mapping and its fallback are declared
once in ``STANDARDIZATION_RULES``. Matching is case-insensitive on the trimmed
raw value. A value outside the mapping takes the rule's default; rules with
``passthrough`` keep the trimmed source value instead (blank still defaults).
"""

from typing import Any, Dict, Optional

from pyspark.sql import Column
from pyspark.sql import functions as F

from src.config import BUSINESS_CONFIG

DEFAULT_LABEL = BUSINESS_CONFIG["default_label"]

GENDER = "gender"
MARITAL_STATUS = "marital_status"
PRODUCT_LINE = "product_line"
COUNTRY = "country"

STANDARDIZATION_RULES: Dict[str, Dict[str, Any]] = {
    GENDER: {
        "mapping": {
            "M": "MALE",
            "MALE": "MALE",
            "F": "FEMALE",
            "FEMALE": "FEMALE",
        },
        "default": DEFAULT_LABEL,
        "passthrough": False,
    },
    MARITAL_STATUS: {
        "mapping": {
            "M": "MARRIED",
            "S": "SINGLE",
        },
        "default": DEFAULT_LABEL,
        "passthrough": False,
    },
    PRODUCT_LINE: {
        "mapping": {
            "M": "MOUNTAIN",
            "R": "ROAD",
            "S": "OTHER SALES",
            "T": "TOURING",
        },
        "default": DEFAULT_LABEL,
        "passthrough": False,
    },
    COUNTRY: {
        # DE -> DENMARK mirrors the source system's own mapping
        "mapping": {
            "DE": "DENMARK",
            "US": "UNITED STATES",
            "USA": "UNITED STATES",
        },
        "default": DEFAULT_LABEL,
        "passthrough": True,
    },
}


def _rule(field: str) -> Dict[str, Any]:
    try:
        return STANDARDIZATION_RULES[field]
    except KeyError:
        raise ValueError(f"No standardization rule for field '{field}'") from None


def standardize(field: str, value: Optional[Any]) -> str:
    """
    Map one raw code to its canonical label.

    Example:
        >>> standardize("gender", " m ")
        'MALE'
        >>> standardize("marital_status", "X")
        'N/A'
    """
    rule = _rule(field)
    if value is None:
        return rule["default"]

    trimmed = str(value).strip()
    if trimmed == "":
        return rule["default"]

    label = rule["mapping"].get(trimmed.upper())
    if label is not None:
        return label
    return trimmed if rule["passthrough"] else rule["default"]


def standardize_column(field: str, column: Column) -> Column:
    """
    Column-expression form of ``standardize`` for DataFrame transformations.

    Args:
        field: Rule name from ``STANDARDIZATION_RULES``
        column: Raw column

    Returns:
        String column with the canonical label
    """
    rule = _rule(field)
    trimmed = F.trim(column.cast("string"))
    key = F.upper(trimmed)

    expr = None
    for code, label in rule["mapping"].items():
        expr = F.when(key == F.lit(code), F.lit(label)) if expr is None \
            else expr.when(key == F.lit(code), F.lit(label))

    fallback = F.lit(rule["default"])
    if rule["passthrough"]:
        fallback = F.when(trimmed.isNull() | (trimmed == ""), F.lit(rule["default"])) \
            .otherwise(trimmed)

    return expr.otherwise(fallback)
