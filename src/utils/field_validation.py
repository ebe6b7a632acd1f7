"""
Field Validation Functions

Convert raw scalars into validated typed values. Invalid input is always
returned as None: the strict parsers raise ``TypeConversionError`` and the
public validators absorb it.

The ``*_column`` functions apply the same rules to DataFrame columns as
native Spark expressions.
"""

from datetime import date, datetime
from typing import Any, Optional

from pyspark.sql import Column
from pyspark.sql import functions as F

from src.config import BUSINESS_CONFIG
from src.exceptions import TypeConversionError

ISO_DATE_FORMATS = ("%Y-%m-%d", "%Y-%m-%d %H:%M:%S", "%Y/%m/%d")


def parse_compact_date_strict(value: Any) -> date:
    """
    Parse an 8-character ``YYYYMMDD`` value (int or string) into a date.

    Raises:
        TypeConversionError: on null, zero, wrong length, non-digits or an
            impossible calendar date
    """
    if value is None or isinstance(value, bool):
        raise TypeConversionError(value, "compact date")

    if isinstance(value, float):
        if not value.is_integer():
            raise TypeConversionError(value, "compact date")
        value = int(value)

    text = str(value).strip()
    if len(text) != BUSINESS_CONFIG["compact_date_length"] or not text.isdigit():
        raise TypeConversionError(value, "compact date")

    try:
        return datetime.strptime(text, BUSINESS_CONFIG["compact_date_format"]).date()
    except ValueError as e:
        raise TypeConversionError(value, "compact date") from e


def parse_compact_date(value: Any) -> Optional[date]:
    """
    Lenient form of ``parse_compact_date_strict``: invalid input -> None.

    Example:
        >>> parse_compact_date(20101229)
        datetime.date(2010, 12, 29)
        >>> parse_compact_date(0) is None
        True
    """
    try:
        return parse_compact_date_strict(value)
    except TypeConversionError:
        return None


def coerce_date_strict(value: Any) -> date:
    """
    Coerce a date, datetime or ISO-formatted string into a date.

    Raises:
        TypeConversionError: if the value has no date interpretation
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        for fmt in ISO_DATE_FORMATS:
            try:
                return datetime.strptime(text, fmt).date()
            except ValueError:
                continue
    raise TypeConversionError(value, "date")


def coerce_date(value: Any) -> Optional[date]:
    try:
        return coerce_date_strict(value)
    except TypeConversionError:
        return None


def validate_birth_date(value: Any, today: Optional[date] = None) -> Optional[date]:
    """
    Keep a birth date only when it lies within [1925-01-01, today].

    Args:
        value: Raw birth date (date, datetime or ISO string)
        today: Upper bound, defaults to the current date

    Returns:
        The validated date, or None when unparsable or out of range
    """
    parsed = coerce_date(value)
    if parsed is None:
        return None

    upper_bound = today or date.today()
    if parsed < BUSINESS_CONFIG["min_birth_date"] or parsed > upper_bound:
        return None
    return parsed


# ============================================================================
# COLUMN FORMS
# ============================================================================
#
# Native expressions mirroring the scalar validators above. No date parser is
# involved: the text is split by regex and assembled with make_date only once
# month and day are known to be in range, so invalid input yields null under
# any ANSI or parser-policy setting.

ISO_DATE_PATTERNS = (
    r"^(\d{4})-(\d{1,2})-(\d{1,2})(?: ([01]?\d|2[0-3]):([0-5]?\d):([0-5]?\d|6[01]))?$",
    r"^(\d{4})/(\d{1,2})/(\d{1,2})$",
)


def _calendar_date(year: Column, month: Column, day: Column) -> Column:
    """Date from integer parts, null when they do not name a real day."""
    month_start = F.when(
        (year >= 1) & month.between(1, 12),
        F.make_date(year, month, F.lit(1))
    )
    return F.when(
        day.between(1, F.dayofmonth(F.last_day(month_start))),
        F.date_add(month_start, day - 1)
    )


def compact_date_column(value: Column) -> Column:
    """
    Column form of ``parse_compact_date`` for integer or string columns.
    """
    text = F.trim(value.cast("string"))
    return F.when(
        text.rlike(r"^\d{8}$"),
        _calendar_date(
            text.substr(1, 4).cast("int"),
            text.substr(5, 2).cast("int"),
            text.substr(7, 2).cast("int"),
        )
    )


def coerce_date_column(value: Column) -> Column:
    """
    Column form of ``coerce_date`` for string columns.
    """
    text = F.trim(value)
    parsed = [
        F.when(
            text.rlike(pattern),
            _calendar_date(
                F.regexp_extract(text, pattern, 1).cast("int"),
                F.regexp_extract(text, pattern, 2).cast("int"),
                F.regexp_extract(text, pattern, 3).cast("int"),
            )
        )
        for pattern in ISO_DATE_PATTERNS
    ]
    return F.coalesce(*parsed)


def birth_date_column(value: Column) -> Column:
    """
    Column form of ``validate_birth_date`` for date columns: values outside
    [1925-01-01, current_date()] become null.
    """
    return F.when(
        value.between(F.lit(BUSINESS_CONFIG["min_birth_date"]), F.current_date()),
        value
    )
