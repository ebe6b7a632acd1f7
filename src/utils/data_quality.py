"""
Data Quality Utility Functions

Row counts, null counts and duplicate counts logged for each relation after
it is transformed. All metrics for one relation come from a single
aggregation pass.
"""

import logging
from functools import reduce
from operator import or_
from typing import Dict, List, Optional

from pyspark.sql import DataFrame
from pyspark.sql import functions as F

logger = logging.getLogger(__name__)


def collect_quality_metrics(
    df: DataFrame,
    key_columns: List[str],
    nullable_columns: Optional[List[str]] = None
) -> Dict[str, object]:
    """
    Gather row count, key duplicates and null counts for one relation.

    Args:
        df: Transformed DataFrame
        key_columns: Natural key columns expected to be unique
        nullable_columns: Columns whose null count is worth reporting

    Returns:
        Dictionary with ``total_records``, ``duplicate_keys`` and ``null_counts``
    """
    nullable_columns = nullable_columns or []
    any_key_null = reduce(or_, [F.col(c).isNull() for c in key_columns])

    # countDistinct ignores rows with a null key component
    aggregations = [
        F.count(F.lit(1)).alias("__total"),
        F.countDistinct(*[F.col(c) for c in key_columns]).alias("__distinct_keys"),
        F.sum(F.when(any_key_null, 1).otherwise(0)).alias("__null_keys"),
    ]
    aggregations.extend(
        F.sum(F.when(F.col(c).isNull(), 1).otherwise(0)).alias(c)
        for c in nullable_columns
    )
    row = df.agg(*aggregations).first()

    total = int(row["__total"])
    null_keys = int(row["__null_keys"] or 0)

    return {
        "total_records": total,
        "duplicate_keys": total - null_keys - int(row["__distinct_keys"]),
        "null_counts": {c: int(row[c] or 0) for c in nullable_columns},
    }


def log_data_quality(table_name: str, metrics: Dict[str, object]) -> None:
    """
    Log a one-line quality summary for a relation.
    """
    nulls = ", ".join(f"{c}={n}" for c, n in metrics["null_counts"].items() if n)
    status = "✅" if metrics["duplicate_keys"] == 0 else "⚠️"
    logger.info(
        f"{status} {table_name} quality - rows: {metrics['total_records']:,}, "
        f"duplicate keys: {metrics['duplicate_keys']}"
        + (f", nulls: {nulls}" if nulls else "")
    )
