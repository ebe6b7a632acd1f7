"""
Gold Integrity Checks

Read-only diagnostics over the gold relations. Each check returns the
offending rows as a DataFrame (empty when the check passes). Results are
reported, never enforced: a failed check does not block or roll back a load.
"""

import logging
from typing import Dict, Optional

from pyspark.sql import DataFrame, SparkSession
from pyspark.sql import functions as F

from src.config import DIM_CUSTOMERS, DIM_PRODUCTS, FACT_SALES, WarehouseConfig

logger = logging.getLogger(__name__)


def find_duplicate_surrogate_keys(dim_df: DataFrame, key_column: str) -> DataFrame:
    """
    Surrogate key values appearing more than once in a dimension.

    Returns:
        DataFrame with ``key_column`` and ``duplicate_count``
    """
    return dim_df \
        .groupBy(key_column) \
        .agg(F.count(F.lit(1)).alias("duplicate_count")) \
        .filter(F.col("duplicate_count") > 1)


def _mismatched(
    fact_df: DataFrame,
    dim_df: DataFrame,
    surrogate_key: str,
    business_key: str,
    dimension: str
) -> DataFrame:
    # A resolved key must exist in the dimension and point at the same business key
    dim_keys = dim_df.select(
        F.col(surrogate_key).alias("_dim_key"),
        F.col(business_key).alias("_dim_business_key"),
    )
    return fact_df \
        .filter(F.col(surrogate_key).isNotNull()) \
        .join(
            dim_keys,
            (F.col(surrogate_key) == F.col("_dim_key"))
            & (F.col(business_key) == F.col("_dim_business_key")),
            "left_anti"
        ) \
        .withColumn("dimension", F.lit(dimension))


def find_mismatched_keys(
    fact_df: DataFrame,
    dim_products: DataFrame,
    dim_customers: DataFrame
) -> DataFrame:
    """
    Fact rows whose non-null surrogate key does not resolve to the dimension
    row of their own business key.

    Returns:
        Offending fact rows plus a ``dimension`` column naming the lookup
    """
    products = _mismatched(fact_df, dim_products, "product_key", "product_number", DIM_PRODUCTS)
    customers = _mismatched(fact_df, dim_customers, "customer_key", "customer_id", DIM_CUSTOMERS)
    return products.unionByName(customers)


def find_orphan_facts(fact_df: DataFrame) -> DataFrame:
    """
    Fact rows with at least one null surrogate key.
    """
    return fact_df.filter(F.col("product_key").isNull() | F.col("customer_key").isNull())


class IntegrityReport:
    """
    Outcome of a set of integrity checks.

    Each check is stored with its offending rows and their count; a check
    passes when the count is zero.
    """

    def __init__(self):
        self.checks: Dict[str, Dict] = {}

    def add(self, name: str, violations: DataFrame) -> int:
        count = violations.count()
        self.checks[name] = {"violations": violations, "count": count}

        status = "✅ PASS" if count == 0 else "❌ FAIL"
        logger.info(f"{status}: {name} - {count} violating rows")
        return count

    @property
    def passed(self) -> bool:
        return all(check["count"] == 0 for check in self.checks.values())

    def counts(self) -> Dict[str, int]:
        return {name: check["count"] for name, check in self.checks.items()}

    def violations(self, name: str) -> DataFrame:
        return self.checks[name]["violations"]

    def __repr__(self) -> str:
        return f"IntegrityReport(passed={self.passed}, counts={self.counts()})"


def run_integrity_checks(
    spark: SparkSession,
    config: Optional[WarehouseConfig] = None
) -> IntegrityReport:
    """
    Run every integrity check against the published gold tables.

    Args:
        spark: SparkSession object
        config: Resolved warehouse configuration

    Returns:
        IntegrityReport with one entry per check
    """
    config = config or WarehouseConfig()
    dim_customers = spark.read.table(config.gold_table(DIM_CUSTOMERS))
    dim_products = spark.read.table(config.gold_table(DIM_PRODUCTS))
    fact_sales = spark.read.table(config.gold_table(FACT_SALES))

    logger.info("🔍 Gold integrity checks")
    report = IntegrityReport()
    report.add(
        f"{DIM_CUSTOMERS}.duplicate_keys",
        find_duplicate_surrogate_keys(dim_customers, "customer_key")
    )
    report.add(
        f"{DIM_PRODUCTS}.duplicate_keys",
        find_duplicate_surrogate_keys(dim_products, "product_key")
    )
    report.add(
        f"{FACT_SALES}.mismatched_keys",
        find_mismatched_keys(fact_sales, dim_products, dim_customers)
    )
    report.add(f"{FACT_SALES}.orphans", find_orphan_facts(fact_sales))

    status = "✅ PASSED" if report.passed else "⚠️ ISSUES FOUND"
    logger.info(f"{status}: {report.counts()}")
    return report
