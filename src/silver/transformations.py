"""
Silver Transformations

One function per source entity turning a bronze DataFrame into its silver
projection, built from three reusable steps:

- ``select_current_records``: one row per natural key (latest timestamp)
- ``derive_end_dates``: chain validity intervals over versioned records
- ``reconcile_sales``: recompute inconsistent sales / price amounts

All functions are lazy DataFrame -> DataFrame; nothing is written here.
"""

from typing import List, Optional

from pyspark.sql import Column, DataFrame, Window
from pyspark.sql import functions as F

from src.config import BUSINESS_CONFIG
from src.utils.field_validation import birth_date_column, coerce_date_column, compact_date_column
from src.utils.standardization import (
    COUNTRY,
    GENDER,
    MARITAL_STATUS,
    PRODUCT_LINE,
    standardize_column,
)


# ============================================================================
# DEDUPLICATION
# ============================================================================

def select_current_records(
    df: DataFrame,
    key_columns: List[str],
    timestamp_column: str,
    tie_break_columns: Optional[List[str]] = None
) -> DataFrame:
    """
    Keep exactly one record per natural key: the one with the latest timestamp.

    Rows with a null key are dropped before ranking. Null timestamps rank
    after every real timestamp. When several rows share the key and the
    latest timestamp, the remaining columns decide in ascending order
    (alphabetical by column name unless ``tie_break_columns`` is given), so
    the result does not depend on input partitioning.

    Args:
        df: Raw records
        key_columns: Natural key columns
        timestamp_column: Recency column
        tie_break_columns: Explicit ordering for ties

    Returns:
        DataFrame with the same columns, one row per key
    """
    if tie_break_columns is None:
        excluded = set(key_columns) | {timestamp_column}
        tie_break_columns = sorted(c for c in df.columns if c not in excluded)

    non_null_keys = df
    for key in key_columns:
        non_null_keys = non_null_keys.filter(F.col(key).isNotNull())

    window = Window.partitionBy(*key_columns).orderBy(
        F.col(timestamp_column).desc_nulls_last(),
        *[F.col(c).asc_nulls_last() for c in tie_break_columns]
    )

    return non_null_keys \
        .withColumn("_record_rank", F.row_number().over(window)) \
        .filter(F.col("_record_rank") == 1) \
        .drop("_record_rank")


# ============================================================================
# EFFECTIVE DATING
# ============================================================================

def derive_end_dates(
    df: DataFrame,
    key_column: str,
    start_column: str,
    end_column: str,
    tie_break_column: Optional[str] = None
) -> DataFrame:
    """
    Set each record's end date to the start date of the next record with the
    same key; the latest record of each key gets null (current version).
    Records without a start date sort first, so they close at the earliest
    dated version.

    Args:
        df: Versioned records with a typed start date
        key_column: Grouping key
        start_column: Start date column
        end_column: Name of the derived end date column (replaced if present)
        tie_break_column: Orders records that share a start date
    """
    order = [F.col(start_column).asc_nulls_first()]
    if tie_break_column:
        order.append(F.col(tie_break_column).asc_nulls_last())

    window = Window.partitionBy(key_column).orderBy(*order)
    return df.withColumn(end_column, F.lead(start_column).over(window))


# ============================================================================
# RECONCILIATION
# ============================================================================

def reconcile_sales(sales: Column, quantity: Column, price: Column):
    """
    Recompute sales and price amounts.

    - sales becomes ``quantity * |price|`` when it is null, not positive, or
      differs from that product
    - price becomes ``sales / quantity`` (using the reconciled sales) when it
      is null or negative; a zero quantity yields null

    A derived price is truncated to an integer and taken as an absolute
    value so it is never negative.

    Returns:
        Tuple of (sales, price) column expressions
    """
    expected_sales = quantity * F.abs(price)

    sales_out = F.when(
        sales.isNull() | (sales <= 0) | (sales != expected_sales),
        expected_sales
    ).otherwise(sales)

    derived_price = F.abs((sales_out / F.when(quantity != 0, quantity)).cast("int"))
    price_out = F.when(price.isNull() | (price < 0), derived_price).otherwise(price)

    return sales_out, price_out


# ============================================================================
# ENTITY TRANSFORMATIONS
# ============================================================================

def transform_customers(bronze_df: DataFrame) -> DataFrame:
    """
    CRM customers: latest record per ``cst_id``, trimmed names, standardized
    marital status and gender.
    """
    current = select_current_records(bronze_df, ["cst_id"], "cst_create_date")

    return current.select(
        F.col("cst_id"),
        F.col("cst_key"),
        F.trim(F.col("cst_firstname")).alias("cst_firstname"),
        F.trim(F.col("cst_lastname")).alias("cst_lastname"),
        standardize_column(MARITAL_STATUS, F.col("cst_marital_status")).alias("cst_marital_status"),
        standardize_column(GENDER, F.col("cst_gender")).alias("cst_gender"),
        F.col("cst_create_date"),
    )


def transform_products(bronze_df: DataFrame) -> DataFrame:
    """
    CRM products: effective dating over the source product key, then the
    category id / product key split, cost default and product line labels.
    """
    category_length = BUSINESS_CONFIG["category_id_length"]
    key_offset = BUSINESS_CONFIG["product_key_offset"]

    dated = bronze_df.withColumn("prd_start", coerce_date_column(F.col("prd_start")))
    chained = derive_end_dates(dated, "prd_key", "prd_start", "prd_end_dt", tie_break_column="prd_id")

    return chained.select(
        F.col("prd_id"),
        F.regexp_replace(F.substring(F.col("prd_key"), 1, category_length), "-", "_").alias("cat_id"),
        F.col("prd_key").substr(F.lit(key_offset), F.length(F.col("prd_key"))).alias("prd_key"),
        F.col("prd_nm"),
        F.coalesce(F.col("prd_cost"), F.lit(0)).alias("prd_cost"),
        standardize_column(PRODUCT_LINE, F.col("prd_line")).alias("prd_line"),
        F.col("prd_start"),
        F.col("prd_end_dt"),
    )


def transform_sales(bronze_df: DataFrame) -> DataFrame:
    """
    CRM sales: compact dates parsed (invalid -> null), amounts reconciled.
    """
    sales, price = reconcile_sales(
        F.col("sls_sales"), F.col("sls_quantity"), F.col("sls_price")
    )

    return bronze_df.select(
        F.col("sls_ord_num"),
        F.col("sls_prd_key"),
        F.col("sls_cust_id"),
        compact_date_column(F.col("sls_order_dt")).alias("sls_order_dt"),
        compact_date_column(F.col("sls_ship_dt")).alias("sls_ship_dt"),
        compact_date_column(F.col("sls_due_dt")).alias("sls_due_dt"),
        sales.alias("sls_sales"),
        F.col("sls_quantity"),
        price.alias("sls_price"),
    )


def transform_erp_customers(bronze_df: DataFrame) -> DataFrame:
    """
    ERP demographics: id prefix stripped, birth date range-checked, gender
    standardized.
    """
    prefix = BUSINESS_CONFIG["erp_customer_prefix"]
    cid = F.col("cid")

    return bronze_df.select(
        F.when(F.upper(cid).startswith(prefix), cid.substr(F.lit(len(prefix) + 1), F.length(cid)))
            .otherwise(cid)
            .alias("cid"),
        birth_date_column(F.col("bdate")).alias("bdate"),
        standardize_column(GENDER, F.col("gen")).alias("gen"),
    )


def transform_erp_locations(bronze_df: DataFrame) -> DataFrame:
    separator = BUSINESS_CONFIG["location_id_separator"]

    return bronze_df.select(
        F.regexp_replace(F.col("cid"), separator, "").alias("cid"),
        standardize_column(COUNTRY, F.col("country")).alias("country"),
    )


def transform_erp_categories(bronze_df: DataFrame) -> DataFrame:
    return bronze_df.select("id", "cat", "sub_category", "maintenance")
