"""
Gold Facts

Sales fact resolved against the dimensions by business key. Every silver
sales row is kept: an unmatched lookup leaves a null surrogate key (orphan)
for the integrity checks to report.
"""

from pyspark.sql import DataFrame
from pyspark.sql import functions as F

FACT_SALES_COLUMNS = [
    "order_number",
    "product_key",
    "customer_key",
    "order_date",
    "ship_date",
    "due_date",
    "sales",
    "quantity",
    "price",
    "product_number",
    "customer_id",
]


def key_lookup(dim_df: DataFrame, business_key: str, surrogate_key: str) -> DataFrame:
    """
    One surrogate key per business key (the smallest), so a lookup never
    multiplies fact rows.
    """
    return dim_df \
        .filter(F.col(business_key).isNotNull()) \
        .groupBy(business_key) \
        .agg(F.min(surrogate_key).alias(surrogate_key))


def build_fact_sales(
    sales: DataFrame,
    dim_products: DataFrame,
    dim_customers: DataFrame
) -> DataFrame:
    """
    Build the sales fact.

    Args:
        sales: silver ``crm_sales_details``
        dim_products: gold ``dim_products``
        dim_customers: gold ``dim_customers``

    Returns:
        DataFrame with ``FACT_SALES_COLUMNS``; ``product_number`` and
        ``customer_id`` are the natural keys the surrogate keys were resolved from
    """
    sl = sales.alias("sl")
    pr = key_lookup(dim_products, "product_number", "product_key").alias("pr")
    cu = key_lookup(dim_customers, "customer_id", "customer_key").alias("cu")

    return sl \
        .join(pr, F.col("sl.sls_prd_key") == F.col("pr.product_number"), "left") \
        .join(cu, F.col("sl.sls_cust_id") == F.col("cu.customer_id"), "left") \
        .select(
            F.col("sl.sls_ord_num").alias("order_number"),
            F.col("pr.product_key").alias("product_key"),
            F.col("cu.customer_key").alias("customer_key"),
            F.col("sl.sls_order_dt").alias("order_date"),
            F.col("sl.sls_ship_dt").alias("ship_date"),
            F.col("sl.sls_due_dt").alias("due_date"),
            F.col("sl.sls_sales").alias("sales"),
            F.col("sl.sls_quantity").alias("quantity"),
            F.col("sl.sls_price").alias("price"),
            F.col("sl.sls_prd_key").alias("product_number"),
            F.col("sl.sls_cust_id").alias("customer_id"),
        )
