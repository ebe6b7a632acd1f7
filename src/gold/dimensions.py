"""
Gold Dimensions

Customer and product dimensions assembled from silver relations.

Surrogate keys are dense ranks over a total order: the business sort columns
followed by the natural key, so two rebuilds from the same silver snapshot
assign identical keys.
"""

from typing import List

from pyspark.sql import Column, DataFrame, Window
from pyspark.sql import functions as F

from src.config import BUSINESS_CONFIG

CUSTOMER_COLUMNS = [
    "customer_key",
    "customer_id",
    "customer_number",
    "first_name",
    "last_name",
    "country",
    "marital_status",
    "gender",
    "birth_date",
    "creation_date",
]

PRODUCT_COLUMNS = [
    "product_key",
    "product_id",
    "product_number",
    "product_name",
    "category_id",
    "category",
    "sub_category",
    "maintenance",
    "product_cost",
    "product_line",
    "start_date",
]


def surrogate_key(order_columns: List[Column]) -> Column:
    """
    Dense rank over the given ascending order (nulls last).

    Example:
        >>> df.withColumn("customer_key", surrogate_key([F.col("cst_id"), F.col("cst_key")]))
    """
    return F.dense_rank().over(Window.orderBy(*[c.asc_nulls_last() for c in order_columns]))


def one_row_per_key(df: DataFrame, key_column: str) -> DataFrame:
    """
    Reduce a lookup relation to one row per join key.

    Duplicates are resolved by the remaining columns in ascending order so
    the kept row does not depend on input order. Rows with a null key can
    never match a join and are dropped.
    """
    others = sorted(c for c in df.columns if c != key_column)
    window = Window.partitionBy(key_column).orderBy(*[F.col(c).asc_nulls_last() for c in others])

    return df \
        .filter(F.col(key_column).isNotNull()) \
        .withColumn("_lookup_rank", F.row_number().over(window)) \
        .filter(F.col("_lookup_rank") == 1) \
        .drop("_lookup_rank")


def build_dim_customers(
    customers: DataFrame,
    erp_customers: DataFrame,
    erp_locations: DataFrame
) -> DataFrame:
    """
    One row per silver customer, enriched with ERP birth date, gender and
    country.

    Gender priority: CRM gender when not null, then ERP gender, then the
    default label. Customers without an ERP match keep null ERP fields.

    Args:
        customers: silver ``crm_cust_info``
        erp_customers: silver ``erp_cust_az12``
        erp_locations: silver ``erp_loc_a101``
    """
    ci = customers.alias("ci")
    ca = one_row_per_key(erp_customers.select("cid", "bdate", "gen"), "cid").alias("ca")
    la = one_row_per_key(erp_locations.select("cid", "country"), "cid").alias("la")

    return ci \
        .join(ca, F.col("ci.cst_key") == F.col("ca.cid"), "left") \
        .join(la, F.col("ci.cst_key") == F.col("la.cid"), "left") \
        .select(
            surrogate_key([F.col("ci.cst_id"), F.col("ci.cst_key")]).alias("customer_key"),
            F.col("ci.cst_id").alias("customer_id"),
            F.col("ci.cst_key").alias("customer_number"),
            F.col("ci.cst_firstname").alias("first_name"),
            F.col("ci.cst_lastname").alias("last_name"),
            F.col("la.country").alias("country"),
            F.col("ci.cst_marital_status").alias("marital_status"),
            F.coalesce(
                F.col("ci.cst_gender"), F.col("ca.gen"), F.lit(BUSINESS_CONFIG["default_label"])
            ).alias("gender"),
            F.col("ca.bdate").alias("birth_date"),
            F.col("ci.cst_create_date").alias("creation_date"),
        )


def build_dim_products(products: DataFrame, categories: DataFrame) -> DataFrame:
    """
    One row per current product version (null end date), enriched with
    category details.

    Args:
        products: silver ``crm_prd_info``
        categories: silver ``erp_px_cat_g1v2``
    """
    pn = products.filter(F.col("prd_end_dt").isNull()).alias("pn")
    px = one_row_per_key(
        categories.select("id", "cat", "sub_category", "maintenance"), "id"
    ).alias("px")

    return pn \
        .join(px, F.col("pn.cat_id") == F.col("px.id"), "left") \
        .select(
            surrogate_key([
                F.col("pn.prd_start"), F.col("pn.prd_key"), F.col("pn.prd_id")
            ]).alias("product_key"),
            F.col("pn.prd_id").alias("product_id"),
            F.col("pn.prd_key").alias("product_number"),
            F.col("pn.prd_nm").alias("product_name"),
            F.col("pn.cat_id").alias("category_id"),
            F.col("px.cat").alias("category"),
            F.col("px.sub_category").alias("sub_category"),
            F.col("px.maintenance").alias("maintenance"),
            F.col("pn.prd_cost").alias("product_cost"),
            F.col("pn.prd_line").alias("product_line"),
            F.col("pn.prd_start").alias("start_date"),
        )
