"""
Silver and Bronze Table Schemas

Bronze schemas describe the typed raw relations delivered by ingestion.
Silver schemas are the table definitions for the four fixed-schema entities;
the two recreated entities (products, sales) take the schema of their
transformation output.
"""

from pyspark.sql.types import (
    DateType,
    IntegerType,
    StringType,
    StructField,
    StructType,
    TimestampType,
)

from src.config import (
    CRM_CUSTOMERS,
    CRM_PRODUCTS,
    CRM_SALES,
    ERP_CATEGORIES,
    ERP_CUSTOMERS,
    ERP_LOCATIONS,
    LOAD_TIMESTAMP_COLUMN,
)


def _strings(*names):
    return [StructField(name, StringType(), True) for name in names]


# ============================================================================
# BRONZE
# ============================================================================

BRONZE_SCHEMAS = {
    CRM_CUSTOMERS: StructType([
        StructField("cst_id", IntegerType(), True),
        *_strings("cst_key", "cst_firstname", "cst_lastname", "cst_marital_status", "cst_gender"),
        StructField("cst_create_date", DateType(), True),
    ]),
    CRM_PRODUCTS: StructType([
        StructField("prd_id", IntegerType(), True),
        *_strings("prd_key", "prd_nm"),
        StructField("prd_cost", IntegerType(), True),
        *_strings("prd_line", "prd_start", "prd_end_dt"),
    ]),
    CRM_SALES: StructType([
        *_strings("sls_ord_num", "sls_prd_key"),
        *[StructField(name, IntegerType(), True) for name in (
            "sls_cust_id", "sls_order_dt", "sls_ship_dt", "sls_due_dt",
            "sls_sales", "sls_quantity", "sls_price",
        )],
    ]),
    ERP_CUSTOMERS: StructType([
        *_strings("cid"),
        StructField("bdate", DateType(), True),
        *_strings("gen"),
    ]),
    ERP_LOCATIONS: StructType(_strings("cid", "country")),
    ERP_CATEGORIES: StructType(_strings("id", "cat", "sub_category", "maintenance")),
}

# ============================================================================
# SILVER (fixed-schema entities)
# ============================================================================

_LOAD_TIMESTAMP = StructField(LOAD_TIMESTAMP_COLUMN, TimestampType(), True)

SILVER_SCHEMAS = {
    CRM_CUSTOMERS: StructType([
        StructField("cst_id", IntegerType(), True),
        *_strings("cst_key", "cst_firstname", "cst_lastname", "cst_marital_status", "cst_gender"),
        StructField("cst_create_date", DateType(), True),
        _LOAD_TIMESTAMP,
    ]),
    ERP_CUSTOMERS: StructType([
        *_strings("cid"),
        StructField("bdate", DateType(), True),
        *_strings("gen"),
        _LOAD_TIMESTAMP,
    ]),
    ERP_LOCATIONS: StructType([*_strings("cid", "country"), _LOAD_TIMESTAMP]),
    ERP_CATEGORIES: StructType([
        *_strings("id", "cat", "sub_category", "maintenance"),
        _LOAD_TIMESTAMP,
    ]),
}

# Natural keys and nullable columns reported by the quality metrics
QUALITY_COLUMNS = {
    CRM_CUSTOMERS: (["cst_id"], ["cst_key", "cst_create_date"]),
    CRM_PRODUCTS: (["prd_key", "prd_start"], ["prd_start", "prd_end_dt"]),
    CRM_SALES: (["sls_ord_num", "sls_prd_key"], ["sls_order_dt", "sls_ship_dt", "sls_due_dt", "sls_price"]),
    ERP_CUSTOMERS: (["cid"], ["bdate"]),
    ERP_LOCATIONS: (["cid"], []),
    ERP_CATEGORIES: (["id"], []),
}
