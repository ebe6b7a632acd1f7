"""
Warehouse Configuration

Table names, layer schemas and business constants shared by the silver and
gold builds. Run settings live on ``WarehouseConfig``; every field can be
overridden through a ``DWH_*`` environment variable so the same code runs on
a Unity Catalog workspace and locally.
"""

from datetime import date
from typing import Dict

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

STAGING_SUFFIX = "__staging"
LOAD_TIMESTAMP_COLUMN = "dwh_create_date"

# =============================================================================
# ENTITIES
# =============================================================================

# Source-system relations; bronze and silver share the names
CRM_CUSTOMERS = "crm_cust_info"
CRM_PRODUCTS = "crm_prd_info"
CRM_SALES = "crm_sales_details"
ERP_CUSTOMERS = "erp_cust_az12"
ERP_LOCATIONS = "erp_loc_a101"
ERP_CATEGORIES = "erp_px_cat_g1v2"

SOURCE_ENTITIES = [
    CRM_CUSTOMERS,
    CRM_PRODUCTS,
    CRM_SALES,
    ERP_CUSTOMERS,
    ERP_LOCATIONS,
    ERP_CATEGORIES,
]

DIM_CUSTOMERS = "dim_customers"
DIM_PRODUCTS = "dim_products"
FACT_SALES = "fact_sales"

GOLD_ENTITIES = [DIM_CUSTOMERS, DIM_PRODUCTS, FACT_SALES]

# =============================================================================
# BUSINESS CONFIGURATION
# =============================================================================

BUSINESS_CONFIG = {
    "default_label": "N/A",
    "compact_date_length": 8,
    "compact_date_format": "%Y%m%d",
    "min_birth_date": date(1925, 1, 1),
    "erp_customer_prefix": "NAS",
    "location_id_separator": "-",
    "category_id_length": 5,
    "product_key_offset": 7,
}


class WarehouseConfig(BaseSettings):
    """
    Resolved settings for one pipeline run.

    Keyword arguments win over ``DWH_<FIELD>`` environment variables, which
    win over the defaults below. Invalid values raise ``ValidationError``
    when the config is built.
    """

    model_config = SettingsConfigDict(
        env_prefix="DWH_",
        case_sensitive=False,
        extra="ignore",
    )

    # Empty catalog -> two-part names (schema.table) against the session catalog
    catalog: str = Field(default="", description="Unity Catalog name")
    bronze_schema: str = Field(default="bronze", description="Schema holding the raw source relations")
    silver_schema: str = Field(default="silver", description="Schema holding the cleaned relations")
    gold_schema: str = Field(default="gold", description="Schema holding dimensions and facts")

    # "delta" publishes with a transactional overwrite, anything else via staging table
    table_format: str = Field(default="delta", description="Storage format used for every write")

    parallel_silver: bool = Field(default=False, description="Run independent silver loads concurrently")
    max_workers: int = Field(default=3, ge=1, description="Thread pool size for parallel silver loads")
    log_quality: bool = Field(default=True, description="Log per-entity quality metrics after transformation")
    log_level: str = Field(default="INFO", description="Base level for the src logger hierarchy")

    @field_validator("table_format")
    @classmethod
    def lower_format(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def is_delta(self) -> bool:
        return self.table_format == "delta"

    def namespace(self, schema: str) -> str:
        return f"{self.catalog}.{schema}" if self.catalog else schema

    def qualified(self, schema: str, table: str) -> str:
        return f"{self.namespace(schema)}.{table}"

    def bronze_table(self, entity: str) -> str:
        return self.qualified(self.bronze_schema, entity)

    def silver_table(self, entity: str) -> str:
        return self.qualified(self.silver_schema, entity)

    def gold_table(self, entity: str) -> str:
        return self.qualified(self.gold_schema, entity)

    @property
    def bronze_tables(self) -> Dict[str, str]:
        return {entity: self.bronze_table(entity) for entity in SOURCE_ENTITIES}

    @property
    def silver_tables(self) -> Dict[str, str]:
        return {entity: self.silver_table(entity) for entity in SOURCE_ENTITIES}

    @property
    def gold_tables(self) -> Dict[str, str]:
        return {entity: self.gold_table(entity) for entity in GOLD_ENTITIES}
