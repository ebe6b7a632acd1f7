"""
Pytest configuration and shared fixtures
"""

import itertools
from datetime import date

import pytest
from delta import configure_spark_with_delta_pip
from pyspark.sql import SparkSession

from src.config import (
    CRM_CUSTOMERS,
    CRM_PRODUCTS,
    CRM_SALES,
    ERP_CATEGORIES,
    ERP_CUSTOMERS,
    ERP_LOCATIONS,
    WarehouseConfig,
)
from src.silver.schemas import BRONZE_SCHEMAS, SILVER_SCHEMAS
from src.utils.spark_helpers import create_table_if_missing

_schema_ids = itertools.count(1)


def pytest_configure(config):
    """Configure pytest."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


@pytest.fixture(scope="session")
def spark_session(tmp_path_factory):
    """Create a Delta-enabled Spark session for the entire test session."""
    warehouse_dir = tmp_path_factory.mktemp("spark-warehouse")
    builder = SparkSession.builder \
        .appName("test_session") \
        .master("local[1]") \
        .config("spark.sql.shuffle.partitions", "1") \
        .config("spark.ui.enabled", "false") \
        .config("spark.sql.warehouse.dir", str(warehouse_dir)) \
        .config("spark.sql.extensions", "io.delta.sql.DeltaSparkSessionExtension") \
        .config("spark.sql.catalog.spark_catalog", "org.apache.spark.sql.delta.catalog.DeltaCatalog")
    spark = configure_spark_with_delta_pip(builder).getOrCreate()

    yield spark

    spark.stop()


@pytest.fixture
def warehouse_config(spark_session):
    """Fresh bronze/silver/gold schemas (parquet) for one test."""
    run_id = next(_schema_ids)
    config = WarehouseConfig(
        catalog="",
        bronze_schema=f"bronze_{run_id}",
        silver_schema=f"silver_{run_id}",
        gold_schema=f"gold_{run_id}",
        table_format="parquet",
        parallel_silver=False,
        log_quality=True,
    )
    schemas = (config.bronze_schema, config.silver_schema, config.gold_schema)
    for schema in schemas:
        spark_session.sql(f"CREATE SCHEMA IF NOT EXISTS {schema}")

    yield config

    for schema in schemas:
        spark_session.sql(f"DROP SCHEMA IF EXISTS {schema} CASCADE")


@pytest.fixture
def delta_config(warehouse_config):
    """The per-test schemas, written as Delta tables."""
    warehouse_config.table_format = "delta"
    return warehouse_config


@pytest.fixture
def write_bronze(spark_session, warehouse_config):
    """Write rows (tuples in bronze column order) to a bronze table."""
    def _write(entity, rows):
        df = spark_session.createDataFrame(rows, BRONZE_SCHEMAS[entity])
        df.write.format("parquet").mode("overwrite").saveAsTable(warehouse_config.bronze_table(entity))
        return df
    return _write


@pytest.fixture
def create_silver_tables(spark_session, warehouse_config):
    """Create the fixed-schema silver tables (all, or the given entities)."""
    def _create(entities=None):
        for entity in entities or list(SILVER_SCHEMAS):
            create_table_if_missing(
                spark_session,
                warehouse_config.silver_table(entity),
                SILVER_SCHEMAS[entity],
                warehouse_config.table_format,
            )
    return _create


@pytest.fixture
def bronze_snapshot(write_bronze):
    """Populate all six bronze relations with a small consistent snapshot."""
    write_bronze(CRM_CUSTOMERS, [
        (7, "AW00007", " Ann ", "Lee ", "s", " m ", date(2021, 1, 1)),
        (7, "AW00007", "Ann", "Lee", "M", "F", date(2022, 6, 1)),
        (8, "AW00008", "Bob", "Ray", "S", None, date(2022, 1, 1)),
        (None, "AW00009", "Nil", "Key", "M", "M", date(2022, 1, 1)),
    ])
    write_bronze(CRM_PRODUCTS, [
        (1, "CO-RF-AB-123", "Frame v1", 10, "r", "2020-01-01", None),
        (2, "CO-RF-AB-123", "Frame v2", None, "R ", "2021-01-01", None),
        (3, "AC-HE-HL-U509", "Helmet", 12, "S", "2019-05-01", None),
    ])
    write_bronze(CRM_SALES, [
        ("SO1", "AB-123", 7, 20220115, 20220120, 20220125, 999, 3, 10),
        ("SO2", "HL-U509", 8, 0, 2022012, 20221340, None, 5, -2),
        ("SO3", "ZZ-999", 7, 20220301, None, 20220310, 40, 2, 20),
        ("SO4", "AB-123", 99, 20220401, 20220402, 20220403, 20, 2, None),
    ])
    write_bronze(ERP_CUSTOMERS, [
        ("NASAW00007", date(1980, 5, 17), "Female"),
        ("AW00008", date(1900, 1, 1), "M"),
    ])
    write_bronze(ERP_LOCATIONS, [
        ("AW-00007", "US"),
        ("AW-00008", " "),
    ])
    write_bronze(ERP_CATEGORIES, [
        ("CO_RF", "Components", "Road Frames", "Yes"),
        ("AC_HE", "Accessories", "Helmets", "No"),
    ])
