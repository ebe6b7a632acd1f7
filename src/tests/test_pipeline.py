"""
End-to-End Refresh Tests

Full bronze -> silver -> gold runs against the shared bronze snapshot
(see ``conftest.bronze_snapshot``).
"""

from datetime import date

import pytest

from src.config import (
    CRM_CUSTOMERS,
    CRM_PRODUCTS,
    CRM_SALES,
    DIM_CUSTOMERS,
    DIM_PRODUCTS,
    ERP_CATEGORIES,
    ERP_LOCATIONS,
    FACT_SALES,
    GOLD_ENTITIES,
    LOAD_TIMESTAMP_COLUMN,
    SOURCE_ENTITIES,
)
from src.exceptions import RunAbortedError
from src.gold.integrity import run_integrity_checks
from src.pipeline import initialize_warehouse, refresh


def _snapshot(spark, table):
    df = spark.read.table(table)
    columns = [c for c in df.columns if c != LOAD_TIMESTAMP_COLUMN]
    return sorted(df.select(*columns).collect(), key=lambda r: tuple(str(v) for v in r))


@pytest.fixture
def refreshed(spark_session, warehouse_config, bronze_snapshot):
    initialize_warehouse(spark_session, warehouse_config)
    return refresh(spark_session, warehouse_config)


class TestRefresh:
    """Test a complete refresh."""

    def test_summary(self, refreshed):
        assert refreshed["status"] == "SUCCESS"
        assert [r["entity"] for r in refreshed["silver"]] == SOURCE_ENTITIES
        assert [r["entity"] for r in refreshed["gold"]] == GOLD_ENTITIES
        assert refreshed["skipped"] == []

    def test_customer_dedup(self, spark_session, warehouse_config, refreshed):
        """Scenario A: the 2022 record for id 7 wins."""
        rows = spark_session.read.table(warehouse_config.silver_table(CRM_CUSTOMERS)) \
            .filter("cst_id = 7").collect()

        assert len(rows) == 1
        assert rows[0]["cst_gender"] == "FEMALE"
        assert rows[0]["cst_create_date"] == date(2022, 6, 1)

    def test_product_effective_dates(self, spark_session, warehouse_config, refreshed):
        """Scenario B: versions of AB-123 are chained."""
        rows = spark_session.read.table(warehouse_config.silver_table(CRM_PRODUCTS)) \
            .filter("prd_key = 'AB-123'").orderBy("prd_start").collect()

        assert [(r["prd_start"], r["prd_end_dt"]) for r in rows] == [
            (date(2020, 1, 1), date(2021, 1, 1)),
            (date(2021, 1, 1), None),
        ]

    def test_sales_reconciled(self, spark_session, warehouse_config, refreshed):
        """Scenarios C and D."""
        rows = {
            r["sls_ord_num"]: r
            for r in spark_session.read.table(warehouse_config.silver_table(CRM_SALES)).collect()
        }

        assert (rows["SO1"]["sls_sales"], rows["SO1"]["sls_price"]) == (30, 10)
        assert (rows["SO2"]["sls_sales"], rows["SO2"]["sls_price"]) == (10, 2)
        assert (rows["SO2"]["sls_order_dt"], rows["SO2"]["sls_ship_dt"], rows["SO2"]["sls_due_dt"]) == (None, None, None)

    def test_orphan_fact_kept_and_flagged(self, spark_session, warehouse_config, refreshed):
        """Scenario E: an unknown product leaves a null product key."""
        fact = spark_session.read.table(warehouse_config.gold_table(FACT_SALES))
        rows = {r["order_number"]: r for r in fact.collect()}

        assert len(rows) == 4
        assert rows["SO3"]["product_key"] is None
        assert rows["SO4"]["customer_key"] is None

        report = run_integrity_checks(spark_session, warehouse_config)
        orphans = sorted(r["order_number"] for r in report.violations("fact_sales.orphans").collect())

        assert orphans == ["SO3", "SO4"]
        assert report.counts()["fact_sales.mismatched_keys"] == 0
        assert report.counts()["dim_customers.duplicate_keys"] == 0
        assert report.counts()["dim_products.duplicate_keys"] == 0

    def test_dimensions(self, spark_session, warehouse_config, refreshed):
        customers = {
            r["customer_id"]: r
            for r in spark_session.read.table(warehouse_config.gold_table(DIM_CUSTOMERS)).collect()
        }
        products = spark_session.read.table(warehouse_config.gold_table(DIM_PRODUCTS)).collect()

        assert customers[7]["country"] == "UNITED STATES"
        assert customers[7]["birth_date"] == date(1980, 5, 17)
        assert customers[8]["gender"] == "N/A"
        assert customers[8]["birth_date"] is None
        assert customers[8]["country"] == "N/A"
        assert sorted((r["product_key"], r["product_number"]) for r in products) == [
            (1, "HL-U509"),
            (2, "AB-123"),
        ]

    def test_idempotent(self, spark_session, warehouse_config, refreshed):
        """A second run over unchanged bronze gives identical relations."""
        tables = list(warehouse_config.silver_tables.values()) + list(warehouse_config.gold_tables.values())
        before = {table: _snapshot(spark_session, table) for table in tables}

        refresh(spark_session, warehouse_config)

        for table in tables:
            assert _snapshot(spark_session, table) == before[table], table


class TestRefreshFailures:
    """Test skip and abort behavior."""

    def test_missing_fixed_target_skips_silver(self, spark_session, warehouse_config, bronze_snapshot):
        """A skipped silver relation is reported; gold then fails on the missing input."""
        initialize_warehouse(spark_session, warehouse_config)
        spark_session.sql(f"DROP TABLE {warehouse_config.silver_table(ERP_LOCATIONS)}")

        with pytest.raises(RunAbortedError) as exc_info:
            refresh(spark_session, warehouse_config)

        assert exc_info.value.entity == DIM_CUSTOMERS
        assert spark_session.read.table(warehouse_config.silver_table(CRM_CUSTOMERS)).count() == 2

    def test_abort_stops_before_gold(self, spark_session, warehouse_config, bronze_snapshot):
        initialize_warehouse(spark_session, warehouse_config)
        spark_session.sql(f"DROP TABLE {warehouse_config.bronze_table(ERP_CATEGORIES)}")

        with pytest.raises(RunAbortedError) as exc_info:
            refresh(spark_session, warehouse_config)

        assert exc_info.value.entity == ERP_CATEGORIES
        assert not spark_session.catalog.tableExists(warehouse_config.gold_table(DIM_CUSTOMERS))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
