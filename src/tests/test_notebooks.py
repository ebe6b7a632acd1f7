"""
Refresh Notebook Tests

Runs the Databricks refresh notebook as a plain script, the way it runs
outside a workspace (no ``dbutils``).
"""

import logging
import runpy
from pathlib import Path

import pytest

from src.config import CRM_SALES
from src.exceptions import RunAbortedError
from src.pipeline import initialize_warehouse

REFRESH_NOTEBOOK = Path(__file__).resolve().parents[2] / "notebooks" / "00_refresh_warehouse.py"


@pytest.fixture
def local_notebook_env(monkeypatch, warehouse_config):
    """Point the notebook's default config at the per-test schemas."""
    monkeypatch.setenv("DWH_CATALOG", "")
    monkeypatch.setenv("DWH_BRONZE_SCHEMA", warehouse_config.bronze_schema)
    monkeypatch.setenv("DWH_SILVER_SCHEMA", warehouse_config.silver_schema)
    monkeypatch.setenv("DWH_GOLD_SCHEMA", warehouse_config.gold_schema)
    monkeypatch.setenv("DWH_TABLE_FORMAT", warehouse_config.table_format)

    yield

    # setup_logging() detaches the src hierarchy from the root logger
    src_logger = logging.getLogger("src")
    src_logger.handlers.clear()
    src_logger.propagate = True


def _run_notebook(spark):
    return runpy.run_path(str(REFRESH_NOTEBOOK), init_globals={"spark": spark})


class TestRefreshNotebook:
    """Test the notebook exit paths without dbutils."""

    def test_success_runs_to_the_end(self, spark_session, warehouse_config, bronze_snapshot, local_notebook_env):
        initialize_warehouse(spark_session, warehouse_config)

        namespace = _run_notebook(spark_session)

        assert namespace["run_error"] is None
        assert namespace["exit_message"].startswith("SUCCESS")

    def test_failure_is_raised(self, spark_session, warehouse_config, bronze_snapshot, local_notebook_env):
        initialize_warehouse(spark_session, warehouse_config)
        spark_session.sql(f"DROP TABLE {warehouse_config.bronze_table(CRM_SALES)}")

        with pytest.raises(RunAbortedError) as exc_info:
            _run_notebook(spark_session)

        assert exc_info.value.entity == CRM_SALES


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
