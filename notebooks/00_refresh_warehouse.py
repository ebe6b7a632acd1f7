# Databricks notebook source
# MAGIC %md
# MAGIC # Warehouse Refresh (Silver + Gold)
# MAGIC
# MAGIC **Purpose:** Rebuild the six silver relations from bronze, then the gold dimensions and the sales fact.
# MAGIC
# MAGIC ---
# MAGIC
# MAGIC ## Execution Model
# MAGIC
# MAGIC **Silver:** one unit of work per entity
# MAGIC - `crm_prd_info`, `crm_sales_details`: schema replaced on every run
# MAGIC - `crm_cust_info`, `erp_cust_az12`, `erp_loc_a101`, `erp_px_cat_g1v2`: conformed to the existing table (skipped if the table is missing)
# MAGIC
# MAGIC **Gold:** `dim_customers`, `dim_products`, then `fact_sales` (starts after every silver load has committed)
# MAGIC
# MAGIC **Atomicity:** each relation is one Delta overwrite commit; readers never see an empty table
# MAGIC
# MAGIC **Failure:** the first failing relation aborts the run; relations already published keep their new contents

# COMMAND ----------

# MAGIC %md
# MAGIC ## 1. Widget Configuration & Imports

# COMMAND ----------

import os
import sys

try:
    dbutils.widgets.dropdown("initialize", "no", ["yes", "no"], "Create schemas / silver tables")
    dbutils.widgets.dropdown("parallel_silver", "no", ["yes", "no"], "Parallel Silver Loads")
    dbutils.widgets.text("log_level", "INFO", "Log Level")
    WIDGET_INITIALIZE = dbutils.widgets.get("initialize") == "yes"
    WIDGET_PARALLEL = dbutils.widgets.get("parallel_silver") == "yes"
    WIDGET_LOG_LEVEL = dbutils.widgets.get("log_level")
except NameError:
    # Local execution without dbutils
    WIDGET_INITIALIZE = False
    WIDGET_PARALLEL = False
    WIDGET_LOG_LEVEL = "INFO"

# Repository root (notebooks/ lives one level below)
sys.path.insert(0, os.path.abspath(".."))

from src.config import WarehouseConfig
from src.exceptions import RunAbortedError
from src.logging_config import setup_logging
from src.pipeline import initialize_warehouse, refresh

setup_logging(WIDGET_LOG_LEVEL)
config = WarehouseConfig(parallel_silver=WIDGET_PARALLEL)

print(f"🔧 Configuration: {config!r}")

# COMMAND ----------

# MAGIC %md
# MAGIC ## 2. Initialize (optional)

# COMMAND ----------

if WIDGET_INITIALIZE:
    initialize_warehouse(spark, config)
    print("✅ Schemas and fixed-schema silver tables ready")

# COMMAND ----------

# MAGIC %md
# MAGIC ## 3. Refresh

# COMMAND ----------

run_error = None
try:
    summary = refresh(spark, config)
except RunAbortedError as e:
    run_error = e
    exit_message = f"FAILED: {e.details['entity']} - {e.details['original_error']}: {e.message}"
    print(f"\n❌ {exit_message}")
else:
    print("\n📊 Relations:")
    for result in summary["silver"] + summary["gold"]:
        rows = result["metrics"]["rows"] if result["metrics"] else "n/a"
        print(f"   {result['status']:<8} {result['table']:<45} rows={rows} ({result['duration_seconds']:.1f}s)")

    exit_message = f"SUCCESS: refresh completed in {summary['total_duration_seconds']:.1f}s"
    print(f"\n✅ {exit_message}")

try:
    notebook_exit = dbutils.notebook.exit
except NameError:
    # Local execution without dbutils
    notebook_exit = None

if notebook_exit is not None:
    notebook_exit(exit_message)
elif run_error is not None:
    raise run_error
