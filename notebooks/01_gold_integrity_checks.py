# Databricks notebook source
# MAGIC %md
# MAGIC # Gold Integrity Checks (Read-Only)
# MAGIC
# MAGIC **Purpose:** Diagnose the published gold relations. No writes.
# MAGIC
# MAGIC ---
# MAGIC
# MAGIC ## Checks
# MAGIC
# MAGIC 1. **Duplicate surrogate keys** in `dim_customers` and `dim_products`
# MAGIC 2. **Mismatched keys** - a fact key that does not resolve to the dimension row of its own business key
# MAGIC 3. **Orphans** - fact rows with a null `product_key` or `customer_key`
# MAGIC
# MAGIC Results are reported only; a failing check never blocks or rolls back a load.

# COMMAND ----------

import os
import sys

sys.path.insert(0, os.path.abspath(".."))

from src.config import WarehouseConfig
from src.gold.integrity import run_integrity_checks
from src.logging_config import setup_logging

setup_logging()
config = WarehouseConfig()

# COMMAND ----------

report = run_integrity_checks(spark, config)

# COMMAND ----------

# MAGIC %md
# MAGIC ## Violations

# COMMAND ----------

for name, count in report.counts().items():
    if count:
        print(f"\n❌ {name}: {count} rows (first 20)")
        report.violations(name).show(20, truncate=False)

if report.passed:
    print("✅ All gold integrity checks passed")
