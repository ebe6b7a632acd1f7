"""
Warehouse Refresh

``refresh`` is the single entry point: rebuild every silver relation, then
every gold relation. Gold starts only after all silver loads have committed.
The first failure propagates as ``RunAbortedError``.
"""

import logging
from datetime import datetime
from typing import Dict, Optional

from pyspark.sql import SparkSession

from src.config import WarehouseConfig
from src.gold.loader import build_gold
from src.silver.loader import load_silver
from src.silver.schemas import SILVER_SCHEMAS
from src.utils.spark_helpers import create_table_if_missing, get_spark_session

logger = logging.getLogger(__name__)


def initialize_warehouse(spark: SparkSession, config: Optional[WarehouseConfig] = None) -> None:
    """
    Create the layer schemas and the fixed-schema silver tables (idempotent).

    ``refresh`` never creates fixed-schema tables itself; a missing one is
    skipped during the load.
    """
    config = config or WarehouseConfig()

    for schema in (config.bronze_schema, config.silver_schema, config.gold_schema):
        spark.sql(f"CREATE SCHEMA IF NOT EXISTS {config.namespace(schema)}")

    for entity, schema in SILVER_SCHEMAS.items():
        create_table_if_missing(spark, config.silver_table(entity), schema, config.table_format)


def refresh(
    spark: Optional[SparkSession] = None,
    config: Optional[WarehouseConfig] = None
) -> Dict:
    """
    Rebuild silver and gold from the current bronze snapshot.

    Args:
        spark: SparkSession object (created with Delta enabled if omitted)
        config: Resolved warehouse configuration

    Returns:
        dict with status, timings and the per-relation results

    Raises:
        RunAbortedError: the first relation that failed; relations published
            before it keep their new contents
    """
    spark = spark or get_spark_session()
    config = config or WarehouseConfig()
    start_time = datetime.now()

    logger.info(f"🚀 Warehouse refresh started - {config!r}")

    silver_results = load_silver(spark, config)
    gold_results = build_gold(spark, config)

    end_time = datetime.now()
    skipped = [r["entity"] for r in silver_results if r["status"] == "SKIPPED"]
    summary = {
        "status": "SUCCESS",
        "start_time": start_time.isoformat(),
        "end_time": end_time.isoformat(),
        "total_duration_seconds": (end_time - start_time).total_seconds(),
        "silver": silver_results,
        "gold": gold_results,
        "skipped": skipped,
    }

    logger.info("=" * 60)
    logger.info(f"✅ Refresh completed in {summary['total_duration_seconds']:.1f}s")
    if skipped:
        logger.warning(f"⚠️ Skipped (target missing): {', '.join(skipped)}")
    logger.info("=" * 60)

    return summary
