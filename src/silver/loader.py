"""
Silver Loader

Full refresh of the six silver relations from bronze. Each entity is its own
unit of work: transform, optionally log quality metrics, then publish in one
atomic step.

Two publish modes:
- recreated entities (products, sales) replace the table schema and carry a
  ``dwh_create_date`` load timestamp
- fixed-schema entities are conformed to the existing table definition; a
  missing target is logged and skipped

The first failing entity aborts the load with ``RunAbortedError``. Entities
published before the failure keep their new contents.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime
from typing import Dict, List, Optional

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
from src.exceptions import RunAbortedError, SchemaMissingError
from src.silver.schemas import QUALITY_COLUMNS
from src.silver.transformations import (
    transform_customers,
    transform_erp_categories,
    transform_erp_customers,
    transform_erp_locations,
    transform_products,
    transform_sales,
)
from src.utils.data_quality import collect_quality_metrics, log_data_quality
from src.utils.spark_helpers import (
    add_load_timestamp,
    conform_to_table,
    get_table_metrics,
    publish_table,
    require_table,
)

logger = logging.getLogger(__name__)

# Load order; "recreate" entities replace their table schema on every run
SILVER_ENTITIES = {
    CRM_CUSTOMERS: {"transform": transform_customers, "recreate": False},
    CRM_PRODUCTS: {"transform": transform_products, "recreate": True},
    CRM_SALES: {"transform": transform_sales, "recreate": True},
    ERP_CUSTOMERS: {"transform": transform_erp_customers, "recreate": False},
    ERP_LOCATIONS: {"transform": transform_erp_locations, "recreate": False},
    ERP_CATEGORIES: {"transform": transform_erp_categories, "recreate": False},
}


def load_entity(spark: SparkSession, entity: str, config: WarehouseConfig) -> Dict:
    """
    Rebuild one silver relation from its bronze source.

    Args:
        spark: SparkSession object
        entity: Entity name from ``SILVER_ENTITIES``
        config: Resolved warehouse configuration

    Returns:
        dict with entity, table, status (SUCCESS / SKIPPED), duration and
        commit metrics when available

    Raises:
        RunAbortedError: on any failure other than a missing fixed-schema target
    """
    entity_spec = SILVER_ENTITIES[entity]
    target = config.silver_table(entity)
    start_time = datetime.now()
    result = {
        "entity": entity,
        "table": target,
        "status": "PENDING",
        "duration_seconds": 0,
        "metrics": None,
    }

    logger.info(f"🚀 Loading {entity} -> {target}")
    try:
        if not entity_spec["recreate"]:
            require_table(spark, target)

        silver_df = entity_spec["transform"](spark.read.table(config.bronze_table(entity)))

        if config.log_quality:
            key_columns, nullable_columns = QUALITY_COLUMNS[entity]
            log_data_quality(entity, collect_quality_metrics(silver_df, key_columns, nullable_columns))

        if entity_spec["recreate"]:
            publish_table(
                spark, add_load_timestamp(silver_df), target,
                table_format=config.table_format, replace_schema=True
            )
        else:
            publish_table(
                spark, conform_to_table(spark, silver_df, target), target,
                table_format=config.table_format, replace_schema=False
            )

        if config.is_delta:
            result["metrics"] = get_table_metrics(spark, target)

    except SchemaMissingError as e:
        result["status"] = "SKIPPED"
        result["duration_seconds"] = (datetime.now() - start_time).total_seconds()
        logger.warning(f"⚠️ Skipped: {entity} - {e.message}")
        return result

    except Exception as e:
        logger.error(f"❌ Failed: {entity} - {e}")
        raise RunAbortedError(entity, e) from e

    result["status"] = "SUCCESS"
    result["duration_seconds"] = (datetime.now() - start_time).total_seconds()

    rows = result["metrics"]["rows"] if result["metrics"] else "n/a"
    logger.info(f"✅ Completed: {entity} ({result['duration_seconds']:.1f}s, rows: {rows})")
    return result


def load_silver(spark: SparkSession, config: Optional[WarehouseConfig] = None) -> List[Dict]:
    """
    Rebuild every silver relation.

    Entities read disjoint bronze sources, so with ``config.parallel_silver``
    they run on a thread pool; pending loads are cancelled after the first
    failure.

    Returns:
        List of per-entity results in load order

    Raises:
        RunAbortedError: for the first entity that failed
    """
    config = config or WarehouseConfig()
    entities = list(SILVER_ENTITIES)

    logger.info("=" * 60)
    logger.info(f"📦 SILVER LOAD: {len(entities)} entities ({'parallel' if config.parallel_silver else 'sequential'})")
    logger.info("=" * 60)

    results = {}
    if config.parallel_silver and len(entities) > 1:
        with ThreadPoolExecutor(max_workers=config.max_workers) as executor:
            futures = {
                executor.submit(load_entity, spark, entity, config): entity
                for entity in entities
            }
            try:
                for future in as_completed(futures):
                    results[futures[future]] = future.result()
            except RunAbortedError:
                for future in futures:
                    future.cancel()
                raise
    else:
        for entity in entities:
            results[entity] = load_entity(spark, entity, config)

    return [results[entity] for entity in entities]
