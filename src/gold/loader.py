"""
Gold Loader

Materializes the dimensions and the sales fact from the published silver
relations. The fact is built from the published dimension tables so its
surrogate keys always match what readers see.
"""

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional

from pyspark.sql import DataFrame, SparkSession

from src.config import (
    CRM_CUSTOMERS,
    CRM_PRODUCTS,
    CRM_SALES,
    DIM_CUSTOMERS,
    DIM_PRODUCTS,
    ERP_CATEGORIES,
    ERP_CUSTOMERS,
    ERP_LOCATIONS,
    FACT_SALES,
    WarehouseConfig,
)
from src.exceptions import RunAbortedError
from src.gold.dimensions import build_dim_customers, build_dim_products
from src.gold.facts import build_fact_sales
from src.utils.spark_helpers import get_table_metrics, publish_table

logger = logging.getLogger(__name__)


def _publish(
    spark: SparkSession,
    entity: str,
    build: Callable[[], DataFrame],
    config: WarehouseConfig
) -> Dict:
    target = config.gold_table(entity)
    start_time = datetime.now()
    result = {
        "entity": entity,
        "table": target,
        "status": "PENDING",
        "duration_seconds": 0,
        "metrics": None,
    }

    logger.info(f"🚀 Building {entity} -> {target}")
    try:
        publish_table(spark, build(), target, table_format=config.table_format, replace_schema=True)
        if config.is_delta:
            result["metrics"] = get_table_metrics(spark, target)
    except Exception as e:
        logger.error(f"❌ Failed: {entity} - {e}")
        raise RunAbortedError(entity, e) from e

    result["status"] = "SUCCESS"
    result["duration_seconds"] = (datetime.now() - start_time).total_seconds()
    logger.info(f"✅ Completed: {entity} ({result['duration_seconds']:.1f}s)")
    return result


def build_gold(spark: SparkSession, config: Optional[WarehouseConfig] = None) -> List[Dict]:
    """
    Rebuild ``dim_customers``, ``dim_products`` and ``fact_sales``.

    Returns:
        List of per-relation results in build order

    Raises:
        RunAbortedError: for the first relation that failed
    """
    config = config or WarehouseConfig()
    silver = config.silver_table

    logger.info("=" * 60)
    logger.info("📦 GOLD BUILD")
    logger.info("=" * 60)

    def customers():
        return build_dim_customers(
            spark.read.table(silver(CRM_CUSTOMERS)),
            spark.read.table(silver(ERP_CUSTOMERS)),
            spark.read.table(silver(ERP_LOCATIONS)),
        )

    def products():
        return build_dim_products(
            spark.read.table(silver(CRM_PRODUCTS)),
            spark.read.table(silver(ERP_CATEGORIES)),
        )

    def sales():
        return build_fact_sales(
            spark.read.table(silver(CRM_SALES)),
            spark.read.table(config.gold_table(DIM_PRODUCTS)),
            spark.read.table(config.gold_table(DIM_CUSTOMERS)),
        )

    return [
        _publish(spark, DIM_CUSTOMERS, customers, config),
        _publish(spark, DIM_PRODUCTS, products, config),
        _publish(spark, FACT_SALES, sales, config),
    ]
