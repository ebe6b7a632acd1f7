"""
Spark Helper Functions

Session bootstrap, catalog checks and the atomic table publish used by every
silver and gold write.
"""

import logging
from typing import Dict

from delta import configure_spark_with_delta_pip
from delta.tables import DeltaTable
from pyspark.sql import SparkSession, DataFrame
from pyspark.sql import functions as F
from pyspark.sql.types import StructType

from src.config import LOAD_TIMESTAMP_COLUMN, STAGING_SUFFIX
from src.exceptions import ConstraintViolation, SchemaMissingError

logger = logging.getLogger(__name__)


def get_spark_session(app_name: str = "CRM_ERP_Warehouse") -> SparkSession:
    """
    Create or get existing Spark session with Delta Lake enabled.

    Args:
        app_name: Name of the Spark application

    Returns:
        SparkSession object
    """
    builder = SparkSession.builder \
        .appName(app_name) \
        .config("spark.sql.extensions", "io.delta.sql.DeltaSparkSessionExtension") \
        .config("spark.sql.catalog.spark_catalog", "org.apache.spark.sql.delta.catalog.DeltaCatalog")

    return configure_spark_with_delta_pip(builder).getOrCreate()


def table_exists(spark: SparkSession, table_name: str) -> bool:
    return spark.catalog.tableExists(table_name)


def require_table(spark: SparkSession, table_name: str) -> None:
    """
    Raise ``SchemaMissingError`` when the table is not registered.
    """
    if not table_exists(spark, table_name):
        raise SchemaMissingError(table_name)


def create_table_if_missing(
    spark: SparkSession,
    table_name: str,
    schema: StructType,
    table_format: str = "delta"
) -> bool:
    """
    Create an empty table with the given schema (idempotent).

    Args:
        spark: SparkSession object
        table_name: Fully-qualified table name
        schema: Target schema
        table_format: Storage format

    Returns:
        True if the table was created, False if it already existed
    """
    if table_exists(spark, table_name):
        return False

    spark.createDataFrame([], schema).write \
        .format(table_format) \
        .mode("overwrite") \
        .saveAsTable(table_name)

    logger.info(f"🆕 Created {table_name} ({len(schema.fields)} columns)")
    return True


def conform_to_table(spark: SparkSession, df: DataFrame, table_name: str) -> DataFrame:
    """
    Project a DataFrame onto an existing table's schema.

    Columns are selected in the target order and cast to the target types,
    the way an INSERT with an explicit column list behaves. A target load
    timestamp column missing from ``df`` is filled with the current timestamp.

    Raises:
        ConstraintViolation: if the target declares columns ``df`` lacks
    """
    target = spark.read.table(table_name).schema
    available = set(df.columns)
    missing = [
        f.name for f in target.fields
        if f.name not in available and f.name != LOAD_TIMESTAMP_COLUMN
    ]
    if missing:
        raise ConstraintViolation(table_name, missing)

    projection = []
    for field in target.fields:
        if field.name in available:
            projection.append(F.col(field.name).cast(field.dataType).alias(field.name))
        else:
            projection.append(F.current_timestamp().cast(field.dataType).alias(field.name))

    return df.select(*projection)


def publish_table(
    spark: SparkSession,
    df: DataFrame,
    table_name: str,
    table_format: str = "delta",
    replace_schema: bool = True
) -> None:
    """
    Replace a table's contents without exposing an empty intermediate state.

    Delta: one overwrite commit; readers see the previous version until it
    lands. With ``replace_schema`` the table is replaced from ``df``;
    otherwise the rows are inserted into the existing definition by position,
    which keeps its schema and properties and rejects a frame that does not
    match it. Other formats: the data is written to ``<table>__staging`` first
    and renamed over the target only once the write has succeeded.

    Args:
        spark: SparkSession object
        df: Full new contents of the table
        table_name: Fully-qualified table name
        table_format: Storage format
        replace_schema: Allow the write to redefine the table schema
    """
    if table_format == "delta":
        if replace_schema:
            df.write \
                .format("delta") \
                .mode("overwrite") \
                .option("overwriteSchema", "true") \
                .saveAsTable(table_name)
        else:
            df.write.insertInto(table_name, overwrite=True)
        return

    staging_table = f"{table_name}{STAGING_SUFFIX}"
    spark.sql(f"DROP TABLE IF EXISTS {staging_table}")
    df.write \
        .format(table_format) \
        .mode("overwrite") \
        .saveAsTable(staging_table)

    spark.sql(f"DROP TABLE IF EXISTS {table_name}")
    spark.sql(f"ALTER TABLE {staging_table} RENAME TO {table_name}")


def get_table_metrics(spark: SparkSession, table_name: str) -> Dict:
    """
    Latest commit metrics from Delta history (no data scan).

    Returns:
        Dictionary with operation, timestamp, rows and files
    """
    history = DeltaTable.forName(spark, table_name).history(1).first()
    metrics = history["operationMetrics"] or {}
    return {
        "table": table_name,
        "operation": history["operation"],
        "timestamp": history["timestamp"],
        "rows": metrics.get("numOutputRows", metrics.get("numTargetRowsInserted", "N/A")),
        "files": metrics.get("numFiles", "N/A"),
    }


def add_load_timestamp(df: DataFrame) -> DataFrame:
    """
    Add the warehouse load timestamp column.
    """
    return df.withColumn(LOAD_TIMESTAMP_COLUMN, F.current_timestamp())
