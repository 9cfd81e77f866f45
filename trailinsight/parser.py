"""
Hike and trip report file parser

Reads delimited text files, applies the fixed table schema,
and converts raw report dates to proper date columns.
"""
import logging
from typing import Any, Dict
from pyspark.sql import SparkSession, DataFrame
from pyspark.sql.types import (
    StructType, StructField, StringType, IntegerType, DoubleType
)
from pyspark.sql import functions as F

logger = logging.getLogger(__name__)


# Feature flags scraped as text ("True"/"False") and coerced by the cleaner
HIKE_FLAG_COLUMNS = [
    "coast",
    "rivers",
    "lakes",
    "waterfalls",
    "old_growth",
    "fall_foliage",
    "wildflowers",
    "mountain_views",
    "summits",
    "wildlife",
    "ridges",
    "established_campsites",
    "dogs_allowed",
    "kid_friendly",
]

REPORT_FLAG_COLUMNS = [
    "ripe_berries",
    "fall_foliage",
    "wildflowers_blooming",
    "trail_hazards",
]


SCHEMA_DEFINITIONS = {
    "hikes": StructType([
        StructField("hike_id", StringType(), False),
        StructField("name", StringType(), True),
        StructField("region", StringType(), True),
        StructField("subregion", StringType(), True),
        StructField("latitude", DoubleType(), True),
        StructField("longitude", DoubleType(), True),
        StructField("distance_miles", DoubleType(), True),
        StructField("gain_ft", DoubleType(), True),
        StructField("highest_point_ft", DoubleType(), True),
        StructField("rating", DoubleType(), True),
        StructField("votes", IntegerType(), True),
    ] + [StructField(c, StringType(), True) for c in HIKE_FLAG_COLUMNS]),
    "reports": StructType([
        StructField("hike_id", StringType(), False),
        StructField("date", StringType(), False),
        StructField("author", StringType(), True),
        StructField("report_text", StringType(), True),
        StructField("type_of_hike", StringType(), True),
        StructField("trail_conditions", StringType(), True),
        StructField("road", StringType(), True),
        StructField("bugs", StringType(), True),
        StructField("snow", StringType(), True),
    ] + [StructField(c, StringType(), True) for c in REPORT_FLAG_COLUMNS] + [
        StructField("helpful_count", IntegerType(), True),
    ]),
}


class TrailDataParser:
    """Parser for the scraped hikes and reports tables"""

    def __init__(
        self,
        spark: SparkSession,
        table: str,
        date_format: str = "yyyy-MM-dd",
        separator: str = ","
    ):
        """
        Initialize parser

        Args:
            spark: SparkSession instance
            table: One of the keys in SCHEMA_DEFINITIONS
            date_format: Spark datetime pattern of the raw report date
            separator: Field delimiter of the input file
        """
        self.spark = spark
        self.table = table
        self.date_format = date_format
        self.separator = separator

        if table not in SCHEMA_DEFINITIONS:
            raise ValueError(
                f"Unknown table: {table}. "
                f"Must be one of {list(SCHEMA_DEFINITIONS.keys())}"
            )

        self.schema = SCHEMA_DEFINITIONS[table]
        logger.info(f"Initialized TrailDataParser for table: {table}")

    def parse_file(self, path: str) -> DataFrame:
        """
        Parse a single delimited file

        Args:
            path: Path to the file (local path or any Spark-readable URI)

        Returns:
            Spark DataFrame with the table schema applied
        """
        logger.info(f"Parsing file: {path}")

        try:
            df = self.spark.read.csv(
                path,
                sep=self.separator,
                header=True,
                schema=self.schema,
                mode="PERMISSIVE",  # Return null for corrupt cells
                multiLine=True,  # Report bodies contain newlines
                escape='"',
                ignoreLeadingWhiteSpace=True,
                ignoreTrailingWhiteSpace=True
            )

            df = df.withColumn("_source_file", F.lit(path))
            df = df.withColumn("_parsed_at", F.current_timestamp())

            if self.table == "reports":
                df = self.parse_dates(df)

            row_count = df.count()
            logger.info(f"Parsed {row_count} rows from {path}")

            if row_count == 0:
                logger.warning(f"No data rows found in {path}")

            return df

        except Exception as e:
            logger.error(f"Failed to parse {path}: {e}")
            raise

    def parse_dates(self, df: DataFrame) -> DataFrame:
        """Convert the raw report date string to a date column (null if unparseable)"""
        return df.withColumn(
            "report_date",
            F.try_to_timestamp(F.trim(F.col("date")), F.lit(self.date_format)).cast("date")
        )

    def validate_data(self, df: DataFrame) -> Dict[str, Any]:
        """
        Validate parsed data and collect quality metrics

        Args:
            df: Parsed DataFrame

        Returns:
            Dictionary with validation metrics
        """
        logger.info(f"Validating parsed {self.table} data")

        metrics = {
            "total_rows": df.count(),
            "null_counts": {},
            "distinct_hikes": None,
            "date_range": {},
        }

        for field in self.schema.fields:
            if field.nullable and field.name in df.columns:
                null_count = df.filter(F.col(field.name).isNull()).count()
                metrics["null_counts"][field.name] = null_count

        if "hike_id" in df.columns:
            metrics["distinct_hikes"] = df.select("hike_id").distinct().count()

        if "report_date" in df.columns:
            date_stats = df.agg(
                F.min("report_date").alias("min_date"),
                F.max("report_date").alias("max_date"),
                F.sum(F.when(F.col("report_date").isNull(), 1).otherwise(0))
                .alias("unparsed_dates")
            ).collect()[0]
            metrics["date_range"] = {
                "min": date_stats["min_date"],
                "max": date_stats["max_date"]
            }
            metrics["unparsed_dates"] = date_stats["unparsed_dates"] or 0

        logger.info(f"Validation metrics: {metrics}")
        return metrics


def create_parser(
    spark: SparkSession,
    table: str,
    date_format: str = "yyyy-MM-dd",
    separator: str = ","
) -> TrailDataParser:
    """
    Factory function to create a parser instance

    Args:
        spark: SparkSession
        table: Table name (hikes or reports)
        date_format: Spark datetime pattern of the raw report date
        separator: Field delimiter

    Returns:
        TrailDataParser instance
    """
    return TrailDataParser(spark, table, date_format=date_format, separator=separator)
