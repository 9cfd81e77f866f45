"""
Data cleaning and type coercion

Normalizes text fields, coerces scraped boolean flags, removes
incomplete and inconsistent records, and builds the per-condition
observation table used for seasonal rates.
"""
import logging
from typing import Any, Dict
from pyspark.sql import DataFrame
from pyspark.sql import functions as F
from pyspark.sql.types import BooleanType, StringType

from .parser import HIKE_FLAG_COLUMNS, REPORT_FLAG_COLUMNS

logger = logging.getLogger(__name__)


TRUE_VALUES = ["true", "t", "yes", "y", "1"]
FALSE_VALUES = ["false", "f", "no", "n", "0"]

REQUIRED_COLUMNS = {
    "hikes": ["hike_id"],
    "reports": ["hike_id", "report_date"],
}

FLAG_COLUMNS = {
    "hikes": HIKE_FLAG_COLUMNS,
    "reports": REPORT_FLAG_COLUMNS,
}


class TrailDataCleaner:
    """Cleaning and type coercion for the hikes and reports tables"""

    def __init__(self, table: str):
        """
        Initialize cleaner

        Args:
            table: Table name (hikes or reports)
        """
        if table not in REQUIRED_COLUMNS:
            raise ValueError(
                f"Unknown table: {table}. "
                f"Must be one of {list(REQUIRED_COLUMNS.keys())}"
            )
        self.table = table
        logger.info(f"Initialized TrailDataCleaner for {table}")

    def clean(self, df: DataFrame) -> DataFrame:
        """
        Main cleaning pipeline

        Args:
            df: Parsed DataFrame

        Returns:
            Cleaned DataFrame with coerced types and bad rows removed
        """
        logger.info(f"Starting cleaning pipeline for {self.table}")

        df = self._normalize_strings(df)
        df = self._coerce_flags(df)
        df = self._drop_incomplete(df)
        df = self._flag_inconsistent(df)
        df = df.filter(F.col("has_inconsistency") == False)
        df = self._add_time_components(df)
        df = self._add_processing_metadata(df)

        logger.info("Cleaning pipeline complete")
        return df

    def _normalize_strings(self, df: DataFrame) -> DataFrame:
        """Trim text columns and turn blank strings into nulls"""
        logger.info("Normalizing text columns")

        string_cols = [
            f.name for f in df.schema.fields
            if isinstance(f.dataType, StringType) and not f.name.startswith("_")
        ]

        for col in string_cols:
            trimmed = F.trim(F.col(col))
            df = df.withColumn(
                col,
                F.when(trimmed == "", None).otherwise(trimmed)
            )

        return df

    def _coerce_flags(self, df: DataFrame) -> DataFrame:
        """
        Coerce scraped text flags to booleans

        Anything outside the known true/false spellings becomes null.
        """
        logger.info("Coercing boolean flag columns")

        for col in FLAG_COLUMNS[self.table]:
            if col not in df.columns:
                continue
            if isinstance(df.schema[col].dataType, BooleanType):
                continue
            value = F.lower(F.trim(F.col(col).cast("string")))
            df = df.withColumn(
                col,
                F.when(value.isin(TRUE_VALUES), F.lit(True))
                .when(value.isin(FALSE_VALUES), F.lit(False))
                .otherwise(F.lit(None).cast(BooleanType()))
            )

        return df

    def _drop_incomplete(self, df: DataFrame) -> DataFrame:
        """Drop rows missing any required column"""
        required = [c for c in REQUIRED_COLUMNS[self.table] if c in df.columns]
        missing = [c for c in REQUIRED_COLUMNS[self.table] if c not in df.columns]
        if missing:
            raise ValueError(f"Required columns {missing} not found in DataFrame")

        total = df.count()
        df = df.dropna(subset=required)
        kept = df.count()
        logger.info(
            f"Dropped {total - kept}/{total} incomplete {self.table} rows"
        )
        return df

    def _flag_inconsistent(self, df: DataFrame) -> DataFrame:
        """
        Flag records whose values contradict each other

        Hikes:
        - distance must be positive
        - gain must be non-negative and not above the highest point
        - coordinates must be valid latitude/longitude
        Reports:
        - helpful count must be non-negative
        """
        logger.info("Flagging inconsistent records")

        rules = {
            "hikes": {
                "distance_miles": F.col("distance_miles") <= 0,
                "gain_ft": (F.col("gain_ft") < 0)
                | (F.col("gain_ft") > F.col("highest_point_ft")),
                "latitude": (F.col("latitude") < -90) | (F.col("latitude") > 90),
                "longitude": (F.col("longitude") < -180) | (F.col("longitude") > 180),
            },
            "reports": {
                "helpful_count": F.col("helpful_count") < 0,
            },
        }

        combined_condition = None
        for col_name, condition in rules[self.table].items():
            if col_name not in df.columns:
                continue
            # Null comparisons count as consistent
            condition = F.coalesce(condition, F.lit(False))
            if combined_condition is None:
                combined_condition = condition
            else:
                combined_condition = combined_condition | condition

        if combined_condition is None:
            return df.withColumn("has_inconsistency", F.lit(False))

        df = df.withColumn("has_inconsistency", combined_condition)

        flagged = df.filter(F.col("has_inconsistency") == True).count()
        total = df.count()
        if total > 0:
            logger.info(
                f"Inconsistent records: {flagged}/{total} rows "
                f"({100*flagged/total:.2f}%)"
            )

        return df

    def _add_time_components(self, df: DataFrame) -> DataFrame:
        """Add year, month and ISO week for dated tables"""
        if "report_date" not in df.columns:
            return df
        df = df.withColumn("year", F.year("report_date"))
        df = df.withColumn("month", F.month("report_date"))
        df = df.withColumn("week", F.weekofyear("report_date"))
        return df

    def _add_processing_metadata(self, df: DataFrame) -> DataFrame:
        """Add metadata columns for traceability"""
        df = df.withColumn("cleaned_at", F.current_timestamp())
        df = df.withColumn("table", F.lit(self.table))
        return df

    def compute_quality_metrics(self, df: DataFrame) -> Dict[str, Any]:
        """
        Compute data quality metrics for cleaned data

        Returns:
            Dictionary with row count and per-column missingness
        """
        logger.info("Computing quality metrics")

        total = df.count()
        metrics = {"total_rows": total, "missingness": {}}

        skip = {"year", "month", "week", "table", "cleaned_at", "has_inconsistency"}
        for col in df.columns:
            if col.startswith("_") or col in skip:
                continue
            missing = df.filter(F.col(col).isNull()).count()
            ratio = missing / total if total > 0 else 0
            metrics["missingness"][col] = {
                "count": missing,
                "ratio": round(ratio, 4)
            }

        logger.info(f"Quality metrics: {metrics}")
        return metrics


def build_observations(
    reports: DataFrame,
    hikes: DataFrame,
    feature_column: str
) -> DataFrame:
    """
    Join cleaned reports to hike elevations for one condition column.

    Rows without a peak elevation or without a value for the
    condition are dropped.

    Args:
        reports: Cleaned reports table
        hikes: Cleaned hikes table
        feature_column: Condition column of the reports table

    Returns:
        DataFrame with hike_id, report_date, highest_point_ft and the feature
    """
    if feature_column not in reports.columns:
        raise ValueError(f"Unknown condition column: {feature_column}")

    elevations = hikes.select("hike_id", "highest_point_ft")

    observations = (
        reports.select("hike_id", "report_date", feature_column)
        .join(elevations, on="hike_id", how="inner")
        .dropna(subset=["report_date", "highest_point_ft", feature_column])
    )

    logger.info(
        f"Built {observations.count()} observations for condition {feature_column}"
    )
    return observations


def create_cleaner(table: str) -> TrailDataCleaner:
    """
    Factory function to create a cleaner instance

    Args:
        table: Table name (hikes or reports)

    Returns:
        TrailDataCleaner instance
    """
    return TrailDataCleaner(table)
