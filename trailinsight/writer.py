"""
Result writer

Writes summary and rate tables to the output directory as CSV or
parquet, one directory per table.
"""
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict
from pyspark.sql import DataFrame, SparkSession
from pyspark.sql import functions as F

logger = logging.getLogger(__name__)


SUPPORTED_FORMATS = ("csv", "parquet")


class ResultWriter:
    """Write result tables to the output directory"""

    def __init__(self, output_dir: str):
        """
        Initialize result writer

        Args:
            output_dir: Base directory for result tables
        """
        self.output_dir = str(output_dir).rstrip("/")
        logger.info(f"Initialized ResultWriter: path={self.output_dir}")

    def table_path(self, name: str) -> str:
        return str(Path(self.output_dir) / name)

    def write(
        self,
        df: DataFrame,
        name: str,
        fmt: str = "csv",
        mode: str = "overwrite"
    ) -> Dict[str, Any]:
        """
        Write a result table

        Args:
            df: Result DataFrame
            name: Table name, used as the directory name
            fmt: 'csv' or 'parquet'
            mode: Write mode ('overwrite', 'append', 'error')

        Returns:
            Dictionary with write statistics
        """
        if fmt not in SUPPORTED_FORMATS:
            raise ValueError(
                f"Unsupported format: {fmt}. Must be one of {list(SUPPORTED_FORMATS)}"
            )

        path = self.table_path(name)
        rows = df.count()
        logger.info(f"Writing {rows} rows to {path} as {fmt}")

        try:
            # Result tables are small; one file per table
            out = df.coalesce(1).write.mode(mode)
            if fmt == "csv":
                out.csv(path, header=True)
            else:
                out.parquet(path, compression="snappy")

            stats = {
                "output_path": path,
                "rows_written": rows,
                "format": fmt,
                "mode": mode,
                "written_at": datetime.utcnow().isoformat(),
            }

            logger.info(f"Write complete: {stats}")
            return stats

        except Exception as e:
            logger.error(f"Failed to write {name}: {e}")
            raise

    def validate_output(self, name: str, fmt: str = "csv") -> Dict[str, Any]:
        """
        Read a written table back and report basic statistics

        Returns:
            Validation metrics
        """
        path = self.table_path(name)
        logger.info(f"Validating output at {path}")

        spark = SparkSession.getActiveSession()
        if spark is None:
            raise RuntimeError("No active Spark session found")

        if fmt == "csv":
            df = spark.read.csv(path, header=True, inferSchema=True)
        else:
            df = spark.read.parquet(path)

        metrics = {
            "output_path": path,
            "total_rows": df.count(),
            "columns": df.columns,
        }

        if "rate" in df.columns:
            bounds = df.agg(
                F.min("rate").alias("min_rate"),
                F.max("rate").alias("max_rate")
            ).collect()[0]
            metrics["rate_range"] = {
                "min": bounds["min_rate"],
                "max": bounds["max_rate"]
            }

        logger.info(f"Validation metrics: {metrics}")
        return metrics


def create_writer(output_dir: str) -> ResultWriter:
    """
    Factory function to create a result writer

    Args:
        output_dir: Base directory for result tables

    Returns:
        ResultWriter instance
    """
    return ResultWriter(output_dir)
