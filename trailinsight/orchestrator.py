"""
TrailInsight orchestrator

Main entry point for the analysis pipeline.
Coordinates parsing, cleaning, summaries, seasonal rates and charts.
"""
import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from pyspark.sql import DataFrame, SparkSession

from .config import CONDITION_FEATURES, TrailInsightConfig, get_config
from .parser import HIKE_FLAG_COLUMNS, REPORT_FLAG_COLUMNS, create_parser
from .cleaner import build_observations, create_cleaner
from .seasonal_rates import EmptyInput, compute_seasonal_rates
from .summaries import (
    calculate_feature_prevalence,
    calculate_histogram,
    calculate_region_summary,
    calculate_weekly_report_counts,
    decompose_weekly_reports,
)
from .writer import create_writer
from . import charts

logger = logging.getLogger(__name__)


class TrailInsightOrchestrator:
    """Orchestrates the complete analysis pipeline"""

    def __init__(self, spark: SparkSession, config: Optional[TrailInsightConfig] = None):
        """
        Initialize orchestrator

        Args:
            spark: SparkSession instance
            config: Pipeline configuration (default: from environment)
        """
        self.spark = spark
        self.config = config or get_config()
        self.writer = create_writer(self.config.output_dir)
        logger.info("TrailInsightOrchestrator initialized")

    def _chart_path(self, name: str) -> str:
        return str(Path(self.config.output_dir) / "charts" / f"{name}.png")

    def load_table(self, table: str, path: str) -> Tuple[DataFrame, Dict[str, Any]]:
        """Parse and clean one input table, returning it with its metrics"""
        parser = create_parser(
            self.spark,
            table,
            date_format=self.config.report_date_format,
            separator=self.config.csv_separator,
        )
        df = parser.parse_file(path)
        parse_metrics = parser.validate_data(df)

        cleaner = create_cleaner(table)
        df = cleaner.clean(df).cache()
        clean_metrics = cleaner.compute_quality_metrics(df)

        logger.info(
            f"Loaded {table}: {parse_metrics['total_rows']} parsed, "
            f"{clean_metrics['total_rows']} after cleaning"
        )
        return df, {"parse_metrics": parse_metrics, "clean_metrics": clean_metrics}

    def load_tables(self) -> Tuple[DataFrame, DataFrame, Dict[str, Any]]:
        """Parse and clean both the hikes and reports tables"""
        hikes, hike_metrics = self.load_table("hikes", self.config.hikes_path)
        reports, report_metrics = self.load_table("reports", self.config.reports_path)
        return hikes, reports, {"hikes": hike_metrics, "reports": report_metrics}

    def plot_conditions(
        self,
        observations: DataFrame,
        feature: str,
        baseline: Optional[str],
        elevation_ceiling: float,
        elevation_step: float,
        palette: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """
        Compute seasonal rates for one condition, write the table and chart

        Args:
            observations: Output of build_observations for the condition
            feature: Condition column
            baseline: Neutral condition value left out of the chart
            elevation_ceiling: Highest peak elevation to include
            elevation_step: Elevation bucket width
            palette: Colour per condition value

        Returns:
            Write statistics and chart path
        """
        logger.info(f"Computing seasonal rates for {feature}")

        rates = compute_seasonal_rates(
            observations,
            feature_column=feature,
            category_baseline=baseline,
            elevation_ceiling=elevation_ceiling,
            elevation_step=elevation_step,
        ).cache()

        write_stats = self.writer.write(
            rates, f"seasonal_rates_{feature}", fmt=self.config.output_format
        )
        chart = charts.plot_seasonal_rates(
            rates, feature, self._chart_path(f"seasonal_{feature}"), palette=palette
        )
        rates.unpersist()

        return {"status": "success", "write_stats": write_stats, "chart": chart}

    def run_summaries(self, hikes: DataFrame, reports: DataFrame) -> Dict[str, Any]:
        """Compute, write and plot the descriptive summaries"""
        fmt = self.config.output_format
        results = {}

        results["region_summary"] = self.writer.write(
            calculate_region_summary(hikes), "region_summary", fmt=fmt
        )
        results["hike_features"] = self.writer.write(
            calculate_feature_prevalence(hikes, HIKE_FLAG_COLUMNS), "hike_features", fmt=fmt
        )
        results["report_features"] = self.writer.write(
            calculate_feature_prevalence(reports, REPORT_FLAG_COLUMNS), "report_features", fmt=fmt
        )

        histograms = {
            "distance_miles": (self.config.histogram_bin_miles, "Distance (miles)"),
            "gain_ft": (self.config.histogram_bin_feet, "Elevation gain (ft)"),
            "highest_point_ft": (self.config.histogram_bin_feet, "Highest point (ft)"),
        }
        for column, (bin_width, label) in histograms.items():
            histogram = calculate_histogram(hikes, column, bin_width)
            results[f"histogram_{column}"] = self.writer.write(
                histogram, f"histogram_{column}", fmt=fmt
            )
            charts.plot_histogram(
                histogram, f"Hikes by {label.lower()}", label,
                self._chart_path(f"histogram_{column}")
            )

        weekly = calculate_weekly_report_counts(reports)
        decomposition = decompose_weekly_reports(
            weekly, period=self.config.decomposition_period_weeks
        ).cache()
        results["weekly_reports"] = self.writer.write(decomposition, "weekly_reports", fmt=fmt)
        charts.plot_decomposition(decomposition, self._chart_path("weekly_reports"))
        charts.plot_hike_map(hikes, self._chart_path("hike_map"))

        return results

    def run(self) -> Dict[str, Any]:
        """
        Run the complete pipeline

        Returns:
            Processing statistics and per-condition results
        """
        logger.info(
            f"Starting analysis: hikes={self.config.hikes_path}, "
            f"reports={self.config.reports_path}"
        )

        start_time = datetime.utcnow()

        try:
            hikes, reports, load_metrics = self.load_tables()
            summary_results = self.run_summaries(hikes, reports)

            condition_results = {}
            for feature in self.config.conditions:
                if feature not in CONDITION_FEATURES:
                    raise ValueError(f"Unknown condition: {feature}")
                settings = CONDITION_FEATURES[feature]

                observations = build_observations(reports, hikes, feature)
                try:
                    condition_results[feature] = self.plot_conditions(
                        observations,
                        feature,
                        settings["baseline"],
                        self.config.elevation_ceiling_ft,
                        self.config.elevation_step_ft,
                        palette=settings["palette"],
                    )
                except EmptyInput as e:
                    logger.warning(f"Skipping {feature}: {e}")
                    condition_results[feature] = {"status": "skipped", "reason": str(e)}

            end_time = datetime.utcnow()
            duration = (end_time - start_time).total_seconds()

            results = {
                "load_metrics": load_metrics,
                "summaries": summary_results,
                "conditions": condition_results,
                "processing_time_seconds": duration,
                "started_at": start_time.isoformat(),
                "completed_at": end_time.isoformat(),
                "status": "success"
            }

            logger.info(f"Analysis complete in {duration:.2f}s")
            return results

        except Exception as e:
            logger.error(f"Analysis failed: {e}", exc_info=True)

            end_time = datetime.utcnow()
            duration = (end_time - start_time).total_seconds()

            return {
                "status": "failed",
                "error": str(e),
                "processing_time_seconds": duration,
                "started_at": start_time.isoformat(),
                "failed_at": end_time.isoformat(),
            }


def create_spark_session(app_name: str, master: Optional[str] = None) -> SparkSession:
    """
    Create and configure Spark session

    Args:
        app_name: Spark application name
        master: Spark master URL (None for local mode)

    Returns:
        Configured SparkSession
    """
    builder = SparkSession.builder.appName(app_name)
    builder = builder.master(master or "local[*]")

    builder = builder.config("spark.sql.adaptive.enabled", "true")
    builder = builder.config("spark.sql.adaptive.coalescePartitions.enabled", "true")
    builder = builder.config("spark.sql.session.timeZone", "UTC")

    spark = builder.getOrCreate()

    logger.info(f"Spark session created: {spark.version}")
    return spark


def main():
    """Main entry point for CLI"""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    parser = argparse.ArgumentParser(description="TrailInsight hiking report analysis")
    parser.add_argument("--hikes", help="Path to the hikes CSV file")
    parser.add_argument("--reports", help="Path to the trip reports CSV file")
    parser.add_argument("--output-dir", help="Directory for result tables and charts")
    parser.add_argument(
        "--format",
        choices=["csv", "parquet"],
        help="Result table format"
    )
    parser.add_argument(
        "--condition",
        action="append",
        choices=sorted(CONDITION_FEATURES.keys()),
        help="Condition to chart (repeatable, default: all)"
    )
    parser.add_argument(
        "--spark-master",
        default=None,
        help="Spark master URL (default: local)"
    )

    args = parser.parse_args()

    config = get_config()
    overrides = {
        "hikes_path": args.hikes,
        "reports_path": args.reports,
        "output_dir": args.output_dir,
        "output_format": args.format,
        "conditions": args.condition,
        "spark_master": args.spark_master,
    }
    config = config.model_copy(
        update={k: v for k, v in overrides.items() if v is not None}
    )

    spark = create_spark_session(config.spark_app_name, config.spark_master)

    try:
        orchestrator = TrailInsightOrchestrator(spark, config)
        results = orchestrator.run()

        print(json.dumps(results, indent=2, default=str))

        sys.exit(0 if results["status"] == "success" else 1)

    finally:
        spark.stop()


if __name__ == "__main__":
    main()
