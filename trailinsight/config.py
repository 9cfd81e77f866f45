"""
Configuration for the TrailInsight pipeline
"""
from typing import Dict, List, Optional
from pydantic_settings import BaseSettings


# Condition fields of the reports table that get a seasonal chart.
# The baseline is the "nothing notable" value left out of the chart.
CONDITION_FEATURES: Dict[str, Dict[str, object]] = {
    "snow": {
        "baseline": "Snow free",
        "palette": {
            "Some snow": "#9ecae1",
            "Significant snow": "#08519c",
        },
    },
    "bugs": {
        "baseline": "No bugs",
        "palette": {
            "Minor": "#fdd0a2",
            "An annoyance": "#fd8d3c",
            "Unbearable": "#a63603",
        },
    },
    "ripe_berries": {
        "baseline": "false",
        "palette": {
            "true": "#756bb1",
        },
    },
}


class TrailInsightConfig(BaseSettings):
    """Pipeline configuration"""
    
    # Input tables
    hikes_path: str = "data/hikes.csv"
    reports_path: str = "data/reports.csv"
    csv_separator: str = ","
    report_date_format: str = "yyyy-MM-dd"
    
    # Output location for result tables and charts
    output_dir: str = "output"
    output_format: str = "csv"
    
    # Spark configuration
    spark_app_name: str = "TrailInsight"
    spark_master: Optional[str] = None  # None = local mode
    
    # Seasonal condition rates
    elevation_ceiling_ft: float = 8000.0
    elevation_step_ft: float = 2000.0
    conditions: List[str] = list(CONDITION_FEATURES.keys())
    
    # Summaries
    decomposition_period_weeks: int = 52
    histogram_bin_miles: float = 1.0
    histogram_bin_feet: float = 500.0
    
    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "TRAILINSIGHT_"


def get_config() -> TrailInsightConfig:
    """Get pipeline configuration instance"""
    return TrailInsightConfig()
