"""
Chart rendering for summary and seasonal rate tables.

Spark results are small at this point, so each function collects its
input with toPandas() and draws with matplotlib's non-interactive backend.
"""
import logging
from pathlib import Path
from typing import Dict, Optional

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from pyspark.sql import DataFrame

logger = logging.getLogger(__name__)


DEFAULT_COLORS = ["#1f77b4", "#ff7f0e", "#2ca02c", "#d62728", "#9467bd", "#8c564b"]


def _save(fig, output_path: str) -> str:
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(path, dpi=150)
    plt.close(fig)
    logger.info(f"Wrote chart {path}")
    return str(path)


def plot_seasonal_rates(
    rates: DataFrame,
    feature: str,
    output_path: str,
    palette: Optional[Dict[str, str]] = None,
) -> str:
    """
    Stacked area chart of condition rates by week, one panel per elevation bucket.

    Args:
        rates: Output of compute_seasonal_rates
        feature: Condition name used in the title
        output_path: PNG file to write
        palette: Colour per condition value; unlisted values get default colours

    Returns:
        Path of the written file
    """
    pdf = rates.toPandas()
    palette = palette or {}

    buckets = (
        pdf[["elevation_low", "elevation_bucket"]]
        .drop_duplicates()
        .sort_values("elevation_low")["elevation_bucket"]
        .tolist()
    )
    categories = sorted(pdf["category"].unique())
    colors = [
        palette.get(cat, DEFAULT_COLORS[i % len(DEFAULT_COLORS)])
        for i, cat in enumerate(categories)
    ]

    fig, axes = plt.subplots(
        len(buckets), 1,
        figsize=(10, 2.5 * max(len(buckets), 1)),
        sharex=True, squeeze=False,
    )

    for ax, bucket in zip(axes[:, 0], buckets):
        wide = (
            pdf[pdf["elevation_bucket"] == bucket]
            .pivot_table(index="week", columns="category", values="rate", aggfunc="sum")
            .reindex(columns=categories)
            .fillna(0.0)
            .sort_index()
        )
        ax.stackplot(
            wide.index,
            [wide[cat] for cat in categories],
            labels=categories,
            colors=colors,
        )
        ax.set_ylim(0, 1)
        ax.set_ylabel("Share of reports")
        ax.set_title(f"{bucket} ft", loc="left", fontsize=10)

    axes[-1, 0].set_xlabel("Week of year")
    axes[0, 0].legend(loc="upper right", fontsize=8)
    fig.suptitle(f"Seasonal {feature.replace('_', ' ')} conditions by elevation")

    return _save(fig, output_path)


def plot_histogram(
    histogram: DataFrame,
    title: str,
    xlabel: str,
    output_path: str,
) -> str:
    """Bar chart of a calculate_histogram table."""
    pdf = histogram.toPandas()

    fig, ax = plt.subplots(figsize=(10, 5))
    widths = (pdf["bin_high"] - pdf["bin_low"]).tolist()
    ax.bar(pdf["bin_low"], pdf["count"], width=widths, align="edge", edgecolor="white")
    ax.set_title(title)
    ax.set_xlabel(xlabel)
    ax.set_ylabel("Count")

    return _save(fig, output_path)


def plot_decomposition(decomposition: DataFrame, output_path: str) -> str:
    """Four-panel plot of weekly counts, trend, seasonal and residual."""
    pdf = decomposition.toPandas()

    fig, axes = plt.subplots(4, 1, figsize=(12, 9), sharex=True)
    for ax, col in zip(axes, ["report_count", "trend", "seasonal", "residual"]):
        ax.plot(pdf["week_start"], pdf[col], linewidth=1)
        ax.set_ylabel(col.replace("_", " "))
    axes[0].set_title("Weekly trip reports")

    return _save(fig, output_path)


def plot_hike_map(hikes: DataFrame, output_path: str) -> str:
    """Scatter of hike coordinates coloured by peak elevation."""
    pdf = (
        hikes.select("longitude", "latitude", "highest_point_ft")
        .dropna()
        .toPandas()
    )

    fig, ax = plt.subplots(figsize=(8, 8))
    points = ax.scatter(
        pdf["longitude"], pdf["latitude"],
        c=pdf["highest_point_ft"], cmap="terrain", s=6,
    )
    fig.colorbar(points, ax=ax, label="Highest point (ft)")
    ax.set_xlabel("Longitude")
    ax.set_ylabel("Latitude")
    ax.set_title("Hikes by peak elevation")

    return _save(fig, output_path)
