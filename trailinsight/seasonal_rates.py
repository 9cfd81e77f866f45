"""
Seasonal condition rates by week of year and elevation band.

For one condition column of the observation table, computes the share of
reports in each (week, elevation bucket) that recorded each condition
value. The grid of weeks x elevation buckets x condition values is
zero-filled before rates are taken so that weeks without a given
condition still count toward the denominator.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Union

from pyspark.sql import DataFrame
from pyspark.sql import functions as F
from pyspark.sql.window import Window

logger = logging.getLogger(__name__)


WEEKS_PER_YEAR = 52

RATE_COLUMNS = ["week", "elevation_low", "elevation_bucket", "category", "count", "rate"]


class InvalidConfiguration(ValueError):
    """Raised when binning parameters cannot produce a valid grid."""


class EmptyInput(ValueError):
    """Raised when no observations are left to aggregate."""


@dataclass(frozen=True)
class RateCell:
    """Occurrence rate of one condition value in one week and elevation band."""

    week: int
    elevation_low: float
    elevation_bucket: str
    category: str
    count: int
    rate: float


def elevation_bucket_label(low: float, step: float) -> str:
    """
    Human-readable label of an elevation bucket, in thousands of feet.

    >>> elevation_bucket_label(2000, 2000)
    '2k–4k'
    """
    return f"{low / 1000:g}k–{(low + step) / 1000:g}k"


def category_label(value) -> str:
    """Label of a category value as it appears in the category column."""
    if isinstance(value, bool):
        return str(value).lower()
    return str(value)


def compute_seasonal_rates(
    observations: DataFrame,
    feature_column: str,
    category_baseline: Optional[Union[str, bool]],
    elevation_ceiling: float,
    elevation_step: float,
    date_column: str = "report_date",
    elevation_column: str = "highest_point_ft",
) -> DataFrame:
    """
    Compute per-week, per-elevation-bucket occurrence rates of a condition.

    Args:
        observations: Cleaned observations with a date, a peak elevation and
            a non-null value for ``feature_column``
        feature_column: Categorical column to compute rates for
        category_baseline: Value left out of the result (the neutral state);
            None keeps every value. Booleans match the "true"/"false"
            labels of boolean columns
        elevation_ceiling: Observations above this elevation are dropped
        elevation_step: Width of the elevation buckets
        date_column: Column holding the observation date
        elevation_column: Column holding the peak elevation

    Returns:
        DataFrame with columns week, elevation_low, elevation_bucket,
        category, count, rate; ordered by elevation bucket, week,
        descending rate and category label

    Raises:
        InvalidConfiguration: non-positive step, or ceiling below every
            observed elevation
        EmptyInput: no observations to aggregate
    """
    if elevation_step is None or elevation_step <= 0:
        raise InvalidConfiguration(
            f"Elevation step must be positive, got {elevation_step}"
        )

    usable = observations.filter(
        F.col(elevation_column).isNotNull()
        & F.col(feature_column).isNotNull()
        & F.col(date_column).isNotNull()
    )

    min_elevation = usable.agg(F.min(elevation_column)).collect()[0][0]
    if min_elevation is None:
        raise EmptyInput(f"No observations for {feature_column}")

    if elevation_ceiling < min_elevation:
        raise InvalidConfiguration(
            f"Elevation ceiling {elevation_ceiling} is below the lowest "
            f"observed elevation {min_elevation}"
        )

    filtered = usable.filter(F.col(elevation_column) <= elevation_ceiling)

    # ISO week 53 is folded into week 52
    binned = filtered.select(
        F.least(F.weekofyear(F.col(date_column)), F.lit(WEEKS_PER_YEAR))
        .cast("int").alias("week"),
        (F.floor(F.col(elevation_column) / F.lit(elevation_step)) * F.lit(elevation_step))
        .cast("double").alias("elevation_low"),
        F.col(feature_column).cast("string").alias("category"),
    )

    if binned.limit(1).count() == 0:
        raise EmptyInput(
            f"No observations for {feature_column} at or below {elevation_ceiling}"
        )

    counts = binned.groupBy("week", "elevation_low", "category").agg(
        F.count(F.lit(1)).cast("long").alias("count")
    )

    spark = observations.sparkSession

    # Bucket labels are built once per distinct bucket
    lows = sorted(r["elevation_low"] for r in binned.select("elevation_low").distinct().collect())
    buckets = spark.createDataFrame(
        [(low, elevation_bucket_label(low, elevation_step)) for low in lows],
        "elevation_low double, elevation_bucket string",
    )
    logger.info(
        f"Aggregating {feature_column} into {len(lows)} elevation buckets "
        f"of {elevation_step}"
    )

    weeks = spark.range(1, WEEKS_PER_YEAR + 1).select(F.col("id").cast("int").alias("week"))
    categories = binned.select("category").distinct()

    grid = (
        weeks.crossJoin(buckets.select("elevation_low"))
        .crossJoin(categories)
        .withColumn("count", F.lit(0).cast("long"))
    )

    merged = (
        grid.unionByName(counts)
        .groupBy("week", "elevation_low", "category")
        .agg(F.sum("count").cast("long").alias("count"))
    )

    group_total = F.sum("count").over(Window.partitionBy("week", "elevation_low"))
    rates = merged.withColumn(
        "rate",
        F.when(group_total > 0, F.col("count") / group_total).otherwise(F.lit(0.0))
    )

    if category_baseline is not None:
        rates = rates.filter(F.col("category") != F.lit(category_label(category_baseline)))

    return (
        rates.join(buckets, on="elevation_low", how="left")
        .select(*RATE_COLUMNS)
        .orderBy(
            F.col("elevation_low").asc(),
            F.col("week").asc(),
            F.col("rate").desc(),
            F.col("category").asc(),
        )
    )


def collect_rate_cells(rates: DataFrame) -> List[RateCell]:
    """Collect a rate table into RateCell values, keeping its order."""
    return [
        RateCell(
            week=row["week"],
            elevation_low=row["elevation_low"],
            elevation_bucket=row["elevation_bucket"],
            category=row["category"],
            count=row["count"],
            rate=row["rate"],
        )
        for row in rates.collect()
    ]
