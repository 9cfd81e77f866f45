"""
Descriptive summaries of the hikes and reports tables.

Each calculator takes a cleaned PySpark DataFrame and returns a small
summary DataFrame suitable for writing out or plotting.
"""
from typing import List

from pyspark.sql import DataFrame
from pyspark.sql import functions as F
from pyspark.sql.window import Window


def calculate_region_summary(hikes: DataFrame) -> DataFrame:
    """
    Per-region hike statistics.

    Returns DataFrame with columns:
    - region
    - hike_count
    - distance_mean_miles, gain_mean_ft, highest_point_median_ft
    """
    return (
        hikes.groupBy("region")
        .agg(
            F.count("hike_id").alias("hike_count"),
            F.mean("distance_miles").alias("distance_mean_miles"),
            F.mean("gain_ft").alias("gain_mean_ft"),
            F.expr("percentile_approx(highest_point_ft, 0.5)").alias("highest_point_median_ft"),
        )
        .orderBy(F.col("hike_count").desc(), F.col("region").asc())
    )


def calculate_feature_prevalence(df: DataFrame, flag_columns: List[str]) -> DataFrame:
    """
    Share of rows with each boolean flag set.

    Null flags count toward neither the numerator nor the denominator.
    Returns one row per flag: feature, count_true, count_known, share.
    """
    present = [c for c in flag_columns if c in df.columns]
    if not present:
        raise ValueError(f"None of the flag columns {flag_columns} are present")

    aggs = []
    for col in present:
        aggs.append(F.sum(F.when(F.col(col) == True, 1).otherwise(0)).alias(f"{col}__true"))
        aggs.append(F.count(col).alias(f"{col}__known"))
    totals = df.agg(*aggs).collect()[0]

    rows = []
    for col in present:
        count_true = int(totals[f"{col}__true"] or 0)
        count_known = int(totals[f"{col}__known"] or 0)
        share = count_true / count_known if count_known > 0 else 0.0
        rows.append((col, count_true, count_known, share))

    return df.sparkSession.createDataFrame(
        rows, "feature string, count_true long, count_known long, share double"
    ).orderBy(F.col("share").desc(), F.col("feature").asc())


def calculate_histogram(df: DataFrame, column: str, bin_width: float) -> DataFrame:
    """
    Counts per fixed-width bin of a numeric column.

    Bins are half-open [bin_low, bin_low + bin_width). Returns
    bin_low, bin_high, count ordered by bin_low.
    """
    if bin_width <= 0:
        raise ValueError(f"Bin width must be positive, got {bin_width}")

    bin_low = (F.floor(F.col(column) / F.lit(bin_width)) * F.lit(bin_width)).cast("double")

    return (
        df.filter(F.col(column).isNotNull())
        .withColumn("bin_low", bin_low)
        .groupBy("bin_low")
        .agg(F.count(F.lit(1)).alias("count"))
        .withColumn("bin_high", F.col("bin_low") + F.lit(float(bin_width)))
        .select("bin_low", "bin_high", "count")
        .orderBy("bin_low")
    )


def calculate_weekly_report_counts(reports: DataFrame, date_column: str = "report_date") -> DataFrame:
    """
    Number of reports per calendar week.

    Weeks start on Monday. Weeks between the first and last report with
    no reports are present with count 0.

    Returns week_start (date), week_of_year, report_count.
    """
    weekly = (
        reports.filter(F.col(date_column).isNotNull())
        .withColumn("week_start", F.to_date(F.date_trunc("week", F.col(date_column))))
        .groupBy("week_start")
        .agg(F.count(F.lit(1)).alias("report_count"))
    )

    bounds = weekly.agg(
        F.min("week_start").alias("first"),
        F.max("week_start").alias("last"),
    )
    all_weeks = bounds.select(
        F.explode(
            F.sequence(F.col("first"), F.col("last"), F.expr("INTERVAL 7 DAYS"))
        ).alias("week_start")
    )

    return (
        all_weeks.join(weekly, on="week_start", how="left")
        .fillna(0, subset=["report_count"])
        .withColumn("week_of_year", F.weekofyear("week_start"))
        .select("week_start", "week_of_year", "report_count")
        .orderBy("week_start")
    )


def decompose_weekly_reports(weekly: DataFrame, period: int = 52) -> DataFrame:
    """
    Classical additive decomposition of weekly report counts.

    Expected input columns: week_start, week_of_year, report_count
    (as returned by calculate_weekly_report_counts).

    Adds:
    - phase: position of the week within the period (row index mod period)
    - trend: centred moving average over the period (2 x period average
      for an even period), null where the window runs past either end
    - seasonal: mean detrended count per phase, shifted to zero mean
    - residual: report_count - trend - seasonal
    """
    if period < 2:
        raise ValueError(f"Decomposition period must be at least 2, got {period}")

    half = period // 2
    # Single series, so the windows span one partition
    by_week = Window.orderBy("week_start")
    centred = by_week.rowsBetween(-half, half)
    window_size = F.count("report_count").over(centred)
    window_sum = F.sum("report_count").over(centred)

    if period % 2 == 0:
        # End rows of the window carry half weight
        ends = F.lag("report_count", half).over(by_week) + F.lead("report_count", half).over(by_week)
        moving_average = (window_sum - F.lit(0.5) * ends) / F.lit(float(period))
    else:
        moving_average = window_sum / F.lit(float(period))

    with_trend = (
        weekly
        .withColumn("phase", ((F.row_number().over(by_week) - 1) % period).cast("int"))
        .withColumn("trend", F.when(window_size == 2 * half + 1, moving_average))
        .withColumn("detrended", F.col("report_count") - F.col("trend"))
    )

    seasonal_profile = with_trend.groupBy("phase").agg(
        F.avg("detrended").alias("seasonal_raw")
    )
    profile_mean = seasonal_profile.agg(F.avg("seasonal_raw")).collect()[0][0] or 0.0
    seasonal_profile = seasonal_profile.select(
        "phase",
        F.coalesce(F.col("seasonal_raw") - F.lit(profile_mean), F.lit(0.0)).alias("seasonal"),
    )

    return (
        with_trend.join(seasonal_profile, on="phase", how="left")
        .withColumn("residual", F.col("report_count") - F.col("trend") - F.col("seasonal"))
        .select("week_start", "week_of_year", "phase", "report_count", "trend", "seasonal", "residual")
        .orderBy("week_start")
    )
