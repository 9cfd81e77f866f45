"""
Tests for descriptive summary calculators.
"""
import pytest
from datetime import date, timedelta

from trailinsight.summaries import (
    calculate_feature_prevalence,
    calculate_histogram,
    calculate_region_summary,
    calculate_weekly_report_counts,
    decompose_weekly_reports,
)


@pytest.fixture
def hikes(spark):
    data = [
        ("h1", "Olympics", 4.0, 1200.0, 3200.0, True, False),
        ("h2", "Olympics", 6.0, 1800.0, 4000.0, False, False),
        ("h3", "Snoqualmie", 2.5, 500.0, 1500.0, True, None),
    ]
    return spark.createDataFrame(
        data,
        "hike_id string, region string, distance_miles double, gain_ft double, "
        "highest_point_ft double, lakes boolean, coast boolean"
    )


def test_calculate_region_summary(hikes):
    rows = calculate_region_summary(hikes).collect()

    assert [r["region"] for r in rows] == ["Olympics", "Snoqualmie"]
    olympics = rows[0]
    assert olympics["hike_count"] == 2
    assert olympics["distance_mean_miles"] == pytest.approx(5.0)
    assert olympics["gain_mean_ft"] == pytest.approx(1500.0)
    assert olympics["highest_point_median_ft"] in (3200.0, 4000.0)


def test_calculate_feature_prevalence(hikes):
    rows = {
        r["feature"]: r
        for r in calculate_feature_prevalence(hikes, ["lakes", "coast", "waterfalls"]).collect()
    }

    # Missing columns are skipped
    assert set(rows) == {"lakes", "coast"}
    assert rows["lakes"]["share"] == pytest.approx(2 / 3)
    # Null flags are not counted
    assert rows["coast"]["count_known"] == 2
    assert rows["coast"]["share"] == 0.0


def test_calculate_feature_prevalence_no_columns(hikes):
    with pytest.raises(ValueError):
        calculate_feature_prevalence(hikes, ["waterfalls"])


def test_calculate_histogram(hikes):
    rows = calculate_histogram(hikes, "distance_miles", 2.0).collect()

    assert [(r["bin_low"], r["bin_high"], r["count"]) for r in rows] == [
        (2.0, 4.0, 1),
        (4.0, 6.0, 1),
        (6.0, 8.0, 1),
    ]


def test_calculate_histogram_invalid_bin(hikes):
    with pytest.raises(ValueError):
        calculate_histogram(hikes, "distance_miles", 0)


def test_weekly_report_counts_zero_filled(spark):
    reports = spark.createDataFrame(
        [
            ("h1", date(2023, 1, 2)),
            ("h1", date(2023, 1, 4)),
            ("h2", date(2023, 1, 25)),
        ],
        "hike_id string, report_date date"
    )

    rows = calculate_weekly_report_counts(reports).collect()

    assert [r["week_start"] for r in rows] == [
        date(2023, 1, 2), date(2023, 1, 9), date(2023, 1, 16), date(2023, 1, 23)
    ]
    assert [r["report_count"] for r in rows] == [2, 0, 0, 1]
    assert rows[0]["week_of_year"] == 1


def _periodic_weeks(spark, pattern, repeats):
    start = date(2021, 1, 4)
    data = [
        (start + timedelta(weeks=i), (start + timedelta(weeks=i)).isocalendar()[1], pattern[i % len(pattern)])
        for i in range(len(pattern) * repeats)
    ]
    return spark.createDataFrame(
        data, "week_start date, week_of_year int, report_count long"
    )


def test_decompose_periodic_series_even_period(spark):
    """A purely periodic series has a flat trend and no residual"""
    weekly = _periodic_weeks(spark, [4, 8, 4, 0], 26)

    rows = decompose_weekly_reports(weekly, period=4).collect()

    assert len(rows) == 104
    # Window of 5 rows is incomplete at both ends
    assert [r["trend"] for r in rows[:2]] == [None, None]
    assert [r["trend"] for r in rows[-2:]] == [None, None]

    for row in rows[2:-2]:
        assert row["trend"] == pytest.approx(4.0)
        assert row["residual"] == pytest.approx(0.0)

    seasonal = {r["phase"]: r["seasonal"] for r in rows}
    assert seasonal[0] == pytest.approx(0.0)
    assert seasonal[1] == pytest.approx(4.0)
    assert seasonal[2] == pytest.approx(0.0)
    assert seasonal[3] == pytest.approx(-4.0)


def test_decompose_periodic_series_odd_period(spark):
    weekly = _periodic_weeks(spark, [3, 6, 0], 10)

    rows = decompose_weekly_reports(weekly, period=3).collect()

    assert rows[0]["trend"] is None
    assert rows[-1]["trend"] is None
    for row in rows[1:-1]:
        assert row["trend"] == pytest.approx(3.0)
        assert row["residual"] == pytest.approx(0.0)
    assert {r["phase"] for r in rows} == {0, 1, 2}


def test_decompose_phase_ignores_iso_week_53(spark):
    """Seasonality follows row position, not the ISO week number"""
    start = date(2020, 12, 21)  # 2020 has an ISO week 53
    data = [
        (start + timedelta(weeks=i), (start + timedelta(weeks=i)).isocalendar()[1], [5, 1][i % 2])
        for i in range(12)
    ]
    weekly = spark.createDataFrame(data, "week_start date, week_of_year int, report_count long")

    rows = decompose_weekly_reports(weekly, period=2).collect()

    assert rows[1]["week_of_year"] == 53
    assert [r["phase"] for r in rows] == [0, 1] * 6
    for row in rows[1:-1]:
        assert row["trend"] == pytest.approx(3.0)
        assert row["residual"] == pytest.approx(0.0)


def test_decompose_invalid_period(spark):
    weekly = spark.createDataFrame([], "week_start date, week_of_year int, report_count long")
    with pytest.raises(ValueError):
        decompose_weekly_reports(weekly, period=1)
