"""
Pytest configuration and fixtures for TrailInsight tests.
"""
import pytest
from datetime import date, timedelta
from pyspark.sql import SparkSession


HIKES_HEADER = (
    "hike_id,name,region,subregion,latitude,longitude,distance_miles,gain_ft,"
    "highest_point_ft,rating,votes,coast,rivers,lakes,waterfalls,old_growth,"
    "fall_foliage,wildflowers,mountain_views,summits,wildlife,ridges,"
    "established_campsites,dogs_allowed,kid_friendly"
)

REPORTS_HEADER = (
    "hike_id,date,author,report_text,type_of_hike,trail_conditions,road,bugs,snow,"
    "ripe_berries,fall_foliage,wildflowers_blooming,trail_hazards,helpful_count"
)


@pytest.fixture(scope="session")
def spark():
    """Create a Spark session for testing."""
    spark = (
        SparkSession.builder
        .appName("TrailInsight-Tests")
        .master("local[2]")
        .config("spark.sql.shuffle.partitions", "2")
        .config("spark.sql.session.timeZone", "UTC")
        .getOrCreate()
    )

    yield spark

    spark.stop()


@pytest.fixture
def sample_observations(spark):
    """Snow observations across two elevation buckets and a few weeks."""
    data = [
        # Week 1 of 2023, low bucket
        ("h1", date(2023, 1, 4), 500.0, "Snow free"),
        ("h1", date(2023, 1, 5), 500.0, "Some snow"),
        ("h1", date(2023, 1, 6), 500.0, "Some snow"),
        # Week 10, low bucket
        ("h2", date(2023, 3, 8), 1500.0, "Snow free"),
        # Week 1, 2k-4k bucket
        ("h3", date(2023, 1, 4), 3500.0, "Significant snow"),
        ("h3", date(2023, 1, 4), 3500.0, "Some snow"),
        # Week 30, 2k-4k bucket
        ("h4", date(2023, 7, 26), 2000.0, "Snow free"),
    ]

    return spark.createDataFrame(
        data,
        "hike_id string, report_date date, highest_point_ft double, snow string"
    )


@pytest.fixture
def hikes_csv(tmp_path):
    """Raw hikes file with one incomplete and two inconsistent rows."""
    rows = [
        "h1,Lake Trail,Snoqualmie,North Bend,47.5,-121.7,4.0,1200,3200,4.5,20,"
        "False,False,True,False,True,False,True,True,False,False,False,False,True,True",
        "h2,Ridge Walk,Central Cascades,Leavenworth,47.6,-120.7,8.5,3000,6500,4.0,12,"
        "False,False,False,False,False,True,True,True,True,True,True,True,yes,no",
        "h3,River Path,Olympics,Hood Canal,47.7,-123.1,2.0,200,400,3.5,5,"
        "False,True,False,True,True,False,False,False,False,False,False,False,True,True",
        "h4,High Camp,Mount Rainier,Paradise,46.8,-121.7,10.0,4500,9200,5.0,40,"
        "False,False,True,True,False,False,True,True,True,True,True,True,False,False",
        # Gain above highest point
        "h5,Bad Gain,Olympics,Hood Canal,47.7,-123.1,3.0,900,500,3.0,2,"
        "False,False,False,False,False,False,False,False,False,False,False,False,True,True",
        # Non-positive distance
        "h6,Zero,Olympics,Hood Canal,47.7,-123.1,0,100,500,3.0,2,"
        "False,False,False,False,False,False,False,False,False,False,False,False,True,True",
        # Missing id
        ",No Id,Olympics,Hood Canal,47.7,-123.1,1.0,100,500,3.0,2,"
        "False,False,False,False,False,False,False,False,False,False,False,False,True,True",
    ]
    path = tmp_path / "hikes.csv"
    path.write_text(HIKES_HEADER + "\n" + "\n".join(rows) + "\n")
    return str(path)


@pytest.fixture
def reports_csv(tmp_path):
    """Raw reports file spanning a year of weekly reports."""
    snow_cycle = ["Significant snow", "Some snow", "Snow free", "Snow free"]
    bug_cycle = ["No bugs", "No bugs", "Minor", "An annoyance"]
    rows = []
    start = date(2022, 1, 3)
    for i in range(60):
        day = start + timedelta(days=7 * i)
        hike = ["h1", "h2", "h3", "h4"][i % 4]
        rows.append(
            f'{hike},{day.isoformat()},hiker{i},"Nice day, {i}",Day hike,'
            f"Good,Fine,{bug_cycle[i % 4]},{snow_cycle[(i // 13) % 4]},"
            f"{'True' if 26 <= day.isocalendar()[1] <= 36 else 'False'},False,True,False,{i % 3}"
        )
    # Unparseable date and a report for an unknown hike
    rows.append("h1,not-a-date,someone,text,Day hike,Good,Fine,No bugs,Snow free,False,False,False,False,0")
    rows.append("h9,2022-06-01,someone,text,Day hike,Good,Fine,No bugs,Snow free,False,False,False,False,0")
    path = tmp_path / "reports.csv"
    path.write_text(REPORTS_HEADER + "\n" + "\n".join(rows) + "\n")
    return str(path)
