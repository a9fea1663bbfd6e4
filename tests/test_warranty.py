from datetime import datetime, timezone

from schemas import WarrantyItem
from warranty import add_years, warranty_status

START = datetime(2020, 1, 1, tzinfo=timezone.utc)
TEN_YEARS = [WarrantyItem(name="Inverter", total_duration_years=10)]


def test_half_way():
    [status] = warranty_status(START, TEN_YEARS, now=datetime(2025, 1, 1, tzinfo=timezone.utc))
    assert status.end_date == datetime(2030, 1, 1, tzinfo=timezone.utc)
    assert 49.9 < status.progress_percent < 50.1
    assert status.remaining_months == 120 - 60


def test_expired_clamps():
    [status] = warranty_status(START, TEN_YEARS, now=datetime(2035, 6, 1, tzinfo=timezone.utc))
    assert status.progress_percent == 100.0
    assert status.remaining_months == 0


def test_not_yet_commissioned_clamps():
    [status] = warranty_status(START, TEN_YEARS, now=datetime(2019, 6, 1, tzinfo=timezone.utc))
    assert status.progress_percent == 0.0
    assert status.remaining_months == 120


def test_default_catalogue_and_missing_date():
    statuses = warranty_status(START, now=START)
    assert [s.name for s in statuses] == [
        "Inverter",
        "System Warranty",
        "Workmanship & Service",
        "Solar Panels",
        "Power Output",
    ]
    assert warranty_status(None) == []


def test_leap_day_start():
    assert add_years(datetime(2024, 2, 29), 1) == datetime(2025, 2, 28)
