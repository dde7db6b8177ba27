from __future__ import annotations

from datetime import date, datetime

import pytest

from donor_analytics.aggregate import build_donor
from donor_analytics.models import Donation, Donor
from donor_analytics.trends import donor_retention, month_shift, monthly_trends, seasonal_patterns


def _donor(donor_id: str, gifts: list[tuple[float, datetime]]) -> Donor:
    return build_donor(
        donor_id=donor_id,
        first_name=donor_id.title(),
        last_name="Donor",
        donations=[
            Donation(id=f"{donor_id}-{index}", amount=amount, date=when)
            for index, (amount, when) in enumerate(gifts)
        ],
    )


def test_month_shift_crosses_year_boundaries() -> None:
    assert month_shift(date(2024, 1, 1), 1) == date(2023, 12, 1)
    assert month_shift(date(2024, 3, 1), 14) == date(2023, 1, 1)
    assert month_shift(date(2024, 11, 1), -3) == date(2025, 2, 1)


def test_monthly_trends_sort_chronologically_not_lexically() -> None:
    donors = [
        _donor("x", [(100.0, datetime(2024, 1, 20)), (40.0, datetime(2023, 4, 2))]),
        _donor("y", [(60.0, datetime(2023, 12, 5)), (10.0, datetime(2024, 2, 1))]),
    ]

    trends = monthly_trends(donors)

    assert [trend.month for trend in trends] == ["Apr 2023", "Dec 2023", "Jan 2024", "Feb 2024"]
    assert [(trend.year, trend.month_number) for trend in trends] == [
        (2023, 4),
        (2023, 12),
        (2024, 1),
        (2024, 2),
    ]


def test_monthly_trends_count_distinct_donors_per_month() -> None:
    donors = [
        _donor("x", [(100.0, datetime(2024, 1, 3)), (50.0, datetime(2024, 1, 25))]),
        _donor("y", [(30.0, datetime(2024, 1, 10))]),
    ]

    trends = monthly_trends(donors)

    assert len(trends) == 1
    january = trends[0]
    assert january.amount == pytest.approx(180.0)
    assert january.donor_count == 2
    assert january.average_donation == pytest.approx(90.0)


def test_monthly_trends_of_empty_donor_set() -> None:
    assert monthly_trends([]) == []


def test_retention_counts_returning_donors_against_prior_month() -> None:
    donors = [
        _donor("x", [(25.0, datetime(2024, 1, 10)), (25.0, datetime(2024, 2, 10))]),
        _donor("y", [(40.0, datetime(2023, 12, 15))]),
    ]

    retention = donor_retention(donors, now=datetime(2024, 2, 20))

    assert retention.returning_donors == 1
    assert retention.new_donors == 0
    assert retention.retention_rate == pytest.approx(1.0)
    assert retention.churn_rate == pytest.approx(0.0)


def test_retention_rate_divides_by_prior_month_donors() -> None:
    donors = [
        _donor("x", [(25.0, datetime(2024, 1, 10)), (25.0, datetime(2024, 2, 10))]),
        _donor("y", [(40.0, datetime(2024, 1, 15))]),
        _donor("z", [(15.0, datetime(2024, 2, 1))]),
    ]

    retention = donor_retention(donors, now=datetime(2024, 2, 20))

    assert retention.returning_donors == 1
    assert retention.new_donors == 1
    assert retention.retention_rate == pytest.approx(0.5)
    assert retention.churn_rate == pytest.approx(0.5)


def test_retention_without_prior_month_donors_is_zero() -> None:
    donors = [_donor("x", [(25.0, datetime(2024, 2, 10))])]

    retention = donor_retention(donors, now=datetime(2024, 2, 20))

    assert retention.new_donors == 1
    assert retention.returning_donors == 0
    assert retention.retention_rate == 0.0
    assert retention.churn_rate == 1.0


def test_retention_in_january_looks_back_to_december() -> None:
    donors = [_donor("x", [(25.0, datetime(2023, 12, 31)), (25.0, datetime(2024, 1, 2))])]

    retention = donor_retention(donors, now=datetime(2024, 1, 15))

    assert retention.returning_donors == 1
    assert retention.retention_rate == pytest.approx(1.0)


def test_seasonal_patterns_pool_months_across_years() -> None:
    donors = [
        _donor("x", [(100.0, datetime(2023, 12, 1)), (300.0, datetime(2024, 12, 1))]),
        _donor("y", [(50.0, datetime(2024, 6, 1))]),
    ]

    patterns = {month.month: month for month in seasonal_patterns(donors)}

    assert set(patterns) == {"June", "December"}
    assert patterns["December"].donation_count == 2
    assert patterns["December"].average_amount == pytest.approx(200.0)
    assert patterns["June"].total_amount == pytest.approx(50.0)
