"""Monthly giving trends, donor retention, and seasonal giving patterns."""

from __future__ import annotations

import calendar
from datetime import date, datetime
from typing import Iterable

import pandas as pd

from .models import Donor, MonthlyTrend, RetentionData, SeasonalMonth


def month_shift(first_day_of_month: date, months_back: int) -> date:
    year = first_day_of_month.year
    month = first_day_of_month.month - months_back
    while month <= 0:
        month += 12
        year -= 1
    while month > 12:
        month -= 12
        year += 1
    return date(year, month, 1)


def month_label(year: int, month: int) -> str:
    return f"{calendar.month_abbr[month]} {year}"


def _donation_frame(donors: Iterable[Donor]) -> pd.DataFrame:
    records = [
        {
            "year": donation.date.year,
            "month": donation.date.month,
            "donor_id": donor.id,
            "amount": donation.amount,
        }
        for donor in donors
        for donation in donor.donations
    ]
    return pd.DataFrame(records, columns=["year", "month", "donor_id", "amount"])


def monthly_trends(donors: Iterable[Donor]) -> list[MonthlyTrend]:
    """Bucket every donation by calendar month, oldest month first.

    ``donor_count`` is the number of distinct donors who gave in the month,
    and the average is taken over those donors.
    """

    frame = _donation_frame(donors)
    if frame.empty:
        return []

    grouped = (
        frame.groupby(["year", "month"], sort=True)
        .agg(amount=("amount", "sum"), donor_count=("donor_id", "nunique"))
        .reset_index()
    )

    trends: list[MonthlyTrend] = []
    for row in grouped.itertuples(index=False):
        year = int(row.year)
        month = int(row.month)
        amount = float(row.amount)
        donor_count = int(row.donor_count)
        trends.append(
            MonthlyTrend(
                month=month_label(year, month),
                year=year,
                month_number=month,
                amount=amount,
                donor_count=donor_count,
                average_donation=amount / donor_count,
            )
        )
    return trends


def _active_donors(donors: Iterable[Donor], year: int, month: int) -> set[str]:
    return {
        donor.id
        for donor in donors
        for donation in donor.donations
        if donation.date.year == year and donation.date.month == month
    }


def donor_retention(donors: Iterable[Donor], now: datetime | None = None) -> RetentionData:
    """Compare donors active in the month of ``now`` with the month before it."""

    donor_list = list(donors)
    current_month = (now or datetime.now()).date().replace(day=1)
    prior_month = month_shift(current_month, 1)

    current_ids = _active_donors(donor_list, current_month.year, current_month.month)
    prior_ids = _active_donors(donor_list, prior_month.year, prior_month.month)

    returning = len(current_ids & prior_ids)
    retention_rate = returning / len(prior_ids) if prior_ids else 0.0

    return RetentionData(
        new_donors=len(current_ids) - returning,
        returning_donors=returning,
        retention_rate=retention_rate,
        churn_rate=1 - retention_rate,
    )


def seasonal_patterns(donors: Iterable[Donor]) -> list[SeasonalMonth]:
    """Average gift per calendar month name, pooled across years."""

    frame = _donation_frame(donors)
    if frame.empty:
        return []

    grouped = (
        frame.groupby("month", sort=True)
        .agg(total=("amount", "sum"), donation_count=("amount", "size"))
        .reset_index()
    )
    return [
        SeasonalMonth(
            month=calendar.month_name[int(row.month)],
            average_amount=float(row.total) / int(row.donation_count),
            total_amount=float(row.total),
            donation_count=int(row.donation_count),
        )
        for row in grouped.itertuples(index=False)
    ]
