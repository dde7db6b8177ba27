"""Top-level analysis of a donor set."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Iterable

from .economic import adjust_forecast
from .forecast import generate_forecast
from .models import AnalysisResult, Donor, EconomicIndicator, PeriodComparison
from .trends import donor_retention, monthly_trends


DEFAULT_TOP_DONORS = 10


def top_donors(donors: Iterable[Donor], limit: int = DEFAULT_TOP_DONORS) -> list[Donor]:
    return sorted(donors, key=lambda donor: donor.total_amount, reverse=True)[:limit]


def analyze_donors(
    donors: Iterable[Donor],
    now: datetime | None = None,
    top_n: int = DEFAULT_TOP_DONORS,
) -> AnalysisResult:
    donor_list = list(donors)
    total_amount = sum(donor.total_amount for donor in donor_list)
    donation_count = sum(donor.donation_count for donor in donor_list)
    trends = monthly_trends(donor_list)

    return AnalysisResult(
        total_donors=len(donor_list),
        total_amount=total_amount,
        average_donation=total_amount / donation_count if donation_count else 0.0,
        donation_count=donation_count,
        top_donors=top_donors(donor_list, top_n),
        monthly_trends=trends,
        donor_retention=donor_retention(donor_list, now=now),
        forecast=generate_forecast(trends),
    )


def analyze_with_economic_factors(
    donors: Iterable[Donor],
    indicators: Iterable[EconomicIndicator] | None = None,
    now: datetime | None = None,
    top_n: int = DEFAULT_TOP_DONORS,
) -> AnalysisResult:
    """Base analysis with the forecast reweighted by economic indicators.

    Missing indicators contribute no adjustment.
    """

    result = analyze_donors(donors, now=now, top_n=top_n)
    return replace(result, enhanced_forecast=adjust_forecast(result.forecast, indicators))


def _growth(before: float, after: float) -> float:
    if before == 0:
        return 0.0
    return (after - before) / before


def compare_periods(
    period1_donors: Iterable[Donor],
    period2_donors: Iterable[Donor],
    now: datetime | None = None,
) -> PeriodComparison:
    period1 = analyze_donors(period1_donors, now=now)
    period2 = analyze_donors(period2_donors, now=now)
    return PeriodComparison(
        period1=period1,
        period2=period2,
        donor_growth=_growth(period1.total_donors, period2.total_donors),
        amount_growth=_growth(period1.total_amount, period2.total_amount),
        avg_donation_growth=_growth(period1.average_donation, period2.average_donation),
    )
