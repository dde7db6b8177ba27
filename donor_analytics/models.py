"""Domain records for donor ingestion, merging, and analytics."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any, Iterable


FREQUENCY_ONE_TIME = "one-time"
FREQUENCY_OCCASIONAL = "occasional"
FREQUENCY_REGULAR = "regular"
FREQUENCY_FREQUENT = "frequent"

TREND_UP = "up"
TREND_DOWN = "down"
TREND_STABLE = "stable"


def donor_key(first_name: str, last_name: str) -> str:
    """Identity key used to treat two donor records as the same person."""
    return f"{first_name.strip().lower()}_{last_name.strip().lower()}"


def frequency_tier(donation_count: int) -> str:
    if donation_count <= 1:
        return FREQUENCY_ONE_TIME
    if donation_count <= 3:
        return FREQUENCY_OCCASIONAL
    if donation_count <= 6:
        return FREQUENCY_REGULAR
    return FREQUENCY_FREQUENT


def _jsonable(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: _jsonable(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_jsonable(item) for item in value]
    return value


@dataclass(frozen=True)
class Donation:
    """A single gift. ``donor_id`` is filled in when the gift is grouped."""
    id: str
    amount: float
    date: datetime
    donor_id: str = ""

    @property
    def month(self) -> str:
        return self.date.strftime("%B %Y")

    @property
    def year(self) -> int:
        return self.date.year

    @property
    def month_key(self) -> tuple[int, int]:
        return (self.date.year, self.date.month)


@dataclass(frozen=True)
class DonationCandidate:
    """A normalized row: the donation plus the identity it was given under."""
    first_name: str
    last_name: str
    donation: Donation
    email: str | None = None
    phone: str | None = None

    @property
    def is_valid(self) -> bool:
        return bool(
            self.first_name
            and self.last_name
            and self.donation.amount > 0
            and self.donation.date is not None
        )

    @property
    def key(self) -> str:
        return donor_key(self.first_name, self.last_name)


@dataclass
class Donor:
    id: str
    first_name: str
    last_name: str
    donations: list[Donation]
    total_amount: float
    donation_count: int
    average_donation: float
    first_donation: datetime
    last_donation: datetime
    donation_frequency: str
    email: str | None = None
    phone: str | None = None

    @property
    def key(self) -> str:
        return donor_key(self.first_name, self.last_name)

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        return _jsonable(asdict(self))


def donors_to_json(donors: Iterable[Donor]) -> str:
    return json.dumps([donor.to_dict() for donor in donors], indent=2)


@dataclass(frozen=True)
class MonthlyTrend:
    month: str
    year: int
    month_number: int
    amount: float
    donor_count: int
    average_donation: float


@dataclass(frozen=True)
class RetentionData:
    new_donors: int
    returning_donors: int
    retention_rate: float
    churn_rate: float


@dataclass(frozen=True)
class Prediction:
    predicted_amount: float
    confidence: float


@dataclass(frozen=True)
class ForecastData:
    next_month: Prediction
    next_quarter: Prediction
    trend_direction: str
    slope: float = 0.0


@dataclass(frozen=True)
class EconomicDataPoint:
    date: datetime
    value: float


@dataclass
class EconomicIndicator:
    """An externally supplied economic series and its correlation with giving."""
    name: str
    data: list[EconomicDataPoint]
    correlation: float
    impact: str = ""
    recommendation: str = ""

    @property
    def current_value(self) -> float:
        if not self.data:
            return 0.0
        return self.data[-1].value

    @property
    def values(self) -> list[float]:
        return [point.value for point in self.data]


@dataclass(frozen=True)
class EconomicFactors:
    consumer_confidence: float = 0.0
    market_performance: float = 0.0
    unemployment_impact: float = 0.0
    gdp_growth_impact: float = 0.0


@dataclass(frozen=True)
class AdjustedPrediction:
    base_amount: float
    economic_adjustment: float
    final_amount: float
    confidence: float


@dataclass(frozen=True)
class EnhancedForecastData:
    base: ForecastData
    economic_factors: EconomicFactors
    composite_adjustment: float
    damped_adjustment: float
    next_month: AdjustedPrediction
    next_quarter: AdjustedPrediction

    @property
    def trend_direction(self) -> str:
        return self.base.trend_direction


@dataclass(frozen=True)
class AnalysisResult:
    total_donors: int
    total_amount: float
    average_donation: float
    donation_count: int
    top_donors: list[Donor]
    monthly_trends: list[MonthlyTrend]
    donor_retention: RetentionData
    forecast: ForecastData
    enhanced_forecast: EnhancedForecastData | None = None


@dataclass(frozen=True)
class PeriodComparison:
    period1: AnalysisResult
    period2: AnalysisResult
    donor_growth: float
    amount_growth: float
    avg_donation_growth: float


@dataclass(frozen=True)
class SeasonalMonth:
    month: str
    average_amount: float
    total_amount: float
    donation_count: int


@dataclass(frozen=True)
class CampaignTiming:
    recommended_months: list[str]
    reasoning: str
    confidence_score: float


@dataclass
class IngestResult:
    """Outcome of one upload: either a full donor set or an error message."""
    success: bool
    records_processed: int
    donors: list[Donor] = field(default_factory=list)
    accepted_count: int = 0
    error: str | None = None

    @property
    def rejected_count(self) -> int:
        if not self.success:
            return 0
        return self.records_processed - self.accepted_count

    @property
    def donation_count(self) -> int:
        return sum(donor.donation_count for donor in self.donors)
