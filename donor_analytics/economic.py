"""Economic indicator impacts and their adjustment of a base forecast."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Sequence

from .models import (
    TREND_DOWN,
    TREND_STABLE,
    TREND_UP,
    AdjustedPrediction,
    CampaignTiming,
    Donor,
    EconomicDataPoint,
    EconomicFactors,
    EconomicIndicator,
    EnhancedForecastData,
    ForecastData,
    Prediction,
)
from .trends import seasonal_patterns


CONSUMER_CONFIDENCE = "Consumer Confidence Index"
MARKET_PERFORMANCE = "S&P 500 Performance"
UNEMPLOYMENT_RATE = "Unemployment Rate"
GDP_GROWTH = "GDP Growth Rate"

INDICATOR_PROFILES: dict[str, dict[str, str | float]] = {
    CONSUMER_CONFIDENCE: {
        "correlation": 0.75,
        "impact": "High correlation with discretionary giving",
        "recommendation": "Monitor monthly CCI reports for campaign timing",
    },
    MARKET_PERFORMANCE: {
        "correlation": 0.68,
        "impact": "Stock market gains often increase charitable giving",
        "recommendation": "Track quarterly performance for major gift timing",
    },
    UNEMPLOYMENT_RATE: {
        "correlation": -0.62,
        "impact": "Inverse relationship with donation frequency",
        "recommendation": "Adjust fundraising strategies during economic downturns",
    },
    GDP_GROWTH: {
        "correlation": 0.71,
        "impact": "Economic expansion correlates with increased giving",
        "recommendation": "Capitalize on growth periods for capital campaigns",
    },
}

FACTOR_WEIGHTS = {
    "consumer_confidence": 0.30,
    "market_performance": 0.25,
    "unemployment_impact": 0.25,
    "gdp_growth_impact": 0.20,
}

ADJUSTMENT_LIMIT = 0.30
CONFIDENCE_BOOST = 0.1
CONFIDENCE_CAP = 0.95

RECENT_POINTS = 3
HISTORY_POINTS = 12
INDICATOR_TREND_THRESHOLD = 0.02


def build_indicator(
    name: str,
    points: Iterable[tuple[datetime, float]],
    correlation: float | None = None,
) -> EconomicIndicator:
    """Create an indicator, taking unset details from the known profiles."""

    profile = INDICATOR_PROFILES.get(name, {})
    if correlation is None:
        correlation = float(profile.get("correlation", 0.0))
    data = sorted(
        (EconomicDataPoint(date=when, value=float(value)) for when, value in points),
        key=lambda point: point.date,
    )
    return EconomicIndicator(
        name=name,
        data=data,
        correlation=correlation,
        impact=str(profile.get("impact", "")),
        recommendation=str(profile.get("recommendation", "")),
    )


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def indicator_trend(indicator: EconomicIndicator) -> str:
    values = indicator.values
    if len(values) < 2:
        return TREND_STABLE

    recent = values[-3:]
    older = values[-6:-3]
    if not older:
        return TREND_STABLE
    older_mean = _mean(older)
    if older_mean == 0:
        return TREND_STABLE

    change = (_mean(recent) - older_mean) / older_mean
    if change > INDICATOR_TREND_THRESHOLD:
        return TREND_UP
    if change < -INDICATOR_TREND_THRESHOLD:
        return TREND_DOWN
    return TREND_STABLE


def indicator_impact(indicator: EconomicIndicator | None) -> float:
    """Relative change of the last 3 values against the 9 before, scaled by |correlation|."""

    if indicator is None or len(indicator.data) < 2:
        return 0.0

    values = indicator.values
    recent = values[-RECENT_POINTS:]
    prior = values[-HISTORY_POINTS:-RECENT_POINTS]
    if not prior:
        return 0.0
    prior_mean = _mean(prior)
    if prior_mean == 0:
        return 0.0

    percent_change = (_mean(recent) - prior_mean) / prior_mean
    return percent_change * abs(indicator.correlation)


def _find(indicators: Sequence[EconomicIndicator], name: str) -> EconomicIndicator | None:
    return next((indicator for indicator in indicators if indicator.name == name), None)


def economic_factors(indicators: Iterable[EconomicIndicator] | None) -> EconomicFactors:
    available = list(indicators or [])
    return EconomicFactors(
        consumer_confidence=indicator_impact(_find(available, CONSUMER_CONFIDENCE)),
        market_performance=indicator_impact(_find(available, MARKET_PERFORMANCE)),
        unemployment_impact=indicator_impact(_find(available, UNEMPLOYMENT_RATE)),
        gdp_growth_impact=indicator_impact(_find(available, GDP_GROWTH)),
    )


def composite_adjustment(factors: EconomicFactors) -> float:
    return sum(getattr(factors, name) * weight for name, weight in FACTOR_WEIGHTS.items())


def damp(adjustment: float) -> float:
    return max(-ADJUSTMENT_LIMIT, min(ADJUSTMENT_LIMIT, adjustment))


def _adjust(prediction: Prediction, damped: float) -> AdjustedPrediction:
    delta = prediction.predicted_amount * damped
    return AdjustedPrediction(
        base_amount=prediction.predicted_amount,
        economic_adjustment=delta,
        final_amount=prediction.predicted_amount + delta,
        confidence=min(CONFIDENCE_CAP, prediction.confidence + abs(damped) * CONFIDENCE_BOOST),
    )


def adjust_forecast(
    forecast: ForecastData,
    indicators: Iterable[EconomicIndicator] | None = None,
) -> EnhancedForecastData:
    """Reweight a base forecast by the damped composite of indicator impacts."""

    factors = economic_factors(indicators)
    composite = composite_adjustment(factors)
    damped = damp(composite)

    return EnhancedForecastData(
        base=forecast,
        economic_factors=factors,
        composite_adjustment=composite,
        damped_adjustment=damped,
        next_month=_adjust(forecast.next_month, damped),
        next_quarter=_adjust(forecast.next_quarter, damped),
    )


def recommend_campaign_timing(
    indicators: Iterable[EconomicIndicator] | None,
    donors: Iterable[Donor],
) -> CampaignTiming:
    available = list(indicators or [])
    confidence = _find(available, CONSUMER_CONFIDENCE)
    market = _find(available, MARKET_PERFORMANCE)

    score = 0.0
    reasons: list[str] = []

    if confidence is not None and indicator_trend(confidence) == TREND_UP and confidence.current_value > 95:
        score += 0.3
        reasons.append("Consumer confidence is rising, indicating favorable giving conditions.")

    if market is not None and indicator_trend(market) == TREND_UP:
        score += 0.25
        reasons.append("Stock market performance is positive, potentially increasing donor wealth.")

    ranked = sorted(seasonal_patterns(donors), key=lambda month: month.average_amount, reverse=True)
    best_months = [month.month for month in ranked[:3]]

    score += 0.45
    if best_months:
        reasons.append(f"Historical data shows strongest giving in {', '.join(best_months)}.")
    else:
        reasons.append("No giving history is available yet.")

    return CampaignTiming(
        recommended_months=best_months,
        reasoning=" ".join(reasons),
        confidence_score=min(1.0, score),
    )
