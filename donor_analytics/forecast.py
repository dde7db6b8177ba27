"""Least-squares revenue forecast over the recent monthly series."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from .models import (
    TREND_DOWN,
    TREND_STABLE,
    TREND_UP,
    ForecastData,
    MonthlyTrend,
    Prediction,
)


MIN_HISTORY_MONTHS = 3
FORECAST_WINDOW_MONTHS = 6
TREND_SLOPE_THRESHOLD = 0.1


@dataclass(frozen=True)
class LinearFit:
    slope: float
    intercept: float
    r_squared: float

    def predict(self, x: float) -> float:
        return self.slope * x + self.intercept


def fit_line(values: Sequence[float]) -> LinearFit:
    """Fit y = slope * x + intercept against positions 0..n-1.

    Needs at least two values. A flat series is fitted exactly, so its
    R squared is reported as 1.
    """

    y = np.asarray(values, dtype=float)
    n = len(y)
    x = np.arange(n, dtype=float)

    sum_x = x.sum()
    sum_y = y.sum()
    sum_xy = (x * y).sum()
    sum_xx = (x * x).sum()

    slope = (n * sum_xy - sum_x * sum_y) / (n * sum_xx - sum_x * sum_x)
    intercept = (sum_y - slope * sum_x) / n

    residuals = y - (slope * x + intercept)
    ss_res = float((residuals ** 2).sum())
    ss_tot = float(((y - y.mean()) ** 2).sum())
    r_squared = 1.0 if ss_tot == 0 else 1 - ss_res / ss_tot

    return LinearFit(slope=float(slope), intercept=float(intercept), r_squared=r_squared)


def trend_direction(slope: float) -> str:
    if slope > TREND_SLOPE_THRESHOLD:
        return TREND_UP
    if slope < -TREND_SLOPE_THRESHOLD:
        return TREND_DOWN
    return TREND_STABLE


def empty_forecast() -> ForecastData:
    return ForecastData(
        next_month=Prediction(predicted_amount=0.0, confidence=0.0),
        next_quarter=Prediction(predicted_amount=0.0, confidence=0.0),
        trend_direction=TREND_STABLE,
    )


def has_forecast_history(trends: Sequence[MonthlyTrend]) -> bool:
    return len(trends) >= MIN_HISTORY_MONTHS


def generate_forecast(trends: Sequence[MonthlyTrend]) -> ForecastData:
    if not has_forecast_history(trends):
        return empty_forecast()

    recent = [trend.amount for trend in trends[-FORECAST_WINDOW_MONTHS:]]
    fit = fit_line(recent)
    n = len(recent)

    next_month = fit.predict(n)
    next_quarter = (fit.predict(n) + fit.predict(n + 1) + fit.predict(n + 2)) / 3
    confidence = max(0.0, min(1.0, fit.r_squared))

    return ForecastData(
        next_month=Prediction(predicted_amount=max(0.0, next_month), confidence=confidence),
        next_quarter=Prediction(predicted_amount=max(0.0, next_quarter), confidence=confidence),
        trend_direction=trend_direction(fit.slope),
        slope=fit.slope,
    )
