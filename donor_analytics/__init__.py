"""Donor ingestion, merging, and giving analytics."""

from .aggregate import aggregate_donations, build_donor
from .analysis import analyze_donors, analyze_with_economic_factors, compare_periods
from .economic import adjust_forecast, build_indicator, recommend_campaign_timing
from .fields import map_fields
from .forecast import generate_forecast
from .ingest import UnsupportedFormatError, ingest_file, ingest_rows
from .merge import merge_donors
from .models import Donation, Donor, donor_key, frequency_tier
from .normalize import normalize_row
from .store import DonorStore
from .trends import donor_retention, monthly_trends

__all__ = [
    "adjust_forecast",
    "aggregate_donations",
    "analyze_donors",
    "analyze_with_economic_factors",
    "build_donor",
    "build_indicator",
    "compare_periods",
    "Donation",
    "Donor",
    "donor_key",
    "donor_retention",
    "DonorStore",
    "frequency_tier",
    "generate_forecast",
    "ingest_file",
    "ingest_rows",
    "map_fields",
    "merge_donors",
    "monthly_trends",
    "normalize_row",
    "recommend_campaign_timing",
    "UnsupportedFormatError",
]
