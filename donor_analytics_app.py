"""Streamlit app for donor uploads, giving analytics, and forecasts."""

from __future__ import annotations

from datetime import date

import pandas as pd
import streamlit as st
from dotenv import load_dotenv

from donor_analytics import (
    DonorStore,
    analyze_with_economic_factors,
    build_indicator,
    ingest_file,
    recommend_campaign_timing,
)
from donor_analytics.config import configure_logging, get_settings
from donor_analytics.economic import INDICATOR_PROFILES, indicator_trend
from donor_analytics.forecast import has_forecast_history
from donor_analytics.models import EconomicIndicator, donors_to_json


load_dotenv()
SETTINGS = get_settings()
configure_logging(SETTINGS.log_level)
STORE = DonorStore(SETTINGS.db_path, history_limit=SETTINGS.history_limit)


def format_currency(amount: float) -> str:
    return f"${amount:,.2f}"


def format_percent(rate: float) -> str:
    return f"{rate * 100:.1f}%"


def _inject_styles() -> None:
    st.markdown(
        """
        <style>
          .metric-card {
            border-radius: 14px;
            border: 1px solid rgba(201, 199, 197, 0.6);
            background: #ffffff;
            box-shadow: 0 6px 14px rgba(24, 24, 24, 0.06);
            padding: 0.75rem 0.8rem;
            min-height: 108px;
          }

          .metric-label {
            margin: 0;
            color: #3e3e3c;
            font-weight: 600;
            font-size: 0.84rem;
          }

          .metric-value {
            margin: 0.3rem 0 0;
            color: #032d60;
            font-size: 1.45rem;
            line-height: 1.1;
          }

          .metric-sub {
            margin: 0.4rem 0 0;
            color: #5a5a58;
            font-size: 0.82rem;
          }

          .section-note {
            color: #555453;
            font-weight: 500;
            margin-top: -0.2rem;
            margin-bottom: 0.8rem;
          }
        </style>
        """,
        unsafe_allow_html=True,
    )


def _render_metric_card(title: str, value: str, subtitle: str) -> None:
    st.markdown(
        f"""
        <div class="metric-card">
          <p class="metric-label">{title}</p>
          <p class="metric-value">{value}</p>
          <p class="metric-sub">{subtitle}</p>
        </div>
        """,
        unsafe_allow_html=True,
    )


def _table_or_info(frame: pd.DataFrame, empty_message: str) -> None:
    if frame.empty:
        st.info(empty_message)
        return
    st.dataframe(frame, use_container_width=True, hide_index=True)


def _indicators_from_upload(uploaded_file) -> list[EconomicIndicator]:  # type: ignore[no-untyped-def]
    frame = pd.read_csv(uploaded_file)
    required = {"indicator", "date", "value"}
    missing = required - set(frame.columns)
    if missing:
        raise ValueError("Indicator CSV is missing columns: " + ", ".join(sorted(missing)))

    frame = frame.dropna(subset=["indicator", "date", "value"])
    frame["date"] = pd.to_datetime(frame["date"], errors="coerce")
    frame = frame.dropna(subset=["date"])

    return [
        build_indicator(
            str(name),
            [(row.date.to_pydatetime(), float(row.value)) for row in group.itertuples(index=False)],
        )
        for name, group in frame.groupby("indicator", sort=False)
    ]


def render_upload_tab() -> None:
    st.markdown("### Upload Donor Data")
    st.markdown(
        "<p class='section-note'>CSV or Excel files with name, amount, and date or month columns. "
        "Rows without a name or a positive amount are skipped.</p>",
        unsafe_allow_html=True,
    )

    uploaded_file = st.file_uploader("Donor file", type=["csv", "xlsx"], key="donor-upload")
    if uploaded_file is None:
        return

    result = ingest_file(uploaded_file, uploaded_file.name)
    if not result.success:
        st.error(f"Could not read file: {result.error}")
        return

    st.write(
        f"Read {result.records_processed} rows: {result.accepted_count} accepted, "
        f"{result.rejected_count} skipped, {len(result.donors)} donors."
    )
    if result.rejected_count:
        st.warning("Skipped rows are missing a name, a positive amount, or a usable date.")

    if st.button("Merge Into Donor Database", use_container_width=True, disabled=not result.donors):
        merged, summary = STORE.merge_upload(result.donors)
        st.success(
            f"Database now holds {len(merged)} donors. Added {summary.donations_added} donations; "
            f"suppressed {summary.duplicates_suppressed} duplicates."
        )


def render_analytics_tab(indicators: list[EconomicIndicator]) -> None:
    donors = STORE.load_donors()
    if not donors:
        st.info("No donor data yet. Upload a file to populate analytics.")
        return

    analysis = analyze_with_economic_factors(donors, indicators, top_n=SETTINGS.top_donors)
    retention = analysis.donor_retention

    metric_columns = st.columns(4)
    with metric_columns[0]:
        _render_metric_card("Donors", str(analysis.total_donors), "Unique donor records")
    with metric_columns[1]:
        _render_metric_card(
            "Total Raised",
            format_currency(analysis.total_amount),
            f"{analysis.donation_count} donations",
        )
    with metric_columns[2]:
        _render_metric_card(
            "Average Gift",
            format_currency(analysis.average_donation),
            "Across all donations",
        )
    with metric_columns[3]:
        _render_metric_card(
            "Retention",
            format_percent(retention.retention_rate),
            f"{retention.returning_donors} returning, {retention.new_donors} new this month",
        )

    left, right = st.columns([1.3, 1], gap="large")
    with left:
        st.markdown("#### Monthly Giving")
        trend_df = pd.DataFrame(
            [
                {
                    "Month": date(trend.year, trend.month_number, 1),
                    "Amount": trend.amount,
                    "Donors": trend.donor_count,
                }
                for trend in analysis.monthly_trends
            ]
        )
        if trend_df.empty:
            st.info("No monthly history yet.")
        else:
            st.bar_chart(trend_df.set_index("Month")["Amount"], color="#0176D3")

    with right:
        st.markdown("#### Forecast")
        enhanced = analysis.enhanced_forecast
        forecast_rows: list[dict[str, str]] = []
        if has_forecast_history(analysis.monthly_trends):
            forecast_rows = [
                {
                    "Horizon": "Next Month",
                    "Base": format_currency(analysis.forecast.next_month.predicted_amount),
                    "Adjusted": format_currency(enhanced.next_month.final_amount) if enhanced else "-",
                    "Confidence": format_percent(
                        enhanced.next_month.confidence if enhanced else analysis.forecast.next_month.confidence
                    ),
                },
                {
                    "Horizon": "Next Quarter (monthly avg)",
                    "Base": format_currency(analysis.forecast.next_quarter.predicted_amount),
                    "Adjusted": format_currency(enhanced.next_quarter.final_amount) if enhanced else "-",
                    "Confidence": format_percent(
                        enhanced.next_quarter.confidence
                        if enhanced
                        else analysis.forecast.next_quarter.confidence
                    ),
                },
            ]
        _table_or_info(pd.DataFrame(forecast_rows), "Not enough history to forecast.")
        st.caption(f"Trend direction: {analysis.forecast.trend_direction}")

    st.markdown("#### Top Donors")
    top_df = pd.DataFrame(
        [
            {
                "Donor": donor.display_name,
                "Total": format_currency(donor.total_amount),
                "Gifts": donor.donation_count,
                "Average": format_currency(donor.average_donation),
                "Frequency": donor.donation_frequency,
                "Last Gift": donor.last_donation.date().isoformat(),
            }
            for donor in analysis.top_donors
        ]
    )
    _table_or_info(top_df, "No donors recorded yet.")


def render_data_tab() -> None:
    overview = STORE.data_overview()
    metric_columns = st.columns(3)
    with metric_columns[0]:
        _render_metric_card("Total Donors", str(overview["donors_total"]), "Stored donor records")
    with metric_columns[1]:
        _render_metric_card("Total Donations", str(overview["donations_total"]), "Stored gifts")
    with metric_columns[2]:
        _render_metric_card("Data Uploads", str(overview["uploads_total"]), "Recent uploads kept")

    st.markdown("#### Upload History")
    history_df = pd.DataFrame(
        [
            {
                "Uploaded": entry["date"].strftime("%b %d, %Y %H:%M"),
                "Donors In Upload": entry["records_added"],
                "Donors After Merge": entry["total_records"],
            }
            for entry in reversed(STORE.upload_history())
        ]
    )
    _table_or_info(history_df, "No upload history available.")

    st.markdown("#### Data Management")
    st.download_button(
        "Export Data",
        data=donors_to_json(STORE.load_donors()).encode("utf-8"),
        file_name=f"donor-data-export-{date.today().isoformat()}.json",
        mime="application/json",
        key="donor-export",
    )
    confirm = st.checkbox("I understand clearing cannot be undone.", key="confirm-clear")
    if st.button("Clear All Data", disabled=not confirm):
        STORE.clear_data()
        st.success("All donor data cleared.")
        st.rerun()


def render_economic_tab() -> list[EconomicIndicator]:
    st.markdown("### Economic Insights")
    st.markdown(
        "<p class='section-note'>Upload a CSV with indicator, date, and value columns. Recognized "
        "indicators: " + ", ".join(INDICATOR_PROFILES) + ".</p>",
        unsafe_allow_html=True,
    )

    uploaded_file = st.file_uploader("Indicator series", type=["csv"], key="indicator-upload")
    if uploaded_file is None:
        st.info("Without indicator data, forecasts are not economically adjusted.")
        return []

    try:
        indicators = _indicators_from_upload(uploaded_file)
    except ValueError as exc:
        st.error(str(exc))
        return []

    indicator_df = pd.DataFrame(
        [
            {
                "Indicator": indicator.name,
                "Current": round(indicator.current_value, 2),
                "Trend": indicator_trend(indicator),
                "Correlation": indicator.correlation,
                "Impact": indicator.impact or "-",
                "Recommendation": indicator.recommendation or "-",
            }
            for indicator in indicators
        ]
    )
    _table_or_info(indicator_df, "No indicator series found in the file.")

    timing = recommend_campaign_timing(indicators, STORE.load_donors())
    st.markdown("#### Campaign Timing")
    st.write(timing.reasoning)
    st.caption(f"Confidence score: {format_percent(timing.confidence_score)}")
    return indicators


def main() -> None:
    st.set_page_config(
        page_title="Donor Analytics",
        page_icon=":bar_chart:",
        layout="wide",
    )
    STORE.init_db()
    _inject_styles()

    tabs = st.tabs(["Upload Data", "Analytics", "Data Management", "Economic Insights"])

    with tabs[3]:
        indicators = render_economic_tab()
    with tabs[0]:
        render_upload_tab()
    with tabs[1]:
        render_analytics_tab(indicators)
    with tabs[2]:
        render_data_tab()


if __name__ == "__main__":
    main()
