from __future__ import annotations

import io
import zipfile
from datetime import datetime

import pandas as pd
import pytest

from donor_analytics.ingest import UnsupportedFormatError, detect_format, ingest_file, ingest_rows


CSV_CONTENT = """First Name,Last Name,Amount,Gift Date,Email
Avery,Mills,"$1,200.50",2024-01-15,avery@example.org
Avery,Mills,300,02/10/2024,
Sam,Ng,abc,2024-01-20,sam@example.org
,Nobody,25,2024-01-20,
River,Lane,45,"Mar 03, 2024",
"""


def test_detect_format() -> None:
    assert detect_format("donors.csv") == "csv"
    assert detect_format("Donors.XLSX") == "excel"
    with pytest.raises(UnsupportedFormatError):
        detect_format("donors.txt")


def test_ingest_rows_reports_processed_and_accepted_counts() -> None:
    result = ingest_rows(
        [
            {"First Name": "Avery", "Last Name": "Mills", "Amount": 40, "Date": "2024-02-01"},
            {"First Name": "Avery", "Last Name": "Mills", "Amount": 60, "Date": "2024-03-01"},
            {"First Name": "Kai", "Last Name": "Parker", "Amount": 0, "Date": "2024-03-01"},
        ]
    )

    assert result.success
    assert result.records_processed == 3
    assert result.accepted_count == 2
    assert result.rejected_count == 1
    assert len(result.donors) == 1
    assert result.donation_count == 2
    assert result.donors[0].total_amount == pytest.approx(100.0)


def test_ingest_csv_file(tmp_path) -> None:  # type: ignore[no-untyped-def]
    csv_path = tmp_path / "donors.csv"
    csv_path.write_text(CSV_CONTENT, encoding="utf-8")

    result = ingest_file(csv_path, csv_path.name)

    assert result.success
    assert result.records_processed == 5
    assert result.accepted_count == 3
    donors = {donor.display_name: donor for donor in result.donors}
    assert set(donors) == {"Avery Mills", "River Lane"}

    avery = donors["Avery Mills"]
    assert avery.total_amount == pytest.approx(1500.5)
    assert avery.first_donation == datetime(2024, 1, 15)
    assert avery.last_donation == datetime(2024, 2, 10)
    assert avery.email == "avery@example.org"
    assert donors["River Lane"].first_donation == datetime(2024, 3, 3)


def test_ingest_csv_from_file_object() -> None:
    result = ingest_file(io.StringIO(CSV_CONTENT), "upload.csv")

    assert result.success
    assert result.accepted_count == 3


def test_ingest_excel_file(tmp_path) -> None:  # type: ignore[no-untyped-def]
    xlsx_path = tmp_path / "donors.xlsx"
    pd.DataFrame(
        [
            {"Fname": "Avery", "Lname": "Mills", "Gift": 75.0, "Donation Date": datetime(2024, 5, 1)},
            {"Fname": "Sam", "Lname": "Ng", "Gift": 20.0, "Donation Date": None},
        ]
    ).to_excel(xlsx_path, index=False)

    result = ingest_file(xlsx_path, xlsx_path.name, today=datetime(2024, 6, 1))

    assert result.success
    assert result.accepted_count == 2
    donors = {donor.display_name: donor for donor in result.donors}
    assert donors["Avery Mills"].first_donation == datetime(2024, 5, 1)
    assert donors["Sam Ng"].first_donation == datetime(2024, 6, 1)


def test_unsupported_format_is_a_failed_result(tmp_path) -> None:  # type: ignore[no-untyped-def]
    text_path = tmp_path / "donors.txt"
    text_path.write_text(CSV_CONTENT, encoding="utf-8")

    result = ingest_file(text_path, text_path.name)

    assert not result.success
    assert result.error == "Unsupported file format"
    assert result.records_processed == 0
    assert result.donors == []
    assert result.rejected_count == 0


def test_zip_without_a_workbook_is_a_failed_result(tmp_path) -> None:  # type: ignore[no-untyped-def]
    xlsx_path = tmp_path / "donors.xlsx"
    with zipfile.ZipFile(xlsx_path, "w") as archive:
        archive.writestr("readme.txt", "not a spreadsheet")

    result = ingest_file(xlsx_path, xlsx_path.name)

    assert not result.success
    assert result.error
    assert result.records_processed == 0
    assert result.donors == []


def test_plain_text_named_xlsx_is_a_failed_result(tmp_path) -> None:  # type: ignore[no-untyped-def]
    xlsx_path = tmp_path / "donors.xlsx"
    xlsx_path.write_text(CSV_CONTENT, encoding="utf-8")

    result = ingest_file(xlsx_path, xlsx_path.name)

    assert not result.success
    assert result.donors == []


def test_empty_csv_is_a_failed_result() -> None:
    result = ingest_file(io.StringIO(""), "empty.csv")

    assert not result.success
    assert result.error
    assert result.donors == []
