from __future__ import annotations

from datetime import datetime

import pytest

from donor_analytics.aggregate import build_donor
from donor_analytics.ingest import ingest_rows
from donor_analytics.merge import merge_donors, merge_donors_with_summary
from donor_analytics.models import Donation, Donor


def _donor(
    donor_id: str,
    first: str,
    last: str,
    gifts: list[tuple[str, float, datetime]],
    email: str | None = None,
    phone: str | None = None,
) -> Donor:
    return build_donor(
        donor_id=donor_id,
        first_name=first,
        last_name=last,
        donations=[Donation(id=gift_id, amount=amount, date=when) for gift_id, amount, when in gifts],
        email=email,
        phone=phone,
    )


def _grand_total(donors: list[Donor]) -> float:
    return sum(donor.total_amount for donor in donors)


def test_merging_a_donor_set_with_itself_changes_nothing() -> None:
    donors = [
        _donor("d1", "Jane", "Doe", [("g1", 50.0, datetime(2024, 1, 5)), ("g2", 75.0, datetime(2024, 2, 5))]),
        _donor("d2", "Sam", "Ng", [("g3", 20.0, datetime(2024, 1, 9))]),
    ]

    merged = merge_donors(donors, donors)

    assert len(merged) == 2
    for before, after in zip(donors, merged):
        assert after.total_amount == before.total_amount
        assert after.donation_count == before.donation_count
        assert after.donations == before.donations


def test_reimport_with_new_ids_is_suppressed_by_date_and_amount() -> None:
    first_upload = ingest_rows([{"name": "Jane Doe", "amount": "$100.00", "date": "2024-01-15"}])
    second_upload = ingest_rows([{"name": "Jane Doe", "amount": 100, "date": "2024-01-15"}])

    merged, summary = merge_donors_with_summary(first_upload.donors, second_upload.donors)

    assert len(merged) == 1
    assert merged[0].donation_count == 1
    assert merged[0].total_amount == pytest.approx(100.0)
    assert summary.duplicates_suppressed == 1
    assert summary.donations_added == 0


def test_same_day_gifts_within_one_upload_survive_a_self_merge() -> None:
    upload = ingest_rows(
        [
            {"name": "Jane Doe", "amount": "$100.00", "date": "2024-01-15"},
            {"name": "Jane Doe", "amount": 100, "date": "2024-01-15"},
        ]
    )

    merged = merge_donors(upload.donors, upload.donors)

    # Rows in a single batch are never compared with each other, and every
    # incoming gift already exists by id, so both gifts are kept.
    assert upload.donors[0].donation_count == 2
    assert len(merged) == 1
    assert merged[0].donation_count == 2
    assert merged[0].total_amount == pytest.approx(200.0)


def test_new_donors_are_inserted_and_existing_donors_recomputed() -> None:
    existing = [
        _donor("d1", "Jane", "Doe", [("g1", 50.0, datetime(2024, 3, 5))]),
    ]
    incoming = [
        _donor("x1", " jane ", "DOE", [("n1", 30.0, datetime(2024, 1, 5)), ("n2", 50.0, datetime(2024, 3, 5))]),
        _donor("x2", "Lee", "Park", [("n3", 10.0, datetime(2024, 2, 1))]),
    ]

    merged, summary = merge_donors_with_summary(existing, incoming)

    assert [donor.id for donor in merged] == ["d1", "x2"]
    jane = merged[0]
    assert [d.id for d in jane.donations] == ["n1", "g1"]
    assert all(d.donor_id == "d1" for d in jane.donations)
    assert jane.total_amount == pytest.approx(80.0)
    assert jane.donation_count == 2
    assert jane.average_donation == pytest.approx(40.0)
    assert jane.first_donation == datetime(2024, 1, 5)
    assert jane.last_donation == datetime(2024, 3, 5)
    assert jane.donation_frequency == "occasional"
    assert summary.donors_added == 1
    assert summary.donors_merged == 1
    assert summary.donations_added == 2
    assert summary.duplicates_suppressed == 1


def test_merge_does_not_mutate_inputs() -> None:
    existing = [_donor("d1", "Jane", "Doe", [("g1", 50.0, datetime(2024, 3, 5))])]
    incoming = [_donor("x1", "Jane", "Doe", [("n1", 30.0, datetime(2024, 4, 5))])]

    merge_donors(existing, incoming)

    assert existing[0].donation_count == 1
    assert [d.id for d in existing[0].donations] == ["g1"]
    assert existing[0].total_amount == 50.0


def test_contact_fields_are_backfilled_but_never_overwritten() -> None:
    existing = [
        _donor("d1", "Jane", "Doe", [("g1", 50.0, datetime(2024, 3, 5))], email="jane@example.org"),
    ]
    incoming = [
        _donor(
            "x1",
            "Jane",
            "Doe",
            [("g1", 50.0, datetime(2024, 3, 5))],
            email="new@example.org",
            phone="555-0199",
        ),
    ]

    merged = merge_donors(existing, incoming)

    assert merged[0].email == "jane@example.org"
    assert merged[0].phone == "555-0199"


def test_merge_order_does_not_change_grand_total() -> None:
    batch_a = [
        _donor("a1", "Jane", "Doe", [("a-g1", 50.0, datetime(2024, 1, 5))]),
        _donor("a2", "Sam", "Ng", [("a-g2", 75.0, datetime(2024, 2, 1))]),
    ]
    batch_b = [
        _donor("b1", "Jane", "Doe", [("b-g1", 20.0, datetime(2024, 3, 1)), ("b-g2", 50.0, datetime(2024, 1, 5))]),
        _donor("b2", "Lee", "Park", [("b-g3", 10.0, datetime(2024, 2, 2))]),
    ]

    a_then_b = merge_donors(merge_donors([], batch_a), batch_b)
    b_then_a = merge_donors(merge_donors([], batch_b), batch_a)

    assert _grand_total(a_then_b) == pytest.approx(155.0)
    assert _grand_total(b_then_a) == pytest.approx(155.0)
    assert {donor.key for donor in a_then_b} == {donor.key for donor in b_then_a}


def test_merge_into_empty_database_returns_incoming_donors() -> None:
    incoming = [_donor("x1", "Jane", "Doe", [("n1", 30.0, datetime(2024, 4, 5))])]

    merged = merge_donors([], incoming)

    assert merged == incoming
    assert merged[0] is not incoming[0]
