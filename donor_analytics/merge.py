"""Merge a freshly uploaded donor batch into an existing donor database."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Iterable

from .aggregate import build_donor
from .models import Donation, Donor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MergeSummary:
    donors_added: int
    donors_merged: int
    donations_added: int
    duplicates_suppressed: int


def _new_donations(existing: Donor, incoming: Donor) -> list[Donation]:
    known_ids = {donation.id for donation in existing.donations}
    known_gifts = {(donation.date, donation.amount) for donation in existing.donations}
    return [
        donation
        for donation in incoming.donations
        if donation.id not in known_ids
        and (donation.date, donation.amount) not in known_gifts
    ]


def merge_donor(existing: Donor, incoming: Donor) -> Donor:
    """Fold ``incoming`` into ``existing`` and return a new donor.

    Gifts already present by id, or by identical date and amount, are
    suppressed. Contact details only fill gaps on the existing record.
    """

    additions = _new_donations(existing, incoming)
    email = existing.email or incoming.email
    phone = existing.phone or incoming.phone

    if not additions:
        return replace(existing, donations=list(existing.donations), email=email, phone=phone)

    return build_donor(
        donor_id=existing.id,
        first_name=existing.first_name,
        last_name=existing.last_name,
        donations=[*existing.donations, *additions],
        email=email,
        phone=phone,
    )


def merge_donors_with_summary(
    existing: Iterable[Donor],
    incoming: Iterable[Donor],
) -> tuple[list[Donor], MergeSummary]:
    merged: dict[str, Donor] = {}
    for donor in existing:
        merged[donor.key] = replace(donor, donations=list(donor.donations))

    donors_added = 0
    donors_merged = 0
    donations_added = 0
    duplicates_suppressed = 0

    for donor in incoming:
        key = donor.key
        current = merged.get(key)
        if current is None:
            merged[key] = replace(donor, donations=list(donor.donations))
            donors_added += 1
            donations_added += donor.donation_count
            continue

        updated = merge_donor(current, donor)
        added = updated.donation_count - current.donation_count
        merged[key] = updated
        donors_merged += 1
        donations_added += added
        duplicates_suppressed += donor.donation_count - added

    summary = MergeSummary(
        donors_added=donors_added,
        donors_merged=donors_merged,
        donations_added=donations_added,
        duplicates_suppressed=duplicates_suppressed,
    )
    logger.info(
        "Merged upload: %d new donors, %d existing donors updated, "
        "%d donations added, %d duplicates suppressed",
        summary.donors_added,
        summary.donors_merged,
        summary.donations_added,
        summary.duplicates_suppressed,
    )
    return list(merged.values()), summary


def merge_donors(existing: Iterable[Donor], incoming: Iterable[Donor]) -> list[Donor]:
    """Return the merged donor set without touching either input collection."""

    merged, _ = merge_donors_with_summary(existing, incoming)
    return merged
