"""Group normalized donations into donor records with derived metrics."""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable

from .models import DonationCandidate, Donation, Donor, frequency_tier
from .normalize import new_id


def build_donor(
    donor_id: str,
    first_name: str,
    last_name: str,
    donations: Iterable[Donation],
    email: str | None = None,
    phone: str | None = None,
) -> Donor:
    """Create a donor, recomputing every metric from the full donation list.

    Donations are sorted by date and re-pointed at ``donor_id``. At least one
    donation is required.
    """

    owned = sorted(
        (replace(donation, donor_id=donor_id) for donation in donations),
        key=lambda donation: donation.date,
    )
    if not owned:
        raise ValueError("A donor requires at least one donation.")

    total_amount = sum(donation.amount for donation in owned)
    donation_count = len(owned)

    return Donor(
        id=donor_id,
        first_name=first_name,
        last_name=last_name,
        donations=owned,
        total_amount=total_amount,
        donation_count=donation_count,
        average_donation=total_amount / donation_count,
        first_donation=owned[0].date,
        last_donation=owned[-1].date,
        donation_frequency=frequency_tier(donation_count),
        email=email,
        phone=phone,
    )


def aggregate_donations(candidates: Iterable[DonationCandidate]) -> list[Donor]:
    """Group candidates by donor identity key, in order of first appearance."""

    groups: dict[str, list[DonationCandidate]] = {}
    for candidate in candidates:
        groups.setdefault(candidate.key, []).append(candidate)

    donors: list[Donor] = []
    for group in groups.values():
        first = group[0]
        donors.append(
            build_donor(
                donor_id=new_id(),
                first_name=first.first_name,
                last_name=first.last_name,
                donations=[candidate.donation for candidate in group],
                email=next((c.email for c in group if c.email), None),
                phone=next((c.phone for c in group if c.phone), None),
            )
        )
    return donors
