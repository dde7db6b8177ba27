"""SQLite-backed persistence for the donor database and upload history."""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable

from .aggregate import build_donor
from .config import DEFAULT_HISTORY_LIMIT
from .merge import MergeSummary, merge_donors_with_summary
from .models import Donation, Donor

logger = logging.getLogger(__name__)


def _lastrowid(cursor: sqlite3.Cursor) -> int:
    row_id = cursor.lastrowid
    if row_id is None:
        raise RuntimeError("Insert did not return a row id.")
    return row_id


class DonorStore:
    """Persistence operations for donors, their donations, and upload history."""

    def __init__(self, db_path: str | Path, history_limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        if history_limit <= 0:
            raise ValueError("Upload history limit must be greater than zero.")
        self.db_path = Path(db_path)
        self.history_limit = history_limit

    def _connect(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        connection = sqlite3.connect(self.db_path)
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON")
        return connection

    def init_db(self) -> None:
        with self._connect() as connection:
            connection.executescript(
                """
                CREATE TABLE IF NOT EXISTS donors (
                    id TEXT PRIMARY KEY,
                    position INTEGER NOT NULL,
                    first_name TEXT NOT NULL,
                    last_name TEXT NOT NULL,
                    email TEXT,
                    phone TEXT
                );

                CREATE TABLE IF NOT EXISTS donations (
                    donor_id TEXT NOT NULL,
                    id TEXT NOT NULL,
                    amount REAL NOT NULL CHECK (amount > 0),
                    donation_date TEXT NOT NULL,
                    PRIMARY KEY (donor_id, id),
                    FOREIGN KEY (donor_id) REFERENCES donors(id) ON DELETE CASCADE
                );

                CREATE TABLE IF NOT EXISTS upload_history (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    uploaded_at TEXT NOT NULL,
                    records_added INTEGER NOT NULL,
                    total_records INTEGER NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_donations_donor ON donations (donor_id);
                CREATE INDEX IF NOT EXISTS idx_donations_date ON donations (donation_date);
                """
            )

    def load_donors(self) -> list[Donor]:
        """Return the stored donor set with metrics recomputed from donations."""

        with self._connect() as connection:
            donor_rows = connection.execute(
                "SELECT * FROM donors ORDER BY position ASC"
            ).fetchall()
            donation_rows = connection.execute(
                "SELECT * FROM donations ORDER BY donation_date ASC, id ASC"
            ).fetchall()

        donations_by_donor: dict[str, list[Donation]] = {}
        for row in donation_rows:
            donations_by_donor.setdefault(row["donor_id"], []).append(
                Donation(
                    id=row["id"],
                    amount=float(row["amount"]),
                    date=datetime.fromisoformat(row["donation_date"]),
                    donor_id=row["donor_id"],
                )
            )

        donors: list[Donor] = []
        for row in donor_rows:
            donations = donations_by_donor.get(row["id"])
            if not donations:
                continue
            donors.append(
                build_donor(
                    donor_id=row["id"],
                    first_name=row["first_name"],
                    last_name=row["last_name"],
                    donations=donations,
                    email=row["email"],
                    phone=row["phone"],
                )
            )
        return donors

    def save_donors(self, donors: Iterable[Donor]) -> None:
        """Replace the stored donor set in a single transaction."""

        donor_list = list(donors)
        with self._connect() as connection:
            connection.execute("DELETE FROM donations")
            connection.execute("DELETE FROM donors")
            connection.executemany(
                """
                INSERT INTO donors (id, position, first_name, last_name, email, phone)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                [
                    (donor.id, position, donor.first_name, donor.last_name, donor.email, donor.phone)
                    for position, donor in enumerate(donor_list)
                ],
            )
            connection.executemany(
                """
                INSERT INTO donations (donor_id, id, amount, donation_date)
                VALUES (?, ?, ?, ?)
                """,
                [
                    (donor.id, donation.id, donation.amount, donation.date.isoformat())
                    for donor in donor_list
                    for donation in donor.donations
                ],
            )
        logger.info("Saved %d donors", len(donor_list))

    def merge_upload(
        self,
        donors: Iterable[Donor],
        uploaded_at: datetime | None = None,
    ) -> tuple[list[Donor], MergeSummary]:
        """Merge an upload into the stored set, save it, and log the upload.

        Callers must not run two merges against the same file at once.
        """

        incoming = list(donors)
        merged, summary = merge_donors_with_summary(self.load_donors(), incoming)
        self.save_donors(merged)
        self.record_upload(
            records_added=len(incoming),
            total_records=len(merged),
            uploaded_at=uploaded_at,
        )
        return merged, summary

    def record_upload(
        self,
        records_added: int,
        total_records: int,
        uploaded_at: datetime | None = None,
    ) -> int:
        with self._connect() as connection:
            cursor = connection.execute(
                """
                INSERT INTO upload_history (uploaded_at, records_added, total_records)
                VALUES (?, ?, ?)
                """,
                (
                    (uploaded_at or datetime.now()).isoformat(),
                    records_added,
                    total_records,
                ),
            )
            history_id = _lastrowid(cursor)
            connection.execute(
                """
                DELETE FROM upload_history
                WHERE id NOT IN (
                    SELECT id FROM upload_history ORDER BY id DESC LIMIT ?
                )
                """,
                (self.history_limit,),
            )
            return history_id

    def upload_history(self) -> list[dict[str, Any]]:
        """Upload log, oldest first."""

        with self._connect() as connection:
            rows = connection.execute(
                "SELECT * FROM upload_history ORDER BY id ASC"
            ).fetchall()

        return [
            {
                "date": datetime.fromisoformat(row["uploaded_at"]),
                "records_added": int(row["records_added"]),
                "total_records": int(row["total_records"]),
            }
            for row in rows
        ]

    def data_overview(self) -> dict[str, int]:
        with self._connect() as connection:
            donors_total = connection.execute(
                "SELECT COUNT(*) AS count FROM donors"
            ).fetchone()["count"]
            donations_total = connection.execute(
                "SELECT COUNT(*) AS count FROM donations"
            ).fetchone()["count"]
            uploads_total = connection.execute(
                "SELECT COUNT(*) AS count FROM upload_history"
            ).fetchone()["count"]

        return {
            "donors_total": int(donors_total),
            "donations_total": int(donations_total),
            "uploads_total": int(uploads_total),
        }

    def clear_data(self) -> None:
        with self._connect() as connection:
            connection.execute("DELETE FROM donations")
            connection.execute("DELETE FROM donors")
            connection.execute("DELETE FROM upload_history")
        logger.info("Cleared donor database at %s", self.db_path)
