from __future__ import annotations

import logging
import sqlite3
import threading
import uuid
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from .scoring import SessionTotals

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100


class StoreError(RuntimeError):
    """Raised when the underlying database rejects a read or write."""


@dataclass
class SummaryRecord:
    id: str
    saved_at: str
    points_per_round: float
    total_bags_in_hole: int
    bags_on_board: int
    bags_off_board: int
    four_baggers: int
    bag_type: str
    throwing_style: str | None

    @property
    def total_bags(self) -> int:
        return self.total_bags_in_hole + self.bags_on_board + self.bags_off_board


_SUMMARY_COLUMNS = (
    "id, saved_at, points_per_round, total_bags_in_hole, bags_on_board, "
    "bags_off_board, four_baggers, bag_type, throwing_style"
)


def _row_to_summary(row: sqlite3.Row) -> SummaryRecord:
    return SummaryRecord(
        id=row["id"],
        saved_at=row["saved_at"],
        points_per_round=row["points_per_round"],
        total_bags_in_hole=row["total_bags_in_hole"],
        bags_on_board=row["bags_on_board"],
        bags_off_board=row["bags_off_board"],
        four_baggers=row["four_baggers"],
        bag_type=row["bag_type"],
        throwing_style=row["throwing_style"],
    )


class PracticeStore:
    def __init__(self, db_path: str = "cornhole.db") -> None:
        self.db_path = Path(db_path)
        self._lock = threading.Lock()
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS summaries (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    id TEXT NOT NULL UNIQUE,
                    saved_at TEXT NOT NULL,
                    points_per_round REAL NOT NULL,
                    total_bags_in_hole INTEGER NOT NULL,
                    bags_on_board INTEGER NOT NULL,
                    bags_off_board INTEGER NOT NULL,
                    four_baggers INTEGER NOT NULL,
                    bag_type TEXT NOT NULL,
                    throwing_style TEXT
                );

                CREATE TABLE IF NOT EXISTS settings (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_summaries_saved_at ON summaries(saved_at, seq);
                """
            )

    @staticmethod
    def _now_iso() -> str:
        return datetime.now(timezone.utc).isoformat()

    def create_summary(
        self,
        totals: SessionTotals,
        bag_type: str,
        throwing_style: str | None = None,
    ) -> SummaryRecord:
        record = SummaryRecord(
            id=uuid.uuid4().hex,
            saved_at=self._now_iso(),
            points_per_round=totals.points_per_round,
            total_bags_in_hole=totals.total_bags_in_hole,
            bags_on_board=totals.bags_on_board,
            bags_off_board=totals.bags_off_board,
            four_baggers=totals.four_baggers,
            bag_type=bag_type,
            throwing_style=throwing_style,
        )
        try:
            with self._lock, self._connect() as conn:
                conn.execute(
                    f"INSERT INTO summaries ({_SUMMARY_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        record.id,
                        record.saved_at,
                        record.points_per_round,
                        record.total_bags_in_hole,
                        record.bags_on_board,
                        record.bags_off_board,
                        record.four_baggers,
                        record.bag_type,
                        record.throwing_style,
                    ),
                )
        except sqlite3.Error as exc:
            logger.error("failed to save session summary: %s", exc)
            raise StoreError(f"failed to save session summary: {exc}") from exc
        logger.info("saved session %s (ppr=%.2f, bag_type=%s)", record.id, record.points_per_round, bag_type)
        return record

    def get_summary(self, summary_id: str) -> SummaryRecord | None:
        try:
            with self._lock, self._connect() as conn:
                row = conn.execute(
                    f"SELECT {_SUMMARY_COLUMNS} FROM summaries WHERE id = ?", (summary_id,)
                ).fetchone()
        except sqlite3.Error as exc:
            raise StoreError(f"failed to read session summary: {exc}") from exc
        return _row_to_summary(row) if row is not None else None

    def list_summaries(
        self,
        page: int = 0,
        page_size: int = DEFAULT_PAGE_SIZE,
        newest_first: bool = True,
    ) -> list[SummaryRecord]:
        order = "DESC" if newest_first else "ASC"
        try:
            with self._lock, self._connect() as conn:
                rows = conn.execute(
                    f"""
                    SELECT {_SUMMARY_COLUMNS}
                    FROM summaries
                    ORDER BY saved_at {order}, seq {order}
                    LIMIT ? OFFSET ?
                    """,
                    (page_size, page * page_size),
                ).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"failed to list session summaries: {exc}") from exc
        return [_row_to_summary(row) for row in rows]

    def snapshot_summaries(self, batch_size: int = DEFAULT_PAGE_SIZE) -> list[SummaryRecord]:
        """Every summary oldest first, read in ``batch_size`` batches inside one read transaction."""
        records: list[SummaryRecord] = []
        try:
            with self._lock, self._connect() as conn:
                conn.execute("BEGIN")
                cursor = conn.execute(
                    f"SELECT {_SUMMARY_COLUMNS} FROM summaries ORDER BY saved_at ASC, seq ASC"
                )
                while True:
                    batch = cursor.fetchmany(batch_size)
                    if not batch:
                        break
                    records.extend(_row_to_summary(row) for row in batch)
        except sqlite3.Error as exc:
            raise StoreError(f"failed to read session history: {exc}") from exc
        return records

    def iter_summaries(self, batch_size: int = DEFAULT_PAGE_SIZE) -> Iterator[SummaryRecord]:
        """Yield every summary oldest first from a snapshot taken when iteration starts.

        Deletes or inserts made while iterating do not shift or skip records.
        """
        yield from self.snapshot_summaries(batch_size=batch_size)

    def count_summaries(self) -> int:
        try:
            with self._lock, self._connect() as conn:
                return int(conn.execute("SELECT COUNT(*) FROM summaries").fetchone()[0])
        except sqlite3.Error as exc:
            raise StoreError(f"failed to count session summaries: {exc}") from exc

    def update_summary_labels(
        self,
        summary_id: str,
        bag_type: str | None = None,
        throwing_style: str | None = None,
        clear_throwing_style: bool = False,
    ) -> SummaryRecord | None:
        """Change the labels of a saved session. Score columns are never touched.

        ``None`` leaves a label as it is; ``clear_throwing_style`` removes the style.
        """
        assignments: list[str] = []
        params: list[object] = []
        if bag_type is not None:
            assignments.append("bag_type = ?")
            params.append(bag_type)
        if clear_throwing_style:
            assignments.append("throwing_style = NULL")
        elif throwing_style is not None:
            assignments.append("throwing_style = ?")
            params.append(throwing_style)
        if not assignments:
            return self.get_summary(summary_id)

        try:
            with self._lock, self._connect() as conn:
                cursor = conn.execute(
                    f"UPDATE summaries SET {', '.join(assignments)} WHERE id = ?",
                    (*params, summary_id),
                )
                updated = cursor.rowcount
        except sqlite3.Error as exc:
            logger.error("failed to update session %s: %s", summary_id, exc)
            raise StoreError(f"failed to update session summary: {exc}") from exc

        if not updated:
            return None
        logger.info("updated labels of session %s", summary_id)
        return self.get_summary(summary_id)

    def delete_summary(self, summary_id: str) -> bool:
        try:
            with self._lock, self._connect() as conn:
                cursor = conn.execute("DELETE FROM summaries WHERE id = ?", (summary_id,))
                deleted = cursor.rowcount > 0
        except sqlite3.Error as exc:
            logger.error("failed to delete session %s: %s", summary_id, exc)
            raise StoreError(f"failed to delete session summary: {exc}") from exc
        if deleted:
            logger.info("deleted session %s", summary_id)
        return deleted

    def get_setting(self, key: str) -> str | None:
        try:
            with self._lock, self._connect() as conn:
                row = conn.execute("SELECT value FROM settings WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as exc:
            raise StoreError(f"failed to read setting {key}: {exc}") from exc
        return row["value"] if row is not None else None

    def set_setting(self, key: str, value: str | None) -> None:
        try:
            with self._lock, self._connect() as conn:
                if value is None:
                    conn.execute("DELETE FROM settings WHERE key = ?", (key,))
                else:
                    conn.execute(
                        "INSERT INTO settings (key, value) VALUES (?, ?) "
                        "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                        (key, value),
                    )
        except sqlite3.Error as exc:
            logger.error("failed to write setting %s: %s", key, exc)
            raise StoreError(f"failed to write setting {key}: {exc}") from exc
