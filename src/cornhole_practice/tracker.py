from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum

from .scoring import (
    ROUNDS_PER_SESSION,
    THROWS_PER_ROUND,
    BagThrow,
    Round,
    ThrowResult,
    empty_rounds,
    summarize_rounds,
)
from .settings import PracticeSettings
from .storage import PracticeStore, StoreError, SummaryRecord

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    READY = "ready"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


@dataclass(frozen=True)
class HistoryEntry:
    round_number: int
    throw_number: int
    result: ThrowResult


@dataclass
class LiveSession:
    rounds: list[Round] = field(default_factory=empty_rounds)
    current_round: int = 1
    current_throw: int = 1
    history: list[HistoryEntry] = field(default_factory=list)


class SessionTracker:
    """Owns the in-progress practice session: throws, undo and the save/discard cycle.

    Misuse (recording after the 40th throw, undoing with nothing recorded) is
    ignored rather than raised. Every mutating call returns the new status.
    """

    def __init__(self, store: PracticeStore, settings: PracticeSettings) -> None:
        self.store = store
        self.settings = settings
        self._lock = threading.Lock()
        self._session = LiveSession()
        self._state = SessionState.READY

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def rounds(self) -> list[Round]:
        return self._session.rounds

    @property
    def current_round(self) -> int:
        return self._session.current_round

    @property
    def current_throw(self) -> int:
        return self._session.current_throw

    @property
    def is_session_complete(self) -> bool:
        return self._session.current_round > ROUNDS_PER_SESSION

    def status(self) -> dict[str, object]:
        with self._lock:
            return self._status()

    def _status(self) -> dict[str, object]:
        session = self._session
        totals = summarize_rounds(session.rounds)
        return {
            "state": self._state.value,
            "current_round": session.current_round,
            "current_throw": session.current_throw,
            "current_ppr": totals.points_per_round,
            "total_bags_in_hole": totals.total_bags_in_hole,
            "bags_on_board": totals.bags_on_board,
            "bags_off_board": totals.bags_off_board,
            "four_baggers": totals.four_baggers,
            "throws_recorded": len(session.history),
            "can_undo": bool(session.history),
            "rounds": [r.to_dict() for r in session.rounds],
        }

    def setup_new_session(self) -> dict[str, object]:
        with self._lock:
            if self._session.history:
                logger.info("discarding unsaved session with %d throws", len(self._session.history))
            self._session = LiveSession()
            self._state = SessionState.IN_PROGRESS
            return self._status()

    def discard_session(self) -> dict[str, object]:
        return self.setup_new_session()

    def record_throw(self, result: ThrowResult) -> dict[str, object]:
        with self._lock:
            session = self._session
            if (
                self._state is not SessionState.IN_PROGRESS
                or session.current_round > ROUNDS_PER_SESSION
                or session.current_throw > THROWS_PER_ROUND
            ):
                return self._status()

            session.history.append(HistoryEntry(session.current_round, session.current_throw, result))
            session.rounds[session.current_round - 1].throws.append(
                BagThrow(throw_number=session.current_throw, result=result)
            )

            if session.current_throw == THROWS_PER_ROUND:
                session.current_throw = 1
                session.current_round += 1
                if session.current_round > ROUNDS_PER_SESSION:
                    self._state = SessionState.COMPLETED
            else:
                session.current_throw += 1
            return self._status()

    def undo_last_throw(self) -> dict[str, object]:
        with self._lock:
            session = self._session
            if not session.history:
                return self._status()

            last = session.history.pop()
            session.rounds[last.round_number - 1].throws.pop()
            session.current_round = last.round_number
            session.current_throw = last.throw_number
            if self._state is SessionState.COMPLETED:
                self._state = SessionState.IN_PROGRESS
            return self._status()

    def save_session(
        self,
        bag_type: str | None = None,
        throwing_style: str | None = None,
    ) -> SummaryRecord:
        """Persist the live session and return to ``ready``.

        Raises ValueError when there is no live session with recorded throws,
        and StoreError if the store rejects the write; in both cases the live
        session is left exactly as it was so the caller can retry.
        """
        with self._lock:
            if self._state is SessionState.READY or not self._session.history:
                raise ValueError("no active session with recorded throws to save")
            if bag_type is None:
                bag_type = self.settings.default_bag_type()
            if throwing_style is None:
                throwing_style = self.settings.default_throwing_style()

            totals = summarize_rounds(self._session.rounds)
            try:
                record = self.store.create_summary(totals, bag_type=bag_type, throwing_style=throwing_style)
            except StoreError:
                logger.warning("save failed, keeping live session for retry")
                raise

            self._session = LiveSession()
            self._state = SessionState.READY
            return record
