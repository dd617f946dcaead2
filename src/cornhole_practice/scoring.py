from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


ROUNDS_PER_SESSION = 10
THROWS_PER_ROUND = 4


class ThrowResult(str, Enum):
    IN_HOLE = "in_hole"
    ON_BOARD = "on_board"
    MISS = "miss"


POINTS: dict[ThrowResult, int] = {
    ThrowResult.IN_HOLE: 3,
    ThrowResult.ON_BOARD: 1,
    ThrowResult.MISS: 0,
}


@dataclass(frozen=True)
class BagThrow:
    throw_number: int
    result: ThrowResult


@dataclass
class Round:
    round_number: int
    throws: list[BagThrow] = field(default_factory=list)

    def _count(self, result: ThrowResult) -> int:
        return sum(1 for t in self.throws if t.result is result)

    @property
    def total_in_hole(self) -> int:
        return self._count(ThrowResult.IN_HOLE)

    @property
    def total_on_board(self) -> int:
        return self._count(ThrowResult.ON_BOARD)

    @property
    def total_miss(self) -> int:
        return self._count(ThrowResult.MISS)

    @property
    def round_score(self) -> int:
        return sum(POINTS[t.result] for t in self.throws)

    @property
    def is_complete(self) -> bool:
        return len(self.throws) == THROWS_PER_ROUND

    @property
    def is_four_bagger(self) -> bool:
        return self.is_complete and all(t.result is ThrowResult.IN_HOLE for t in self.throws)

    def to_dict(self) -> dict[str, object]:
        return {
            "round_number": self.round_number,
            "throws": [{"throw_number": t.throw_number, "result": t.result.value} for t in self.throws],
            "round_score": self.round_score,
            "complete": self.is_complete,
        }


def empty_rounds() -> list[Round]:
    return [Round(round_number=n) for n in range(1, ROUNDS_PER_SESSION + 1)]


@dataclass(frozen=True)
class SessionTotals:
    points_per_round: float
    total_bags_in_hole: int
    bags_on_board: int
    bags_off_board: int
    four_baggers: int


def points_per_round(rounds: list[Round]) -> float:
    """Average round score over complete rounds only; 0.0 when none are complete."""
    completed = [r for r in rounds if r.is_complete]
    if not completed:
        return 0.0
    return sum(r.round_score for r in completed) / len(completed)


def summarize_rounds(rounds: list[Round]) -> SessionTotals:
    # Placement counts include partial rounds so every thrown bag is counted.
    return SessionTotals(
        points_per_round=points_per_round(rounds),
        total_bags_in_hole=sum(r.total_in_hole for r in rounds),
        bags_on_board=sum(r.total_on_board for r in rounds),
        bags_off_board=sum(r.total_miss for r in rounds),
        four_baggers=sum(1 for r in rounds if r.is_four_bagger),
    )
