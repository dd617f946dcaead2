"""Aggregate statistics and trends over saved practice sessions.

Every function takes summaries ordered oldest first and derives its result
from that list alone. Callers should pass a materialized snapshot, not a
live query that may change mid-computation.
"""

from __future__ import annotations

from collections.abc import Sequence

from .storage import SummaryRecord

TREND_MIN_SESSIONS = 4
TREND_WINDOW = 10

GROUP_FIELDS = ("bag_type", "throwing_style")


def _percentages(in_hole: int, on_board: int, off_board: int) -> tuple[float, float, float]:
    total = in_hole + on_board + off_board
    if total == 0:
        return (0.0, 0.0, 0.0)
    return (in_hole / total * 100, on_board / total * 100, off_board / total * 100)


def total_sessions(summaries: Sequence[SummaryRecord]) -> int:
    return len(summaries)


def average_ppr(summaries: Sequence[SummaryRecord]) -> float:
    if not summaries:
        return 0.0
    return sum(s.points_per_round for s in summaries) / len(summaries)


def total_bags_thrown(summaries: Sequence[SummaryRecord]) -> int:
    return sum(s.total_bags for s in summaries)


def four_bagger_rate(summaries: Sequence[SummaryRecord]) -> float:
    if not summaries:
        return 0.0
    return sum(s.four_baggers for s in summaries) / len(summaries)


def throw_distribution(summaries: Sequence[SummaryRecord]) -> tuple[float, float, float]:
    """Share of all thrown bags that landed in the hole, on the board and off it."""
    return _percentages(
        sum(s.total_bags_in_hole for s in summaries),
        sum(s.bags_on_board for s in summaries),
        sum(s.bags_off_board for s in summaries),
    )


def weighted_sum(values: Sequence[float]) -> float:
    """Sum of ``value_i * i / n`` for i = 1..n.

    Later values weigh more. The result is deliberately not divided by the
    total weight, so it also grows with the number of values.
    """
    count = len(values)
    if count == 0:
        return 0.0
    return sum(value * (index / count) for index, value in enumerate(values, start=1))


def _trend(values: Sequence[float]) -> float:
    if len(values) < TREND_MIN_SESSIONS:
        return 0.0
    recent = list(values[-TREND_WINDOW:])
    older = recent[: len(recent) // 2]
    weighted_recent = weighted_sum(recent)
    weighted_older = weighted_sum(older)
    if weighted_older > 0:
        return (weighted_recent - weighted_older) / weighted_older * 100
    return 0.0


def ppr_trend(summaries: Sequence[SummaryRecord]) -> float:
    return _trend([s.points_per_round for s in summaries])


def four_bagger_trend(summaries: Sequence[SummaryRecord]) -> float:
    return _trend([float(s.four_baggers) for s in summaries])


def best_session_ppr(summaries: Sequence[SummaryRecord]) -> float | None:
    if not summaries:
        return None
    return max(s.points_per_round for s in summaries)


def most_four_baggers(summaries: Sequence[SummaryRecord]) -> int | None:
    if not summaries:
        return None
    return max(s.four_baggers for s in summaries)


def highest_in_hole_percentage(summaries: Sequence[SummaryRecord]) -> float | None:
    if not summaries:
        return None
    # Sessions without a single thrown bag have no percentage to compare.
    percentages = [s.total_bags_in_hole / s.total_bags * 100 for s in summaries if s.total_bags > 0]
    return max(percentages, default=0.0)


def session_placement(summary: SummaryRecord) -> dict[str, float]:
    in_hole, on_board, off_board = _percentages(
        summary.total_bags_in_hole, summary.bags_on_board, summary.bags_off_board
    )
    return {"in_hole": in_hole, "on_board": on_board, "off_board": off_board}


def placement_series(summaries: Sequence[SummaryRecord]) -> list[dict[str, object]]:
    """Per-session PPR and bag placement percentages, in the order given."""
    return [
        {
            "id": s.id,
            "saved_at": s.saved_at,
            "points_per_round": s.points_per_round,
            "four_baggers": s.four_baggers,
            **session_placement(s),
        }
        for s in summaries
    ]


def compare_by(summaries: Sequence[SummaryRecord], field: str = "bag_type") -> list[dict[str, object]]:
    """Per-label performance, best average PPR first.

    Sessions without a value for ``field`` are left out.
    """
    if field not in GROUP_FIELDS:
        raise ValueError(f"cannot group sessions by {field!r}")

    groups: dict[str, list[SummaryRecord]] = {}
    for summary in summaries:
        label = getattr(summary, field)
        if label:
            groups.setdefault(label, []).append(summary)

    results: list[dict[str, object]] = []
    for label, group in groups.items():
        in_hole, on_board, off_board = throw_distribution(group)
        results.append(
            {
                "label": label,
                "total_sessions": len(group),
                "average_ppr": average_ppr(group),
                "four_bagger_rate": four_bagger_rate(group),
                "in_hole_percentage": in_hole,
                "on_board_percentage": on_board,
                "off_board_percentage": off_board,
                "best_ppr": best_session_ppr(group),
            }
        )
    results.sort(key=lambda r: (-r["average_ppr"], r["label"]))
    return results


def overview(summaries: Sequence[SummaryRecord]) -> dict[str, object]:
    in_hole, on_board, off_board = throw_distribution(summaries)
    return {
        "total_sessions": total_sessions(summaries),
        "average_ppr": average_ppr(summaries),
        "total_bags_thrown": total_bags_thrown(summaries),
        "four_bagger_rate": four_bagger_rate(summaries),
        "throw_distribution": {"in_hole": in_hole, "on_board": on_board, "off_board": off_board},
        "ppr_trend": ppr_trend(summaries),
        "four_bagger_trend": four_bagger_trend(summaries),
        "best_session_ppr": best_session_ppr(summaries),
        "most_four_baggers": most_four_baggers(summaries),
        "highest_in_hole_percentage": highest_in_hole_percentage(summaries),
    }
