"""Score Statistics - Pure functions for summarizing score history.

All functions are pure: same input always produces same output, no side effects.
"""

from datetime import date, datetime

from .models import ScoreBreakdown, ScoreRecord, ScoreStats


def build_score_record(
    score_date: date,
    breakdown: ScoreBreakdown,
    calculated_at: datetime | None = None,
) -> ScoreRecord:
    """Attach a date to a computed score so it can be stored.

    Args:
        score_date: The day the score belongs to
        breakdown: Computed scores
        calculated_at: Calculation time (defaults to now)

    Returns:
        ScoreRecord ready for persistence
    """
    data = breakdown.model_dump()
    if calculated_at is not None:
        data["calculated_at"] = calculated_at
    return ScoreRecord(score_date=score_date, **data)


def average_score(records: list[ScoreRecord]) -> float | None:
    """Mean daily score rounded to 0.1, None for an empty list."""
    if not records:
        return None
    return round(sum(r.daily_score for r in records) / len(records), 1)


def calculate_score_stats(records: list[ScoreRecord]) -> ScoreStats:
    """Summarize a user's score history.

    Recent-window averages use the most recent records by date, not by
    position in the input.

    Args:
        records: Score records in any order (one per date)

    Returns:
        ScoreStats; an empty history yields zeros and None
    """
    if not records:
        return ScoreStats(average_score=0, total_days=0, highest_score=0)

    newest_first = sorted(records, key=lambda r: r.score_date, reverse=True)

    # Earliest date wins ties for the best score
    best = min(newest_first, key=lambda r: (-r.daily_score, r.score_date))

    return ScoreStats(
        average_score=average_score(newest_first),
        total_days=len(newest_first),
        highest_score=best.daily_score,
        highest_score_date=best.score_date,
        last_7_days_average=average_score(newest_first[:7]),
        last_30_days_average=average_score(newest_first[:30]),
    )
