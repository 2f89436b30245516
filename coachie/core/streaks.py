"""Streak Calculations - Pure functions for daily logging streaks and badges.

All functions are pure: same input always produces same output, no side effects.
"today" is always passed in so results never depend on the wall clock.
"""

from datetime import date, timedelta

from .models import Streak, StreakBadge


STREAK_BADGES = (
    StreakBadge(badge_type="streak_3", name="Getting Started", description="3 day streak!", threshold=3),
    StreakBadge(badge_type="streak_7", name="Week Warrior", description="7 day streak!", threshold=7),
    StreakBadge(badge_type="streak_14", name="Two Week Champion", description="14 day streak!", threshold=14),
    StreakBadge(badge_type="streak_30", name="Monthly Master", description="30 day streak!", threshold=30),
    StreakBadge(badge_type="streak_60", name="Two Month Legend", description="60 day streak!", threshold=60),
    StreakBadge(badge_type="streak_100", name="Century Club", description="100 day streak!", threshold=100),
)


def calculate_updated_streak(streak: Streak, log_date: date) -> Streak:
    """Apply a log made on ``log_date`` to a streak.

    Rules:
        - first log ever starts a streak of 1
        - another log on the same day keeps the streak (a 0 streak becomes 1)
        - a log the day after the last log extends the streak
        - a log after a gap restarts the streak at 1
        - a log dated before the last log changes nothing

    Args:
        streak: Current streak state
        log_date: Date the activity was logged for

    Returns:
        New Streak; the input is not modified
    """
    last = streak.last_log_date

    if last is None or streak.total_logs == 0:
        return Streak(
            current_streak=1,
            longest_streak=max(streak.longest_streak, 1),
            total_logs=1,
            last_log_date=log_date,
            streak_start_date=log_date,
        )

    if log_date < last:
        return streak

    if log_date == last:
        if streak.current_streak > 0:
            return streak
        return streak.model_copy(update={
            "current_streak": 1,
            "longest_streak": max(streak.longest_streak, 1),
            "streak_start_date": log_date,
        })

    if log_date - last == timedelta(days=1) and streak.current_streak > 0:
        current = streak.current_streak + 1
        start = streak.streak_start_date or last
    else:
        current = 1
        start = log_date

    return Streak(
        current_streak=current,
        longest_streak=max(streak.longest_streak, current),
        total_logs=streak.total_logs + 1,
        last_log_date=log_date,
        streak_start_date=start,
    )


def is_streak_active(streak: Streak, today: date) -> bool:
    """A streak is alive while the last log was today or yesterday."""
    if streak.current_streak == 0 or streak.last_log_date is None:
        return False
    return today - streak.last_log_date <= timedelta(days=1)


def effective_streak(streak: Streak, today: date) -> int:
    """Current streak as shown to the user: 0 once it has lapsed."""
    return streak.current_streak if is_streak_active(streak, today) else 0


def earned_badges(current_streak: int, already_awarded: set[str] | None = None) -> list[StreakBadge]:
    """Badges unlocked by ``current_streak`` that were not awarded before.

    Args:
        current_streak: Consecutive days logged
        already_awarded: badge_type values the user already holds

    Returns:
        Newly earned badges in threshold order
    """
    awarded = already_awarded or set()
    return [
        badge for badge in STREAK_BADGES
        if current_streak >= badge.threshold and badge.badge_type not in awarded
    ]
