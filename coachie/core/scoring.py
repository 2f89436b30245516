"""Score Calculations - Pure functions for the daily Coachie Score.

All functions are pure: same input always produces same output, no side effects.
Missing or invalid inputs fall back to neutral values instead of raising.

Weighting:
    daily = 50% health + 30% wellness + 20% habits
"""

import math
from typing import Optional, Sequence

from .models import (
    BreathingLog,
    DailyLog,
    HealthLogEvent,
    JournalLog,
    MealLog,
    MeditationLog,
    MoodLog,
    ScoreBreakdown,
    ScoreGoals,
    SleepLog,
    WaterLog,
    WeightLog,
    WinLog,
    WorkoutLog,
)


HEALTH_WEIGHT = 0.50
WELLNESS_WEIGHT = 0.30
HABITS_WEIGHT = 0.20

# Substituted whenever a dimension has no data or no usable goal
NEUTRAL_BASELINE = 50
NEUTRAL_RATIO = 0.5

# Health points (sum to 100)
CALORIE_POINTS = 25
WATER_POINTS = 20
STEPS_POINTS = 15
SLEEP_POINTS = 15
WEIGHT_POINTS = 10
WORKOUT_POINTS = 10
CONSISTENCY_POINTS = 5

# Width of the calorie bell curve, as a fraction of the goal
CALORIE_TOLERANCE = 0.25

# Wellness points
MOOD_LOGGED_POINTS = 10
MOOD_LEVEL_POINTS = 20
MEDITATION_POINTS = 25
JOURNAL_POINTS = 20
BREATHING_POINTS = 15
WIN_POINTS = 10
CIRCLE_BONUS = 10

# Mood emotion recorded when a breathing exercise is finished from the mood screen
BREATHING_EMOTION = "breathing_exercise_completed"

# Habit points
ALL_HABITS_BONUS = 5
FOCUS_TASKS_BONUS = 10


def clamp_score(value: float) -> int:
    """Round to an integer score in [0, 100]. Non-finite values become 0."""
    if not math.isfinite(value):
        return 0
    return int(min(max(round(value), 0), 100))


def _usable_goal(goal: Optional[float]) -> bool:
    return goal is not None and math.isfinite(goal) and goal > 0


def goal_progress(actual: float, goal: Optional[float]) -> float:
    """Fraction of ``goal`` reached, capped to [0, 1].

    Returns the neutral ratio when the goal is missing, zero, or not finite.
    """
    if not _usable_goal(goal) or not math.isfinite(actual):
        return NEUTRAL_RATIO
    return min(max(actual / goal, 0.0), 1.0)


def calorie_adherence(calories: float, calorie_goal: Optional[float]) -> float:
    """Bell-shaped adherence in [0, 1], peaking when intake equals the goal.

    Eating too little and eating too much are penalized symmetrically.
    """
    if not _usable_goal(calorie_goal) or not math.isfinite(calories):
        return NEUTRAL_RATIO
    deviation = calories / calorie_goal - 1.0
    return math.exp(-(deviation ** 2) / (2 * CALORIE_TOLERANCE ** 2))


def calculate_workout_points(workouts: Sequence[WorkoutLog]) -> int:
    """Points for the day's workouts: 8 for one, 10 for two or more, +1 per 45 min."""
    if not workouts:
        return 0
    base = 10 if len(workouts) >= 2 else 8
    total_minutes = sum(w.duration_minutes for w in workouts)
    duration_bonus = min(total_minutes // 45, 2)
    return min(base + duration_bonus, WORKOUT_POINTS)


def calculate_health_score(
    meals: Sequence[MealLog],
    workouts: Sequence[WorkoutLog],
    sleep_logs: Sequence[SleepLog],
    water_logs: Sequence[WaterLog],
    daily_log: Optional[DailyLog],
    all_logs: Sequence[HealthLogEvent],
    goals: ScoreGoals,
) -> int:
    """Calculate the health tracking score (0-100).

    Args:
        meals: Meal events for the day
        workouts: Workout events for the day
        sleep_logs: Sleep events for the day
        water_logs: Water events for the day
        daily_log: The day's aggregate record, if one exists
        all_logs: Every event for the day (weight is read from here)
        goals: Calorie, steps, water and sleep goals

    Returns:
        Health score clamped to [0, 100]
    """
    score = 0.0

    calories = sum(m.calories for m in meals)
    score += calorie_adherence(calories, goals.calorie_goal) * CALORIE_POINTS

    # DailyLog.water_amount is the source of truth, events are the fallback
    if daily_log is not None and daily_log.water_amount > 0:
        water_ml = daily_log.water_amount
    else:
        water_ml = sum(w.amount_ml for w in water_logs)
    score += math.sqrt(goal_progress(water_ml, goals.water_goal)) * WATER_POINTS

    steps = daily_log.steps if daily_log is not None else None
    if steps:
        score += math.sqrt(goal_progress(steps, goals.steps_goal)) * STEPS_POINTS
    else:
        score += NEUTRAL_RATIO * STEPS_POINTS

    sleep_hours = max((s.hours for s in sleep_logs), default=0.0)
    if sleep_hours > 0:
        score += math.sqrt(goal_progress(sleep_hours, goals.sleep_goal)) * SLEEP_POINTS

    weight_logged = any(isinstance(log, WeightLog) for log in all_logs)
    if weight_logged:
        score += WEIGHT_POINTS

    score += calculate_workout_points(workouts)

    logged_metrics = sum([
        bool(meals),
        bool(workouts),
        bool(sleep_logs),
        water_ml > 0,
        bool(steps),
        weight_logged,
    ])
    if logged_metrics >= 4:
        score += CONSISTENCY_POINTS
    elif logged_metrics >= 2:
        score += 3

    return clamp_score(score)


def calculate_wellness_score(
    all_logs: Sequence[HealthLogEvent],
    has_circle_interaction_today: bool = False,
) -> int:
    """Calculate the wellness score (0-100).

    Days without any mood, meditation, journal, breathing or win event start
    from the neutral baseline rather than zero. A breathing exercise may also
    arrive as a mood emotion. Circle interaction is a bonus on top.
    """
    moods = [log for log in all_logs if isinstance(log, MoodLog)]
    has_meditation = any(isinstance(log, MeditationLog) for log in all_logs)
    has_journal = any(isinstance(log, JournalLog) for log in all_logs)
    has_breathing = any(isinstance(log, BreathingLog) for log in all_logs) or any(
        BREATHING_EMOTION in m.emotions for m in moods
    )
    has_win = any(isinstance(log, WinLog) for log in all_logs)

    if not (moods or has_meditation or has_journal or has_breathing or has_win):
        score = float(NEUTRAL_BASELINE)
    else:
        score = 0.0
        if moods:
            levels = [m.level for m in moods]
            levels += [m.energy_level for m in moods if m.energy_level is not None]
            average_level = sum(levels) / len(levels)
            score += MOOD_LOGGED_POINTS + (average_level - 1) / 4 * MOOD_LEVEL_POINTS
        if has_meditation:
            score += MEDITATION_POINTS
        if has_journal:
            score += JOURNAL_POINTS
        if has_breathing:
            score += BREATHING_POINTS
        if has_win:
            score += WIN_POINTS

    if has_circle_interaction_today:
        score += CIRCLE_BONUS

    return clamp_score(score)


def calculate_habits_score(
    total_habits: int,
    completed_habits: int,
    all_todays_focus_tasks_completed: bool = False,
) -> int:
    """Calculate the habits score (0-100).

    Completion percentage when habits exist, the neutral baseline otherwise.
    """
    if total_habits > 0:
        completed = min(max(completed_habits, 0), total_habits)
        score = completed / total_habits * 100
        if completed == total_habits:
            score += ALL_HABITS_BONUS
    else:
        score = NEUTRAL_BASELINE

    if all_todays_focus_tasks_completed:
        score += FOCUS_TASKS_BONUS

    return clamp_score(score)


def calculate_daily_score(health_score: float, wellness_score: float, habits_score: float) -> int:
    """Blend the three category scores into the Coachie Score."""
    return clamp_score(
        health_score * HEALTH_WEIGHT
        + wellness_score * WELLNESS_WEIGHT
        + habits_score * HABITS_WEIGHT
    )


def calculate_all_scores(
    daily_log: Optional[DailyLog],
    goals: ScoreGoals,
    completed_habits: int = 0,
    total_habits: Optional[int] = None,
    has_circle_interaction_today: bool = False,
    all_todays_focus_tasks_completed: bool = False,
) -> ScoreBreakdown:
    """Calculate all category scores and the combined daily score.

    Args:
        daily_log: The day's log (None when nothing was logged)
        goals: User goals
        completed_habits: Habits completed today
        total_habits: Active habits (defaults to goals.total_habits)
        has_circle_interaction_today: Whether the user engaged with a circle
        all_todays_focus_tasks_completed: Whether every focus task is done

    Returns:
        ScoreBreakdown with every score in [0, 100]
    """
    events = list(daily_log.events) if daily_log is not None else []
    if total_habits is None:
        total_habits = goals.total_habits

    health_score = calculate_health_score(
        meals=[e for e in events if isinstance(e, MealLog)],
        workouts=[e for e in events if isinstance(e, WorkoutLog)],
        sleep_logs=[e for e in events if isinstance(e, SleepLog)],
        water_logs=[e for e in events if isinstance(e, WaterLog)],
        daily_log=daily_log,
        all_logs=events,
        goals=goals,
    )
    wellness_score = calculate_wellness_score(events, has_circle_interaction_today)
    habits_score = calculate_habits_score(
        total_habits, completed_habits, all_todays_focus_tasks_completed
    )

    return ScoreBreakdown(
        daily_score=calculate_daily_score(health_score, wellness_score, habits_score),
        health_score=health_score,
        wellness_score=wellness_score,
        habits_score=habits_score,
    )
