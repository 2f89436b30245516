"""Intent Conversion - Turn a parsed voice command into the event to persist.

All functions are pure: same input always produces same output, no side effects.
"""

from typing import Optional

from .models import (
    HealthLogEvent,
    JournalCommand,
    JournalLog,
    MealCommand,
    MealLog,
    MeditationCommand,
    MeditationLog,
    MoodCommand,
    MoodLog,
    SleepCommand,
    SleepLog,
    SupplementCommand,
    SupplementLog,
    WaterCommand,
    WaterLog,
    WeightCommand,
    WeightLog,
    WorkoutCommand,
    WorkoutLog,
)


KG_PER_LB = 0.45359237


def pounds_to_kg(pounds: float) -> float:
    """Convert pounds to kilograms, rounded to 0.1 kg."""
    return round(pounds * KG_PER_LB, 1)


def describe_foods(command: MealCommand) -> str:
    """Human readable food list, e.g. '2 eggs, toast'."""
    parts = []
    for food in command.meal.foods:
        if food.quantity is None:
            parts.append(food.name)
            continue
        quantity = int(food.quantity) if float(food.quantity).is_integer() else food.quantity
        unit = f" {food.unit}" if food.unit else ""
        parts.append(f"{quantity}{unit} {food.name}")
    return ", ".join(parts)


def intent_to_event(result) -> Optional[HealthLogEvent]:
    """Build the health log event for a parsed voice command.

    Args:
        result: A VoiceCommandResult from parse_command

    Returns:
        The event to append to the day's log, or None for habit completions,
        unknown commands and parse errors (nothing to log).
    """
    if isinstance(result, MealCommand):
        return MealLog(
            food_name=describe_foods(result),
            calories=result.meal.total_calories or 0,
            meal_type=result.meal.meal_type,
        )
    if isinstance(result, WaterCommand):
        return WaterLog(amount_ml=result.water.amount)
    if isinstance(result, WeightCommand):
        weight = result.weight.weight
        if result.weight.unit == "lbs":
            weight = pounds_to_kg(weight)
        return WeightLog(weight_kg=weight)
    if isinstance(result, SleepCommand):
        return SleepLog(hours=result.sleep.hours, quality=result.sleep.quality or 3)
    if isinstance(result, WorkoutCommand):
        workout = result.workout
        return WorkoutLog(
            workout_type=workout.workout_type,
            duration_minutes=workout.duration_minutes or 0,
            calories_burned=workout.calories_burned or 0,
            distance=workout.distance,
            distance_unit=workout.distance_unit,
        )
    if isinstance(result, MoodCommand):
        return MoodLog(level=result.mood.level, emotions=result.mood.emotions)
    if isinstance(result, SupplementCommand):
        return SupplementLog(
            supplement_name=result.supplement.supplement_name,
            nutrients=result.supplement.micronutrients,
            quantity=result.supplement.quantity,
        )
    if isinstance(result, MeditationCommand):
        return MeditationLog(
            duration_minutes=result.meditation.duration_minutes,
            meditation_type=result.meditation.meditation_type,
        )
    if isinstance(result, JournalCommand):
        return JournalLog(content=result.journal.content, mood=result.journal.mood)
    return None
