"""Core Data Models - Pydantic models for type safety.

All models are value objects with no behavior beyond validation.
Health log events and voice command results are tagged unions keyed by ``type``.
"""

from datetime import datetime
from datetime import date as DateType
from typing import Annotated, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field
import uuid


# ==================== Health Log Events ====================


class BaseHealthLog(BaseModel):
    """Fields shared by every logged health event. Events never change once created."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class MealLog(BaseHealthLog):
    type: Literal["meal"] = "meal"
    food_name: str = Field(min_length=1)
    calories: int = Field(default=0, ge=0)
    protein: float = Field(default=0, ge=0, description="Protein in grams")
    carbs: float = Field(default=0, ge=0, description="Carbohydrates in grams")
    fat: float = Field(default=0, ge=0, description="Fat in grams")
    meal_type: Optional[str] = None


class WorkoutLog(BaseHealthLog):
    type: Literal["workout"] = "workout"
    workout_type: str = Field(min_length=1)
    duration_minutes: int = Field(default=0, ge=0)
    calories_burned: int = Field(default=0, ge=0)
    distance: Optional[float] = Field(default=None, ge=0)
    distance_unit: Optional[str] = None


class SleepLog(BaseHealthLog):
    type: Literal["sleep"] = "sleep"
    hours: float = Field(ge=0, le=24)
    quality: int = Field(default=3, ge=1, le=5)


class WaterLog(BaseHealthLog):
    type: Literal["water"] = "water"
    amount_ml: int = Field(ge=0)


class WeightLog(BaseHealthLog):
    type: Literal["weight"] = "weight"
    weight_kg: float = Field(gt=0)


class MoodLog(BaseHealthLog):
    type: Literal["mood"] = "mood"
    level: int = Field(ge=1, le=5, description="1 = terrible, 5 = excellent")
    emotions: list[str] = Field(default_factory=list)
    energy_level: Optional[int] = Field(default=None, ge=1, le=5)
    notes: Optional[str] = None


class SupplementLog(BaseHealthLog):
    type: Literal["supplement"] = "supplement"
    supplement_name: str = Field(min_length=1)
    nutrients: dict[str, float] = Field(default_factory=dict)
    quantity: Optional[str] = Field(default=None, description="e.g. '2000 iu', '500 mg'")


class MenstrualLog(BaseHealthLog):
    type: Literal["menstrual"] = "menstrual"
    flow: Literal["spotting", "light", "medium", "heavy"] = "medium"
    symptoms: list[str] = Field(default_factory=list)


class MeditationLog(BaseHealthLog):
    type: Literal["meditation"] = "meditation"
    duration_minutes: int = Field(ge=0)
    meditation_type: str = "guided"


class JournalLog(BaseHealthLog):
    type: Literal["journal"] = "journal"
    content: str = Field(min_length=1)
    mood: Optional[str] = None


class BreathingLog(BaseHealthLog):
    type: Literal["breathing"] = "breathing"
    duration_minutes: int = Field(default=0, ge=0)
    exercise: str = "box_breathing"


class WinLog(BaseHealthLog):
    type: Literal["win"] = "win"
    content: str = Field(min_length=1, description="Something that went well today")


HealthLogEvent = Annotated[
    Union[
        MealLog,
        WorkoutLog,
        SleepLog,
        WaterLog,
        WeightLog,
        MoodLog,
        SupplementLog,
        MenstrualLog,
        MeditationLog,
        JournalLog,
        BreathingLog,
        WinLog,
    ],
    Field(discriminator="type"),
]


class DailyLog(BaseModel):
    """All health events a user recorded on one calendar date."""

    log_date: DateType = Field(description="Date of this log (YYYY-MM-DD)")
    events: list[HealthLogEvent] = Field(default_factory=list)
    steps: Optional[int] = Field(default=None, ge=0, description="Step counter total, None if not synced")
    water_amount: int = Field(default=0, ge=0, description="Cumulative water in ml")
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    def with_event(self, event: HealthLogEvent) -> "DailyLog":
        """Return a copy of this log with ``event`` appended."""
        water_amount = self.water_amount
        if isinstance(event, WaterLog):
            water_amount += event.amount_ml
        return self.model_copy(
            update={
                "events": [*self.events, event],
                "water_amount": water_amount,
                "updated_at": datetime.utcnow(),
            }
        )


# ==================== Scores ====================


class ScoreGoals(BaseModel):
    """User goal thresholds the score is normalized against."""

    calorie_goal: int = Field(default=2000, ge=0, description="Daily calorie target")
    steps_goal: int = Field(default=10000, ge=0, description="Daily step target")
    water_goal: int = Field(default=2000, ge=0, description="Daily water target in ml")
    sleep_goal: float = Field(default=8.0, ge=0, description="Nightly sleep target in hours")
    total_habits: int = Field(default=0, ge=0, description="Number of active habits")
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class ScoreBreakdown(BaseModel):
    """The Coachie Score and its three category sub-scores."""

    daily_score: int = Field(ge=0, le=100)
    health_score: int = Field(ge=0, le=100)
    wellness_score: int = Field(ge=0, le=100)
    habits_score: int = Field(ge=0, le=100)


class ScoreRecord(ScoreBreakdown):
    """A score persisted for a specific date."""

    score_date: DateType
    calculated_at: datetime = Field(default_factory=datetime.utcnow)


class ScoreStats(BaseModel):
    """Aggregates over a user's score history."""

    average_score: float
    total_days: int
    highest_score: int
    highest_score_date: Optional[DateType] = None
    last_7_days_average: Optional[float] = None
    last_30_days_average: Optional[float] = None


# ==================== Streaks ====================


class Streak(BaseModel):
    """Consecutive-day logging streak."""

    current_streak: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    total_logs: int = Field(default=0, ge=0, description="Distinct days with at least one log")
    last_log_date: Optional[DateType] = None
    streak_start_date: Optional[DateType] = None


class StreakBadge(BaseModel):
    badge_type: str
    name: str
    description: str
    threshold: int = Field(gt=0)


# ==================== Voice Commands ====================


class FoodItem(BaseModel):
    name: str = Field(min_length=1)
    quantity: Optional[float] = None
    unit: Optional[str] = None


class ParsedMeal(BaseModel):
    foods: list[FoodItem]
    meal_type: Optional[str] = None
    total_calories: Optional[int] = None


class ParsedWater(BaseModel):
    amount: int = Field(ge=0, description="Normalized amount in ml")
    unit: str = Field(description="Unit as spoken, e.g. 'glasses'")


class ParsedWorkout(BaseModel):
    workout_type: str
    duration_minutes: Optional[int] = None
    distance: Optional[float] = None
    distance_unit: Optional[str] = None
    calories_burned: Optional[int] = None


class ParsedWeight(BaseModel):
    weight: float
    unit: Literal["lbs", "kg"]


class ParsedSleep(BaseModel):
    hours: float
    quality: Optional[int] = Field(default=None, ge=1, le=5)


class ParsedMood(BaseModel):
    level: int = Field(ge=1, le=5)
    emotions: list[str] = Field(default_factory=list)


class ParsedSupplement(BaseModel):
    supplement_name: str
    quantity: Optional[str] = None
    micronutrients: dict[str, float] = Field(default_factory=dict)


class ParsedMeditation(BaseModel):
    duration_minutes: int
    meditation_type: str


class ParsedHabit(BaseModel):
    habit_name: str
    notes: Optional[str] = None


class ParsedJournal(BaseModel):
    content: str
    mood: Optional[str] = None


class MealCommand(BaseModel):
    type: Literal["meal"] = "meal"
    meal: ParsedMeal


class WaterCommand(BaseModel):
    type: Literal["water"] = "water"
    water: ParsedWater


class WorkoutCommand(BaseModel):
    type: Literal["workout"] = "workout"
    workout: ParsedWorkout


class WeightCommand(BaseModel):
    type: Literal["weight"] = "weight"
    weight: ParsedWeight


class SleepCommand(BaseModel):
    type: Literal["sleep"] = "sleep"
    sleep: ParsedSleep


class MoodCommand(BaseModel):
    type: Literal["mood"] = "mood"
    mood: ParsedMood


class SupplementCommand(BaseModel):
    type: Literal["supplement"] = "supplement"
    supplement: ParsedSupplement


class MeditationCommand(BaseModel):
    type: Literal["meditation"] = "meditation"
    meditation: ParsedMeditation


class HabitCommand(BaseModel):
    type: Literal["habit"] = "habit"
    habit: ParsedHabit


class JournalCommand(BaseModel):
    type: Literal["journal"] = "journal"
    journal: ParsedJournal


class UnknownCommand(BaseModel):
    type: Literal["unknown"] = "unknown"
    command: str


class ParseErrorCommand(BaseModel):
    type: Literal["parse_error"] = "parse_error"
    original_command: str
    error_message: str


VoiceCommandResult = Annotated[
    Union[
        MealCommand,
        WaterCommand,
        WorkoutCommand,
        WeightCommand,
        SleepCommand,
        MoodCommand,
        SupplementCommand,
        MeditationCommand,
        HabitCommand,
        JournalCommand,
        UnknownCommand,
        ParseErrorCommand,
    ],
    Field(discriminator="type"),
]
