"""Unit tests for converting parsed commands into log events."""

from coachie.core.intents import describe_foods, intent_to_event, pounds_to_kg
from coachie.core.models import (
    FoodItem,
    MealCommand,
    MealLog,
    ParsedMeal,
    ParsedSleep,
    ParsedWeight,
    ParsedWorkout,
    SleepCommand,
    SleepLog,
    SupplementLog,
    WaterLog,
    WeightCommand,
    WeightLog,
    WorkoutCommand,
    WorkoutLog,
)
from coachie.core.voice import parse_command


class TestPoundsToKg:
    """Tests for pounds_to_kg."""

    def test_conversion(self):
        assert pounds_to_kg(180) == 81.6

    def test_zero(self):
        assert pounds_to_kg(0) == 0


class TestDescribeFoods:
    """Tests for describe_foods."""

    def test_quantities_and_units(self):
        command = MealCommand(meal=ParsedMeal(foods=[
            FoodItem(name="eggs", quantity=2.0),
            FoodItem(name="rice", quantity=1.5, unit="cups"),
            FoodItem(name="toast"),
        ]))
        assert describe_foods(command) == "2 eggs, 1.5 cups rice, toast"


class TestIntentToEvent:
    """Tests for intent_to_event."""

    def test_meal(self):
        event = intent_to_event(parse_command("I ate 2 eggs and toast for breakfast"))
        assert isinstance(event, MealLog)
        assert event.food_name == "2 eggs, toast"
        assert event.calories == 220
        assert event.meal_type == "breakfast"

    def test_meal_without_calories(self):
        command = MealCommand(meal=ParsedMeal(foods=[FoodItem(name="quinoa")]))
        assert intent_to_event(command).calories == 0

    def test_water(self):
        event = intent_to_event(parse_command("I drank 2 glasses of water"))
        assert isinstance(event, WaterLog)
        assert event.amount_ml == 500

    def test_weight_in_pounds_stored_as_kg(self):
        event = intent_to_event(WeightCommand(weight=ParsedWeight(weight=180, unit="lbs")))
        assert isinstance(event, WeightLog)
        assert event.weight_kg == 81.6

    def test_weight_in_kg_unchanged(self):
        event = intent_to_event(WeightCommand(weight=ParsedWeight(weight=72.5, unit="kg")))
        assert event.weight_kg == 72.5

    def test_sleep_quality_defaults_to_fair(self):
        event = intent_to_event(SleepCommand(sleep=ParsedSleep(hours=7)))
        assert isinstance(event, SleepLog)
        assert event.quality == 3

    def test_nap_minutes_become_hours(self):
        event = intent_to_event(parse_command("I napped for 30 minutes"))
        assert isinstance(event, SleepLog)
        assert event.hours == 0.5

    def test_workout_missing_details_become_zero(self):
        event = intent_to_event(WorkoutCommand(workout=ParsedWorkout(workout_type="Yoga")))
        assert isinstance(event, WorkoutLog)
        assert event.duration_minutes == 0
        assert event.calories_burned == 0

    def test_supplement_nutrients(self):
        event = intent_to_event(parse_command("I took 2000 iu of vitamin d"))
        assert isinstance(event, SupplementLog)
        assert event.nutrients == {"VITAMIN_D": 2000.0}
        assert event.quantity == "2000 iu"

    def test_nothing_to_log(self):
        """Habits, unknown speech and parse errors produce no event."""
        assert intent_to_event(parse_command("complete morning stretch")) is None
        assert intent_to_event(parse_command("asdf qwerty")) is None
        assert intent_to_event(parse_command("I drank some water")) is None
