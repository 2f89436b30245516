"""Voice Command Parser - Pure functions turning a transcript into a logging intent.

Classification walks an ordered rule table; the first rule whose trigger
matches wins. Extractors raise CommandParseError when the trigger matched but
required data is missing, which parse_command turns into a parse_error result.
No I/O, no network, no state.
"""

import re
from typing import Callable, NamedTuple, Optional

from pydantic import BaseModel, ValidationError

from .models import (
    FoodItem,
    HabitCommand,
    JournalCommand,
    MealCommand,
    MeditationCommand,
    MoodCommand,
    ParsedHabit,
    ParsedJournal,
    ParsedMeal,
    ParsedMeditation,
    ParsedMood,
    ParsedSleep,
    ParsedSupplement,
    ParsedWater,
    ParsedWeight,
    ParsedWorkout,
    ParseErrorCommand,
    SleepCommand,
    SupplementCommand,
    UnknownCommand,
    VoiceCommandResult,
    WaterCommand,
    WeightCommand,
    WorkoutCommand,
)


class CommandParseError(ValueError):
    """A command was recognized but a required field could not be extracted."""

    def __init__(self, field: str) -> None:
        super().__init__(f"Could not understand the {field}")
        self.field = field


# ==================== Vocabulary Tables ====================

NUMBER_WORDS = {
    "one": "1",
    "two": "2",
    "three": "3",
    "four": "4",
    "five": "5",
    "six": "6",
    "seven": "7",
    "eight": "8",
    "nine": "9",
    "ten": "10",
}

# Unit words that "a"/"an"/"half a" may precede
COUNTABLE_UNITS = (
    "glass", "glasses", "cup", "cups", "bottle", "bottles", "liter", "liters",
    "litre", "litres", "hour", "hours", "mile", "miles", "slice", "slices",
    "piece", "pieces", "bowl", "bowls", "serving", "servings", "ounce", "ounces",
)

WATER_UNITS_ML = {
    "ml": 1.0,
    "milliliter": 1.0,
    "milliliters": 1.0,
    "millilitre": 1.0,
    "millilitres": 1.0,
    "l": 1000.0,
    "liter": 1000.0,
    "liters": 1000.0,
    "litre": 1000.0,
    "litres": 1000.0,
    "glass": 250.0,
    "glasses": 250.0,
    "cup": 240.0,
    "cups": 240.0,
    "bottle": 500.0,
    "bottles": 500.0,
    "oz": 29.5735,
    "ounce": 29.5735,
    "ounces": 29.5735,
}

WEIGHT_UNITS = {
    "lb": "lbs",
    "lbs": "lbs",
    "pound": "lbs",
    "pounds": "lbs",
    "kg": "kg",
    "kgs": "kg",
    "kilo": "kg",
    "kilos": "kg",
    "kilogram": "kg",
    "kilograms": "kg",
}

SLEEP_QUALITY = {
    "terrible": 1,
    "awful": 1,
    "horrible": 1,
    "poor": 2,
    "poorly": 2,
    "bad": 2,
    "badly": 2,
    "restless": 2,
    "fair": 3,
    "okay": 3,
    "ok": 3,
    "alright": 3,
    "good": 4,
    "well": 4,
    "great": 5,
    "excellent": 5,
    "amazing": 5,
    "deeply": 5,
}

# Checked in order, the first matching activity wins
WORKOUT_TYPES = (
    ("Running", ("run", "ran", "running", "jog", "jogged", "jogging")),
    ("Walking", ("walk", "walked", "walking")),
    ("Cycling", ("bike", "biked", "biking", "cycle", "cycled", "cycling", "spin", "spinning")),
    ("Swimming", ("swim", "swam", "swimming", "laps")),
    ("Weight Training", ("lift", "lifted", "lifting", "weights", "weight training", "strength")),
    ("Yoga", ("yoga",)),
    ("Pilates", ("pilates",)),
    ("HIIT", ("hiit", "interval training", "crossfit")),
    ("Hiking", ("hike", "hiked", "hiking")),
    ("Other", ("workout", "worked out", "exercise", "exercised", "gym", "training")),
)

# Mood keyword -> level on a 1-5 scale
MOOD_LEVELS = {
    "terrible": 1,
    "awful": 1,
    "horrible": 1,
    "miserable": 1,
    "depressed": 1,
    "angry": 1,
    "bad": 2,
    "sad": 2,
    "down": 2,
    "low": 2,
    "anxious": 2,
    "stressed": 2,
    "worried": 2,
    "frustrated": 2,
    "tired": 2,
    "upset": 2,
    "okay": 3,
    "ok": 3,
    "fine": 3,
    "meh": 3,
    "alright": 3,
    "neutral": 3,
    "good": 4,
    "happy": 4,
    "calm": 4,
    "content": 4,
    "relaxed": 4,
    "energetic": 4,
    "great": 4,
    "excellent": 5,
    "amazing": 5,
    "fantastic": 5,
    "wonderful": 5,
    "excited": 5,
}

EMOTIONS = (
    "happy", "sad", "angry", "anxious", "stressed", "calm", "excited",
    "tired", "energetic", "frustrated", "content", "worried", "relaxed",
)

# Emotion words that trigger mood logging on their own
MOOD_EMOTION_TRIGGERS = ("happy", "sad", "angry", "anxious", "stressed", "depressed", "frustrated", "worried")

JOURNAL_MOODS = (
    ("happy", ("happy", "great", "excited", "grateful")),
    ("sad", ("sad", "down", "depressed", "lonely")),
    ("anxious", ("anxious", "worried", "nervous")),
    ("stressed", ("stressed", "overwhelmed")),
    ("calm", ("calm", "peaceful", "relaxed")),
    ("angry", ("angry", "frustrated", "mad")),
)

MEDITATION_TYPES = (
    ("body_scan", ("body scan", "bodyscan")),
    ("loving_kindness", ("loving kindness",)),
    ("transcendental", ("transcendental",)),
    ("walking", ("walking",)),
    ("silent", ("silent",)),
    ("mindfulness", ("mindfulness", "mindful")),
    ("guided", ("guided",)),
)

# Spoken name pattern -> (display name, micronutrient key or None)
SUPPLEMENTS = (
    (r"multi ?vitamins?", "Multivitamin", None),
    (r"vitamin ([a-k](?:\d{1,2})?)\b", None, None),
    (r"fish oil|omega ?3s?", "Fish Oil", "OMEGA_3"),
    (r"magnesium", "Magnesium", "MAGNESIUM"),
    (r"zinc", "Zinc", "ZINC"),
    (r"iron", "Iron", "IRON"),
    (r"calcium", "Calcium", "CALCIUM"),
    (r"potassium", "Potassium", "POTASSIUM"),
    (r"folate|folic acid", "Folate", "FOLATE"),
    (r"biotin", "Biotin", "BIOTIN"),
    (r"creatine", "Creatine", None),
    (r"probiotics?", "Probiotic", None),
    (r"melatonin", "Melatonin", None),
    (r"collagen", "Collagen", None),
    (r"protein powder", "Protein Powder", None),
    (r"electrolytes?", "Electrolytes", None),
)

GENERIC_SUPPLEMENT_WORDS = ("supplement", "supplements", "vitamin", "vitamins", "pill", "pills", "capsule", "capsules", "tablet", "tablets", "softgel", "softgels")

MEAL_TYPES = ("breakfast", "lunch", "dinner", "snack")

# Weighed foods count one serving per 100 g
SERVING_GRAMS = 100.0

# Units counted as whole servings
SERVING_UNITS = (
    "pieces", "piece", "slices", "slice", "servings", "serving", "bowls",
    "bowl", "cups", "cup", "scoops", "scoop", "handful",
)

GRAMS_PER_UNIT = {
    "g": 1.0,
    "gram": 1.0,
    "grams": 1.0,
    "kg": 1000.0,
    "oz": 28.35,
    "ounce": 28.35,
    "ounces": 28.35,
    "lb": 453.6,
    "lbs": 453.6,
    "pound": 453.6,
    "pounds": 453.6,
}

# Rough calories per serving of a spoken food, used when no total is given
FOOD_CALORIES = {
    "egg": 70,
    "toast": 80,
    "bread": 80,
    "bagel": 250,
    "oatmeal": 150,
    "cereal": 120,
    "yogurt": 100,
    "coffee": 5,
    "apple": 95,
    "banana": 105,
    "orange": 60,
    "rice": 130,
    "pasta": 130,
    "potato": 160,
    "chicken": 200,
    "beef": 250,
    "steak": 250,
    "meat": 200,
    "fish": 150,
    "salmon": 210,
    "tuna": 130,
    "salad": 150,
    "sandwich": 350,
    "burger": 450,
    "pizza": 285,
    "soup": 150,
    "avocado": 160,
    "almonds": 160,
    "cheese": 110,
    "milk": 120,
    "smoothie": 250,
    "cookie": 80,
}

FOOD_UNITS = (
    "cups", "cup", "oz", "ounces", "ounce", "lbs", "lb", "pounds", "pound",
    "grams", "gram", "g", "kg", "pieces", "piece", "slices", "slice", "tbsp",
    "tablespoons", "tablespoon", "tsp", "teaspoons", "teaspoon", "bowls",
    "bowl", "servings", "serving", "handful", "scoops", "scoop",
)

# Words dropped before splitting a meal description into items
MEAL_FILLER = (
    "i", "i've", "just", "had", "have", "ate", "eat", "eating", "eaten",
    "drank", "drink", "drinking",
    "log", "logged", "please", "for", "a", "an", "the", "of", "some", "my",
    "meal", "food", "breakfast", "lunch", "dinner", "snack", "today",
    "this", "morning", "tonight", "evening", "afternoon",
)


# ==================== Text Helpers ====================

_NUMBER = r"(?<![\d.])(\d{1,6}(?:\.\d{1,3})?)"


def _alternation(words) -> str:
    return "|".join(re.escape(w) for w in sorted(words, key=len, reverse=True))


def _contains(text: str, *words: str) -> bool:
    return any(re.search(rf"\b{re.escape(w)}\b", text) for w in words)


def normalize_transcript(command: str) -> str:
    """Lower-case and canonicalize spoken numbers.

    Spelled-out numbers one to ten become digits, "half a liter" becomes
    "0.5 liter", "seven and a half" becomes "7.5" and "a glass" becomes
    "1 glass".
    """
    text = " ".join(command.lower().split())
    text = re.sub(
        rf"\b({_alternation(NUMBER_WORDS)})\b", lambda m: NUMBER_WORDS[m.group(1)], text
    )
    text = re.sub(r"\b(\d+) and a half\b", r"\1.5", text)
    units = _alternation(COUNTABLE_UNITS)
    text = re.sub(rf"\b(?:a )?half (?:a |an )?({units})\b", r"0.5 \1", text)
    text = re.sub(rf"\b(?:an?) ({units})\b", r"1 \1", text)
    return text


def _to_number(value: str) -> float:
    number = float(value)
    return int(number) if number.is_integer() else number


def _extract_duration_minutes(text: str) -> Optional[int]:
    match = re.search(rf"{_NUMBER}\s*(minutes?|mins?|hours?|hrs?|h)\b", text)
    if match is None:
        return None
    amount = float(match.group(1))
    if match.group(2).startswith("h"):
        amount *= 60
    return round(amount)


def _extract_calories(text: str) -> Optional[int]:
    match = re.search(rf"{_NUMBER}\s*(?:calories|calorie|cals?|kcal)\b", text)
    return round(float(match.group(1))) if match else None


# ==================== Triggers ====================


def _is_habit(text: str) -> bool:
    if re.search(r"\b(complete|completed|done with)\b", text):
        return True
    return bool(re.match(r"(?:i )?(?:just )?finished\b", text)) or (
        _contains(text, "finished") and _contains(text, "habit", "task")
    )


def _is_journal(text: str) -> bool:
    return (
        _contains(text, "journal", "journaling", "write about")
        or bool(re.search(r"\blog (?:a |my )?thoughts?\b", text))
    )


def _is_meditation(text: str) -> bool:
    return bool(re.search(r"\bmeditat\w*|\bmindfulness\b|\bbody ?scan\b", text))


def _is_water(text: str) -> bool:
    if _contains(text, "water"):
        return True
    return _contains(text, "drink", "drank", "drinking") and not _contains(
        text, "meal", "eat", "ate", "coffee", "smoothie", "shake", "milk"
    )


def _is_weight(text: str) -> bool:
    if re.search(r"\bweight\b(?!\s*(?:training|lifting|lifted))", text):
        return True
    return _contains(text, "weigh", "weighs", "weighed")


def _is_sleep(text: str) -> bool:
    return _contains(text, "sleep", "slept", "nap", "napped") or (
        _contains(text, "bed") and _contains(text, "hours", "hour")
    )


def _is_workout(text: str) -> bool:
    return any(_contains(text, *keywords) for _, keywords in WORKOUT_TYPES)


def _is_mood(text: str) -> bool:
    return _contains(text, "mood", "feel", "feeling", "feelings", "felt") or _contains(
        text, *MOOD_EMOTION_TRIGGERS
    )


def _is_supplement(text: str) -> bool:
    if _contains(text, *GENERIC_SUPPLEMENT_WORDS):
        return True
    return any(re.search(rf"\b(?:{pattern})\b", text) for pattern, _, _ in SUPPLEMENTS)


def _is_meal(text: str) -> bool:
    # An eating verb alone ("I had a great day") is not enough
    if re.search(rf"\b(?:{_alternation(FOOD_CALORIES)})(?:s|es)?\b", text):
        return True
    return _contains(text, *MEAL_TYPES) or _extract_calories(text) is not None


# ==================== Extractors ====================


def _strip_notes(text: str) -> tuple[str, Optional[str]]:
    match = re.search(r"\s*\b(?:with notes?|notes?:|because|reason:)\s*(.*)$", text)
    if match is None:
        return text, None
    return text[: match.start()], match.group(1).strip() or None


def parse_habit(text: str) -> HabitCommand:
    body, notes = _strip_notes(text)
    body = re.sub(
        r"\b(?:i'm|i am|i've|i|just|please|mark|marked|complete|completed|done with|finished|finish)\b", " ", body
    )
    body = re.sub(r"\b(?:the|a|an|my|our|habit|task|activity|as done|for today|today)\b", " ", body)
    habit_name = " ".join(body.split())
    if len(habit_name) < 2:
        raise CommandParseError("habit name")
    return HabitCommand(habit=ParsedHabit(habit_name=habit_name, notes=notes))


def _detect_journal_mood(text: str) -> Optional[str]:
    for mood, keywords in JOURNAL_MOODS:
        if _contains(text, *keywords):
            return mood
    return None


def parse_journal(text: str) -> JournalCommand:
    match = re.search(
        r"\b(?:journal(?:ing)?(?: entry)?|write|log (?:a |my )?thoughts?)\s*(?:about|that|:)?\s*(.*)$",
        text,
    )
    content = match.group(1).strip(" :,.") if match else ""
    if not content:
        raise CommandParseError("journal content")
    return JournalCommand(journal=ParsedJournal(content=content, mood=_detect_journal_mood(content)))


def parse_meditation(text: str) -> MeditationCommand:
    duration = _extract_duration_minutes(text)
    if duration is None:
        raise CommandParseError("meditation duration")
    meditation_type = "guided"
    for name, keywords in MEDITATION_TYPES:
        if _contains(text, *keywords):
            meditation_type = name
            break
    return MeditationCommand(
        meditation=ParsedMeditation(duration_minutes=duration, meditation_type=meditation_type)
    )


def parse_water(text: str) -> WaterCommand:
    match = re.search(rf"{_NUMBER}\s*({_alternation(WATER_UNITS_ML)})\b", text)
    if match is None:
        raise CommandParseError("water amount")
    unit = match.group(2)
    amount = round(float(match.group(1)) * WATER_UNITS_ML[unit])
    return WaterCommand(water=ParsedWater(amount=amount, unit=unit))


def parse_weight(text: str) -> WeightCommand:
    match = re.search(rf"{_NUMBER}\s*({_alternation(WEIGHT_UNITS)})\b", text)
    if match is None:
        raise CommandParseError("weight")
    weight = _to_number(match.group(1))
    if weight <= 0:
        raise CommandParseError("weight")
    return WeightCommand(weight=ParsedWeight(weight=weight, unit=WEIGHT_UNITS[match.group(2)]))


def parse_sleep(text: str) -> SleepCommand:
    match = re.search(rf"{_NUMBER}\s*(?:hours?|hrs?|h)\b", text)
    if match is not None:
        hours = _to_number(match.group(1))
    else:
        # Naps are usually given in minutes
        minutes = _extract_duration_minutes(text)
        if minutes is None:
            raise CommandParseError("sleep hours")
        hours = round(minutes / 60, 2)
    if hours > 24:
        raise CommandParseError("sleep hours")
    quality = None
    for word, level in SLEEP_QUALITY.items():
        if _contains(text, word):
            quality = level
            break
    return SleepCommand(sleep=ParsedSleep(hours=hours, quality=quality))


def parse_workout(text: str) -> WorkoutCommand:
    workout_type = next(
        name for name, keywords in WORKOUT_TYPES if _contains(text, *keywords)
    )

    distance = None
    distance_unit = None
    match = re.search(rf"{_NUMBER}\s*(miles?|mi|kilometers?|kilometres?|km|k|meters?|metres?|m)\b", text)
    if match:
        distance = _to_number(match.group(1))
        unit = match.group(2)
        if unit.startswith("mi"):
            distance_unit = "miles"
        elif unit.startswith("k"):
            distance_unit = "km"
        else:
            distance_unit = "meters"

    return WorkoutCommand(
        workout=ParsedWorkout(
            workout_type=workout_type,
            duration_minutes=_extract_duration_minutes(text),
            distance=distance,
            distance_unit=distance_unit,
            calories_burned=_extract_calories(text),
        )
    )


def parse_mood(text: str) -> MoodCommand:
    emotions = [e for e in EMOTIONS if _contains(text, e)]

    explicit = re.search(
        r"\b(?:mood|level|feeling|feel)(?: is| at| of| a)?\s*([1-5])\b|\b([1-5])\s*(?:out of|/)\s*5\b", text
    )
    if explicit:
        level = int(explicit.group(1) or explicit.group(2))
    else:
        levels = [lvl for word, lvl in MOOD_LEVELS.items() if _contains(text, word)]
        if not levels:
            raise CommandParseError("mood level")
        # Round half up so "happy but tired" lands on 3
        level = int(sum(levels) / len(levels) + 0.5)

    return MoodCommand(mood=ParsedMood(level=level, emotions=emotions))


def parse_supplement(text: str) -> SupplementCommand:
    name = None
    nutrient_key = None
    for pattern, display, key in SUPPLEMENTS:
        match = re.search(rf"\b(?:{pattern})\b", text)
        if match:
            if display is None:
                letter = match.group(1).upper()
                name, nutrient_key = f"Vitamin {letter}", f"VITAMIN_{letter}"
            else:
                name, nutrient_key = display, key
            break
    if name is None:
        raise CommandParseError("supplement name")

    quantity = None
    micronutrients: dict[str, float] = {}
    match = re.search(rf"{_NUMBER}\s*(mg|mcg|g|iu|units?|capsules?|tablets?|pills?|softgels?)\b", text)
    if match:
        quantity = f"{match.group(1)} {match.group(2)}"
    if nutrient_key is not None:
        micronutrients[nutrient_key] = float(match.group(1)) if match else 1.0

    return SupplementCommand(
        supplement=ParsedSupplement(
            supplement_name=name, quantity=quantity, micronutrients=micronutrients
        )
    )


def _parse_food_item(part: str) -> Optional[FoodItem]:
    match = re.match(
        rf"^(?:{_NUMBER}\s*)?(?:({_alternation(FOOD_UNITS)})\b\s*)?(?:of\s+)?(.*)$", part
    )
    name = " ".join((match.group(3) if match else part).split()).strip(" .")
    if not name:
        return None
    quantity = float(match.group(1)) if match and match.group(1) else None
    unit = match.group(2) if match else None
    return FoodItem(name=name, quantity=quantity, unit=unit)


def _servings(food: FoodItem) -> Optional[float]:
    quantity = food.quantity if food.quantity is not None else 1.0
    if food.unit is None or food.unit in SERVING_UNITS:
        return quantity
    grams = GRAMS_PER_UNIT.get(food.unit)
    if grams is None:
        return None
    return quantity * grams / SERVING_GRAMS


def estimate_calories(foods: list[FoodItem]) -> Optional[int]:
    """Estimate total calories from a rough per-serving table.

    Counted foods ("2 eggs") scale by count, weighed foods ("200 grams of
    chicken") by 100 g servings. Foods in other units (tbsp, tsp) are skipped.
    Returns None if nothing is known.
    """
    total = 0
    known = False
    for food in foods:
        servings = _servings(food)
        if servings is None:
            continue
        for keyword, calories in FOOD_CALORIES.items():
            if keyword in food.name:
                total += round(servings * calories)
                known = True
                break
    return total if known else None


def parse_meal(text: str) -> MealCommand:
    meal_type = next((m for m in MEAL_TYPES if _contains(text, m)), None)
    total_calories = _extract_calories(text)

    body = re.sub(rf"(?:about |around )?{_NUMBER}\s*(?:calories|calorie|cals?|kcal)\b", " ", text)
    body = re.sub(rf"\b(?:{_alternation(MEAL_FILLER)})\b", " ", body)
    parts = [p.strip() for p in re.split(r",|\band\b|\bwith\b|\bplus\b", body)]
    foods = [item for item in (_parse_food_item(p) for p in parts if p) if item is not None]
    if not foods:
        raise CommandParseError("food items")

    if total_calories is None:
        total_calories = estimate_calories(foods)

    return MealCommand(
        meal=ParsedMeal(foods=foods, meal_type=meal_type, total_calories=total_calories)
    )


# ==================== Classification ====================


class CommandRule(NamedTuple):
    intent: str
    matches: Callable[[str], bool]
    parse: Callable[[str], BaseModel]


# Priority order: earlier rules win when several triggers match
COMMAND_RULES: tuple[CommandRule, ...] = (
    CommandRule("habit", _is_habit, parse_habit),
    CommandRule("journal", _is_journal, parse_journal),
    CommandRule("meditation", _is_meditation, parse_meditation),
    CommandRule("water", _is_water, parse_water),
    CommandRule("weight", _is_weight, parse_weight),
    CommandRule("sleep", _is_sleep, parse_sleep),
    CommandRule("workout", _is_workout, parse_workout),
    CommandRule("mood", _is_mood, parse_mood),
    CommandRule("supplement", _is_supplement, parse_supplement),
    CommandRule("meal", _is_meal, parse_meal),
)


def classify_command(command: str) -> Optional[str]:
    """Return the intent name of the first matching rule, or None."""
    text = normalize_transcript(command)
    return next((rule.intent for rule in COMMAND_RULES if rule.matches(text)), None)


def parse_command(command: str) -> VoiceCommandResult:
    """Parse a finalized transcript into a VoiceCommandResult.

    Args:
        command: Transcript from speech recognition

    Returns:
        Exactly one VoiceCommandResult variant. Unrecognized speech gives
        UnknownCommand; recognized speech with missing data gives
        ParseErrorCommand naming the missing field.
    """
    text = normalize_transcript(command)
    for rule in COMMAND_RULES:
        if not rule.matches(text):
            continue
        try:
            return rule.parse(text)
        except (CommandParseError, ValidationError) as e:
            return ParseErrorCommand(original_command=command, error_message=str(e))
    return UnknownCommand(command=command)
