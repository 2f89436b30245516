"""MCP Server - Tool definitions for Coachie.

Exposes voice logging, daily scores and streaks as MCP tools.
The user is identified by the upstream gateway; see main.IdentityMiddleware.
"""

import logging
import os
from contextvars import ContextVar
from datetime import date

from mcp.server.fastmcp import FastMCP
from mcp.server.transport_security import TransportSecuritySettings

from ..core.models import HabitCommand, ParseErrorCommand, ScoreGoals, UnknownCommand
from ..core.intents import intent_to_event
from ..core.scoring import calculate_all_scores
from ..core.stats import build_score_record, calculate_score_stats
from ..core.streaks import calculate_updated_streak, earned_badges, effective_streak
from ..core.voice import parse_command
from .firestore_client import CoachieFirestoreClient, FirestoreConfig


logger = logging.getLogger(__name__)

# Context variable to store current user_id per request
current_user_id: ContextVar[str | None] = ContextVar("current_user_id", default=None)

transport_security = TransportSecuritySettings(
    enable_dns_rebinding_protection=True,
    allowed_hosts=[
        "localhost:*",
        "127.0.0.1:*",
        "*.run.app:*",
        "*.run.app",
    ],
)

mcp = FastMCP(
    "coachie",
    instructions="""Coachie - Health, wellness and habit tracking assistant.

Use these tools to log activities from natural language, check the daily
Coachie Score and follow logging streaks.

On first use, call set_goals to configure the user's daily goals.
To log something the user said, call log_voice_command with their words.
After logging, offer to show the updated score with calculate_today_score.""",
    stateless_http=True,
    transport_security=transport_security,
)

# Lazy-initialized client
_firestore_client: CoachieFirestoreClient | None = None


def get_firestore_client() -> CoachieFirestoreClient:
    """Get or create Firestore client."""
    global _firestore_client
    if _firestore_client is None:
        config = FirestoreConfig(
            project_id=os.environ.get("FIRESTORE_PROJECT"),
            database=os.environ.get("FIRESTORE_DATABASE", "coachie"),
        )
        _firestore_client = CoachieFirestoreClient(config)
    return _firestore_client


def get_user_id() -> str:
    """Get current user ID.

    Raises:
        RuntimeError: If no user is set for this request
    """
    user_id = current_user_id.get()
    if user_id is None:
        raise RuntimeError("No user for this request. Ensure the X-Coachie-User header is set.")
    return user_id


def _parse_date(date_str: str | None) -> date | None:
    if date_str is None:
        return date.today()
    try:
        return date.fromisoformat(date_str)
    except ValueError:
        return None


def _update_streak(db: CoachieFirestoreClient, user_id: str, log_date: date) -> dict:
    """Apply a new log to the streak and award any badges it unlocks."""
    streak = calculate_updated_streak(db.get_streak(user_id), log_date)
    db.save_streak(user_id, streak)

    new_badges = earned_badges(streak.current_streak, db.get_badge_types(user_id))
    for badge in new_badges:
        db.award_badge(user_id, badge)

    return {
        "current_streak": streak.current_streak,
        "longest_streak": streak.longest_streak,
        "new_badges": [b.name for b in new_badges],
    }


# ==================== Goal Tools ====================


@mcp.tool()
def set_goals(
    calorie_goal: int = 2000,
    steps_goal: int = 10000,
    water_goal: int = 2000,
    sleep_goal: float = 8.0,
    total_habits: int = 0,
) -> str:
    """Configure the goals the daily score is measured against.

    Args:
        calorie_goal: Daily calorie target (e.g., 2000)
        steps_goal: Daily step target (e.g., 10000)
        water_goal: Daily water target in ml (e.g., 2000)
        sleep_goal: Nightly sleep target in hours (e.g., 8)
        total_habits: Number of habits the user is tracking

    Returns:
        Confirmation message with stored goals
    """
    user_id = get_user_id()
    db = get_firestore_client()

    goals = ScoreGoals(
        calorie_goal=calorie_goal,
        steps_goal=steps_goal,
        water_goal=water_goal,
        sleep_goal=sleep_goal,
        total_habits=total_habits,
    )

    if db.save_goals(user_id, goals):
        return f"""Goals saved!
{calorie_goal} cal, {steps_goal} steps, {water_goal} ml water, {sleep_goal} h sleep
Tracking {total_habits} habits"""
    else:
        return "Failed to save goals. Please try again."


@mcp.tool()
def get_goals() -> dict:
    """Retrieve the user's current goals (defaults if none are set)."""
    user_id = get_user_id()
    db = get_firestore_client()

    goals = db.get_goals(user_id)
    if goals is None:
        return {**ScoreGoals().model_dump(exclude={"updated_at"}), "defaults": True}
    return goals.model_dump(exclude={"updated_at"})


# ==================== Voice Tools ====================


@mcp.tool()
def parse_voice_command(transcript: str) -> dict:
    """Interpret what the user said without logging anything.

    Args:
        transcript: The user's words, e.g. "I drank 2 glasses of water"

    Returns:
        The recognized intent and its details
    """
    return parse_command(transcript).model_dump()


@mcp.tool()
def log_voice_command(transcript: str, date_str: str | None = None) -> dict:
    """Interpret what the user said and log it.

    Args:
        transcript: The user's words, e.g. "I slept 7 hours"
        date_str: Date to log for in YYYY-MM-DD format (defaults to today)

    Returns:
        The recognized intent, the stored event and the updated streak
    """
    user_id = get_user_id()
    db = get_firestore_client()

    log_date = _parse_date(date_str)
    if log_date is None:
        return {"error": "Invalid date format. Use YYYY-MM-DD."}

    result = parse_command(transcript)
    if isinstance(result, UnknownCommand):
        return {"error": "Sorry, I didn't catch what to log. Please try again.", "command": result.model_dump()}
    if isinstance(result, ParseErrorCommand):
        return {"error": result.error_message, "command": result.model_dump()}
    if isinstance(result, HabitCommand):
        return {
            "command": result.model_dump(),
            "message": f"Recognized habit '{result.habit.habit_name}', but habit completions are not recorded. "
                       "Pass completed habits to calculate_today_score to include them.",
        }

    event = intent_to_event(result)
    log = db.add_event(user_id, event, log_date)
    if log is None:
        return {"error": "Failed to save the log. Please try again."}

    return {
        "command": result.model_dump(),
        "event": event.model_dump(mode="json"),
        "events_today": len(log.events),
        "streak": _update_streak(db, user_id, log_date),
    }


# ==================== Query Tools ====================


def _day_summary(log_date: date) -> dict:
    user_id = get_user_id()
    db = get_firestore_client()

    log = db.get_log(user_id, log_date)
    events = [e.model_dump(mode="json") for e in log.events] if log else []

    return {
        "date": log_date.isoformat(),
        "events": events,
        "water_amount": log.water_amount if log else 0,
        "steps": log.steps if log else None,
    }


@mcp.tool()
def get_today() -> dict:
    """Get everything logged today."""
    return _day_summary(date.today())


@mcp.tool()
def get_day(date_str: str) -> dict:
    """Get everything logged on a specific day.

    Args:
        date_str: Date in YYYY-MM-DD format
    """
    log_date = _parse_date(date_str)
    if log_date is None:
        return {"error": "Invalid date format. Use YYYY-MM-DD."}
    return _day_summary(log_date)


# ==================== Score Tools ====================


@mcp.tool()
def calculate_today_score(
    completed_habits: int = 0,
    has_circle_interaction_today: bool = False,
    all_todays_focus_tasks_completed: bool = False,
) -> dict:
    """Calculate and store today's Coachie Score.

    Args:
        completed_habits: How many of the user's habits are done today
        has_circle_interaction_today: Whether the user engaged with a circle today
        all_todays_focus_tasks_completed: Whether every focus task is done

    Returns:
        Daily score with health, wellness and habits breakdown
    """
    user_id = get_user_id()
    db = get_firestore_client()

    today = date.today()
    goals = db.get_goals(user_id) or ScoreGoals()
    log = db.get_log(user_id, today)

    breakdown = calculate_all_scores(
        log,
        goals,
        completed_habits=completed_habits,
        has_circle_interaction_today=has_circle_interaction_today,
        all_todays_focus_tasks_completed=all_todays_focus_tasks_completed,
    )

    record = build_score_record(today, breakdown)
    response = {"date": today.isoformat(), **breakdown.model_dump()}
    if not db.save_score(user_id, record):
        response["warning"] = "Score calculated but could not be saved."
    return response


@mcp.tool()
def get_score_history(days: int = 30) -> list[dict]:
    """Get recent daily scores, newest first.

    Args:
        days: Number of most recent scored days to return
    """
    user_id = get_user_id()
    db = get_firestore_client()

    return [
        r.model_dump(mode="json", exclude={"calculated_at"})
        for r in db.get_scores(user_id, limit=max(days, 1))
    ]


@mcp.tool()
def get_score_stats() -> dict:
    """Get average, best and recent averages of the user's scores."""
    user_id = get_user_id()
    db = get_firestore_client()

    stats = calculate_score_stats(db.get_scores(user_id))
    return stats.model_dump(mode="json")


@mcp.tool()
def get_streak() -> dict:
    """Get the user's logging streak."""
    user_id = get_user_id()
    db = get_firestore_client()

    streak = db.get_streak(user_id)
    return {
        "current_streak": effective_streak(streak, date.today()),
        "longest_streak": streak.longest_streak,
        "total_logs": streak.total_logs,
        "last_log_date": streak.last_log_date.isoformat() if streak.last_log_date else None,
    }
