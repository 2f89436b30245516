"""Tests for MCP tools with a mocked Firestore client."""

from datetime import date, timedelta
from unittest.mock import MagicMock, patch

import pytest

from coachie.core.models import DailyLog, ScoreGoals, ScoreRecord, Streak, WaterLog
from coachie.shell import mcp_server
from coachie.shell.mcp_server import current_user_id


@pytest.fixture
def db():
    """Mock CoachieFirestoreClient returned by get_firestore_client."""
    with patch("coachie.shell.mcp_server.get_firestore_client") as get_client:
        mock_db = MagicMock()
        mock_db.get_streak.return_value = Streak()
        mock_db.get_badge_types.return_value = set()
        mock_db.add_event.side_effect = lambda user_id, event, log_date: DailyLog(log_date=log_date).with_event(event)
        get_client.return_value = mock_db
        yield mock_db


@pytest.fixture
def user():
    """Set the request user for the duration of a test."""
    token = current_user_id.set("user-1234567890")
    yield "user-1234567890"
    current_user_id.reset(token)


class TestUserContext:
    """Tests for get_user_id."""

    def test_no_user_raises(self):
        with pytest.raises(RuntimeError):
            mcp_server.get_user_id()

    def test_user_set(self, user):
        assert mcp_server.get_user_id() == user


class TestGoalTools:
    """Tests for set_goals and get_goals."""

    def test_set_goals(self, db, user):
        db.save_goals.return_value = True
        message = mcp_server.set_goals(calorie_goal=1800, total_habits=3)
        assert message.startswith("Goals saved!")
        saved = db.save_goals.call_args.args[1]
        assert saved.calorie_goal == 1800
        assert saved.total_habits == 3

    def test_set_goals_failure(self, db, user):
        db.save_goals.return_value = False
        assert mcp_server.set_goals().startswith("Failed")

    def test_get_goals_defaults(self, db, user):
        db.get_goals.return_value = None
        goals = mcp_server.get_goals()
        assert goals["defaults"] is True
        assert goals["calorie_goal"] == 2000


class TestLogVoiceCommand:
    """Tests for log_voice_command."""

    def test_logs_water(self, db, user):
        result = mcp_server.log_voice_command("I drank 2 glasses of water", "2025-03-14")

        assert result["command"]["type"] == "water"
        assert result["event"]["amount_ml"] == 500
        assert result["events_today"] == 1
        assert result["streak"] == {"current_streak": 1, "longest_streak": 1, "new_badges": []}

        user_id, event, log_date = db.add_event.call_args.args
        assert user_id == user
        assert isinstance(event, WaterLog)
        assert log_date == date(2025, 3, 14)
        db.save_streak.assert_called_once()

    def test_badge_awarded(self, db, user):
        db.get_streak.return_value = Streak(
            current_streak=2, longest_streak=2, total_logs=2, last_log_date=date(2025, 3, 13)
        )
        result = mcp_server.log_voice_command("I slept 8 hours", "2025-03-14")
        assert result["streak"]["new_badges"] == ["Getting Started"]
        db.award_badge.assert_called_once()

    def test_unknown_not_logged(self, db, user):
        result = mcp_server.log_voice_command("asdf qwerty")
        assert "error" in result
        db.add_event.assert_not_called()

    def test_parse_error_not_logged(self, db, user):
        result = mcp_server.log_voice_command("I drank some water")
        assert result["error"] == "Could not understand the water amount"
        db.add_event.assert_not_called()

    def test_habit_not_logged(self, db, user):
        result = mcp_server.log_voice_command("complete morning stretch")
        assert "morning stretch" in result["message"]
        assert "not recorded" in result["message"]
        db.add_event.assert_not_called()

    def test_invalid_date(self, db, user):
        result = mcp_server.log_voice_command("I drank 500ml of water", "yesterday")
        assert "error" in result

    def test_save_failure(self, db, user):
        db.add_event.side_effect = None
        db.add_event.return_value = None
        result = mcp_server.log_voice_command("I drank 500ml of water")
        assert "error" in result
        db.save_streak.assert_not_called()


class TestParseVoiceCommand:
    """Tests for parse_voice_command."""

    def test_does_not_store(self, db):
        result = mcp_server.parse_voice_command("I weigh 180 lbs")
        assert result["type"] == "weight"
        db.add_event.assert_not_called()


class TestScoreTools:
    """Tests for score tools."""

    def test_calculate_today_score(self, db, user):
        db.get_goals.return_value = None
        db.get_log.return_value = None
        db.save_score.return_value = True

        result = mcp_server.calculate_today_score()

        assert result["date"] == date.today().isoformat()
        assert result["wellness_score"] == 50
        assert "warning" not in result
        record = db.save_score.call_args.args[1]
        assert record.score_date == date.today()

    def test_calculate_uses_stored_goals(self, db, user):
        db.get_goals.return_value = ScoreGoals(total_habits=4)
        db.get_log.return_value = None
        db.save_score.return_value = True
        assert mcp_server.calculate_today_score(completed_habits=2)["habits_score"] == 50

    def test_save_failure_warns(self, db, user):
        db.get_goals.return_value = None
        db.get_log.return_value = None
        db.save_score.return_value = False
        assert "warning" in mcp_server.calculate_today_score()

    def test_score_stats(self, db, user):
        db.get_scores.return_value = [
            ScoreRecord(score_date=date(2025, 3, 2), daily_score=80, health_score=80, wellness_score=80, habits_score=80),
            ScoreRecord(score_date=date(2025, 3, 1), daily_score=60, health_score=60, wellness_score=60, habits_score=60),
        ]
        stats = mcp_server.get_score_stats()
        assert stats["average_score"] == 70.0
        assert stats["highest_score_date"] == "2025-03-02"

    def test_score_history_limit(self, db, user):
        db.get_scores.return_value = []
        assert mcp_server.get_score_history(days=7) == []
        db.get_scores.assert_called_once_with(user, limit=7)


class TestStreakTool:
    """Tests for get_streak."""

    def test_lapsed_streak_shows_zero(self, db, user):
        db.get_streak.return_value = Streak(
            current_streak=5,
            longest_streak=9,
            total_logs=20,
            last_log_date=date.today() - timedelta(days=3),
        )
        result = mcp_server.get_streak()
        assert result["current_streak"] == 0
        assert result["longest_streak"] == 9

    def test_active_streak(self, db, user):
        db.get_streak.return_value = Streak(
            current_streak=5, longest_streak=9, total_logs=20, last_log_date=date.today()
        )
        assert mcp_server.get_streak()["current_streak"] == 5
