"""Tests for the Firestore client with a mocked google-cloud client."""

from datetime import date
from unittest.mock import MagicMock

import pytest

from coachie.core.models import (
    DailyLog,
    ScoreGoals,
    ScoreRecord,
    Streak,
    WaterLog,
)
from coachie.core.streaks import STREAK_BADGES
from coachie.shell.firestore_client import CoachieFirestoreClient, FirestoreConfig


DAY = date(2025, 3, 14)


@pytest.fixture
def fs():
    """Client with the underlying Firestore client replaced by a mock."""
    client = CoachieFirestoreClient(FirestoreConfig(project_id="test", database="coachie"))
    client._client = MagicMock()
    return client


def user_ref(fs):
    return fs._client.collection.return_value.document.return_value


def sub_doc(fs):
    """Any users/{uid}/{collection}/{doc} reference."""
    return user_ref(fs).collection.return_value.document.return_value


def snapshot(data):
    doc = MagicMock()
    doc.exists = data is not None
    doc.to_dict.return_value = data
    return doc


class TestGoals:
    """Tests for goal persistence."""

    def test_missing_goals(self, fs):
        sub_doc(fs).get.return_value = snapshot(None)
        assert fs.get_goals("user-1") is None

    def test_stored_goals(self, fs):
        sub_doc(fs).get.return_value = snapshot({"calorie_goal": 1800, "total_habits": 2})
        goals = fs.get_goals("user-1")
        assert goals.calorie_goal == 1800
        assert goals.steps_goal == 10000

    def test_read_error_returns_none(self, fs):
        sub_doc(fs).get.side_effect = Exception("unavailable")
        assert fs.get_goals("user-1") is None

    def test_save_goals(self, fs):
        assert fs.save_goals("user-1", ScoreGoals(water_goal=2500)) is True
        data = sub_doc(fs).set.call_args.args[0]
        assert data["water_goal"] == 2500

    def test_save_error_returns_false(self, fs):
        sub_doc(fs).set.side_effect = Exception("denied")
        assert fs.save_goals("user-1", ScoreGoals()) is False


class TestDailyLogs:
    """Tests for daily log persistence."""

    def test_missing_log(self, fs):
        sub_doc(fs).get.return_value = snapshot(None)
        assert fs.get_log("user-1", DAY) is None

    def test_stored_log_events_parsed(self, fs):
        sub_doc(fs).get.return_value = snapshot({
            "log_date": "2025-03-14",
            "events": [{"type": "water", "amount_ml": 250}],
            "water_amount": 250,
        })
        log = fs.get_log("user-1", DAY)
        assert log.log_date == DAY
        assert isinstance(log.events[0], WaterLog)

    def test_invalid_stored_log(self, fs):
        """A stored log that fails validation reads as missing."""
        sub_doc(fs).get.return_value = snapshot({"log_date": "2025-03-14", "events": [{"type": "teleport"}]})
        assert fs.get_log("user-1", DAY) is None

    def test_save_log_uses_iso_date(self, fs):
        assert fs.save_log("user-1", DailyLog(log_date=DAY)) is True
        data = sub_doc(fs).set.call_args.args[0]
        assert data["log_date"] == "2025-03-14"
        user_ref(fs).collection.return_value.document.assert_called_with("2025-03-14")

    def test_add_event_creates_log(self, fs):
        sub_doc(fs).get.return_value = snapshot(None)
        log = fs.add_event("user-1", WaterLog(amount_ml=300), DAY)
        assert len(log.events) == 1
        assert log.water_amount == 300

    def test_add_event_appends(self, fs):
        sub_doc(fs).get.return_value = snapshot({
            "log_date": "2025-03-14",
            "events": [{"type": "water", "amount_ml": 250}],
            "water_amount": 250,
        })
        log = fs.add_event("user-1", WaterLog(amount_ml=500), DAY)
        assert len(log.events) == 2
        assert log.water_amount == 750

    def test_add_event_read_failure_does_not_overwrite(self, fs):
        """A failed read must not replace the stored day with a one-event log."""
        sub_doc(fs).get.side_effect = Exception("deadline exceeded")
        assert fs.add_event("user-1", WaterLog(amount_ml=300), DAY) is None
        sub_doc(fs).set.assert_not_called()

    def test_add_event_invalid_stored_log_not_overwritten(self, fs):
        """Valid events next to an unreadable one are kept."""
        sub_doc(fs).get.return_value = snapshot({
            "log_date": "2025-03-14",
            "events": [{"type": "water", "amount_ml": 250}, {"type": "teleport"}],
        })
        assert fs.add_event("user-1", WaterLog(amount_ml=300), DAY) is None
        sub_doc(fs).set.assert_not_called()

    def test_add_event_save_failure(self, fs):
        sub_doc(fs).get.return_value = snapshot(None)
        sub_doc(fs).set.side_effect = Exception("denied")
        assert fs.add_event("user-1", WaterLog(amount_ml=300), DAY) is None


class TestScores:
    """Tests for score persistence."""

    def test_save_score(self, fs):
        record = ScoreRecord(score_date=DAY, daily_score=70, health_score=80, wellness_score=60, habits_score=55)
        assert fs.save_score("user-1", record) is True
        data = sub_doc(fs).set.call_args.args[0]
        assert data["score_date"] == "2025-03-14"
        assert data["daily_score"] == 70

    def test_get_scores_with_limit(self, fs):
        doc = snapshot({
            "score_date": "2025-03-14",
            "daily_score": 70,
            "health_score": 80,
            "wellness_score": 60,
            "habits_score": 55,
        })
        query = user_ref(fs).collection.return_value.order_by.return_value
        query.limit.return_value.stream.return_value = [doc]

        records = fs.get_scores("user-1", limit=7)

        query.limit.assert_called_once_with(7)
        assert records[0].score_date == DAY
        assert records[0].daily_score == 70

    def test_get_scores_error(self, fs):
        user_ref(fs).collection.return_value.order_by.side_effect = Exception("index missing")
        assert fs.get_scores("user-1") == []


class TestStreaks:
    """Tests for streak and badge persistence."""

    def test_missing_streak_is_empty(self, fs):
        sub_doc(fs).get.return_value = snapshot(None)
        assert fs.get_streak("user-1") == Streak()

    def test_stored_streak_dates_parsed(self, fs):
        sub_doc(fs).get.return_value = snapshot({
            "current_streak": 4,
            "longest_streak": 9,
            "total_logs": 30,
            "last_log_date": "2025-03-14",
            "streak_start_date": "2025-03-11",
        })
        streak = fs.get_streak("user-1")
        assert streak.current_streak == 4
        assert streak.last_log_date == DAY

    def test_save_streak_merges(self, fs):
        streak = Streak(current_streak=1, longest_streak=1, total_logs=1, last_log_date=DAY)
        assert fs.save_streak("user-1", streak) is True
        args, kwargs = sub_doc(fs).set.call_args
        assert args[0]["last_log_date"] == "2025-03-14"
        assert kwargs == {"merge": True}

    def test_badge_types(self, fs):
        first, second = MagicMock(), MagicMock()
        first.id, second.id = "streak_3", "streak_7"
        user_ref(fs).collection.return_value.stream.return_value = [first, second]
        assert fs.get_badge_types("user-1") == {"streak_3", "streak_7"}

    def test_award_badge_keyed_by_type(self, fs):
        assert fs.award_badge("user-1", STREAK_BADGES[0]) is True
        user_ref(fs).collection.return_value.document.assert_called_with("streak_3")
        data = sub_doc(fs).set.call_args.args[0]
        assert data["name"] == "Getting Started"
