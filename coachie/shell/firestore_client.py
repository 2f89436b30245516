"""Firestore Client - Persistence for daily logs, goals, scores and streaks.

This module handles all database I/O for Coachie.
All I/O is contained here; scoring and parsing logic is in the core module.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from google.cloud import firestore
from pydantic import ValidationError

from ..core.models import DailyLog, HealthLogEvent, ScoreGoals, ScoreRecord, Streak, StreakBadge


logger = logging.getLogger(__name__)


@dataclass
class FirestoreConfig:
    """Configuration for Firestore client.

    Attributes:
        project_id: GCP project ID (None for default)
        database: Firestore database name (None for default database)
    """

    project_id: str | None = None
    database: str | None = None


def _to_date(value: Any) -> Any:
    """Parse ISO date strings stored in Firestore back to dates."""
    if isinstance(value, str) and value:
        return date.fromisoformat(value[:10])
    return value


class CoachieFirestoreClient:
    """Client for persisting Coachie data to Firestore.

    Document structure per user:
        users/{user_id}/
            settings/goals: { calorie_goal, steps_goal, ... }
            logs/{YYYY-MM-DD}: { log_date, events: [...], steps, water_amount }
            scores/{YYYY-MM-DD}: { score_date, daily_score, ... }
            streaks/current: { current_streak, longest_streak, ... }
            badges/{badge_type}: { name, description, threshold, unlocked_at }
    """

    def __init__(self, config: FirestoreConfig | None = None) -> None:
        """Initialize Firestore client.

        Args:
            config: Firestore configuration
        """
        self.config = config or FirestoreConfig()
        self._client: firestore.Client | None = None

    @property
    def client(self) -> firestore.Client:
        """Lazy initialization of Firestore client."""
        if self._client is None:
            kwargs: dict[str, Any] = {}
            if self.config.project_id:
                kwargs["project"] = self.config.project_id
            if self.config.database:
                kwargs["database"] = self.config.database
            self._client = firestore.Client(**kwargs)
        return self._client

    def _user_ref(self, user_id: str) -> firestore.DocumentReference:
        return self.client.collection("users").document(user_id)

    def _goals_ref(self, user_id: str) -> firestore.DocumentReference:
        return self._user_ref(user_id).collection("settings").document("goals")

    def _log_ref(self, user_id: str, log_date: date) -> firestore.DocumentReference:
        return self._user_ref(user_id).collection("logs").document(log_date.isoformat())

    def _score_ref(self, user_id: str, score_date: date) -> firestore.DocumentReference:
        return self._user_ref(user_id).collection("scores").document(score_date.isoformat())

    def _streak_ref(self, user_id: str) -> firestore.DocumentReference:
        return self._user_ref(user_id).collection("streaks").document("current")

    # ==================== Goal Operations ====================

    def get_goals(self, user_id: str) -> ScoreGoals | None:
        """Fetch user goals.

        Args:
            user_id: The user's ID

        Returns:
            ScoreGoals if found, None otherwise
        """
        logger.debug("Fetching goals for user: %s", user_id[:8])
        try:
            doc = self._goals_ref(user_id).get()
            if not doc.exists:
                return None
            return ScoreGoals(**doc.to_dict())
        except Exception as e:
            logger.error("Failed to fetch goals: %s", str(e))
            return None

    def save_goals(self, user_id: str, goals: ScoreGoals) -> bool:
        """Save user goals.

        Returns:
            True if successful
        """
        logger.info("Saving goals for user: %s", user_id[:8])
        try:
            data = goals.model_dump()
            data["updated_at"] = datetime.utcnow()
            self._goals_ref(user_id).set(data)
            return True
        except Exception as e:
            logger.error("Failed to save goals: %s", str(e))
            return False

    # ==================== Daily Log Operations ====================

    def _load_log(self, user_id: str, log_date: date) -> DailyLog | None:
        """Read a daily log, None only when the document does not exist.

        Raises:
            ValidationError: If the stored log is invalid
            Exception: If the read fails
        """
        doc = self._log_ref(user_id, log_date).get()
        if not doc.exists:
            return None
        data = doc.to_dict()
        data["log_date"] = _to_date(data.get("log_date")) or log_date
        # Events are validated through the discriminated union on "type"
        return DailyLog(**data)

    def get_log(self, user_id: str, log_date: date) -> DailyLog | None:
        """Fetch a daily log.

        Args:
            user_id: The user's ID
            log_date: Date of the log

        Returns:
            DailyLog if found, None otherwise
        """
        logger.debug("Fetching log for %s on %s", user_id[:8], log_date)
        try:
            return self._load_log(user_id, log_date)
        except ValidationError as e:
            logger.error("Stored log for %s is invalid: %s", log_date, str(e))
            return None
        except Exception as e:
            logger.error("Failed to fetch log: %s", str(e))
            return None

    def save_log(self, user_id: str, log: DailyLog) -> bool:
        """Save a daily log.

        Args:
            user_id: The user's ID
            log: The log to save

        Returns:
            True if successful
        """
        logger.info("Saving log for %s on %s", user_id[:8], log.log_date)
        try:
            data = log.model_dump()
            data["updated_at"] = datetime.utcnow()
            data["log_date"] = log.log_date.isoformat()
            self._log_ref(user_id, log.log_date).set(data)
            return True
        except Exception as e:
            logger.error("Failed to save log: %s", str(e))
            return False

    def add_event(
        self, user_id: str, event: HealthLogEvent, log_date: date | None = None
    ) -> DailyLog | None:
        """Append a health event to a day's log, creating the log if needed.

        Args:
            user_id: The user's ID
            event: The event to add
            log_date: Date for the event (defaults to today)

        Returns:
            Updated DailyLog if successful, None otherwise. An existing log that
            cannot be read is left untouched.
        """
        if log_date is None:
            log_date = date.today()

        try:
            log = self._load_log(user_id, log_date)
        except ValidationError as e:
            logger.error("Not adding to invalid log for %s: %s", log_date, str(e))
            return None
        except Exception as e:
            logger.error("Failed to fetch log before adding event: %s", str(e))
            return None

        if log is None:
            log = DailyLog(log_date=log_date)

        log = log.with_event(event)

        if self.save_log(user_id, log):
            return log
        return None

    # ==================== Score Operations ====================

    def save_score(self, user_id: str, record: ScoreRecord) -> bool:
        """Save (or overwrite) the score for a date.

        Returns:
            True if successful
        """
        logger.info("Saving score for %s on %s: %d", user_id[:8], record.score_date, record.daily_score)
        try:
            data = record.model_dump()
            data["score_date"] = record.score_date.isoformat()
            self._score_ref(user_id, record.score_date).set(data)
            return True
        except Exception as e:
            logger.error("Failed to save score: %s", str(e))
            return False

    def get_scores(self, user_id: str, limit: int | None = None) -> list[ScoreRecord]:
        """Fetch score history, newest first.

        Args:
            user_id: The user's ID
            limit: Maximum number of records (None for all)

        Returns:
            List of ScoreRecords (may be empty)
        """
        logger.debug("Fetching scores for %s", user_id[:8])
        records: list[ScoreRecord] = []

        try:
            query = self._user_ref(user_id).collection("scores").order_by(
                "score_date", direction=firestore.Query.DESCENDING
            )
            if limit is not None:
                query = query.limit(limit)

            for doc in query.stream():
                data = doc.to_dict()
                data["score_date"] = _to_date(data.get("score_date"))
                records.append(ScoreRecord(**data))

            logger.debug("Found %d scores", len(records))
            return records
        except Exception as e:
            logger.error("Failed to fetch scores: %s", str(e))
            return []

    # ==================== Streak Operations ====================

    def get_streak(self, user_id: str) -> Streak:
        """Fetch the user's streak, an empty streak if none is stored."""
        try:
            doc = self._streak_ref(user_id).get()
            if not doc.exists:
                return Streak()
            data = doc.to_dict()
            for key in ("last_log_date", "streak_start_date"):
                data[key] = _to_date(data.get(key))
            return Streak(**data)
        except Exception as e:
            logger.error("Failed to fetch streak: %s", str(e))
            return Streak()

    def save_streak(self, user_id: str, streak: Streak) -> bool:
        """Save the user's streak.

        Returns:
            True if successful
        """
        try:
            data = streak.model_dump(mode="json")
            data["last_updated"] = datetime.utcnow()
            self._streak_ref(user_id).set(data, merge=True)
            return True
        except Exception as e:
            logger.error("Failed to save streak: %s", str(e))
            return False

    def get_badge_types(self, user_id: str) -> set[str]:
        """badge_type values already awarded to the user."""
        try:
            return {doc.id for doc in self._user_ref(user_id).collection("badges").stream()}
        except Exception as e:
            logger.error("Failed to fetch badges: %s", str(e))
            return set()

    def award_badge(self, user_id: str, badge: StreakBadge) -> bool:
        """Store a newly earned badge, keyed by its type so it is awarded once.

        Returns:
            True if successful
        """
        logger.info("Awarding badge %s to %s", badge.badge_type, user_id[:8])
        try:
            data = badge.model_dump()
            data["unlocked_at"] = datetime.utcnow()
            data["is_new"] = True
            self._user_ref(user_id).collection("badges").document(badge.badge_type).set(data)
            return True
        except Exception as e:
            logger.error("Failed to award badge: %s", str(e))
            return False
