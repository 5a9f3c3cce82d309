"""
Progress tracking for signed-in learners.

Wraps the progress repository with identity scoping and error tolerance:
- No authenticated identity: every operation is a no-op returning None/[]/False
- Persistence failures: logged and swallowed, state left unchanged

increment_attempts reads then writes without a version check, so two
concurrent increments for the same exercise can lose one update.
"""

import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional

from ..storage.models import ProgressEntry, UserProfile
from ..storage.repository import ProgressRepository

logger = logging.getLogger(__name__)

IdentityProvider = Callable[[], Optional[str]]


@dataclass(frozen=True)
class ProgressData:
    """Progress to record for the current user."""
    exercise_id: str
    completed: bool
    score: int
    attempts: int

    def __post_init__(self):
        """Validate score range and attempt count."""
        if not self.exercise_id:
            raise ValueError("exercise_id is required and cannot be empty")
        if not 0 <= self.score <= 100:
            raise ValueError("score must be between 0 and 100")
        if self.attempts < 0:
            raise ValueError("attempts must be >= 0")


def anonymous() -> Optional[str]:
    """Identity provider for guest sessions."""
    return None


def fixed_identity(user_id: Optional[str]) -> IdentityProvider:
    """Identity provider that always reports the same user."""
    return lambda: user_id


class ProgressTracker:
    """Per-user progress operations scoped to the authenticated identity."""

    def __init__(self, repository: ProgressRepository, identity: IdentityProvider = anonymous):
        """Initialize the tracker.

        Args:
            repository: Storage for progress rows and profile totals
            identity: Callable returning the signed-in user id or None
        """
        self.repository = repository
        self.identity = identity

    def save_progress(self, data: ProgressData) -> bool:
        """Upsert progress for the current user.

        When the stored row is completed after the write, the profile totals
        are recomputed from all completed rows rather than incremented. A row
        stays completed once it is, so a later save that only changes its
        score still refreshes the totals.

        Returns:
            True if the progress row was written
        """
        user_id = self.identity()
        if not user_id:
            return False

        try:
            previous = self.repository.get_progress(user_id, data.exercise_id)
            self.repository.upsert_progress(
                user_id=user_id,
                exercise_id=data.exercise_id,
                completed=data.completed,
                score=data.score,
                attempts=data.attempts,
                last_attempt=datetime.now(timezone.utc)
            )
        except sqlite3.Error as e:
            logger.error("Error saving progress for %s: %s", data.exercise_id, e)
            return False

        if data.completed or (previous is not None and previous.completed):
            self._update_user_profile(user_id)
        return True

    def get_progress(self, exercise_id: str) -> Optional[ProgressEntry]:
        user_id = self.identity()
        if not user_id:
            return None

        try:
            return self.repository.get_progress(user_id, exercise_id)
        except sqlite3.Error as e:
            logger.error("Error fetching progress for %s: %s", exercise_id, e)
            return None

    def get_all_progress(self) -> List[ProgressEntry]:
        user_id = self.identity()
        if not user_id:
            return []

        try:
            return self.repository.list_progress(user_id)
        except sqlite3.Error as e:
            logger.error("Error fetching all progress: %s", e)
            return []

    def get_completed_exercises(self) -> List[str]:
        """Exercise ids the current user has completed."""
        return [entry.exercise_id for entry in self.get_all_progress() if entry.completed]

    def get_profile(self) -> Optional[UserProfile]:
        user_id = self.identity()
        if not user_id:
            return None

        try:
            return self.repository.get_profile(user_id)
        except sqlite3.Error as e:
            logger.error("Error fetching profile: %s", e)
            return None

    def increment_attempts(self, exercise_id: str) -> bool:
        """Record one more attempt, keeping completion and score.

        Returns:
            True if the attempt was written
        """
        user_id = self.identity()
        if not user_id:
            return False

        try:
            current = self.repository.get_progress(user_id, exercise_id)
            attempts = (current.attempts if current else 0) + 1
            self.repository.upsert_progress(
                user_id=user_id,
                exercise_id=exercise_id,
                completed=current.completed if current else False,
                score=current.score if current else 0,
                attempts=attempts,
                last_attempt=datetime.now(timezone.utc)
            )
        except sqlite3.Error as e:
            logger.error("Error incrementing attempts for %s: %s", exercise_id, e)
            return False
        return True

    def _update_user_profile(self, user_id: str) -> None:
        try:
            completed = self.repository.list_progress(user_id, completed=True)
            self.repository.upsert_profile(
                user_id,
                total_exercises_completed=len(completed),
                total_score=sum(entry.score for entry in completed)
            )
        except sqlite3.Error as e:
            logger.error("Error updating profile totals: %s", e)
