"""
Data models for storage layer.

Defines progress entities stored in user_progress and user_profiles.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class ProgressEntry:
    """One user's state for one exercise.
    
    Identified by (user_id, exercise_id). completed only moves from False
    to True and attempts never decreases.
    """
    user_id: str
    exercise_id: str
    completed: bool
    score: int
    attempts: int
    last_attempt: datetime
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class UserProfile:
    """Aggregate totals recomputed from a user's completed exercises."""
    id: str
    total_exercises_completed: int
    total_score: int
    display_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class ExerciseStats:
    """Attempt and completion figures for one exercise across all users."""
    exercise_id: str
    total_attempts: int
    total_completions: int
    average_score: float
    completion_rate: float
