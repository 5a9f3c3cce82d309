"""
Repository pattern for data access.

Handles SQL for the user_progress and user_profiles tables.
"""

import sqlite3
from datetime import datetime, timezone
from typing import List, Optional

from .db import DEFAULT_DB_PATH, get_connection
from .models import ExerciseStats, ProgressEntry, UserProfile


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromisoformat(value)


def _row_to_entry(row: sqlite3.Row) -> ProgressEntry:
    return ProgressEntry(
        user_id=row["user_id"],
        exercise_id=row["exercise_id"],
        completed=bool(row["completed"]),
        score=row["score"],
        attempts=row["attempts"],
        last_attempt=_parse_timestamp(row["last_attempt"]),
        created_at=_parse_timestamp(row["created_at"]),
        updated_at=_parse_timestamp(row["updated_at"])
    )


def initialize_schema(db_path: str = DEFAULT_DB_PATH) -> None:
    """Create the progress tables if they don't exist.

    Args:
        db_path: Path to SQLite database file
    """
    conn = get_connection(db_path)
    try:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS user_progress (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id TEXT NOT NULL,
                exercise_id TEXT NOT NULL,
                completed INTEGER NOT NULL DEFAULT 0,
                score INTEGER NOT NULL DEFAULT 0 CHECK (score BETWEEN 0 AND 100),
                attempts INTEGER NOT NULL DEFAULT 0 CHECK (attempts >= 0),
                last_attempt TEXT NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                UNIQUE (user_id, exercise_id)
            )
        """)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS user_profiles (
                id TEXT PRIMARY KEY,
                display_name TEXT,
                total_exercises_completed INTEGER NOT NULL DEFAULT 0,
                total_score INTEGER NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)
        conn.commit()
    finally:
        conn.close()


class ProgressRepository:
    """Repository for per-user exercise progress and profile totals.

    Every call opens and closes its own connection. Errors from sqlite3
    propagate to the caller.
    """

    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        """Initialize the repository with a database path.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path

    def initialize_schema(self) -> None:
        initialize_schema(self.db_path)

    def upsert_progress(
        self,
        user_id: str,
        exercise_id: str,
        completed: bool,
        score: int,
        attempts: int,
        last_attempt: Optional[datetime] = None
    ) -> None:
        """Insert or update the row for (user_id, exercise_id).

        An existing completed flag is never cleared and an existing attempts
        count is never lowered; score and last_attempt are overwritten.

        Args:
            user_id: Owner of the row
            exercise_id: Exercise identifier
            completed: Completion flag to record
            score: Latest score, 0-100
            attempts: Attempt count to record
            last_attempt: Timestamp of this write (defaults to now, UTC)
        """
        now = _now()
        last_attempt = last_attempt or now
        conn = get_connection(self.db_path)
        try:
            conn.execute("""
                INSERT INTO user_progress
                (user_id, exercise_id, completed, score, attempts,
                 last_attempt, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT (user_id, exercise_id) DO UPDATE SET
                    completed = MAX(user_progress.completed, excluded.completed),
                    score = excluded.score,
                    attempts = MAX(user_progress.attempts, excluded.attempts),
                    last_attempt = excluded.last_attempt,
                    updated_at = excluded.updated_at
            """, (
                user_id,
                exercise_id,
                int(bool(completed)),
                score,
                attempts,
                last_attempt.isoformat(),
                now.isoformat(),
                now.isoformat()
            ))
            conn.commit()
        finally:
            conn.close()

    def get_progress(self, user_id: str, exercise_id: str) -> Optional[ProgressEntry]:
        """Fetch one progress row, or None if the user never attempted it."""
        conn = get_connection(self.db_path)
        try:
            cursor = conn.execute("""
                SELECT * FROM user_progress
                WHERE user_id = ? AND exercise_id = ?
            """, (user_id, exercise_id))
            row = cursor.fetchone()
            return _row_to_entry(row) if row else None
        finally:
            conn.close()

    def list_progress(self, user_id: str, completed: Optional[bool] = None) -> List[ProgressEntry]:
        """Fetch a user's progress rows.

        Args:
            user_id: Owner of the rows
            completed: Optional filter on the completion flag

        Returns:
            Progress entries ordered by exercise id
        """
        conn = get_connection(self.db_path)
        try:
            query = "SELECT * FROM user_progress WHERE user_id = ?"
            params = [user_id]
            if completed is not None:
                query += " AND completed = ?"
                params.append(int(completed))
            query += " ORDER BY exercise_id"

            cursor = conn.execute(query, params)
            return [_row_to_entry(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def upsert_profile(self, user_id: str, total_exercises_completed: int, total_score: int) -> None:
        """Insert or overwrite a user's aggregate totals."""
        now = _now().isoformat()
        conn = get_connection(self.db_path)
        try:
            conn.execute("""
                INSERT INTO user_profiles
                (id, total_exercises_completed, total_score, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT (id) DO UPDATE SET
                    total_exercises_completed = excluded.total_exercises_completed,
                    total_score = excluded.total_score,
                    updated_at = excluded.updated_at
            """, (user_id, total_exercises_completed, total_score, now, now))
            conn.commit()
        finally:
            conn.close()

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        conn = get_connection(self.db_path)
        try:
            cursor = conn.execute("SELECT * FROM user_profiles WHERE id = ?", (user_id,))
            row = cursor.fetchone()
            if row is None:
                return None
            return UserProfile(
                id=row["id"],
                total_exercises_completed=row["total_exercises_completed"],
                total_score=row["total_score"],
                display_name=row["display_name"],
                created_at=_parse_timestamp(row["created_at"]),
                updated_at=_parse_timestamp(row["updated_at"])
            )
        finally:
            conn.close()

    def get_exercise_stats(self, exercise_id: str) -> ExerciseStats:
        """Aggregate attempts, completions and scores for one exercise.

        Args:
            exercise_id: Exercise identifier

        Returns:
            ExerciseStats; all figures are zero when nobody attempted it
        """
        conn = get_connection(self.db_path)
        try:
            cursor = conn.execute("""
                SELECT
                    COUNT(*) AS users,
                    SUM(attempts) AS total_attempts,
                    SUM(completed) AS total_completions,
                    AVG(score) AS average_score
                FROM user_progress
                WHERE exercise_id = ?
            """, (exercise_id,))
            row = cursor.fetchone()
            users = row["users"] or 0
            completions = row["total_completions"] or 0
            return ExerciseStats(
                exercise_id=exercise_id,
                total_attempts=row["total_attempts"] or 0,
                total_completions=completions,
                average_score=float(row["average_score"] or 0),
                completion_rate=(completions / users) if users else 0.0
            )
        finally:
            conn.close()
