"""SQLite persistence layer for the intern tracker."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Any, Dict, Iterator, List

Connection = sqlite3.Connection
Row = sqlite3.Row


class Database:
    """Lightweight wrapper around SQLite operations."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._initialize()

    @contextmanager
    def connect(self) -> Iterator[Connection]:
        conn = sqlite3.connect(self._path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def _initialize(self) -> None:
        with self.connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id TEXT PRIMARY KEY,
                    first_name TEXT NOT NULL,
                    last_name TEXT NOT NULL,
                    role TEXT NOT NULL,
                    department TEXT NOT NULL,
                    email TEXT,
                    phone TEXT,
                    avatar_color TEXT,
                    current_status TEXT NOT NULL DEFAULT 'CHECKED_OUT',
                    last_seen TEXT,
                    created_at TEXT NOT NULL
                )
                """
            )
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS attendance_logs (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    full_name TEXT NOT NULL,
                    type TEXT NOT NULL,
                    timestamp TEXT NOT NULL
                )
                """
            )
            cursor.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_attendance_logs_user
                ON attendance_logs (user_id, timestamp)
                """
            )
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS plans (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    full_name TEXT NOT NULL,
                    date TEXT NOT NULL,
                    category TEXT NOT NULL,
                    notes TEXT
                )
                """
            )
            conn.commit()

    # region Users
    def insert_user(self, user: Dict[str, Any]) -> None:
        with self.connect() as conn:
            conn.execute(
                """
                INSERT INTO users (
                    id, first_name, last_name, role, department, email, phone,
                    avatar_color, current_status, last_seen, created_at
                )
                VALUES (
                    :id, :first_name, :last_name, :role, :department, :email, :phone,
                    :avatar_color, :current_status, :last_seen, :created_at
                )
                """,
                user,
            )
            conn.commit()

    def get_users(self, limit: int) -> List[Row]:
        with self.connect() as conn:
            cursor = conn.execute(
                "SELECT * FROM users ORDER BY first_name LIMIT ?",
                (limit,),
            )
            return cursor.fetchall()

    def update_user_status(self, user_id: str, status: str, seen_at: str) -> bool:
        with self.connect() as conn:
            cursor = conn.execute(
                "UPDATE users SET current_status = ?, last_seen = ? WHERE id = ?",
                (status, seen_at, user_id),
            )
            conn.commit()
            return cursor.rowcount > 0

    # endregion

    # region Attendance logs
    def insert_log(self, record: Dict[str, Any]) -> None:
        with self.connect() as conn:
            conn.execute(
                """
                INSERT INTO attendance_logs (id, user_id, full_name, type, timestamp)
                VALUES (:id, :user_id, :full_name, :type, :timestamp)
                """,
                record,
            )
            conn.commit()

    def get_logs_for_user(self, user_id: str, limit: int) -> List[Row]:
        with self.connect() as conn:
            cursor = conn.execute(
                """
                SELECT * FROM attendance_logs
                WHERE user_id = ?
                ORDER BY timestamp DESC
                LIMIT ?
                """,
                (user_id, limit),
            )
            return cursor.fetchall()

    # endregion

    # region Plans
    def insert_plan(self, record: Dict[str, Any]) -> None:
        with self.connect() as conn:
            conn.execute(
                """
                INSERT INTO plans (id, user_id, full_name, date, category, notes)
                VALUES (:id, :user_id, :full_name, :date, :category, :notes)
                """,
                record,
            )
            conn.commit()

    def get_plans_between(self, start_day: date, end_day: date) -> List[Row]:
        with self.connect() as conn:
            cursor = conn.execute(
                """
                SELECT * FROM plans
                WHERE date BETWEEN ? AND ?
                ORDER BY date, full_name
                """,
                (start_day.isoformat(), end_day.isoformat()),
            )
            return cursor.fetchall()

    # endregion


__all__ = ["Database"]
