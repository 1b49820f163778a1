import os
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from src.shared.errors import PersistenceError
from src.shared.telemetry import Telemetry, measure_time


class DatabaseManager:
    """
    Responsible for:
    1. Managing the SQLite connection lifecycle.
    2. Initializing the database schema (DDL).
    3. Handling migrations.
    4. Staying pickle-safe (the connection is dropped and lazily re-opened).
    5. Serializing access to the shared connection across threads.
    """

    def __init__(self, db_path: str = "data/quiz.db") -> None:
        self.db_path = db_path
        self.telemetry = Telemetry("DatabaseManager")
        self._shared_connection: sqlite3.Connection | None = None
        self._lock = threading.RLock()

        self._ensure_db_exists()

        # For in-memory DBs, we must keep the connection open immediately
        if self.db_path == ":memory:":
            self._shared_connection = self._connect()

        self._init_schema()
        self._migrate_schema()

    # --- SERIALIZATION LOGIC (Pickle Safety) ---
    def __getstate__(self) -> dict[str, Any]:
        state = self.__dict__.copy()
        state.pop("_shared_connection", None)
        state.pop("_lock", None)
        return state

    def __setstate__(self, state: dict[str, Any]) -> None:
        # In-memory data does not survive this; file-based SQLite does.
        self.__dict__.update(state)
        self._shared_connection = None
        self._lock = threading.RLock()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, check_same_thread=False)
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def get_connection(self) -> sqlite3.Connection:
        """Returns a usable database connection, reconnecting if necessary."""
        with self._lock:
            if self._shared_connection:
                try:
                    self._shared_connection.execute("SELECT 1")
                    return self._shared_connection
                except sqlite3.ProgrammingError:
                    # Connection was closed externally
                    self._shared_connection = None

            conn = self._connect()

            # WAL lets other processes read while a batch is being written
            if self.db_path != ":memory:":
                conn.execute("PRAGMA journal_mode=WAL")

            self._shared_connection = conn
            return conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """
        Holds the shared connection exclusively for one unit of work.
        Commits on success, rolls back on error. Repositories read and write
        only through here: every thread shares one connection, and so one
        open transaction.
        """
        with self._lock:
            conn = self.get_connection()
            with conn:
                yield conn

    def close(self) -> None:
        with self._lock:
            if self._shared_connection:
                self._shared_connection.close()
                self._shared_connection = None

    def _ensure_db_exists(self) -> None:
        if self.db_path == ":memory:":
            return
        dir_name = os.path.dirname(self.db_path)
        if dir_name:
            os.makedirs(dir_name, exist_ok=True)

    @measure_time("db_init_schema")
    def _init_schema(self) -> None:
        conn = self.get_connection()
        try:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS questions
                (
                    id          TEXT PRIMARY KEY,
                    text        TEXT    NOT NULL,
                    difficulty  TEXT    NOT NULL,
                    usage_count INTEGER NOT NULL DEFAULT 0,
                    created_at  TEXT    NOT NULL,
                    updated_at  TEXT    NOT NULL
                );

                CREATE TABLE IF NOT EXISTS question_tags
                (
                    question_id TEXT NOT NULL
                        REFERENCES questions (id) ON DELETE CASCADE,
                    tag         TEXT NOT NULL,
                    PRIMARY KEY (question_id, tag)
                );

                CREATE INDEX IF NOT EXISTS question_tags_tag_idx
                    ON question_tags (tag);

                CREATE TABLE IF NOT EXISTS question_options
                (
                    id          TEXT PRIMARY KEY,
                    question_id TEXT    NOT NULL
                        REFERENCES questions (id) ON DELETE CASCADE,
                    position    INTEGER NOT NULL,
                    text        TEXT    NOT NULL,
                    is_correct  BOOLEAN NOT NULL
                );

                CREATE INDEX IF NOT EXISTS question_options_question_id_idx
                    ON question_options (question_id);

                CREATE TABLE IF NOT EXISTS roadmaps
                (
                    id         TEXT PRIMARY KEY,
                    goal_id    TEXT NOT NULL,
                    title      TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS roadmap_items
                (
                    id          TEXT PRIMARY KEY,
                    roadmap_id  TEXT    NOT NULL
                        REFERENCES roadmaps (id) ON DELETE CASCADE,
                    title       TEXT    NOT NULL,
                    description TEXT    NOT NULL DEFAULT '',
                    item_order  INTEGER NOT NULL,
                    status      TEXT    NOT NULL DEFAULT 'pending'
                );

                CREATE TABLE IF NOT EXISTS quiz_attempts
                (
                    id              TEXT PRIMARY KEY,
                    user_id         TEXT    NOT NULL,
                    roadmap_item_id TEXT    NOT NULL,
                    score           REAL    NOT NULL,
                    passed          BOOLEAN NOT NULL,
                    created_at      TEXT    NOT NULL
                );

                CREATE INDEX IF NOT EXISTS quiz_attempts_user_id_idx
                    ON quiz_attempts (user_id);

                CREATE INDEX IF NOT EXISTS quiz_attempts_roadmap_item_id_idx
                    ON quiz_attempts (roadmap_item_id);
                """
            )
            conn.commit()
        except sqlite3.Error as e:
            self.telemetry.log_error("Schema Init Failed", e)
            raise PersistenceError("Schema initialization failed") from e

    def _migrate_schema(self) -> None:
        conn = self.get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("PRAGMA table_info(roadmap_items)")
            columns = [info[1] for info in cursor.fetchall()]

            # Migration: assessment engine columns on roadmap items
            additions = {
                "type": "TEXT NOT NULL DEFAULT 'theory'",
                "topic": "TEXT NOT NULL DEFAULT ''",
                "difficulty": "TEXT NOT NULL DEFAULT 'beginner'",
                "submission_url": "TEXT",
            }
            for column, ddl in additions.items():
                if column not in columns:
                    self.telemetry.log_info(
                        f"Migrating: Adding {column} to roadmap_items"
                    )
                    cursor.execute(
                        f"ALTER TABLE roadmap_items ADD COLUMN {column} {ddl}"
                    )

            conn.commit()
        except sqlite3.Error as e:
            self.telemetry.log_error("Schema migration failed", e)
            raise PersistenceError("Schema migration failed") from e
