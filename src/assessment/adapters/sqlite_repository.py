import sqlite3
from collections import defaultdict
from collections.abc import Collection, Sequence
from datetime import datetime

from src.assessment.domain.models import Question, QuestionOption, QuizAttempt
from src.assessment.domain.ports import IQuestionRepository, IQuizAttemptRepository
from src.shared.db_manager import DatabaseManager
from src.shared.errors import PersistenceError
from src.shared.telemetry import Telemetry, measure_time

_QUESTION_COLUMNS = "q.id, q.text, q.difficulty, q.usage_count, q.created_at, q.updated_at"


class SQLiteQuestionRepository(IQuestionRepository):
    def __init__(self, db_manager: DatabaseManager) -> None:
        self.telemetry = Telemetry("SQLiteQuestionRepository")
        self.db_manager = db_manager

    def is_empty(self) -> bool:
        """Helper for the Seeder."""
        with self.db_manager.transaction() as conn:
            row = conn.execute("SELECT count(*) FROM questions").fetchone()
        return (row[0] if row else 0) == 0

    @measure_time("db_find_questions_by_tags")
    def find_by_tags(self, tags: Collection[str], difficulty: str) -> list[Question]:
        # Overlap with an empty tag set matches nothing
        if not tags:
            return []

        tag_list = list(tags)
        placeholders = ",".join(["?"] * len(tag_list))
        query = f"""
                SELECT {_QUESTION_COLUMNS}
                FROM questions q
                WHERE q.difficulty = ?
                  AND EXISTS (SELECT 1
                              FROM question_tags t
                              WHERE t.question_id = q.id
                                AND t.tag IN ({placeholders}))
                ORDER BY q.usage_count ASC, q.created_at ASC
                """
        try:
            with self.db_manager.transaction() as conn:
                rows = conn.execute(query, (difficulty, *tag_list)).fetchall()
                return self._hydrate(conn, rows)
        except sqlite3.Error as e:
            self.telemetry.log_error("find_by_tags failed", e, tags=tag_list)
            raise PersistenceError("Failed to load question pool") from e

    def find_by_id(self, question_id: str) -> Question | None:
        try:
            with self.db_manager.transaction() as conn:
                rows = conn.execute(
                    f"SELECT {_QUESTION_COLUMNS} FROM questions q WHERE q.id = ?",
                    (question_id,),
                ).fetchall()
                questions = self._hydrate(conn, rows)
        except sqlite3.Error as e:
            self.telemetry.log_error(f"find_by_id failed for {question_id}", e)
            raise PersistenceError("Failed to load question") from e
        return questions[0] if questions else None

    @measure_time("db_save_questions")
    def save_many(self, questions: list[Question]) -> None:
        if not questions:
            return

        try:
            # One transaction for the whole batch: commit all or roll back all
            with self.db_manager.transaction() as conn:
                for q in questions:
                    conn.execute(
                        """
                        INSERT INTO questions (id, text, difficulty, usage_count,
                                               created_at, updated_at)
                        VALUES (?, ?, ?, ?, ?, ?)
                        ON CONFLICT(id) DO UPDATE SET text        = excluded.text,
                                                      difficulty  = excluded.difficulty,
                                                      usage_count = excluded.usage_count,
                                                      updated_at  = excluded.updated_at
                        """,
                        (
                            q.id,
                            q.text,
                            q.difficulty,
                            q.usage_count,
                            q.created_at.isoformat(),
                            q.updated_at.isoformat(),
                        ),
                    )

                    conn.execute(
                        "DELETE FROM question_tags WHERE question_id = ?", (q.id,)
                    )
                    conn.executemany(
                        "INSERT INTO question_tags (question_id, tag) VALUES (?, ?)",
                        [(q.id, tag) for tag in q.tags],
                    )

                    conn.execute(
                        "DELETE FROM question_options WHERE question_id = ?", (q.id,)
                    )
                    conn.executemany(
                        "INSERT INTO question_options "
                        "(id, question_id, position, text, is_correct) "
                        "VALUES (?, ?, ?, ?, ?)",
                        [
                            (o.id, q.id, position, o.text, o.is_correct)
                            for position, o in enumerate(q.options)
                        ],
                    )
        except sqlite3.Error as e:
            self.telemetry.log_error("save_many failed", e, count=len(questions))
            raise PersistenceError("Failed to save questions") from e

    def _hydrate(
        self, conn: sqlite3.Connection, rows: Sequence[tuple]
    ) -> list[Question]:
        if not rows:
            return []

        ids = [row[0] for row in rows]
        placeholders = ",".join(["?"] * len(ids))

        tags: dict[str, list[str]] = defaultdict(list)
        for question_id, tag in conn.execute(
            f"SELECT question_id, tag FROM question_tags "
            f"WHERE question_id IN ({placeholders}) ORDER BY rowid",
            ids,
        ):
            tags[question_id].append(tag)

        options: dict[str, list[QuestionOption]] = defaultdict(list)
        for option_id, question_id, text, is_correct in conn.execute(
            f"SELECT id, question_id, text, is_correct FROM question_options "
            f"WHERE question_id IN ({placeholders}) ORDER BY question_id, position",
            ids,
        ):
            options[question_id].append(
                QuestionOption.reconstitute(option_id, text, bool(is_correct))
            )

        return [
            Question.reconstitute(
                id=q_id,
                text=text,
                tags=tags[q_id],
                difficulty=difficulty,
                usage_count=usage_count,
                options=options[q_id],
                created_at=datetime.fromisoformat(created_at),
                updated_at=datetime.fromisoformat(updated_at),
            )
            for q_id, text, difficulty, usage_count, created_at, updated_at in rows
        ]


class SQLiteQuizAttemptRepository(IQuizAttemptRepository):
    def __init__(self, db_manager: DatabaseManager) -> None:
        self.telemetry = Telemetry("SQLiteQuizAttemptRepository")
        self.db_manager = db_manager

    @measure_time("db_save_attempt")
    def save(self, attempt: QuizAttempt) -> None:
        try:
            with self.db_manager.transaction() as conn:
                conn.execute(
                    """
                    INSERT INTO quiz_attempts (id, user_id, roadmap_item_id,
                                               score, passed, created_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        attempt.id,
                        attempt.user_id,
                        attempt.roadmap_item_id,
                        attempt.score,
                        attempt.passed,
                        attempt.created_at.isoformat(),
                    ),
                )
        except sqlite3.Error as e:
            self.telemetry.log_error(f"save_attempt failed for {attempt.user_id}", e)
            raise PersistenceError("Failed to save quiz attempt") from e

    def find_by_roadmap_item_id(self, roadmap_item_id: str) -> list[QuizAttempt]:
        return self._find("roadmap_item_id", roadmap_item_id)

    def find_by_user_id(self, user_id: str) -> list[QuizAttempt]:
        return self._find("user_id", user_id)

    def _find(self, column: str, value: str) -> list[QuizAttempt]:
        try:
            with self.db_manager.transaction() as conn:
                rows = conn.execute(
                    f"""
                    SELECT id, user_id, roadmap_item_id, score, passed, created_at
                    FROM quiz_attempts
                    WHERE {column} = ?
                    ORDER BY created_at DESC
                    """,
                    (value,),
                ).fetchall()
        except sqlite3.Error as e:
            self.telemetry.log_error(f"Loading attempts by {column} failed", e)
            raise PersistenceError("Failed to load quiz attempts") from e

        return [
            QuizAttempt.reconstitute(
                id=row[0],
                user_id=row[1],
                roadmap_item_id=row[2],
                score=row[3],
                passed=bool(row[4]),
                created_at=datetime.fromisoformat(row[5]),
            )
            for row in rows
        ]
