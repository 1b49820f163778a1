import sqlite3
from datetime import datetime

from src.learning.domain.models import (
    Roadmap,
    RoadmapItem,
    RoadmapItemStatus,
    RoadmapItemType,
)
from src.learning.domain.ports import IRoadmapRepository
from src.shared.db_manager import DatabaseManager
from src.shared.errors import PersistenceError
from src.shared.telemetry import Telemetry, measure_time


class SQLiteRoadmapRepository(IRoadmapRepository):
    def __init__(self, db_manager: DatabaseManager) -> None:
        self.telemetry = Telemetry("SQLiteRoadmapRepository")
        self.db_manager = db_manager

    @measure_time("db_find_roadmap")
    def find_by_id(self, roadmap_id: str) -> Roadmap | None:
        try:
            with self.db_manager.transaction() as conn:
                row = conn.execute(
                    "SELECT id, goal_id, title, created_at, updated_at "
                    "FROM roadmaps WHERE id = ?",
                    (roadmap_id,),
                ).fetchone()
                if not row:
                    return None

                item_rows = conn.execute(
                    """
                    SELECT id, title, description, item_order, status,
                           type, topic, difficulty, submission_url
                    FROM roadmap_items
                    WHERE roadmap_id = ?
                    ORDER BY item_order
                    """,
                    (roadmap_id,),
                ).fetchall()
        except sqlite3.Error as e:
            self.telemetry.log_error(f"find_by_id failed for {roadmap_id}", e)
            raise PersistenceError("Failed to load roadmap") from e

        items = [
            RoadmapItem(
                id=r[0],
                title=r[1],
                description=r[2],
                order=r[3],
                status=RoadmapItemStatus(r[4]),
                type=RoadmapItemType(r[5]),
                topic=r[6],
                difficulty=r[7],
                submission_url=r[8],
            )
            for r in item_rows
        ]
        return Roadmap(
            id=row[0],
            goal_id=row[1],
            title=row[2],
            items=items,
            created_at=datetime.fromisoformat(row[3]),
            updated_at=datetime.fromisoformat(row[4]),
        )

    def save(self, roadmap: Roadmap) -> None:
        try:
            with self.db_manager.transaction() as conn:
                conn.execute(
                    """
                    INSERT INTO roadmaps (id, goal_id, title, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET title      = excluded.title,
                                                  updated_at = excluded.updated_at
                    """,
                    (
                        roadmap.id,
                        roadmap.goal_id,
                        roadmap.title,
                        roadmap.created_at.isoformat(),
                        roadmap.updated_at.isoformat(),
                    ),
                )
                conn.execute(
                    "DELETE FROM roadmap_items WHERE roadmap_id = ?", (roadmap.id,)
                )
                conn.executemany(
                    """
                    INSERT INTO roadmap_items (id, roadmap_id, title, description,
                                               item_order, status, type, topic,
                                               difficulty, submission_url)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    [
                        (
                            item.id,
                            roadmap.id,
                            item.title,
                            item.description,
                            item.order,
                            item.status.value,
                            item.type.value,
                            item.topic,
                            item.difficulty,
                            item.submission_url,
                        )
                        for item in roadmap.items
                    ],
                )
        except sqlite3.Error as e:
            self.telemetry.log_error(f"save failed for roadmap {roadmap.id}", e)
            raise PersistenceError("Failed to save roadmap") from e
