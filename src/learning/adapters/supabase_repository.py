from datetime import datetime
from typing import Any, cast

from src.learning.domain.models import Roadmap, RoadmapItem
from src.learning.domain.ports import IRoadmapRepository
from src.shared.errors import PersistenceError
from src.shared.telemetry import Telemetry, measure_time
from supabase import Client, create_client


class SupabaseRoadmapRepository(IRoadmapRepository):
    def __init__(self, url: str, key: str, client: Client | None = None) -> None:
        self.telemetry = Telemetry("SupabaseRoadmapRepository")
        if client is not None:
            self.client = client
            return
        try:
            self.client = create_client(url, key)
        except Exception as e:
            self.telemetry.log_error("Failed to initialize Supabase client", e)
            raise

    @measure_time("sb_find_roadmap")
    def find_by_id(self, roadmap_id: str) -> Roadmap | None:
        try:
            response = (
                self.client.table("roadmaps")
                .select("*, roadmap_items(*)")
                .eq("id", roadmap_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            self.telemetry.log_error(f"find_by_id failed for {roadmap_id}", e)
            raise PersistenceError("Failed to load roadmap") from e

        data = cast(list[dict[str, Any]], response.data)
        if not data:
            return None

        row = data[0]
        items = sorted(
            (
                RoadmapItem(
                    id=str(i["id"]),
                    title=str(i["title"]),
                    description=i.get("description") or "",
                    order=int(i["item_order"]),
                    status=i.get("status") or "pending",
                    type=i.get("type") or "theory",
                    topic=i.get("topic") or "",
                    difficulty=i.get("difficulty") or "beginner",
                    submission_url=i.get("submission_url"),
                )
                for i in row.get("roadmap_items") or []
            ),
            key=lambda item: item.order,
        )
        return Roadmap(
            id=str(row["id"]),
            goal_id=str(row["goal_id"]),
            title=str(row["title"]),
            items=items,
            created_at=datetime.fromisoformat(str(row["created_at"])),
            updated_at=datetime.fromisoformat(str(row["updated_at"])),
        )

    def save(self, roadmap: Roadmap) -> None:
        """
        Goes through the `save_roadmap` function (see data/supabase_schema.sql)
        so the roadmap row and its full item list are replaced atomically,
        matching the SQLite adapter.
        """
        payload = roadmap.model_dump(mode="json", exclude={"items"})
        payload["items"] = [
            {
                "id": item.id,
                "roadmap_id": roadmap.id,
                "title": item.title,
                "description": item.description,
                "item_order": item.order,
                "status": item.status.value,
                "type": item.type.value,
                "topic": item.topic,
                "difficulty": item.difficulty,
                "submission_url": item.submission_url,
            }
            for item in roadmap.items
        ]
        try:
            self.client.rpc("save_roadmap", {"p_roadmap": payload}).execute()
        except Exception as e:
            self.telemetry.log_error(f"save failed for roadmap {roadmap.id}", e)
            raise PersistenceError("Failed to save roadmap") from e
