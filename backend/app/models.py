from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel

from seatmap.scene import Scene


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SceneRecord(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)

    # Exported scene document; see seatmap.scene.Scene.export_scene for shape.
    document_json: str

    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)

    def document(self) -> dict:
        return json.loads(self.document_json)

    def load(self) -> Scene:
        return Scene.from_document(self.document_json)

    def store(self, scene: Scene) -> None:
        self.name = scene.name
        self.document_json = json.dumps(scene.export_scene())
        self.updated_at = _utc_now()
