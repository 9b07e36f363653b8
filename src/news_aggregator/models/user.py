from datetime import datetime, timezone
from typing import List

from pydantic import BaseModel, Field


class User(BaseModel):
    id: str
    name: str
    email: str
    password_hash: str
    preferences: List[str] = []
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def public(self, include_preferences: bool = True) -> dict:
        data = {"id": self.id, "name": self.name, "email": self.email}
        if include_preferences:
            data["preferences"] = list(self.preferences)
        return data
