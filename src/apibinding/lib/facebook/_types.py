from __future__ import annotations

import dataclasses

from ..._models import expect_object

DEFAULT_BASE_URL = "https://graph.facebook.com/v2.12"
DEFAULT_SCOPES = ("email", "public_profile", "user_posts")


@dataclasses.dataclass
class Profile:
    id: str
    name: str

    @classmethod
    def from_response(cls, data: object) -> Profile:
        obj = expect_object(data)
        return cls(id=str(obj["id"]), name=str(obj["name"]))


@dataclasses.dataclass
class Post:
    id: str
    message: str | None = None
    story: str | None = None
    created_time: str | None = None

    @classmethod
    def from_response(cls, data: object) -> Post:
        obj = expect_object(data)
        message = obj.get("message")
        story = obj.get("story")
        created_time = obj.get("created_time")
        return cls(
            id=str(obj["id"]),
            message=str(message) if message is not None else None,
            story=str(story) if story is not None else None,
            created_time=str(created_time) if created_time is not None else None,
        )
