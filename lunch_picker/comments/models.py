from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class Comment(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    place_id: str
    nickname: str
    content: str
    created_at: str


# Request bodies are checked by the store, not by pydantic, so that every
# policy failure is reported with the same message the store produces.
class CommentCreateRequest(BaseModel):
    place_id: str | None = None
    nickname: str | None = None
    content: str | None = None


class CommentDeleteRequest(BaseModel):
    place_id: str | None = None
    id: str | None = None
    admin_password: str | None = None


class CommentResponse(BaseModel):
    comment: Comment


class CommentListResponse(BaseModel):
    comments: list[Comment]


class AdminLoginRequest(BaseModel):
    password: str = ""
