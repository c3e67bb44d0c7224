from __future__ import annotations

import hmac
import logging
import re
import threading
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone

from ..config import DEFAULT_CONFIG
from .errors import AuthorizationError, ContentTooLong, LinkNotAllowed, MissingField
from .models import Comment

logger = logging.getLogger(__name__)

MAX_CONTENT_LENGTH = 200
LINK_PATTERN = re.compile(r"(https?://|www\.)\S+", re.IGNORECASE)


def contains_link(content: str) -> bool:
    return LINK_PATTERN.search(content) is not None


def validate_comment(place_id: str | None, nickname: str | None, content: str | None) -> None:
    """Raise the matching ``CommentError`` when a new comment breaks the posting rules."""
    if not place_id or not nickname or not content:
        raise MissingField()
    if len(content) > MAX_CONTENT_LENGTH:
        raise ContentTooLong()
    if contains_link(content):
        raise LinkNotAllowed()


class CommentStore(ABC):
    """Comments keyed by place id, newest first.

    ``admin_secret`` gates deletion. When it is unset every delete is allowed.
    """

    def __init__(self, admin_secret: str | None = None) -> None:
        self.admin_secret = admin_secret or None

    @abstractmethod
    def list_comments(self, place_id: str) -> list[Comment]: ...

    @abstractmethod
    def _prepend(self, comment: Comment) -> None: ...

    @abstractmethod
    def _remove(self, place_id: str, comment_id: str) -> bool: ...

    def is_authorized(self, supplied_secret: str | None) -> bool:
        if not self.admin_secret:
            return True
        if supplied_secret is None:
            return False
        return hmac.compare_digest(supplied_secret.encode(), self.admin_secret.encode())

    def add_comment(self, place_id: str, nickname: str, content: str) -> Comment:
        validate_comment(place_id, nickname, content)
        comment = Comment(
            id=str(uuid.uuid4()),
            place_id=place_id,
            nickname=nickname,
            content=content,
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        self._prepend(comment)
        logger.info("Comment %s added to place %s", comment.id, place_id)
        return comment

    def delete_comment(self, place_id: str, comment_id: str, supplied_secret: str | None = None) -> None:
        if not self.is_authorized(supplied_secret):
            logger.warning("Rejected comment delete on place %s: bad admin secret", place_id)
            raise AuthorizationError()
        if self._remove(place_id, comment_id):
            logger.info("Comment %s deleted from place %s", comment_id, place_id)


class InMemoryCommentStore(CommentStore):
    """Process-lifetime store. Writers to one place are serialised by a per-place lock."""

    def __init__(self, admin_secret: str | None = None) -> None:
        super().__init__(admin_secret)
        self._comments: dict[str, tuple[Comment, ...]] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, place_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(place_id)
            if lock is None:
                lock = self._locks[place_id] = threading.Lock()
            return lock

    def list_comments(self, place_id: str) -> list[Comment]:
        return list(self._comments.get(place_id, ()))

    def _prepend(self, comment: Comment) -> None:
        with self._lock_for(comment.place_id):
            existing = self._comments.get(comment.place_id, ())
            self._comments[comment.place_id] = (comment, *existing)

    def _remove(self, place_id: str, comment_id: str) -> bool:
        # Places never commented on get neither an entry nor a lock.
        if place_id not in self._comments:
            return False
        with self._lock_for(place_id):
            existing = self._comments.get(place_id, ())
            kept = tuple(c for c in existing if c.id != comment_id)
            if len(kept) == len(existing):
                return False
            self._comments[place_id] = kept
            return True

    def clear(self) -> None:
        with self._locks_guard:
            self._comments.clear()
            self._locks.clear()


_store = InMemoryCommentStore(admin_secret=DEFAULT_CONFIG.admin_password)


def get_store() -> InMemoryCommentStore:
    return _store


def clear_comments() -> None:
    _store.clear()
