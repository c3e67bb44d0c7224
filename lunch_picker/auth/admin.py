from __future__ import annotations

from ..comments.store import CommentStore


def authenticate_admin(password: str, store: CommentStore) -> bool:
    """Check the shared admin secret that also gates comment deletion.

    With no secret configured there is nothing to log into, so this fails.
    """
    if not store.admin_secret:
        return False
    return store.is_authorized(password)
