from __future__ import annotations

from fastapi import HTTPException, Request


def is_admin(request: Request) -> bool:
    """True when this session has passed the admin check."""
    return bool(request.session.get("admin"))


def require_admin(request: Request) -> bool:
    """Raise 403 unless the session is in admin mode."""
    if not request.session.get("admin"):
        raise HTTPException(status_code=403, detail="관리자 인증이 필요합니다.")
    return True
