from __future__ import annotations

import os

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from starlette.middleware.sessions import SessionMiddleware

from .auth.admin import authenticate_admin
from .auth.dependencies import is_admin, require_admin
from .comments.cooldown import CommentCooldown
from .comments.errors import AuthorizationError, CommentError
from .comments.models import (
    AdminLoginRequest,
    CommentCreateRequest,
    CommentDeleteRequest,
    CommentListResponse,
    CommentResponse,
)
from .comments.nicknames import random_nickname
from .comments.store import get_store
from .config import DEFAULT_CONFIG
from .places.cache import get_cache_stats
from .places.data_store import (
    DEFAULT_COLOR,
    SheetError,
    color_for,
    get_category_colors,
    get_places,
)
from .places.models import (
    FilterCriteria,
    Place,
    PlaceListResponse,
    PlaceOut,
    RandomPickResponse,
    RankedPlace,
)
from .places.ranking import (
    filter_and_rank,
    is_recently_updated,
    list_categories,
    pick_random,
    top_n,
)

PREVIEW_SIZE = 3

app = FastAPI(title="Lunch Picker API", version="1.0.0")
app.add_middleware(SessionMiddleware, secret_key=DEFAULT_CONFIG.session_secret)

_cooldown = CommentCooldown(seconds=DEFAULT_CONFIG.comment_cooldown_seconds)


def get_cooldown() -> CommentCooldown:
    return _cooldown


def _load_places() -> list[Place]:
    try:
        return get_places(DEFAULT_CONFIG)
    except SheetError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc


def _to_out(place: RankedPlace) -> PlaceOut:
    return PlaceOut(
        **place.model_dump(),
        is_new=is_recently_updated(place.updated_at, window_days=DEFAULT_CONFIG.new_badge_days),
    )


def _criteria(radius: int | None, category: list[str] | None, q: str) -> FilterCriteria:
    chosen = DEFAULT_CONFIG.default_radius if radius is None else radius
    if chosen not in DEFAULT_CONFIG.radius_options:
        raise HTTPException(
            status_code=422,
            detail=f"radius must be one of {DEFAULT_CONFIG.radius_options}",
        )
    return FilterCriteria(radius=chosen, categories=set(category or []), search=q)


def _ranked(criteria: FilterCriteria) -> list[RankedPlace]:
    return filter_and_rank(
        _load_places(),
        DEFAULT_CONFIG.origin,
        criteria,
        statuses=DEFAULT_CONFIG.status_table,
    )


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/metadata")
def metadata() -> dict:
    places = _load_places()
    try:
        colors = get_category_colors(DEFAULT_CONFIG)
    except SheetError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    categories = list_categories(places)
    return {
        "origin": {"lat": DEFAULT_CONFIG.company_lat, "lng": DEFAULT_CONFIG.company_lng},
        "radius_options": DEFAULT_CONFIG.radius_options,
        "default_radius": DEFAULT_CONFIG.default_radius,
        "categories": categories,
        "category_colors": {**colors, **{c: color_for(c, colors) for c in categories}},
        "default_color": DEFAULT_COLOR,
        "new_badge_days": DEFAULT_CONFIG.new_badge_days,
        "comment_cooldown_seconds": DEFAULT_CONFIG.comment_cooldown_seconds,
    }


# ── Places ───────────────────────────────────────────────────────────────


@app.get("/places", response_model=PlaceListResponse)
def places(
    radius: int | None = Query(default=None),
    category: list[str] | None = Query(default=None),
    q: str = Query(default="", max_length=100),
    limit: int = Query(default=20, ge=1, le=100),
) -> PlaceListResponse:
    criteria = _criteria(radius, category, q)
    ranked = _ranked(criteria)
    return PlaceListResponse(
        places=[_to_out(p) for p in top_n(ranked, limit)],
        total=len(ranked),
        radius=criteria.radius,
    )


@app.get("/places/preview", response_model=PlaceListResponse)
def places_preview(
    radius: int | None = Query(default=None),
    category: list[str] | None = Query(default=None),
    q: str = Query(default="", max_length=100),
) -> PlaceListResponse:
    criteria = _criteria(radius, category, q)
    ranked = _ranked(criteria)
    return PlaceListResponse(
        places=[_to_out(p) for p in top_n(ranked, PREVIEW_SIZE)],
        total=len(ranked),
        radius=criteria.radius,
    )


@app.get("/places/random", response_model=RandomPickResponse)
def places_random(
    radius: int | None = Query(default=None),
    category: list[str] | None = Query(default=None),
    q: str = Query(default="", max_length=100),
) -> RandomPickResponse:
    ranked = _ranked(_criteria(radius, category, q))
    pick = pick_random(ranked)
    return RandomPickResponse(
        place=_to_out(pick) if pick is not None else None,
        total=len(ranked),
    )


# ── Comments ─────────────────────────────────────────────────────────────


@app.get("/comments", response_model=CommentListResponse)
def list_comments(place_id: str | None = None) -> CommentListResponse:
    if not place_id:
        raise HTTPException(status_code=400, detail="place_id가 필요합니다.")
    return CommentListResponse(comments=get_store().list_comments(place_id))


@app.get("/comments/nickname")
def comment_nickname() -> dict[str, str]:
    return {"nickname": random_nickname()}


@app.post("/comments", response_model=CommentResponse)
def add_comment(
    body: CommentCreateRequest,
    request: Request,
    cooldown: CommentCooldown = Depends(get_cooldown),
) -> CommentResponse:
    client_key = request.client.host if request.client else "unknown"
    enforce = DEFAULT_CONFIG.comment_cooldown_enforced and bool(body.place_id)
    if enforce and not cooldown.can_submit(client_key, body.place_id):
        raise HTTPException(status_code=429, detail="잠시 후 다시 작성할 수 있어요.")

    try:
        comment = get_store().add_comment(body.place_id, body.nickname, body.content)
    except CommentError as exc:
        raise HTTPException(status_code=400, detail=exc.message) from exc

    if enforce:
        cooldown.record(client_key, comment.place_id)
    return CommentResponse(comment=comment)


@app.delete("/comments")
def delete_comment(body: CommentDeleteRequest) -> dict:
    if not body.place_id or not body.id:
        raise HTTPException(status_code=400, detail="필수 값이 누락되었습니다.")

    # Admin mode in the session does not stand in for the password.
    try:
        get_store().delete_comment(body.place_id, body.id, body.admin_password)
    except AuthorizationError as exc:
        raise HTTPException(status_code=403, detail=exc.message) from exc
    return {"ok": True}


# ── Admin mode ───────────────────────────────────────────────────────────


@app.post("/admin/login")
def admin_login(body: AdminLoginRequest, request: Request) -> dict:
    if not authenticate_admin(body.password, get_store()):
        raise HTTPException(status_code=401, detail="관리자 인증에 실패했습니다.")
    request.session["admin"] = True
    return {"status": "ok", "admin": True}


@app.post("/admin/logout")
def admin_logout(request: Request) -> dict:
    request.session.clear()
    return {"status": "logged_out"}


@app.get("/admin/me")
def admin_me(request: Request) -> dict:
    return {"admin": is_admin(request)}


@app.get("/cache/stats")
def cache_stats(admin: bool = Depends(require_admin)) -> dict:
    return get_cache_stats()


def run() -> None:
    import uvicorn

    uvicorn.run(
        "lunch_picker.app:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
    )
