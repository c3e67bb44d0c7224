"""
Distance ranking for partner places.

All distance maths runs in double precision; distances are rounded half-up to
whole metres before they are compared with the radius, so a place at 600.4 m
is kept by a 600 m radius.
"""
from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone
from typing import Iterable, Protocol, Sequence

import numpy as np
import pandas as pd

from .models import FilterCriteria, Place, RankedPlace

EARTH_RADIUS_KM = 6371.0
WALK_SPEED_M_PER_MIN = 80
NEW_BADGE_DAYS = 7

DEFAULT_STATUS_TABLE: dict[str, bool] = {"제휴중": True, "": True}


class RandomSource(Protocol):
    def randrange(self, stop: int) -> int: ...


def _haversine_m(lat1, lng1, lat2, lng2):
    """Great-circle distance in (unrounded) metres; accepts scalars or arrays."""
    lat1, lng1, lat2, lng2 = map(np.radians, (lat1, lng1, lat2, lng2))
    dlat = lat2 - lat1
    dlng = lng2 - lng1
    a = np.sin(dlat / 2) ** 2 + np.cos(lat1) * np.cos(lat2) * np.sin(dlng / 2) ** 2
    c = 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))
    return EARTH_RADIUS_KM * c * 1000.0


def _round_half_up(metres):
    return np.floor(metres + 0.5)


def compute_distance(origin: tuple[float, float], point: tuple[float, float]) -> int:
    """Whole metres between two ``(lat, lng)`` pairs given in degrees."""
    metres = _haversine_m(origin[0], origin[1], point[0], point[1])
    return int(_round_half_up(metres))


def walk_minutes(distance: int) -> int:
    """Walking time at 80 m/min, never less than one minute."""
    return max(1, int(_round_half_up(distance / WALK_SPEED_M_PER_MIN)))


def is_active(status: str | None, statuses: dict[str, bool] | None = None) -> bool:
    table = DEFAULT_STATUS_TABLE if statuses is None else statuses
    return table.get(status or "", False)


def filter_and_rank(
    places: Sequence[Place],
    origin: tuple[float, float],
    criteria: FilterCriteria,
    statuses: dict[str, bool] | None = None,
) -> list[RankedPlace]:
    """Return active places within the radius, nearest first.

    Ties keep their input order. An empty list is a normal result.
    """
    if not places:
        return []

    df = pd.DataFrame({
        "_pos": range(len(places)),
        "name": [p.name for p in places],
        "category": [p.category for p in places],
        "status": [p.status for p in places],
        "lat": [p.lat for p in places],
        "lng": [p.lng for p in places],
    })

    # --- Status ---
    mask = df["status"].map(lambda s: is_active(s, statuses)).astype(bool)
    df = df.loc[mask]
    if df.empty:
        return []

    # --- Distance (rounded before comparison) ---
    df = df.assign(
        distance=_round_half_up(
            _haversine_m(origin[0], origin[1], df["lat"].to_numpy(), df["lng"].to_numpy())
        ).astype(np.int64)
    )
    mask = df["distance"] <= criteria.radius

    keyword = criteria.search.strip().lower()
    if keyword:
        mask = mask & df["name"].str.lower().str.contains(keyword, regex=False)

    if criteria.categories:
        mask = mask & df["category"].isin(criteria.categories)

    ranked = df.loc[mask].sort_values("distance", kind="stable")

    out: list[RankedPlace] = []
    for pos, distance in zip(ranked["_pos"], ranked["distance"]):
        distance = int(distance)
        out.append(RankedPlace(
            **places[int(pos)].model_dump(),
            distance=distance,
            walk_minutes=walk_minutes(distance),
        ))
    return out


def top_n(ranked: Sequence[RankedPlace], n: int) -> list[RankedPlace]:
    return list(ranked[: max(n, 0)])


def pick_random(
    ranked: Sequence[RankedPlace],
    rng: RandomSource | None = None,
) -> RankedPlace | None:
    """Pick one place uniformly at random, or ``None`` when there are no candidates."""
    if not ranked:
        return None
    source = rng if rng is not None else random
    return ranked[source.randrange(len(ranked))]


def is_recently_updated(
    updated_at: str | None,
    now: datetime | None = None,
    window_days: int = NEW_BADGE_DAYS,
) -> bool:
    """True when ``updated_at`` parses and lies within ``window_days`` of ``now``.

    Naive timestamps are read as UTC.
    """
    if not updated_at:
        return False
    parsed = pd.to_datetime(updated_at, errors="coerce", utc=True)
    if pd.isna(parsed):
        return False
    current = now or datetime.now(timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)
    return current - parsed.to_pydatetime() <= timedelta(days=window_days)


def list_categories(places: Iterable[Place]) -> list[str]:
    return sorted({p.category for p in places if p.category})
