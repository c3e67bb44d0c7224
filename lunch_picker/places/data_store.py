from __future__ import annotations

import json
import logging
import re
from datetime import datetime
from typing import Any

import numpy as np
import pandas as pd
import requests

from ..config import DEFAULT_CONFIG, AppConfig
from .cache import cache_get, cache_set
from .models import DEFAULT_CATEGORY, Place

logger = logging.getLogger(__name__)

GVIZ_URL = "https://docs.google.com/spreadsheets/d/{sheet_id}/gviz/tq"

DEFAULT_COLOR = "#9CA3AF"
DEFAULT_CATEGORY_COLORS: dict[str, str] = {
    "한식": "#D32F2F",
    "중식": "#FF8F00",
    "일식": "#4CAF50",
    "양식": "#FF7043",
    "베트남": "#2ECC71",
    "분식": "#E91E63",
    "샐러드": "#8BC34A",
    "패스트푸드": "#FFC107",
    "편의점": "#2196F3",
    "카페": "#6D4C41",
    "베이커리": "#F5DEB3",
}

PLACE_COLUMNS = [
    "place_id",
    "name",
    "group",
    "category",
    "lat",
    "lng",
    "map_url",
    "status",
    "updated_at",
]

# gviz encodes date cells as Date(year, zero-based month, day[, h, m, s])
_GVIZ_DATE = re.compile(r"^Date\((\d+),(\d+),(\d+)(?:,(\d+),(\d+),(\d+))?\)$")

_session = requests.Session()


class SheetError(Exception):
    """Raised when the spreadsheet cannot be fetched or decoded."""


def parse_gviz(text: str) -> list[dict[str, Any]]:
    """Decode a gviz ``/tq`` response into one dict per row keyed by column label."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1:
        raise SheetError("유효하지 않은 시트 응답입니다.")
    try:
        payload = json.loads(text[start:end + 1])
        table = payload["table"]
        headers = [col.get("label") for col in table["cols"]]
    except (ValueError, KeyError, TypeError) as exc:
        raise SheetError("유효하지 않은 시트 응답입니다.") from exc

    rows: list[dict[str, Any]] = []
    for row in table.get("rows", []):
        record: dict[str, Any] = {}
        for index, cell in enumerate(row.get("c") or []):
            if index >= len(headers):
                break
            record[headers[index]] = cell.get("v") if cell else None
        rows.append(record)
    return rows


def fetch_sheet(sheet_name: str, config: AppConfig = DEFAULT_CONFIG) -> list[dict[str, Any]]:
    url = GVIZ_URL.format(sheet_id=config.sheet_id)
    try:
        resp = _session.get(url, params={"sheet": sheet_name}, timeout=config.sheet_timeout)
        resp.raise_for_status()
    except requests.RequestException as exc:
        logger.warning("Sheet fetch failed for %s: %s", sheet_name, exc)
        raise SheetError("데이터를 불러오지 못했습니다.") from exc
    return parse_gviz(resp.text)


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float):
        if not np.isfinite(value):
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value)


def _normalize_timestamp(value: Any) -> str | None:
    text = _to_text(value).strip()
    if not text:
        return None
    match = _GVIZ_DATE.match(text)
    if match:
        y, mo, d, h, mi, s = (int(g) if g else 0 for g in match.groups())
        try:
            return datetime(y, mo + 1, d, h, mi, s).isoformat()
        except ValueError:
            return None
    return text


def normalize_places(rows: list[dict[str, Any]]) -> list[Place]:
    """Map raw sheet rows to ``Place`` records.

    Rows without an id or name, or whose coordinates are not finite numbers,
    are dropped.
    """
    if not rows:
        return []

    df = pd.DataFrame(rows)
    for col in PLACE_COLUMNS:
        if col not in df.columns:
            df[col] = None

    df["lat"] = pd.to_numeric(df["lat"], errors="coerce")
    df["lng"] = pd.to_numeric(df["lng"], errors="coerce")
    for col in ("place_id", "name", "group", "map_url", "status"):
        df[col] = df[col].apply(_to_text)
    df["category"] = df["category"].apply(_to_text).replace("", DEFAULT_CATEGORY)
    df["updated_at"] = df["updated_at"].apply(_normalize_timestamp)

    mask = (
        (df["place_id"] != "")
        & (df["name"] != "")
        & np.isfinite(df["lat"].astype(float))
        & np.isfinite(df["lng"].astype(float))
    )
    dropped = int((~mask).sum())
    if dropped:
        logger.debug("Dropped %d place rows with missing ids or coordinates", dropped)

    places: list[Place] = []
    for rec in df.loc[mask, PLACE_COLUMNS].to_dict("records"):
        places.append(Place(
            place_id=rec["place_id"],
            name=rec["name"],
            group=rec["group"],
            category=rec["category"],
            lat=float(rec["lat"]),
            lng=float(rec["lng"]),
            map_url=rec["map_url"],
            status=rec["status"],
            updated_at=rec["updated_at"],
        ))
    return places


def _read_csv_rows(path) -> list[dict[str, Any]]:
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    return [
        {key: (value if value != "" else None) for key, value in rec.items()}
        for rec in df.to_dict("records")
    ]


def get_places(config: AppConfig = DEFAULT_CONFIG) -> list[Place]:
    """Return the current place list, refreshing it after the cache TTL."""
    key = f"places:{config.places_csv or config.sheet_id}"
    cached = cache_get(key, ttl=config.places_cache_ttl)
    if cached is not None:
        return cached

    if config.places_csv is not None:
        rows = _read_csv_rows(config.places_csv)
    else:
        rows = fetch_sheet(config.places_sheet, config)

    places = normalize_places(rows)
    logger.info("Loaded %d places", len(places))
    cache_set(key, places)
    return places


def get_category_colors(config: AppConfig = DEFAULT_CONFIG) -> dict[str, str]:
    """Default colours overlaid with the ``category_colors`` sheet when one is used."""
    if config.places_csv is not None:
        return dict(DEFAULT_CATEGORY_COLORS)

    key = f"colors:{config.sheet_id}"
    cached = cache_get(key, ttl=config.places_cache_ttl)
    if cached is not None:
        return cached

    colors = dict(DEFAULT_CATEGORY_COLORS)
    for row in fetch_sheet(config.colors_sheet, config):
        category, color = row.get("category"), row.get("color")
        if category and color:
            colors[str(category)] = str(color)
    cache_set(key, colors)
    return colors


def color_for(category: str, colors: dict[str, str]) -> str:
    return colors.get(category, DEFAULT_COLOR)
