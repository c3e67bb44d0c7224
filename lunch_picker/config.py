from __future__ import annotations

import os
import secrets
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent / ".env")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass(frozen=True)
class AppConfig:
    """
    Runtime configuration for the lunch picker service.

    Values are read from the environment once at import time; a ``.env`` file
    at the project root is honoured.
    """

    company_lat: float = field(default_factory=lambda: _env_float("COMPANY_LAT", 37.507520))
    company_lng: float = field(default_factory=lambda: _env_float("COMPANY_LNG", 127.055055))
    radius_options: list[int] = field(
        default_factory=lambda: [int(r) for r in _env_list("RADIUS_OPTIONS", ["200", "400", "600", "800", "1000"])]
    )
    default_radius: int = field(default_factory=lambda: _env_int("DEFAULT_RADIUS", 600))
    admin_password: str | None = field(default_factory=lambda: os.getenv("ADMIN_PASSWORD") or None)

    sheet_id: str = field(
        default_factory=lambda: os.getenv("SHEET_ID", "1ck15HsaXDkDPHU0FTDKGyhdgJ1n30mH943FLP5xsGqQ")
    )
    places_sheet: str = field(default_factory=lambda: os.getenv("PLACES_SHEET", "places"))
    colors_sheet: str = field(default_factory=lambda: os.getenv("COLORS_SHEET", "category_colors"))
    places_csv: Path | None = field(
        default_factory=lambda: Path(os.environ["PLACES_CSV"]) if os.getenv("PLACES_CSV") else None
    )
    sheet_timeout: float = field(default_factory=lambda: _env_float("SHEET_TIMEOUT", 10.0))
    places_cache_ttl: int = field(default_factory=lambda: _env_int("PLACES_CACHE_TTL", 300))

    active_statuses: list[str] = field(default_factory=lambda: _env_list("ACTIVE_STATUSES", ["제휴중"]))
    new_badge_days: int = field(default_factory=lambda: _env_int("NEW_BADGE_DAYS", 7))
    comment_cooldown_seconds: int = field(default_factory=lambda: _env_int("COMMENT_COOLDOWN_SECONDS", 20))
    comment_cooldown_enforced: bool = field(
        default_factory=lambda: _env_bool("COMMENT_COOLDOWN_ENFORCED", False)
    )
    # Unset means a random per-process key: admin sessions end on restart.
    session_secret: str = field(
        default_factory=lambda: os.getenv("SESSION_SECRET") or secrets.token_hex(32)
    )

    @property
    def origin(self) -> tuple[float, float]:
        return (self.company_lat, self.company_lng)

    @property
    def status_table(self) -> dict[str, bool]:
        """Status token -> active flag. An empty status counts as active."""
        table = {token: True for token in self.active_statuses}
        table.setdefault("", True)
        return table


DEFAULT_CONFIG = AppConfig()
