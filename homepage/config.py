from __future__ import annotations

import logging
import os
from dataclasses import dataclass


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Settings:
    redis_url: str
    slack_bot_token: str | None
    slack_channel_id: str
    slack_webhook_url: str | None
    strava_client_id: str | None
    strava_client_secret: str | None
    strava_refresh_token: str | None
    strava_per_page: int
    # None => derive the offset from the activity timestamps.
    streak_utc_offset_minutes: int | None
    log_level: str


def _optional_int(name: str) -> int | None:
    """Integer env var; unset, blank or unparseable values read as None."""

    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError:
        logger.warning("ignoring %s=%r: not an integer", name, raw)
        return None


def settings_from_env() -> Settings:
    return Settings(
        redis_url=os.environ.get("REDIS_URL", "redis://localhost:6379/0"),
        slack_bot_token=os.environ.get("SLACK_BOT_TOKEN") or None,
        slack_channel_id=os.environ.get("SLACK_CHANNEL_ID") or "#general",
        slack_webhook_url=os.environ.get("SLACK_WEBHOOK_URL") or None,
        strava_client_id=os.environ.get("STRAVA_CLIENT_ID") or None,
        strava_client_secret=os.environ.get("STRAVA_CLIENT_SECRET") or None,
        strava_refresh_token=os.environ.get("STRAVA_REFRESH_TOKEN") or None,
        strava_per_page=_optional_int("STRAVA_PER_PAGE") or 30,
        streak_utc_offset_minutes=_optional_int("STREAK_UTC_OFFSET_MINUTES"),
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    )
