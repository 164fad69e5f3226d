from __future__ import annotations

from collections.abc import Generator

import redis
from fastapi import HTTPException, status

from homepage.config import settings_from_env
from homepage.infra.redis_client import create_redis
from homepage.notifications import LogNotifier, Notifier, SlackNotifier
from homepage.strava import ActivitySource, StravaActivitySource


def get_redis() -> Generator[redis.Redis, None, None]:
    client = create_redis()
    try:
        yield client
    finally:
        try:
            client.close()
        except Exception:
            # Some redis client versions don't require explicit close.
            pass


def get_notifier() -> Notifier:
    s = settings_from_env()
    if not s.slack_bot_token:
        return LogNotifier()
    return SlackNotifier(bot_token=s.slack_bot_token, channel=s.slack_channel_id)


def get_activity_source() -> Generator[ActivitySource, None, None]:
    s = settings_from_env()
    if not (s.strava_client_id and s.strava_client_secret and s.strava_refresh_token):
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Strava credentials are not configured",
        )

    source = StravaActivitySource(
        client_id=s.strava_client_id,
        client_secret=s.strava_client_secret,
        refresh_token=s.strava_refresh_token,
    )
    try:
        yield source
    finally:
        source.close()
