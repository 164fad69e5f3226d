from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from homepage.api.models import Activity


logger = logging.getLogger(__name__)

STRAVA_TOKEN_URL = "https://www.strava.com/oauth/token"
STRAVA_ACTIVITIES_URL = "https://www.strava.com/api/v3/athlete/activities"


class ActivitySourceError(RuntimeError):
    """The upstream activity feed could not be read."""


class ActivitySource(Protocol):
    def fetch_recent(self, *, per_page: int) -> list[Activity]:
        """Most-recent-first activities, at most `per_page` of them."""


def activity_from_strava(item: dict[str, Any]) -> Activity:
    summary_map = item.get("map") or {}
    return Activity(
        id=str(item.get("id", "")),
        name=item.get("name"),
        # sport_type is the newer, finer-grained field; type is kept for older payloads.
        type=item.get("sport_type") or item.get("type") or "",
        distance_meters=float(item.get("distance") or 0.0),
        duration_seconds=float(item.get("moving_time") or item.get("elapsed_time") or 0.0),
        average_speed=float(item.get("average_speed") or 0.0),
        average_heart_rate=item.get("average_heartrate"),
        start_time_utc=item.get("start_date"),
        start_time_local=item.get("start_date_local"),
        polyline=summary_map.get("summary_polyline"),
    )


class StravaActivitySource:
    """Reads the athlete's recent activities with a long-lived refresh token."""

    def __init__(
        self,
        *,
        client_id: str,
        client_secret: str,
        refresh_token: str,
        client: httpx.Client | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._client_id = client_id
        self._client_secret = client_secret
        self._refresh_token = refresh_token
        self._client = client or httpx.Client(timeout=timeout)

    def _access_token(self) -> str:
        resp = self._client.post(
            STRAVA_TOKEN_URL,
            data={
                "client_id": self._client_id,
                "client_secret": self._client_secret,
                "grant_type": "refresh_token",
                "refresh_token": self._refresh_token,
            },
        )
        resp.raise_for_status()
        token = resp.json().get("access_token")
        if not token:
            raise ActivitySourceError("Strava token response had no access_token")
        return str(token)

    def fetch_recent(self, *, per_page: int) -> list[Activity]:
        try:
            token = self._access_token()
            resp = self._client.get(
                STRAVA_ACTIVITIES_URL,
                params={"per_page": per_page},
                headers={"Authorization": f"Bearer {token}"},
            )
            resp.raise_for_status()
            items = resp.json()
        except httpx.HTTPStatusError as e:
            raise ActivitySourceError(f"Failed to fetch activities: {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise ActivitySourceError(f"Failed to fetch activities: {e}") from e

        if not isinstance(items, list):
            raise ActivitySourceError("Unexpected activities payload")

        logger.debug("fetched %d activities from Strava", len(items))
        return [activity_from_strava(item) for item in items]

    def close(self) -> None:
        self._client.close()


def format_distance_km(distance_meters: float) -> str:
    return f"{distance_meters / 1000:.2f}"


def format_pace_min_per_km(average_speed: float) -> str:
    """Pace as decimal minutes per km (m/s in), or N/A when not moving."""

    if average_speed <= 0:
        return "N/A"
    return f"{1000 / (average_speed * 60):.2f}"
