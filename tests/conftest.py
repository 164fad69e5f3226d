from __future__ import annotations

import os
from collections.abc import Generator
from pathlib import Path

import pytest

from homepage.errors import NotificationFailure


@pytest.fixture(scope="session", autouse=True)
def _load_dotenv_for_tests() -> None:
    """Load repo .env for local runs (PyCharm/CLI).

    This makes STRAVA_* credentials available to the live Strava test without
    needing to manually export them in your shell.

    In CI, we *don't* auto-load `.env` by default, so integration tests that
    talk to Strava stay skipped unless explicitly opted-in.
    """

    # Opt-in locally with: HOMEPAGE_LOAD_DOTENV_FOR_TESTS=1
    if os.environ.get("CI") and os.environ.get("HOMEPAGE_LOAD_DOTENV_FOR_TESTS") != "1":
        return

    env_path = Path(__file__).resolve().parents[1] / ".env"
    if env_path.exists():
        from dotenv import load_dotenv

        load_dotenv(dotenv_path=env_path, override=False)


class RecordingNotifier:
    def __init__(self) -> None:
        self.sent: list[str] = []

    def send(self, text: str) -> None:
        self.sent.append(text)


class FailingNotifier:
    def __init__(self) -> None:
        self.attempts = 0

    def send(self, text: str) -> None:
        self.attempts += 1
        raise NotificationFailure("slack is down")


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def redis_client():
    import fakeredis

    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture()
def client_and_redis(redis_client, notifier: RecordingNotifier):
    """FastAPI TestClient wired to fakeredis and a recording notifier."""

    import fakeredis
    from fastapi.testclient import TestClient

    from homepage.api.deps import get_notifier, get_redis
    from homepage.main import app

    def _override() -> Generator[fakeredis.FakeRedis, None, None]:
        yield redis_client

    app.dependency_overrides[get_redis] = _override
    app.dependency_overrides[get_notifier] = lambda: notifier
    with TestClient(app) as c:
        yield c, redis_client
    app.dependency_overrides.clear()


@pytest.fixture()
def failing_notifier() -> FailingNotifier:
    return FailingNotifier()
