from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import redis
from fastapi import APIRouter, Depends, HTTPException, Response, WebSocket, WebSocketDisconnect, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, PlainTextResponse

from homepage.actions import MoveOutcome, apply_move
from homepage.api.deps import get_activity_source, get_notifier, get_redis
from homepage.api.models import Activity, Actor, GameState, LatestActivityResponse, MoveRequest, StreakReport
from homepage.config import settings_from_env
from homepage.errors import MoveRejected, NotificationFailure
from homepage.game_store import get_or_create_game, reset_game
from homepage.notifications import Notifier, post_webhook_blocks
from homepage.slack_bot import handle_slack_event, run_ping_blocks
from homepage.strava import ActivitySource, ActivitySourceError, format_distance_km, format_pace_min_per_km
from homepage.streaks import compute_streak
from homepage.websocket_hub import hub

router = APIRouter()

NOTIFICATION_HEADER = "X-Notification-Status"


async def _broadcast_game(state: GameState) -> None:
    await hub.broadcast({"type": "game_updated", "status": state.status.value})


async def _move(*, r: redis.Redis, notifier: Notifier, actor: Actor, position: int) -> MoveOutcome:
    # The Slack notification is a blocking HTTP call; keep it off the event loop.
    try:
        return await run_in_threadpool(apply_move, r=r, notifier=notifier, actor=actor, position=position)
    except MoveRejected as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": e.code, "message": str(e)},
        ) from e


@router.websocket("/ws/tictactoe")
async def game_updates_ws(websocket: WebSocket) -> None:
    await hub.connect(websocket)

    try:
        # Keep the socket open; client can optionally send pings.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        await hub.disconnect(websocket)
    except Exception:
        await hub.disconnect(websocket)
        raise


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/api/tictactoe", response_model=GameState)
async def get_game_route(r: redis.Redis = Depends(get_redis)) -> GameState:
    return get_or_create_game(r=r)


@router.post("/api/tictactoe", response_model=GameState)
async def world_move_route(
    payload: MoveRequest,
    response: Response,
    r: redis.Redis = Depends(get_redis),
    notifier: Notifier = Depends(get_notifier),
) -> GameState:
    outcome = await _move(r=r, notifier=notifier, actor=Actor.world, position=payload.position)
    response.headers[NOTIFICATION_HEADER] = outcome.notification.value

    await _broadcast_game(outcome.state)
    return outcome.state


@router.post("/api/tictactoe/alex-move", response_model=GameState)
async def alex_move_route(
    payload: MoveRequest,
    response: Response,
    r: redis.Redis = Depends(get_redis),
    notifier: Notifier = Depends(get_notifier),
) -> GameState:
    outcome = await _move(r=r, notifier=notifier, actor=Actor.alex, position=payload.position)
    response.headers[NOTIFICATION_HEADER] = outcome.notification.value

    await _broadcast_game(outcome.state)
    return outcome.state


@router.post("/api/tictactoe/reset", response_model=GameState)
async def reset_route(r: redis.Redis = Depends(get_redis)) -> GameState:
    state = reset_game(r=r)
    await _broadcast_game(state)
    return state


@router.post("/api/slack/tictactoe-webhook")
async def slack_webhook_route(
    body: dict[str, Any],
    r: redis.Redis = Depends(get_redis),
    notifier: Notifier = Depends(get_notifier),
) -> Response:
    """Slack Events API callback: Alex replies with a digit to move."""

    result = await run_in_threadpool(handle_slack_event, r=r, notifier=notifier, body=body)
    if result.reply is not None:
        return JSONResponse(result.reply)

    if result.moved:
        await _broadcast_game(get_or_create_game(r=r))
    return PlainTextResponse("OK")


@router.post("/api/slack/ping-alex")
async def ping_alex_route() -> dict[str, bool]:
    webhook_url = settings_from_env().slack_webhook_url
    if not webhook_url:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Slack webhook URL not configured",
        )

    try:
        await run_in_threadpool(post_webhook_blocks, webhook_url=webhook_url, blocks=run_ping_blocks())
    except NotificationFailure as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to send Slack message",
        ) from e

    return {"success": True}


def _load_streak(source: ActivitySource) -> tuple[list[Activity], StreakReport]:
    settings = settings_from_env()
    try:
        activities = source.fetch_recent(per_page=settings.strava_per_page)
    except ActivitySourceError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e

    report = compute_streak(
        activities,
        now=datetime.now(tz=UTC),
        utc_offset_minutes=settings.streak_utc_offset_minutes,
    )
    return activities, report


@router.get("/api/strava")
async def latest_activity_route(source: ActivitySource = Depends(get_activity_source)) -> dict[str, Any]:
    activities, report = await run_in_threadpool(_load_streak, source)
    if not activities:
        return {"error": "No activities found"}

    latest = activities[0]
    body = LatestActivityResponse(
        id=latest.id,
        name=latest.name,
        distance=format_distance_km(latest.distance_meters),
        pace=format_pace_min_per_km(latest.average_speed),
        heart_rate=latest.average_heart_rate if latest.average_heart_rate is not None else "N/A",
        date=latest.start_time_local,
        polyline=latest.polyline,
        streak=report.total_streak_days,
        has_run_today=report.has_activity_today,
        streak_report=report,
    )
    return body.model_dump(by_alias=True, mode="json")


@router.get("/api/strava/streak", response_model=StreakReport)
async def streak_route(source: ActivitySource = Depends(get_activity_source)) -> StreakReport:
    _, report = await run_in_threadpool(_load_streak, source)
    return report
