from __future__ import annotations

import asyncio

from fastapi import WebSocket


class GameWebSocketHub:
    """In-process WebSocket fan-out for the single game.

    Contract:
      - register a page via `connect(websocket)`.
      - broadcast lightweight events with `broadcast(payload)`.

    Payloads should be JSON-serializable dicts.

    Note: this only reaches clients connected to this process. With more than
    one API replica this should move to Redis pub/sub.
    """

    def __init__(self) -> None:
        self._conns: set[WebSocket] = set()
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._conns.add(websocket)

    async def disconnect(self, websocket: WebSocket) -> None:
        async with self._lock:
            self._conns.discard(websocket)

    async def broadcast(self, payload: dict[str, object]) -> None:
        async with self._lock:
            conns = list(self._conns)

        if not conns:
            return

        dead: list[WebSocket] = []
        for ws in conns:
            try:
                await ws.send_json(payload)
            except Exception:
                dead.append(ws)

        if dead:
            async with self._lock:
                for ws in dead:
                    self._conns.discard(ws)


hub = GameWebSocketHub()
