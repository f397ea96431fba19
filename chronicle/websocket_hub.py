from __future__ import annotations

import asyncio
from collections import defaultdict

from fastapi import WebSocket, WebSocketDisconnect


class CharacterWebSocketHub:
    """In-process WebSocket pub/sub keyed by character_id.

    Open journal pages subscribe with `connect(character_id, websocket)` and get a
    `character_updated` event after every roll or memory change.

    Single-process only; several API replicas would need Redis pub/sub instead.
    """

    def __init__(self) -> None:
        self._by_character: dict[str, set[WebSocket]] = defaultdict(set)
        self._lock = asyncio.Lock()

    async def connect(self, character_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._by_character[character_id].add(websocket)

    async def disconnect(self, character_id: str, websocket: WebSocket) -> None:
        async with self._lock:
            conns = self._by_character.get(character_id)
            if not conns:
                return
            conns.discard(websocket)
            if not conns:
                self._by_character.pop(character_id, None)

    async def broadcast(self, character_id: str, payload: dict[str, object]) -> None:
        async with self._lock:
            conns = list(self._by_character.get(character_id, set()))

        stale: list[WebSocket] = []
        for ws in conns:
            try:
                await ws.send_json(payload)
            except (RuntimeError, ConnectionError, WebSocketDisconnect):
                stale.append(ws)

        if stale:
            async with self._lock:
                for ws in stale:
                    self._by_character.get(character_id, set()).discard(ws)

    async def notify_updated(self, character_id: str) -> None:
        await self.broadcast(character_id, {"type": "character_updated", "character_id": character_id})


hub = CharacterWebSocketHub()
