"""
Purpose: Request/response control surface for the scanner (start, stop, status, list, clear).
Constraints: Every request gets exactly one response; no browser calls of its own.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Union

from feed_scanner.core.storage.match_store import MatchStore, StoreError
from feed_scanner.scanner.loop import FeedScanner

logger = logging.getLogger(__name__)

START_SCAN = "START_SCAN"
STOP_SCAN = "STOP_SCAN"
GET_STATUS = "GET_STATUS"
CLEAR_LIST = "CLEAR_LIST"
GET_MATCHES = "GET_MATCHES"

Response = Dict[str, Any]
ResponseCallback = Callable[[Response], Union[None, Awaitable[None]]]


class ControlInterface:
    """Dispatch control messages ({"type": ...}) to the scanner and the store."""

    def __init__(self, scanner: FeedScanner, store: Optional[MatchStore] = None):
        self.scanner = scanner
        self.store = store or scanner.store
        self._handlers = {
            START_SCAN: self._start,
            STOP_SCAN: self._stop,
            GET_STATUS: self._status,
            CLEAR_LIST: self._clear,
            GET_MATCHES: self._matches,
        }
        self._pending = set()

    async def handle(self, message: Optional[Mapping[str, Any]]) -> Response:
        msg_type = message.get("type") if isinstance(message, Mapping) else None
        handler = self._handlers.get(msg_type)
        if handler is None:
            logger.warning(f"Unknown control request: {msg_type!r}")
            return {"ok": False, "error": "unknown_request"}
        try:
            return await handler()
        except Exception as e:
            logger.error(f"Control request {msg_type} failed: {e}")
            return {"ok": False, "error": str(e)}

    def submit(self, message: Optional[Mapping[str, Any]], callback: ResponseCallback) -> asyncio.Task:
        """Handle later on the running loop and deliver the response to callback."""

        async def _deliver():
            response = await self.handle(message)
            outcome = callback(response)
            if asyncio.iscoroutine(outcome):
                await outcome

        task = asyncio.create_task(_deliver())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _start(self) -> Response:
        ok = await self.scanner.start()
        return {"ok": ok, "scanning": self.scanner.scanning, "classifierReady": self.scanner.classifier_ready}

    async def _stop(self) -> Response:
        ok = self.scanner.stop()
        return {"ok": ok, "scanning": self.scanner.scanning}

    async def _status(self) -> Response:
        return {"scanning": self.scanner.scanning, "classifierReady": self.scanner.classifier_ready}

    async def _clear(self) -> Response:
        try:
            await self.store.clear()
        except StoreError as e:
            return {"ok": False, "error": str(e)}
        return {"ok": True}

    async def _matches(self) -> Response:
        try:
            records = await self.store.list()
        except StoreError as e:
            return {"ok": False, "error": str(e), "matches": []}
        return {"ok": True, "matches": [record.to_dict() for record in records]}
