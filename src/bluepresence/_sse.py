"""Server-sent events snapshot source over aiohttp."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

import aiohttp

from bluepresence.config import PresenceConfig
from bluepresence.exceptions import (
    PresenceConfigError,
    PresencePayloadError,
    PresenceSubscriptionError,
    PresenceTransportError,
)
from bluepresence.ingestion.dispatch import deliver
from bluepresence.subscription import SnapshotSink, Subscription

_logger = logging.getLogger(__name__)

# Event streams stay open indefinitely; only bound the connect phase.
_STREAM_TIMEOUT = aiohttp.ClientTimeout(total=None, sock_connect=30)


@dataclass(frozen=True)
class SseFrame:
    """One dispatched server-sent event."""

    event: str
    data: str
    id: str | None = None


class SseParser:
    """Incremental ``text/event-stream`` parser.

    Feed it one line at a time (with or without the trailing newline); a
    blank line completes a frame. Frames without ``data`` are dropped.
    """

    def __init__(self) -> None:
        self._event = ""
        self._data: list[str] = []
        self._id: str | None = None

    def feed_line(self, line: str) -> SseFrame | None:
        line = line.rstrip("\r\n")
        if not line:
            return self._dispatch()
        if line.startswith(":"):
            return None

        field, sep, value = line.partition(":")
        if sep and value.startswith(" "):
            value = value[1:]

        if field == "event":
            self._event = value
        elif field == "data":
            self._data.append(value)
        elif field == "id":
            self._id = value or None
        return None

    def _dispatch(self) -> SseFrame | None:
        if not self._data:
            self._event = ""
            return None
        frame = SseFrame(event=self._event or "message", data="\n".join(self._data), id=self._id)
        self._event = ""
        self._data = []
        return frame


def parse_sse_lines(lines: Iterable[str]) -> Iterator[SseFrame]:
    """Yield every complete frame found in *lines*."""
    parser = SseParser()
    for line in lines:
        frame = parser.feed_line(line)
        if frame is not None:
            yield frame


class SseSnapshotSource:
    """Snapshot source reading a server-sent event stream.

    Frames named ``regionChanges`` carry a snapshot object and frames named
    ``beacon`` carry beacon fields, both JSON encoded. Each subscription runs
    one reader task; cancelling the subscription cancels the task. When the
    stream ends or fails the sink receives ``on_terminated``.
    """

    def __init__(
        self,
        config: PresenceConfig,
        http_session: aiohttp.ClientSession,
    ) -> None:
        url = (config.sse_url or "").strip()
        if not url:
            raise PresenceConfigError("sse_url is required for the SSE snapshot source")
        self._url = url
        self._http = http_session

    def subscribe(self, sink: SnapshotSink) -> Subscription:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as exc:
            raise PresenceSubscriptionError("SSE source needs a running event loop") from exc
        task = loop.create_task(self._run(sink))
        return Subscription(task.cancel, name=f"sse:{self._url}")

    async def _run(self, sink: SnapshotSink) -> None:
        try:
            await self._stream(sink)
        except PresenceTransportError as exc:
            sink.on_terminated(str(exc))
            return
        sink.on_terminated("Event stream closed")

    async def _stream(self, sink: SnapshotSink) -> None:
        headers = {"accept": "text/event-stream", "cache-control": "no-cache"}
        _logger.debug("GET %s", self._url)
        try:
            async with self._http.get(self._url, headers=headers, timeout=_STREAM_TIMEOUT) as resp:
                if resp.status != 200:
                    text = await resp.text()
                    raise PresenceTransportError(
                        f"HTTP {resp.status} from {self._url}: {text[:200]}",
                        status_code=resp.status,
                        endpoint=self._url,
                    )
                parser = SseParser()
                async for raw in resp.content:
                    frame = parser.feed_line(raw.decode("utf-8", errors="replace"))
                    if frame is not None:
                        self._dispatch(sink, frame)
        except PresenceTransportError:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise PresenceTransportError(
                f"Event stream {self._url} failed: {exc!r}",
                endpoint=self._url,
            ) from exc

    @staticmethod
    def _dispatch(sink: SnapshotSink, frame: SseFrame) -> None:
        try:
            data = json.loads(frame.data)
        except json.JSONDecodeError:
            _logger.debug("Dropping non-JSON %s frame", frame.event, exc_info=True)
            return
        try:
            deliver(sink, frame.event, data)
        except PresencePayloadError:
            _logger.debug("Dropping undecodable %s frame", frame.event, exc_info=True)
