# nvr_bridge/services/stream_session.py
"""
Alert stream session — keeps one persistent connection to the NVR's alertStream.

Endpoint: GET {nvr}/ISAPI/Event/notification/alertStream
Protocol: HTTP multipart stream — the NVR sends EventNotificationAlert XML continuously.

The read loop is the only thing that waits on the network indefinitely. Every chunk is
framed and dispatched synchronously before the next read. Failures and EOF lead to a
reconnect with capped exponential backoff; nothing here is fatal to the process.
"""

import asyncio
import contextlib
from enum import Enum
from typing import AsyncIterator, Optional

from nvr_bridge.exceptions import TransportError
from nvr_bridge.services.event_dispatcher import EventDispatcher
from nvr_bridge.services.fragment_extractor import StreamBuffer
from nvr_bridge.services.nvr_client import NvrApiClient
from nvr_bridge.utils.logger import get_logger

logger = get_logger(__name__)


class SessionState(str, Enum):
    DISCONNECTED = "Disconnected"
    CONNECTING = "Connecting"
    STREAMING = "Streaming"
    RETRYING = "Retrying"


class StreamSession:
    def __init__(
        self,
        client: NvrApiClient,
        dispatcher: EventDispatcher,
        min_backoff: float = 3.0,
        max_backoff: float = 60.0,
        max_buffer_size: int = 1024 * 1024,
    ):
        self.client = client
        self.dispatcher = dispatcher
        self.min_backoff = min_backoff
        self.max_backoff = max_backoff
        self.max_buffer_size = max_buffer_size
        self.state = SessionState.DISCONNECTED
        self.connections = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        if not self.running:
            self._task = asyncio.create_task(self.run(), name="alert-stream")
        return self._task

    async def stop(self) -> None:
        """Close the stream and stop reconnecting."""
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self.state = SessionState.DISCONNECTED

    async def run(self) -> None:
        url = self.client.alert_stream_url
        backoff = self.min_backoff

        try:
            while True:
                self.state = SessionState.CONNECTING
                logger.info(f"📡 Connecting to alertStream: {url}")
                try:
                    async with self.client.open_alert_stream() as chunks:
                        self.state = SessionState.STREAMING
                        self.connections += 1
                        logger.info(f"✅ Connected to Event Stream on URL: {url}")
                        backoff = self.min_backoff  # reset on success
                        await self._consume(chunks)
                    logger.warning(f"alertStream closed by the NVR. Reconnecting in {backoff}s")

                except TransportError as e:
                    logger.warning(f"❌ alertStream error: {e}. Retry in {backoff}s")
                except Exception as e:
                    logger.error(f"❌ alertStream — unexpected error: {e}", exc_info=True)

                self.state = SessionState.RETRYING
                await asyncio.sleep(backoff)
                backoff = min(backoff * 2, self.max_backoff)
        finally:
            self.state = SessionState.DISCONNECTED

    async def _consume(self, chunks: AsyncIterator[bytes]) -> None:
        buffer = StreamBuffer()
        async for chunk in chunks:
            self.dispatcher.dispatch_fragments(buffer.feed(chunk))
            if buffer.size > self.max_buffer_size:
                # Never-closed record or garbage: start over on a fresh connection
                raise TransportError(
                    f"No complete event record in {buffer.size} buffered characters"
                )
