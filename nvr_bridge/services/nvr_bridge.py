# nvr_bridge/services/nvr_bridge.py
"""
Wires the bridge together and owns its lifecycle.

start(): device info → channel discovery → accessory registration → alert stream +
status poller running side by side. stop(): tear everything down so no sink call
happens afterwards.
"""

import asyncio
import contextlib
from typing import Optional

from nvr_bridge.config import Settings
from nvr_bridge.exceptions import NvrBridgeError
from nvr_bridge.services.channel_directory import ChannelDirectory, notify_status_changes
from nvr_bridge.services.event_dispatcher import EventDispatcher
from nvr_bridge.services.motion_state import MotionStateMachine
from nvr_bridge.services.nvr_client import NvrApiClient
from nvr_bridge.services.sensor_sink import AccessoryRegistry
from nvr_bridge.services.stream_session import StreamSession
from nvr_bridge.utils.logger import get_logger

logger = get_logger(__name__)


class NvrBridge:
    def __init__(self, settings: Settings, client: Optional[NvrApiClient] = None,
                 sink: Optional[AccessoryRegistry] = None):
        self.settings = settings
        self.client = client or NvrApiClient.from_settings(settings)
        self.sink = sink or AccessoryRegistry()
        self.directory = ChannelDirectory(self.client)
        self.motion = MotionStateMachine(
            self.sink,
            clear_after=settings.MOTION_RETRIGGER_IN_SECONDS,
            rearm_on_repeat=settings.MOTION_REARM_ON_REPEAT,
            resolve=self.directory.get,
        )
        self.dispatcher = EventDispatcher(self.directory, self.motion)
        self.session = StreamSession(
            self.client,
            self.dispatcher,
            min_backoff=settings.RECONNECT_MIN_BACKOFF_SECONDS,
            max_backoff=settings.RECONNECT_MAX_BACKOFF_SECONDS,
            max_buffer_size=settings.STREAM_MAX_BUFFER_BYTES,
        )
        self.system_info: dict = {}
        self._poller: Optional[asyncio.Task] = None
        self._startup: Optional[asyncio.Task] = None

    def launch(self) -> asyncio.Task:
        """Start in the background so the service comes up even with the NVR down."""
        self._startup = asyncio.create_task(self.start_with_retry(), name="nvr-bridge-startup")
        return self._startup

    async def start(self) -> None:
        self.system_info = await self.client.get_system_info()
        logger.info(f"Connected to NVR system: {self.system_info.get('deviceName', '?')} "
                    f"model={self.system_info.get('model')} id={self.system_info.get('deviceID')}")
        self.sink.device_id = self.system_info.get("deviceID") or self.settings.NVR_HOST
        self.sink.model = self.system_info.get("model")

        logger.info("Loading cameras...")
        channels = await self.directory.load()
        for channel in channels:
            self.sink.register(channel)
        logger.info(f"Registered {len(channels)} cameras")

        self.session.start()
        if self.settings.CHANNEL_STATUS_POLL_SECONDS > 0:
            self._poller = asyncio.create_task(
                self.directory.poll_status_forever(self.settings.CHANNEL_STATUS_POLL_SECONDS, self.sink),
                name="channel-status-poller",
            )

    async def start_with_retry(self) -> None:
        """Keep trying start() while the NVR is unreachable. Never fatal."""
        backoff = self.settings.RECONNECT_MIN_BACKOFF_SECONDS
        while True:
            try:
                await self.start()
                return
            except NvrBridgeError as e:
                logger.warning(f"❌ NVR discovery failed: {e}. Retry in {backoff}s")
            except Exception as e:
                logger.error(f"❌ NVR startup — unexpected error: {e}. Retry in {backoff}s", exc_info=True)
            await asyncio.sleep(backoff)
            backoff = min(backoff * 2, self.settings.RECONNECT_MAX_BACKOFF_SECONDS)

    async def refresh_channels(self) -> int:
        """On-demand rediscovery; new online channels get an accessory. Returns the online count."""
        changed = await self.directory.refresh()
        online = self.directory.online_channels
        for channel in online:
            self.sink.register(channel)
        notify_status_changes(self.sink, changed)
        return len(online)

    async def stop(self) -> None:
        if self._startup is not None and not self._startup.done():
            self._startup.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._startup
        await self.session.stop()
        if self._poller is not None:
            self._poller.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._poller
            self._poller = None
        self.motion.shutdown()
        await self.client.aclose()
        logger.info("NVR bridge stopped")
