# nvr_bridge/services/channel_directory.py
"""
Channel directory — resolves channel ids from the event stream to known channels.

Built at startup from three ISAPI reads:
  GET /ISAPI/ContentMgmt/InputProxy/channels                         → id, name
  GET /ISAPI/ContentMgmt/InputProxy/channels/status                  → online flag
  GET /ISAPI/ContentMgmt/StreamingProxy/channels/{id}01/capabilities → audio (best-effort)

Only online channels are returned by lookup(). Online flags are refreshed by
status polls (periodic or on demand).
"""

import asyncio
from typing import Any, Optional

from nvr_bridge.exceptions import CapabilityFetchError, DecodeError, NvrBridgeError
from nvr_bridge.models.channel import Channel
from nvr_bridge.services.nvr_client import NvrApiClient
from nvr_bridge.services.sensor_sink import SensorSink
from nvr_bridge.utils.logger import get_logger
from nvr_bridge.utils.xml_parser import as_list

logger = get_logger(__name__)


def _entries(document: dict[str, Any], list_tag: str, entry_tag: str) -> list[dict]:
    container = document.get(list_tag)
    if container is None:
        raise DecodeError(f"Response has no <{list_tag}>")
    if not isinstance(container, dict):
        return []   # empty list element
    return [e for e in as_list(container.get(entry_tag)) if isinstance(e, dict)]


def parse_channel_list(document: dict[str, Any]) -> list[tuple[str, str]]:
    """[(id, name)] from an InputProxyChannelList document."""
    result = []
    for entry in _entries(document, "InputProxyChannelList", "InputProxyChannel"):
        channel_id = entry.get("id")
        if not isinstance(channel_id, str) or not channel_id:
            logger.warning(f"Skipping channel entry without id: {entry}")
            continue
        name = entry.get("name")
        result.append((channel_id, name if isinstance(name, str) and name else f"Channel {channel_id}"))
    return result


def parse_channel_status(document: dict[str, Any]) -> dict[str, bool]:
    """{id: online} from an InputProxyChannelStatusList document."""
    return {
        entry["id"]: entry.get("online") == "true"
        for entry in _entries(document, "InputProxyChannelStatusList", "InputProxyChannelStatus")
        if isinstance(entry.get("id"), str)
    }


def has_audio(capabilities: Optional[dict[str, Any]]) -> bool:
    if not capabilities:
        return False
    streaming = capabilities.get("StreamingChannel")
    if not isinstance(streaming, dict):
        return False
    audio = streaming.get("Audio")
    if isinstance(audio, dict) and isinstance(audio.get("enabled"), str):
        return audio["enabled"] == "true"
    return bool(audio)


def notify_status_changes(sink: SensorSink, changed: list[Channel]) -> None:
    for channel in changed:
        if channel.online:
            sink.notify_online(channel)
        else:
            sink.notify_offline(channel)


class ChannelDirectory:
    def __init__(self, client: NvrApiClient):
        self._client = client
        self._channels: dict[str, Channel] = {}

    def lookup(self, channel_id: str) -> Optional[Channel]:
        """Return the channel if known and online, else None."""
        channel = self._channels.get(channel_id)
        if channel is None or not channel.online:
            return None
        return channel

    @property
    def channels(self) -> list[Channel]:
        return list(self._channels.values())

    @property
    def online_channels(self) -> list[Channel]:
        return [c for c in self._channels.values() if c.online]

    async def load(self) -> list[Channel]:
        """Run discovery and replace the directory contents. Returns online channels."""
        channel_doc, status_doc = await asyncio.gather(
            self._client.get_channels(),
            self._client.get_channel_status(),
        )
        listed = parse_channel_list(channel_doc)
        status = parse_channel_status(status_doc)

        capabilities = await asyncio.gather(
            *(self._fetch_capabilities(channel_id) for channel_id, _ in listed)
        )

        channels = {}
        for (channel_id, name), caps in zip(listed, capabilities):
            if channel_id not in status:
                logger.warning(f"No status reported for channel {channel_id}, treating as offline")
            channels[channel_id] = Channel(
                id=channel_id,
                name=name,
                has_audio=has_audio(caps),
                online=status.get(channel_id, False),
                capabilities=caps,
            )
        self._channels = channels

        online = self.online_channels
        logger.info(f"Loaded {len(online)} online channels ({len(channels)} listed)")
        return online

    def get(self, channel_id: str) -> Optional[Channel]:
        """Current Channel object for an id, online or not."""
        return self._channels.get(channel_id)

    async def refresh(self) -> list[Channel]:
        """
        On-demand full rediscovery. Returns the previously known channels whose
        online flag changed; a channel no longer listed counts as gone offline.
        """
        previous = self._channels
        await self.load()

        changed = []
        for channel_id, old in previous.items():
            current = self._channels.get(channel_id)
            if current is None:
                if old.online:
                    old.online = False
                    changed.append(old)
            elif current.online != old.online:
                changed.append(current)
        return changed

    async def _fetch_capabilities(self, channel_id: str) -> Optional[dict[str, Any]]:
        try:
            return await self._client.get_channel_capabilities(channel_id)
        except NvrBridgeError as e:
            logger.warning(str(CapabilityFetchError(channel_id, e)))
            return None

    async def refresh_status(self) -> list[Channel]:
        """Re-read online flags. Returns the channels whose flag changed."""
        status = parse_channel_status(await self._client.get_channel_status())
        changed = []
        for channel in self._channels.values():
            online = status.get(channel.id, False)
            if online != channel.online:
                channel.online = online
                changed.append(channel)
        return changed

    async def poll_status_forever(self, interval: float, sink: SensorSink) -> None:
        """Periodic status poll. Errors are logged and the next poll proceeds."""
        while True:
            await asyncio.sleep(interval)
            try:
                changed = await self.refresh_status()
            except NvrBridgeError as e:
                logger.warning(f"Channel status poll failed: {e}")
                continue
            except Exception as e:
                logger.error(f"Channel status poll — unexpected error: {e}", exc_info=True)
                continue
            notify_status_changes(sink, changed)
