# nvr_bridge/services/sensor_sink.py
"""
Sensor sink — the accessory-platform side of the bridge.

The bridge only talks to the platform through SensorSink. AccessoryRegistry is the
in-process implementation: one motion-sensor accessory per channel, with a stable
identity derived from the NVR device id so restarts map onto the same accessories.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol

from nvr_bridge.models.channel import Channel
from nvr_bridge.utils.logger import get_logger

logger = get_logger(__name__)

PLUGIN_NAME = "hikvision-nvr-bridge"
MANUFACTURER = "HikVision"


class SensorSink(Protocol):
    def notify_motion(self, channel: Channel, detected: bool) -> None: ...

    def notify_online(self, channel: Channel) -> None: ...

    def notify_offline(self, channel: Channel) -> None: ...


def accessory_uuid(device_id: str, channel_id: str) -> str:
    return str(uuid.uuid5(uuid.NAMESPACE_URL, f"{PLUGIN_NAME}{device_id}{channel_id}"))


@dataclass
class MotionSensorAccessory:
    uuid: str
    display_name: str
    channel_id: str
    has_audio: bool = False
    manufacturer: str = MANUFACTURER
    model: Optional[str] = None
    motion_detected: bool = False
    reachable: bool = True
    last_updated: Optional[datetime] = None


class AccessoryRegistry:
    """In-memory SensorSink keyed by channel id."""

    def __init__(self, device_id: str = "", model: Optional[str] = None):
        self.device_id = device_id
        self.model = model
        self._accessories: dict[str, MotionSensorAccessory] = {}

    def register(self, channel: Channel) -> MotionSensorAccessory:
        """Register a channel's accessory. Already-registered channels are returned as-is."""
        existing = self._accessories.get(channel.id)
        if existing is not None:
            return existing

        accessory = MotionSensorAccessory(
            uuid=accessory_uuid(self.device_id, channel.id),
            display_name=channel.name,
            channel_id=channel.id,
            has_audio=channel.has_audio,
            model=self.model,
            reachable=channel.online,
        )
        self._accessories[channel.id] = accessory
        logger.info(f"Registered accessory {accessory.display_name} ({accessory.uuid})")
        return accessory

    def get(self, channel_id: str) -> Optional[MotionSensorAccessory]:
        return self._accessories.get(channel_id)

    def all(self) -> list[MotionSensorAccessory]:
        return list(self._accessories.values())

    def notify_motion(self, channel: Channel, detected: bool) -> None:
        accessory = self._accessories.get(channel.id) or self.register(channel)
        accessory.motion_detected = detected
        accessory.last_updated = datetime.utcnow()
        logger.info(f"[MOTION] {accessory.display_name} → {'detected' if detected else 'clear'}")

    def notify_online(self, channel: Channel) -> None:
        accessory = self._accessories.get(channel.id) or self.register(channel)
        accessory.reachable = True
        logger.info(f"[STATUS] {accessory.display_name} is online")

    def notify_offline(self, channel: Channel) -> None:
        accessory = self._accessories.get(channel.id)
        if accessory is None:
            return
        accessory.reachable = False
        logger.warning(f"[STATUS] {accessory.display_name} went offline")
