# nvr_bridge/services/event_classifier.py
"""Maps decoded events to what the bridge should do with them."""

from dataclasses import dataclass
from typing import Union

from nvr_bridge.services.event_decoder import EventType, RawEvent

MOTION_EVENT_TYPES = frozenset({
    EventType.FIELD_DETECTION,
    EventType.LINE_DETECTION,
    EventType.SHELTER_ALARM,
    EventType.MOTION_GENERIC,
})


@dataclass(frozen=True)
class Ignore:
    reason: str


@dataclass(frozen=True)
class MotionSignal:
    channel_id: str
    detected: bool


Classification = Union[Ignore, MotionSignal]


def classify(event: RawEvent) -> Classification:
    """Pure: never raises, unknown firmware event types are ignored."""
    if event.event_type is EventType.VIDEO_LOSS:
        return Ignore("videoloss")
    if event.event_type not in MOTION_EVENT_TYPES:
        return Ignore(f"unhandled event type '{event.raw_type}'")
    if not event.channel_id:
        return Ignore(f"{event.raw_type} event without a channel id")
    return MotionSignal(channel_id=event.channel_id, detected=event.is_active)
