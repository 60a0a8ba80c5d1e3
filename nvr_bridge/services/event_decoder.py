# nvr_bridge/services/event_decoder.py
"""
Decodes one extracted EventNotificationAlert record into a RawEvent.

Named fields (type, state, channel) are pulled out for the classifier; everything
else the device sends stays available in `payload` for forward compatibility.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional
import xml.etree.ElementTree as ET

from nvr_bridge.exceptions import DecodeError
from nvr_bridge.services.fragment_extractor import RECORD_ROOT
from nvr_bridge.utils.xml_parser import element_to_dict, local_name


class EventType(str, Enum):
    VIDEO_LOSS = "videoloss"
    FIELD_DETECTION = "fielddetection"
    LINE_DETECTION = "linedetection"
    SHELTER_ALARM = "shelteralarm"
    MOTION_GENERIC = "VMD"
    OTHER = "other"

    @classmethod
    def from_raw(cls, raw: str) -> "EventType":
        for member in cls:
            if member is not cls.OTHER and member.value.lower() == raw.lower():
                return member
        return cls.OTHER


class EventState(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


@dataclass
class RawEvent:
    event_type: EventType
    event_state: EventState
    channel_id: Optional[str]
    payload: dict[str, Any] = field(default_factory=dict)
    raw_type: str = ""                       # as sent, kept for logging OTHER types
    date_time: Optional[str] = None
    description: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.event_state is EventState.ACTIVE


def _scalar(payload: dict, key: str) -> Optional[str]:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise DecodeError(f"Field <{key}> is not a scalar")
    return value or None


def decode_event(fragment: str) -> RawEvent:
    """
    Parse a single record. Raises DecodeError on malformed XML, a foreign root
    element, or a record without eventType / eventState.
    """
    try:
        root = ET.fromstring(fragment.strip())
    except ET.ParseError as e:
        raise DecodeError(f"Invalid XML: {e}", fragment) from e

    if local_name(root.tag) != RECORD_ROOT:
        raise DecodeError(f"Unexpected root tag '{local_name(root.tag)}'", fragment)

    payload = element_to_dict(root)
    if not isinstance(payload, dict):
        raise DecodeError("Empty event record", fragment)

    try:
        raw_type = _scalar(payload, "eventType")
        raw_state = _scalar(payload, "eventState")
        channel_id = _scalar(payload, "dynChannelID") or _scalar(payload, "channelID")
        date_time = _scalar(payload, "dateTime")
        description = _scalar(payload, "eventDescription")
    except DecodeError as e:
        e.fragment = fragment
        raise

    if not raw_type:
        raise DecodeError("Missing <eventType>", fragment)
    if not raw_state:
        raise DecodeError("Missing <eventState>", fragment)
    try:
        state = EventState(raw_state.lower())
    except ValueError as e:
        raise DecodeError(f"Unknown eventState '{raw_state}'", fragment) from e

    return RawEvent(
        event_type=EventType.from_raw(raw_type),
        event_state=state,
        channel_id=channel_id,
        payload=payload,
        raw_type=raw_type,
        date_time=date_time,
        description=description,
    )
