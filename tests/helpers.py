# tests/helpers.py
"""Sample ISAPI payloads and a scripted NVR client shared by the tests."""

import asyncio
import time
from contextlib import asynccontextmanager

from nvr_bridge.utils.xml_parser import parse_document

NS = 'xmlns="http://www.isapi.org/ver20/XMLSchema"'


def event_xml(event_type="VMD", state="active", channel="3", channel_tag="dynChannelID"):
    return (
        f'<EventNotificationAlert version="2.0" {NS}>'
        f"<ipAddress>192.168.1.64</ipAddress>"
        f"<{channel_tag}>{channel}</{channel_tag}>"
        f"<dateTime>2026-10-19T10:30:00+02:00</dateTime>"
        f"<activePostCount>1</activePostCount>"
        f"<eventType>{event_type}</eventType>"
        f"<eventState>{state}</eventState>"
        f"<eventDescription>Motion alarm</eventDescription>"
        f"</EventNotificationAlert>"
    )


def multipart(record: str) -> str:
    """Wrap a record the way the alertStream multipart body does."""
    return (
        "--boundary\r\n"
        'Content-Type: application/xml; charset="UTF-8"\r\n'
        f"Content-Length: {len(record)}\r\n\r\n"
        f"{record}\r\n"
    )


def channel_list_xml(channels):
    entries = "".join(
        f"<InputProxyChannel><id>{cid}</id><name>{name}</name>"
        f"<sourceInputPortDescriptor><ipAddress>10.0.0.{cid}</ipAddress></sourceInputPortDescriptor>"
        f"</InputProxyChannel>"
        for cid, name in channels
    )
    return f'<?xml version="1.0" encoding="UTF-8"?><InputProxyChannelList version="2.0" {NS}>{entries}</InputProxyChannelList>'


def channel_status_xml(statuses):
    entries = "".join(
        f"<InputProxyChannelStatus><id>{cid}</id><online>{'true' if online else 'false'}</online>"
        f"</InputProxyChannelStatus>"
        for cid, online in statuses
    )
    return f'<?xml version="1.0" encoding="UTF-8"?><InputProxyChannelStatusList version="2.0" {NS}>{entries}</InputProxyChannelStatusList>'


def capabilities_xml(audio=True):
    audio_el = "<Audio><enabled>true</enabled><audioCompressionType>G.711ulaw</audioCompressionType></Audio>" if audio else ""
    return (
        f'<StreamingChannel version="2.0" {NS}><id>101</id>'
        f"<Video><enabled>true</enabled></Video>{audio_el}</StreamingChannel>"
    )


class FakeNvrClient:
    """
    Stand-in for NvrApiClient.

    `connections` scripts the alertStream: each item is either an exception to raise
    on connect or a list of byte chunks to deliver before EOF. Once the script runs
    out, the stream stays open without data.
    """

    base_url = "http://nvr.test:80"
    alert_stream_url = "http://nvr.test:80/ISAPI/Event/notification/alertStream"

    def __init__(self, connections=None, channels=None, statuses=None, capabilities=None,
                 device_info=None):
        self.connections = list(connections or [])
        self.channels = channels or [("1", "Front Door"), ("2", "Garden"), ("3", "Garage")]
        self.statuses = statuses if statuses is not None else [(cid, True) for cid, _ in self.channels]
        self.capabilities = capabilities or {}
        self.device_info = device_info or {"deviceName": "NVR", "deviceID": "abc-123", "model": "DS-7608NI"}
        self.opened = 0
        self.closed = False

    async def get_system_info(self):
        return self.device_info

    async def get_channels(self):
        return parse_document(channel_list_xml(self.channels))

    async def get_channel_status(self):
        return parse_document(channel_status_xml(self.statuses))

    async def get_channel_capabilities(self, channel_id):
        caps = self.capabilities.get(channel_id, capabilities_xml(audio=False))
        if isinstance(caps, Exception):
            raise caps
        return parse_document(caps)

    @asynccontextmanager
    async def open_alert_stream(self):
        self.opened += 1
        if not self.connections:
            yield self._idle()
            return
        script = self.connections.pop(0)
        if isinstance(script, Exception):
            raise script
        yield self._chunks(script)

    @staticmethod
    async def _chunks(chunks):
        for chunk in chunks:
            await asyncio.sleep(0)
            yield chunk

    @staticmethod
    async def _idle():
        await asyncio.Event().wait()
        yield b""

    async def aclose(self):
        self.closed = True


async def wait_for(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)
