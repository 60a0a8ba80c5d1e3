# tests/test_nvr_client.py
"""Unit tests for the ISAPI client, against an in-memory httpx transport."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import httpx
import pytest
from nvr_bridge.exceptions import DecodeError, TransportError
from nvr_bridge.services.nvr_client import (
    ALERT_STREAM_PATH, DEVICE_INFO_PATH, NvrApiClient,
)
from tests.helpers import NS, capabilities_xml, event_xml, multipart

BASE_URL = "http://nvr.test:80"
DEVICE_INFO = (
    f'<?xml version="1.0" encoding="UTF-8"?><DeviceInfo version="2.0" {NS}>'
    "<deviceName>Home NVR</deviceName><deviceID>48443830-3637-3938-3339-c42f90f9a5d1</deviceID>"
    "<model>DS-7608NI-K2/8P</model></DeviceInfo>"
)


def make_client(handler) -> NvrApiClient:
    transport = httpx.MockTransport(handler)
    return NvrApiClient(
        base_url=BASE_URL, username="admin", password="secret",
        client=httpx.AsyncClient(base_url=BASE_URL, transport=transport),
    )


class TestNvrApiClient:
    @pytest.mark.asyncio
    async def test_system_info(self):
        def handler(request):
            assert request.url.path == DEVICE_INFO_PATH
            return httpx.Response(200, text=DEVICE_INFO)

        client = make_client(handler)
        info = await client.get_system_info()
        assert info["model"] == "DS-7608NI-K2/8P"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_capabilities_path(self):
        seen = []

        def handler(request):
            seen.append(request.url.path)
            return httpx.Response(200, text=capabilities_xml())

        client = make_client(handler)
        caps = await client.get_channel_capabilities("3")
        assert seen == ["/ISAPI/ContentMgmt/StreamingProxy/channels/301/capabilities"]
        assert "Audio" in caps["StreamingChannel"]
        await client.aclose()

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        client = make_client(lambda request: httpx.Response(401, text="Unauthorized"))
        with pytest.raises(TransportError) as exc:
            await client.get_system_info()
        assert exc.value.status_code == 401
        await client.aclose()

    @pytest.mark.asyncio
    async def test_connection_refused(self):
        def handler(request):
            raise httpx.ConnectError("Connection refused", request=request)

        client = make_client(handler)
        with pytest.raises(TransportError):
            await client.get_channels()
        await client.aclose()

    @pytest.mark.asyncio
    async def test_invalid_xml(self):
        client = make_client(lambda request: httpx.Response(200, text="<DeviceInfo><oops>"))
        with pytest.raises(DecodeError):
            await client.get_system_info()
        await client.aclose()

    @pytest.mark.asyncio
    async def test_alert_stream_yields_chunks(self):
        body = multipart(event_xml(channel="1")).encode()

        def handler(request):
            assert request.url.path == ALERT_STREAM_PATH
            return httpx.Response(200, content=body)

        client = make_client(handler)
        received = b""
        async with client.open_alert_stream() as chunks:
            async for chunk in chunks:
                received += chunk
        assert received == body
        await client.aclose()

    @pytest.mark.asyncio
    async def test_alert_stream_bad_status(self):
        client = make_client(lambda request: httpx.Response(503))
        with pytest.raises(TransportError) as exc:
            async with client.open_alert_stream():
                pass
        assert exc.value.status_code == 503
        await client.aclose()

    def test_alert_stream_url(self):
        client = make_client(lambda request: httpx.Response(200))
        assert client.alert_stream_url == "http://nvr.test:80/ISAPI/Event/notification/alertStream"
