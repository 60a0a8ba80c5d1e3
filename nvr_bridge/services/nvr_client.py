# nvr_bridge/services/nvr_client.py
"""
ISAPI client for the NVR.

All requests use HTTP Digest Auth (Hikvision rejects Basic). Response bodies are XML
and are returned as {root_name: mapping} via utils.xml_parser.parse_document.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional
import xml.etree.ElementTree as ET

import httpx

from nvr_bridge.config import Settings
from nvr_bridge.exceptions import DecodeError, TransportError
from nvr_bridge.utils.logger import get_logger
from nvr_bridge.utils.xml_parser import parse_document

logger = get_logger(__name__)

DEVICE_INFO_PATH = "/ISAPI/System/deviceInfo"
CHANNELS_PATH = "/ISAPI/ContentMgmt/InputProxy/channels"
CHANNEL_STATUS_PATH = "/ISAPI/ContentMgmt/InputProxy/channels/status"
CHANNEL_CAPABILITIES_PATH = "/ISAPI/ContentMgmt/StreamingProxy/channels/{channel_id}01/capabilities"
ALERT_STREAM_PATH = "/ISAPI/Event/notification/alertStream"


class NvrApiClient:
    def __init__(
        self,
        base_url: str,
        username: str,
        password: str,
        ignore_insecure_tls: bool = False,
        timeout: float = 10.0,
        stream_read_timeout: Optional[float] = None,
        chunk_size: int = 4096,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url
        self.chunk_size = chunk_size
        self._stream_timeout = httpx.Timeout(timeout, read=stream_read_timeout)
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            auth=httpx.DigestAuth(username, password),
            verify=not ignore_insecure_tls,
            timeout=timeout,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "NvrApiClient":
        return cls(
            base_url=settings.nvr_base_url,
            username=settings.NVR_USERNAME,
            password=settings.NVR_PASSWORD,
            ignore_insecure_tls=settings.NVR_IGNORE_INSECURE_TLS,
            timeout=settings.NVR_REQUEST_TIMEOUT_SECONDS,
            stream_read_timeout=settings.STREAM_READ_TIMEOUT_SECONDS,
            chunk_size=settings.STREAM_CHUNK_SIZE,
        )

    async def get_xml(self, path: str) -> dict[str, Any]:
        try:
            response = await self._client.get(path)
        except httpx.HTTPError as e:
            raise TransportError(f"GET {path} failed: {e!r}") from e

        if response.status_code != 200:
            raise TransportError(
                f"GET {path} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        try:
            return parse_document(response.text)
        except ET.ParseError as e:
            raise DecodeError(f"GET {path} returned invalid XML: {e}", response.text) from e

    async def get_system_info(self) -> dict[str, Any]:
        document = await self.get_xml(DEVICE_INFO_PATH)
        return document.get("DeviceInfo", {})

    async def get_channels(self) -> dict[str, Any]:
        return await self.get_xml(CHANNELS_PATH)

    async def get_channel_status(self) -> dict[str, Any]:
        return await self.get_xml(CHANNEL_STATUS_PATH)

    async def get_channel_capabilities(self, channel_id: str) -> dict[str, Any]:
        return await self.get_xml(CHANNEL_CAPABILITIES_PATH.format(channel_id=channel_id))

    @property
    def alert_stream_url(self) -> str:
        return f"{self.base_url}{ALERT_STREAM_PATH}"

    @asynccontextmanager
    async def open_alert_stream(self) -> AsyncIterator[AsyncIterator[bytes]]:
        """
        Open the alertStream and yield an async iterator of raw body chunks.

        The iterator is endless while the NVR keeps the connection open and cannot be
        restarted: reconnecting means calling open_alert_stream() again.
        """
        try:
            async with self._client.stream(
                "GET", ALERT_STREAM_PATH, timeout=self._stream_timeout
            ) as response:
                if response.status_code != 200:
                    raise TransportError(
                        f"alertStream returned HTTP {response.status_code}",
                        status_code=response.status_code,
                    )
                yield response.aiter_bytes(chunk_size=self.chunk_size)
        except httpx.HTTPError as e:
            raise TransportError(f"alertStream failed: {e!r}") from e

    async def aclose(self) -> None:
        await self._client.aclose()
