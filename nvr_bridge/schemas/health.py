# nvr_bridge/schemas/health.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class HealthOut(BaseModel):
    status: str
    timestamp: datetime
    nvr: str
    device_id: Optional[str] = None
    session_state: str
    stream_connections: int
    channels_listed: int
    channels_online: int
    events_dispatched: int
    events_dropped: int
