# nvr_bridge/schemas/channel.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class ChannelOut(BaseModel):
    id: str
    name: str
    online: bool
    has_audio: bool
    accessory_uuid: Optional[str] = None
    motion_detected: bool = False
    last_motion_change: Optional[datetime] = None


class RefreshOut(BaseModel):
    status: str
    online_channels: int
