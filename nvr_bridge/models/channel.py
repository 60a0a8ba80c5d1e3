# nvr_bridge/models/channel.py
"""
Channel — one video input on the NVR.
Built from a discovery snapshot; only `online` changes afterwards (status polls).
"""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class Channel:
    id: str                                   # vendor-assigned, e.g. "3"
    name: str
    has_audio: bool = False
    online: bool = False
    capabilities: Optional[dict[str, Any]] = field(default=None, repr=False)

    def __repr__(self):
        return f"<Channel {self.id} name={self.name!r} online={self.online}>"
