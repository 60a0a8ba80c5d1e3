# nvr_bridge/routers/channels.py
"""
Channel endpoints.
GET  /channels         — every discovered channel with online and motion state.
POST /channels/refresh — rediscover channels on demand.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from nvr_bridge.exceptions import NvrBridgeError
from nvr_bridge.routers.deps import get_bridge
from nvr_bridge.schemas.channel import ChannelOut, RefreshOut
from nvr_bridge.services.nvr_bridge import NvrBridge
from nvr_bridge.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)


@router.get("/channels", response_model=list[ChannelOut], summary="Channels and motion state")
def list_channels(online_only: bool = False, bridge: NvrBridge = Depends(get_bridge)):
    channels = bridge.directory.online_channels if online_only else bridge.directory.channels
    result = []
    for channel in channels:
        accessory = bridge.sink.get(channel.id)
        state = bridge.motion.state(channel.id)
        result.append(ChannelOut(
            id=channel.id,
            name=channel.name,
            online=channel.online,
            has_audio=channel.has_audio,
            accessory_uuid=accessory.uuid if accessory else None,
            motion_detected=state.detected if state else False,
            last_motion_change=state.last_transition if state else None,
        ))
    return result


@router.post("/channels/refresh", response_model=RefreshOut, summary="Rediscover channels")
async def refresh_channels(bridge: NvrBridge = Depends(get_bridge)):
    try:
        online = await bridge.refresh_channels()
    except NvrBridgeError as e:
        logger.warning(f"Channel refresh failed: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    return RefreshOut(status="ok", online_channels=online)
