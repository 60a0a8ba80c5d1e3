# nvr_bridge/routers/health.py
"""
System health check endpoint.
Returns alert stream session state and channel directory counts.
"""

from datetime import datetime

from fastapi import APIRouter, Depends

from nvr_bridge.routers.deps import get_bridge
from nvr_bridge.schemas.health import HealthOut
from nvr_bridge.services.nvr_bridge import NvrBridge
from nvr_bridge.services.stream_session import SessionState

router = APIRouter()


@router.get("/health", response_model=HealthOut, summary="Bridge health check")
def health_check(bridge: NvrBridge = Depends(get_bridge)):
    state = bridge.session.state
    return HealthOut(
        status="ok" if state is SessionState.STREAMING else "degraded",
        timestamp=datetime.utcnow(),
        nvr=bridge.client.base_url,
        device_id=bridge.system_info.get("deviceID"),
        session_state=state.value,
        stream_connections=bridge.session.connections,
        channels_listed=len(bridge.directory.channels),
        channels_online=len(bridge.directory.online_channels),
        events_dispatched=bridge.dispatcher.dispatched,
        events_dropped=bridge.dispatcher.dropped,
    )
