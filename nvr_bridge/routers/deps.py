# nvr_bridge/routers/deps.py
from fastapi import HTTPException, Request, status

from nvr_bridge.services.nvr_bridge import NvrBridge


def get_bridge(request: Request) -> NvrBridge:
    """FastAPI dependency — the bridge created on startup."""
    bridge = getattr(request.app.state, "bridge", None)
    if bridge is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                            detail="Bridge not started")
    return bridge
