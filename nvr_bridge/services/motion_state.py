# nvr_bridge/services/motion_state.py
"""
Per-channel debounced motion state.

    Clear ──detected──▶ Active ──timer / inactive──▶ Clear

A detection arms an auto-clear timer (MOTION_RETRIGGER_IN_SECONDS). The timer and an
explicit "inactive" event both lead back to Clear; whichever comes first cancels the
other, so the sink sees exactly one clear per activation. Any pending timer is
cancelled before a new one is armed: at most one timer per channel.

Repeated "active" while Active never notifies again. With rearm_on_repeat (default)
it restarts the timer so motion stays on while the NVR keeps reporting it.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from nvr_bridge.models.channel import Channel
from nvr_bridge.services.sensor_sink import SensorSink
from nvr_bridge.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class MotionState:
    detected: bool = False
    clear_handle: Optional[asyncio.TimerHandle] = None
    last_transition: Optional[datetime] = None

    @property
    def timer_pending(self) -> bool:
        return self.clear_handle is not None


class MotionStateMachine:
    def __init__(self, sink: SensorSink, clear_after: float, rearm_on_repeat: bool = True,
                 resolve: Optional[Callable[[str], Optional[Channel]]] = None):
        self.sink = sink
        self._resolve = resolve
        self.clear_after = clear_after
        self.rearm_on_repeat = rearm_on_repeat
        self._states: dict[str, MotionState] = {}
        self._channels: dict[str, Channel] = {}
        self._closed = False

    def state(self, channel_id: str) -> Optional[MotionState]:
        return self._states.get(channel_id)

    def snapshot(self) -> dict[str, bool]:
        return {channel_id: s.detected for channel_id, s in self._states.items()}

    def handle(self, channel: Channel, detected: bool) -> bool:
        """
        Apply one motion signal. Must run on the event loop.
        Returns True when the sink was notified.
        """
        if self._closed:
            return False

        state = self._states.setdefault(channel.id, MotionState())
        self._channels[channel.id] = channel

        if detected:
            if state.detected:
                if self.rearm_on_repeat:
                    self._arm(channel.id, state)
                    logger.debug(f"Motion continues on {channel.name}, clear timer restarted")
                return False
            self._arm(channel.id, state)
            self._transition(channel, state, True)
            return True

        if not state.detected:
            return False
        self._cancel(state)
        self._transition(channel, state, False)
        return True

    def _transition(self, channel: Channel, state: MotionState, detected: bool) -> None:
        state.detected = detected
        state.last_transition = datetime.utcnow()
        logger.info(
            f"Motion {'detected' if detected else 'cleared'} on {channel.name} (channel {channel.id})"
        )
        self.sink.notify_motion(channel, detected)

    def _arm(self, channel_id: str, state: MotionState) -> None:
        self._cancel(state)
        loop = asyncio.get_running_loop()
        state.clear_handle = loop.call_later(self.clear_after, self._on_timer, channel_id)

    @staticmethod
    def _cancel(state: MotionState) -> None:
        if state.clear_handle is not None:
            state.clear_handle.cancel()
            state.clear_handle = None

    def _on_timer(self, channel_id: str) -> None:
        state = self._states.get(channel_id)
        if state is None:
            return
        state.clear_handle = None
        if self._closed or not state.detected:
            return
        channel = self._channels[channel_id]
        if self._resolve is not None:
            # the directory may have replaced the Channel since the timer was armed
            channel = self._resolve(channel_id) or channel
        logger.info(f"Disabling motion detection on {channel.name} after {self.clear_after}s")
        try:
            self._transition(channel, state, False)
        except Exception as e:
            logger.error(f"Sink failed clearing motion on {channel.name}: {e}", exc_info=True)

    def shutdown(self) -> None:
        """Cancel every pending timer. No sink call happens after this."""
        self._closed = True
        for state in self._states.values():
            self._cancel(state)
        logger.info(f"Motion timers cancelled for {len(self._states)} channels")
