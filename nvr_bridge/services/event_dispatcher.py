# nvr_bridge/services/event_dispatcher.py
"""Routes extracted alertStream records to the motion state machine."""

from nvr_bridge.exceptions import ChannelNotFoundError, DecodeError
from nvr_bridge.services.channel_directory import ChannelDirectory
from nvr_bridge.services.event_classifier import Ignore, classify
from nvr_bridge.services.event_decoder import RawEvent, decode_event
from nvr_bridge.services.motion_state import MotionStateMachine
from nvr_bridge.utils.logger import get_logger

logger = get_logger(__name__)


class EventDispatcher:
    def __init__(self, directory: ChannelDirectory, motion: MotionStateMachine):
        self.directory = directory
        self.motion = motion
        self.dispatched = 0
        self.dropped = 0

    def dispatch_fragments(self, fragments: list[str]) -> None:
        """Handle every record extracted from one chunk. Safe with an empty list."""
        for fragment in fragments:
            self.dispatch_fragment(fragment)

    def dispatch_fragment(self, fragment: str) -> None:
        try:
            event = decode_event(fragment)
        except DecodeError as e:
            self.dropped += 1
            logger.warning(f"Dropping malformed event record: {e}")
            logger.debug(f"Malformed record:\n{fragment}")
            return

        try:
            self.dispatch_event(event)
        except ChannelNotFoundError as e:
            self.dropped += 1
            logger.warning(f"{e} — dropping {event.raw_type} event")
        except Exception as e:
            self.dropped += 1
            logger.error(f"Event handling error for {event.raw_type}: {e}", exc_info=True)

    def dispatch_event(self, event: RawEvent) -> None:
        # Every event is logged, whatever the classification
        logger.debug(
            f"📥 type={event.raw_type} state={event.event_state.value} "
            f"channel={event.channel_id} time={event.date_time}"
        )

        action = classify(event)
        if isinstance(action, Ignore):
            logger.debug(f"Ignoring event: {action.reason}")
            return

        channel = self.directory.lookup(action.channel_id)
        if channel is None:
            raise ChannelNotFoundError(action.channel_id)

        self.motion.handle(channel, action.detected)
        self.dispatched += 1
