# NVR Bridge — Domain Models

from nvr_bridge.models.channel import Channel  # noqa
