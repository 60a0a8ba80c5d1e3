# tests/test_event_classifier.py
"""Unit tests for event classification."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from nvr_bridge.services.event_classifier import Ignore, MotionSignal, classify
from nvr_bridge.services.event_decoder import decode_event
from tests.helpers import event_xml


class TestClassify:
    @pytest.mark.parametrize("event_type", ["fielddetection", "linedetection", "shelteralarm", "VMD"])
    def test_motion_types(self, event_type):
        assert classify(decode_event(event_xml(event_type, "active", "2"))) == MotionSignal("2", True)

    def test_inactive_motion_is_not_detected(self):
        assert classify(decode_event(event_xml("VMD", "inactive", "2"))) == MotionSignal("2", False)

    def test_videoloss_is_ignored(self):
        assert isinstance(classify(decode_event(event_xml("videoloss", "inactive"))), Ignore)

    def test_unknown_type_is_ignored(self):
        action = classify(decode_event(event_xml("someFutureEvent")))
        assert isinstance(action, Ignore)
        assert "someFutureEvent" in action.reason

    def test_motion_without_channel_is_ignored(self):
        event = decode_event(
            "<EventNotificationAlert><eventType>VMD</eventType>"
            "<eventState>active</eventState></EventNotificationAlert>"
        )
        assert isinstance(classify(event), Ignore)
