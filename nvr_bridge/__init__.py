"""Hikvision NVR motion bridge: alertStream events → per-channel motion sensors."""

__version__ = "1.0.0"
