"""WebPA abstraction layer: status mapping, WiFi index mapping, component caching, readiness checks and notifications."""

__version__ = "0.1.0"

__all__ = [
    "status",
    "indexmap",
    "bus",
    "cache",
    "readiness",
    "config",
    "messages",
    "notification",
    "dispatch",
    "notifier",
]