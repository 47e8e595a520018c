from __future__ import annotations

from posthog_bridge.backends.base import AnalyticsBackend
from posthog_bridge.backends.noop import NoopBackend
from posthog_bridge.backends.posthog import PostHogBackend
from posthog_bridge.backends.stdout import StdoutBackend

__all__ = [
    "AnalyticsBackend",
    "NoopBackend",
    "PostHogBackend",
    "StdoutBackend",
]
