from __future__ import annotations

from collections.abc import Sequence

from posthog_bridge.backends.base import AnalyticsBackend
from posthog_bridge.events import Event


class NoopBackend(AnalyticsBackend):
    """Backend that discards all events."""

    def send_event(self, event: Event) -> None:
        return

    def send_batch(self, events: Sequence[Event]) -> None:
        return

    def flush(self) -> None:
        return

    def shutdown(self) -> None:
        return
