from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from posthog_bridge.events import Event


class AnalyticsBackend(Protocol):
    """Protocol for the analytics SDK the bridge delegates to."""

    def send_event(self, event: Event) -> None:
        """Send a single event."""
        ...

    def send_batch(self, events: Sequence[Event]) -> None:
        """Send several events as one submission."""
        ...

    def flush(self) -> None:
        """Flush any buffered events."""
        ...

    def shutdown(self) -> None:
        """Shutdown backend resources and flush pending events."""
        ...
