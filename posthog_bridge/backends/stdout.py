from __future__ import annotations

import json
from collections.abc import Sequence

from loguru import logger

from posthog_bridge.backends.base import AnalyticsBackend
from posthog_bridge.events import Event


class StdoutBackend(AnalyticsBackend):
    """Backend that logs events as JSON instead of sending them."""

    def send_event(self, event: Event) -> None:
        """Log an event as JSON."""
        logger.info(
            f"posthog {json.dumps(event.to_payload(), sort_keys=True)}"
        )

    def send_batch(self, events: Sequence[Event]) -> None:
        """Log a batch as a single JSON list."""
        payload = [event.to_payload() for event in events]
        logger.info(f"posthog_batch {json.dumps(payload, sort_keys=True)}")

    def flush(self) -> None:
        return

    def shutdown(self) -> None:
        return
