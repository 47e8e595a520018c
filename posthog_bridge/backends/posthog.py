from __future__ import annotations

from collections.abc import Sequence
from typing import Any
from uuid import uuid4

from loguru import logger

from posthog_bridge.backends.base import AnalyticsBackend
from posthog_bridge.config import PostHogConfig
from posthog_bridge.events import Event

PROCESS_PERSON_PROFILE = "$process_person_profile"


class PostHogBackend(AnalyticsBackend):
    """PostHog backend using the official python package.

    Transport, queueing, retries and serialization are all handled by
    the C{posthog} client.
    """

    def __init__(self, config: PostHogConfig) -> None:
        """Initialize the PostHog client.

        @type config: L{PostHogConfig}
        @param config: Validated client configuration.
        """
        try:
            from posthog import Posthog
        except ImportError as exc:
            raise ImportError(
                "PostHog backend requires the 'posthog' package."
            ) from exc
        self._client = Posthog(
            project_api_key=config.api_key.get_secret_value(),
            host=config.api_host,
            timeout=config.request_timeout_seconds,
            debug=config.debug,
            on_error=_log_send_error,
        )

    def send_event(self, event: Event) -> None:
        """Capture an event using the PostHog client."""
        kwargs: dict[str, Any] = {
            "distinct_id": event.distinct_id,
            "event": event.name,
            "properties": dict(event.properties),
        }
        if event.anonymous:
            kwargs["distinct_id"] = str(uuid4())
            kwargs["properties"][PROCESS_PERSON_PROFILE] = False
        if event.groups:
            kwargs["groups"] = dict(event.groups)
        if event.timestamp is not None:
            kwargs["timestamp"] = event.timestamp
        self._client.capture(**kwargs)

    def send_batch(self, events: Sequence[Event]) -> None:
        """Hand all events to the client queue in order.

        The client's consumer thread groups them into batch requests.
        """
        for event in events:
            self.send_event(event)

    def flush(self) -> None:
        self._client.flush()

    def shutdown(self) -> None:
        self._client.shutdown()


def _log_send_error(error: Exception, batch: list[dict[str, Any]]) -> None:
    logger.error(f"PostHog failed to send {len(batch)} event(s): {error}")
