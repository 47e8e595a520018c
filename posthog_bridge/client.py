from __future__ import annotations

from collections.abc import Iterable
from types import TracebackType

from loguru import logger

from posthog_bridge.config import PostHogConfig
from posthog_bridge.device import resolve_device_id
from posthog_bridge.events import build_alias_event, build_event
from posthog_bridge.handle import ClientHandle
from posthog_bridge.identity import IdentityStore
from posthog_bridge.models import CaptureRequest
from posthog_bridge.typing import Params


class PostHogClientWrapper:
    """Stateful facade over the PostHog client.

    Keeps the device id and the current distinct id, maps capture
    requests onto events and forwards them to the client handle. Safe
    to share between threads.
    """

    def __init__(
        self,
        config: PostHogConfig | Params,
        *,
        lazy: bool = False,
        device_id: str | None = None,
    ) -> None:
        """Initialize the wrapper.

        @type config: L{PostHogConfig} | dict
        @param config: Client configuration. Raw mappings are validated
            with L{PostHogConfig.create}.
        @type lazy: bool
        @param lazy: If C{True}, the PostHog client is created on the
            first send instead of here.
        @type device_id: Optional[str]
        @param device_id: Explicit device id. If C{None}, it is resolved
            according to C{config.device_id_source}.
        @raise ConfigurationError: If the config is invalid or no device
            id can be obtained.
        """
        if not isinstance(config, PostHogConfig):
            config = PostHogConfig.create(config)
        self._config = config
        self._identity = IdentityStore(
            device_id or resolve_device_id(config.device_id_source),
            auto_identify=config.auto_capture,
        )
        self._handle = ClientHandle(config, lazy=lazy)

    def __enter__(self) -> PostHogClientWrapper:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.shutdown()

    @property
    def handle(self) -> ClientHandle:
        return self._handle

    def capture(self, request: CaptureRequest) -> None:
        """Capture a single event.

        @type request: L{CaptureRequest}
        @param request: The capture request.
        @raise BuildError: If the event cannot be built.
        @raise TransportError: If the client fails to send it.
        """
        event = build_event(request, self._identity)
        self._handle.send_event(event)

    def capture_batch(self, requests: Iterable[CaptureRequest]) -> None:
        """Capture several events in one submission.

        All events are built before anything is sent, so a build error
        in any of them aborts the whole batch.

        @type requests: Iterable[L{CaptureRequest}]
        @param requests: The capture requests.
        @raise BuildError: If any event cannot be built.
        @raise TransportError: If the client fails to send the batch.
        """
        events = [build_event(request, self._identity) for request in requests]
        if not events:
            return
        self._handle.send_batch(events)

    def identify(self, distinct_id: str) -> None:
        self._identity.identify(distinct_id)

    def alias(self, alias: str) -> None:
        """Link C{alias} to the current distinct id.

        Does nothing if no distinct id is set.
        """
        distinct_id = self._identity.get_distinct_id()
        if distinct_id is None:
            logger.debug(f"No distinct id set, skipping alias '{alias}'.")
            return
        event = build_alias_event(alias, distinct_id, self._identity.device_id)
        self._handle.send_event(event)

    def reset(self) -> None:
        self._identity.reset()

    def get_distinct_id(self) -> str | None:
        return self._identity.get_distinct_id()

    def get_device_id(self) -> str:
        return self._identity.device_id

    def get_config(self) -> PostHogConfig:
        return self._config

    def get_effective_distinct_id(self) -> str:
        """Get the distinct id events are attributed to by default."""
        return self._identity.effective_id()

    def is_auto_identify_enabled(self) -> bool:
        return self._identity.auto_identify

    def regenerate_auto_distinct_id(self) -> None:
        """Restore the C{$device:<device_id>} distinct id.

        Does nothing unless auto-identify is enabled.
        """
        self._identity.regenerate_auto_distinct_id()

    def flush(self) -> None:
        self._handle.flush()

    def shutdown(self) -> None:
        """Flush pending events and stop the client."""
        self._handle.shutdown()
