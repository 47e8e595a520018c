from __future__ import annotations

import threading
from collections.abc import Callable, Sequence

from loguru import logger

from posthog_bridge.backends.base import AnalyticsBackend
from posthog_bridge.backends.noop import NoopBackend
from posthog_bridge.backends.posthog import PostHogBackend
from posthog_bridge.backends.stdout import StdoutBackend
from posthog_bridge.config import PostHogConfig
from posthog_bridge.events import Event
from posthog_bridge.exceptions import (
    ConfigurationError,
    PostHogBridgeError,
    TransportError,
)

BackendFactory = Callable[[PostHogConfig], AnalyticsBackend]


class ClientHandle:
    """Owns the connection to the analytics endpoint.

    The backend is either built in the constructor or on first use. In
    the lazy case the factory runs exactly once, even with concurrent
    first callers, and every caller sees the same backend or the same
    initialization error.
    """

    _backend_factories: dict[str, BackendFactory] = {}

    def __init__(self, config: PostHogConfig, *, lazy: bool = False) -> None:
        """
        @type config: L{PostHogConfig}
        @param config: Validated client configuration.
        @type lazy: bool
        @param lazy: Defer building the backend until the first send.
        """
        self._config = config
        self._lock = threading.Lock()
        self._backend: AnalyticsBackend | None = None
        self._error: BaseException | None = None
        self._factory = self._resolve_factory(config.backend)
        if not lazy:
            self.get()

    @property
    def config(self) -> PostHogConfig:
        return self._config

    @property
    def is_initialized(self) -> bool:
        return self._backend is not None

    @classmethod
    def register_backend(cls, name: str, factory: BackendFactory) -> None:
        """Register a custom backend factory.

        @type name: str
        @param name: Backend name used in C{PostHogConfig.backend}.
        @type factory: Callable
        @param factory: Callable that builds a backend from a
            L{PostHogConfig}.
        """
        cls._ensure_default_backends()
        cls._backend_factories[name.lower()] = factory

    def get(self) -> AnalyticsBackend:
        """Return the backend, building it on first call."""
        if self._backend is not None:
            return self._backend
        with self._lock:
            if self._backend is None and self._error is None:
                try:
                    self._backend = self._factory(self._config)
                except Exception as e:
                    self._error = _initialization_error(e)
                else:
                    logger.info(
                        f"Initialized '{self._config.backend}' analytics "
                        f"backend for {self._config.api_host}."
                    )
            if self._error is not None:
                raise self._error
            return self._backend

    def send_event(self, event: Event) -> None:
        backend = self.get()
        try:
            backend.send_event(event)
        except Exception as e:
            raise TransportError(
                f"Failed to send event '{event.name}': {e}"
            ) from e

    def send_batch(self, events: Sequence[Event]) -> None:
        backend = self.get()
        try:
            backend.send_batch(events)
        except Exception as e:
            raise TransportError(
                f"Failed to send batch of {len(events)} event(s): {e}"
            ) from e

    def flush(self) -> None:
        if self._backend is None:
            return
        try:
            self._backend.flush()
        except Exception as e:
            raise TransportError(f"Failed to flush events: {e}") from e

    def shutdown(self) -> None:
        if self._backend is None:
            return
        try:
            self._backend.shutdown()
        except Exception as e:
            raise TransportError(f"Failed to shut down client: {e}") from e

    @classmethod
    def _resolve_factory(cls, name: str) -> BackendFactory:
        cls._ensure_default_backends()
        factory = cls._backend_factories.get(name.lower())
        if factory is None:
            raise ConfigurationError(
                f"Unknown analytics backend '{name}'. Available: "
                f"{', '.join(sorted(cls._backend_factories))}."
            )
        return factory

    @classmethod
    def _ensure_default_backends(cls) -> None:
        """Register built-in backend factories once."""
        if cls._backend_factories:
            return
        cls._backend_factories.update(
            {
                "noop": lambda _: NoopBackend(),
                "stdout": lambda _: StdoutBackend(),
                "posthog": PostHogBackend,
            }
        )


def _initialization_error(error: Exception) -> PostHogBridgeError:
    if isinstance(error, PostHogBridgeError):
        return error
    wrapped = ConfigurationError(
        f"Failed to initialize analytics backend: {error}"
    )
    wrapped.__cause__ = error
    return wrapped
