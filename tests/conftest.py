from collections.abc import Generator, Sequence

import pytest

from posthog_bridge.client import PostHogClientWrapper
from posthog_bridge.config import PostHogConfig
from posthog_bridge.events import Event
from posthog_bridge.handle import ClientHandle

ENV_VARS = [
    "POSTHOG_API_KEY",
    "POSTHOG_API_HOST",
    "POSTHOG_REQUEST_TIMEOUT",
    "POSTHOG_AUTO_CAPTURE",
    "POSTHOG_DEVICE_ID_SOURCE",
    "POSTHOG_BACKEND",
    "POSTHOG_DEBUG",
]


class RecordingBackend:
    def __init__(self) -> None:
        self.events: list[Event] = []
        self.batches: list[list[Event]] = []
        self.flush_count = 0
        self.shutdown_count = 0
        self.fail_with: Exception | None = None

    def send_event(self, event: Event) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.events.append(event)

    def send_batch(self, events: Sequence[Event]) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.batches.append(list(events))

    def flush(self) -> None:
        self.flush_count += 1

    def shutdown(self) -> None:
        self.shutdown_count += 1

    @property
    def sent(self) -> list[Event]:
        return self.events + [e for batch in self.batches for e in batch]


@pytest.fixture(autouse=True)
def clean_environ(
    monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory
) -> None:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # Keep a developer's .env out of the tests.
    monkeypatch.chdir(tmp_path_factory.mktemp("cwd"))


@pytest.fixture
def reset_backend_registry() -> Generator[None, None, None]:
    original = dict(ClientHandle._backend_factories)
    ClientHandle._backend_factories = {}
    yield
    ClientHandle._backend_factories = original


@pytest.fixture
def backend(reset_backend_registry: None) -> RecordingBackend:
    backend = RecordingBackend()
    ClientHandle.register_backend("recording", lambda cfg: backend)
    return backend


@pytest.fixture
def config(backend: RecordingBackend) -> PostHogConfig:
    return PostHogConfig(api_key="phc_test", backend="recording")


@pytest.fixture
def device_id() -> str:
    return "device-123"


@pytest.fixture
def client(config: PostHogConfig, device_id: str) -> PostHogClientWrapper:
    return PostHogClientWrapper(config, device_id=device_id)
