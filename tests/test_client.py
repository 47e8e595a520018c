import threading

import pytest

from posthog_bridge.client import PostHogClientWrapper
from posthog_bridge.config import PostHogConfig
from posthog_bridge.events import ALIAS_EVENT
from posthog_bridge.exceptions import (
    BuildError,
    DeviceIdError,
    MissingApiKeyError,
    TransportError,
)
from posthog_bridge.models import CaptureRequest

from conftest import RecordingBackend


def test_capture(client: PostHogClientWrapper, backend: RecordingBackend):
    client.capture(CaptureRequest(event="opened", properties={"n": 1}))
    assert len(backend.events) == 1
    event = backend.events[0]
    assert event.name == "opened"
    assert event.distinct_id == "device-123"
    assert event.properties == {"n": 1, "$device_id": "device-123"}


def test_capture_uses_identified_id(
    client: PostHogClientWrapper, backend: RecordingBackend
):
    client.identify("user-1")
    client.capture(CaptureRequest(event="opened"))
    client.capture(CaptureRequest(event="opened", anonymous=True))
    assert backend.events[0].distinct_id == "user-1"
    assert backend.events[1].distinct_id is None
    assert backend.events[1].properties == {"$device_id": "device-123"}


def test_capture_transport_error(
    client: PostHogClientWrapper, backend: RecordingBackend
):
    backend.fail_with = RuntimeError("503")
    with pytest.raises(TransportError):
        client.capture(CaptureRequest(event="opened"))


def test_capture_batch(client: PostHogClientWrapper, backend: RecordingBackend):
    client.capture_batch(
        [CaptureRequest(event="a"), CaptureRequest(event="b", distinct_id="x")]
    )
    assert backend.events == []
    assert len(backend.batches) == 1
    assert [e.name for e in backend.batches[0]] == ["a", "b"]
    assert [e.distinct_id for e in backend.batches[0]] == ["device-123", "x"]


def test_capture_batch_is_all_or_nothing(
    client: PostHogClientWrapper, backend: RecordingBackend
):
    requests = [
        CaptureRequest(event="a"),
        CaptureRequest(event="b", properties={"bad": object()}),
    ]
    with pytest.raises(BuildError):
        client.capture_batch(requests)
    assert backend.sent == []


def test_capture_batch_empty(
    client: PostHogClientWrapper, backend: RecordingBackend
):
    client.capture_batch([])
    assert backend.batches == []


def test_identify_and_reset(client: PostHogClientWrapper):
    client.identify("user-1")
    assert client.get_distinct_id() == "user-1"
    assert client.get_effective_distinct_id() == "user-1"
    client.reset()
    assert client.get_distinct_id() is None
    assert client.get_effective_distinct_id() == "device-123"


def test_alias_without_identity_is_noop(
    client: PostHogClientWrapper, backend: RecordingBackend
):
    client.alias("new_name")
    assert backend.sent == []


def test_alias_with_identity(
    client: PostHogClientWrapper, backend: RecordingBackend
):
    client.identify("user-1")
    client.alias("new_name")
    assert len(backend.events) == 1
    event = backend.events[0]
    assert event.name == ALIAS_EVENT
    assert event.distinct_id == "user-1"
    assert event.properties["alias"] == "new_name"


def test_empty_identify_keeps_capture_and_alias_consistent(
    client: PostHogClientWrapper, backend: RecordingBackend
):
    with pytest.raises(ValueError):
        client.identify("")
    client.capture(CaptureRequest(event="opened"))
    client.alias("new_name")
    assert [e.name for e in backend.events] == ["opened"]
    assert backend.events[0].distinct_id == "device-123"


def test_accessors(client: PostHogClientWrapper, config: PostHogConfig):
    assert client.get_device_id() == "device-123"
    assert client.get_device_id() == client.get_device_id()
    assert client.get_config() is config
    assert client.is_auto_identify_enabled() is False


def test_auto_capture(backend: RecordingBackend):
    config = PostHogConfig(
        api_key="phc_test", backend="recording", auto_capture=True
    )
    client = PostHogClientWrapper(config, device_id="dev")
    assert client.is_auto_identify_enabled() is True
    assert client.get_distinct_id() == "$device:dev"
    client.reset()
    client.alias("ignored")
    assert backend.sent == []
    client.regenerate_auto_distinct_id()
    assert client.get_distinct_id() == "$device:dev"


def test_raw_config_is_validated():
    with pytest.raises(MissingApiKeyError):
        PostHogClientWrapper({"apiHost": "https://eu.i.posthog.com"})


def test_device_id_from_config_source(backend: RecordingBackend):
    config = PostHogConfig(
        api_key="phc_test", backend="recording", device_id_source="random"
    )
    first = PostHogClientWrapper(config)
    second = PostHogClientWrapper(config)
    assert first.get_device_id() != second.get_device_id()


def test_device_id_stable_across_wrappers(
    backend: RecordingBackend, monkeypatch: pytest.MonkeyPatch
):
    monkeypatch.setattr(
        "posthog_bridge.client.resolve_device_id", lambda source: "machine-1"
    )
    config = PostHogConfig(api_key="phc_test", backend="recording")
    assert (
        PostHogClientWrapper(config).get_device_id()
        == PostHogClientWrapper(config).get_device_id()
        == "machine-1"
    )


def test_device_id_failure_is_fatal(
    backend: RecordingBackend, monkeypatch: pytest.MonkeyPatch
):
    def fail(source: str) -> str:
        raise DeviceIdError("no machine id")

    monkeypatch.setattr("posthog_bridge.client.resolve_device_id", fail)
    config = PostHogConfig(api_key="phc_test", backend="recording")
    with pytest.raises(DeviceIdError):
        PostHogClientWrapper(config)


def test_lazy_client(config: PostHogConfig, backend: RecordingBackend):
    client = PostHogClientWrapper(config, lazy=True, device_id="dev")
    assert not client.handle.is_initialized
    client.identify("user")
    assert not client.handle.is_initialized
    client.capture(CaptureRequest(event="first"))
    assert client.handle.is_initialized
    assert len(backend.events) == 1


def test_context_manager_shuts_down(
    config: PostHogConfig, backend: RecordingBackend
):
    with PostHogClientWrapper(config, device_id="dev") as client:
        client.capture(CaptureRequest(event="opened"))
        client.flush()
    assert backend.flush_count == 1
    assert backend.shutdown_count == 1


def test_concurrent_capture_and_identify(
    client: PostHogClientWrapper, backend: RecordingBackend
):
    barrier = threading.Barrier(4)

    def capture() -> None:
        barrier.wait()
        for _ in range(100):
            client.capture(CaptureRequest(event="tick"))

    def identify(value: str) -> None:
        barrier.wait()
        for _ in range(100):
            client.identify(value)

    threads = [
        threading.Thread(target=capture),
        threading.Thread(target=capture),
        threading.Thread(target=identify, args=("a",)),
        threading.Thread(target=identify, args=("b",)),
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(backend.events) == 200
    assert {e.distinct_id for e in backend.events} <= {"device-123", "a", "b"}
    assert client.get_distinct_id() in {"a", "b"}
