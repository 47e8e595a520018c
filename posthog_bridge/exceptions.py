class PostHogBridgeError(Exception):
    """Base class for all errors raised by the bridge."""

    kind: str = "bridge"


class ConfigurationError(PostHogBridgeError):
    """Invalid or missing client configuration."""

    kind = "configuration"


class MissingApiKeyError(ConfigurationError):
    """Raised when no API key could be found."""

    def __init__(self) -> None:
        super().__init__(
            "Missing API key: Please set the POSTHOG_API_KEY environment "
            "variable or configure `apiKey` in the host config file."
        )


class DeviceIdError(ConfigurationError):
    """Raised when a stable device id cannot be obtained."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to get machine UID for device_id: {reason}")


class TransportError(PostHogBridgeError):
    """The analytics SDK rejected or failed to send an event."""

    kind = "transport"


class BuildError(PostHogBridgeError):
    """An event could not be built from a request.

    Raised when a property, group or timestamp value is rejected.
    """

    kind = "build"

    def __init__(self, event: str, field: str, reason: str) -> None:
        self.event = event
        self.field = field
        super().__init__(
            f"Failed to build event '{event}': invalid {field}: {reason}"
        )
