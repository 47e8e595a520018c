from typing import Final

__version__: Final[str] = "0.1.0"

from .utils.environ import environ
from .utils.logging import setup_logging

if not environ.POSTHOG_BRIDGE_DISABLE_SETUP_LOGGING:
    setup_logging()

from .client import PostHogClientWrapper
from .commands import CommandResult, invoke
from .config import PostHogConfig, PostHogOptions
from .exceptions import (
    BuildError,
    ConfigurationError,
    DeviceIdError,
    MissingApiKeyError,
    PostHogBridgeError,
    TransportError,
)
from .models import (
    AliasRequest,
    BatchCaptureRequest,
    CaptureRequest,
    IdentifyRequest,
)

__all__ = [
    "AliasRequest",
    "BatchCaptureRequest",
    "BuildError",
    "CaptureRequest",
    "CommandResult",
    "ConfigurationError",
    "DeviceIdError",
    "IdentifyRequest",
    "MissingApiKeyError",
    "PostHogBridgeError",
    "PostHogClientWrapper",
    "PostHogConfig",
    "PostHogOptions",
    "TransportError",
    "invoke",
]
