from functools import lru_cache
from typing import Any, Literal

from pydantic import SecretStr, model_serializer
from pydantic_settings import BaseSettings, SettingsConfigDict

from posthog_bridge.typing import Params

__all__ = ["Environ", "environ"]


class Environ(BaseSettings):
    """A L{BaseSettings} subclass for storing environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    POSTHOG_API_KEY: SecretStr | None = None
    POSTHOG_API_HOST: str | None = None
    POSTHOG_REQUEST_TIMEOUT: int | None = None
    POSTHOG_AUTO_CAPTURE: bool | None = None
    POSTHOG_DEVICE_ID_SOURCE: Literal["machine", "random"] | None = None
    POSTHOG_BACKEND: str | None = None
    POSTHOG_DEBUG: bool = False

    POSTHOG_BRIDGE_DISABLE_SETUP_LOGGING: bool = False

    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = (
        "INFO"
    )

    @model_serializer(when_used="always", mode="plain")
    def _serialize_environ(self) -> Params:
        return {}


@lru_cache(maxsize=1)
def _load_environ() -> Environ:
    """Return a cached Environ instance, reading .env and os.environ
    once."""
    return Environ()


class _EnvironProxy:
    def __getattr__(self, name: str) -> Any:
        _load_environ.cache_clear()
        real = _load_environ()
        return getattr(real, name)

    def __repr__(self) -> str:
        return "<EnvironProxy loading from .env>"


environ = _EnvironProxy()
