from pathlib import Path
from typing import Any, Literal

import yaml
from loguru import logger
from pydantic import (
    ConfigDict,
    Field,
    SecretStr,
    ValidationError,
    field_validator,
    model_validator,
)

from posthog_bridge.exceptions import ConfigurationError, MissingApiKeyError
from posthog_bridge.typing import Params, PathType
from posthog_bridge.utils.environ import environ
from posthog_bridge.utils.pydantic_utils import CamelModel

DEFAULT_API_HOST = "https://us.i.posthog.com"
DEFAULT_REQUEST_TIMEOUT = 30

# Capture paths accepted for backwards compatibility with configs that
# stored the full ingestion endpoint instead of the host.
_CAPTURE_PATHS = ("/i/v0/e", "/capture", "/batch")

DeviceIdSource = Literal["machine", "random"]


class PostHogOptions(CamelModel):
    """Front-end options of the host application's PostHog config.

    Only C{debug} changes the behaviour of the bridge, the rest is
    passed through in the config snapshot.
    """

    model_config = ConfigDict(frozen=True)

    disable_cookie: bool | None = None
    disable_session_recording: bool | None = None
    capture_pageview: bool | None = None
    capture_pageleave: bool | None = None
    debug: bool | None = None
    persistence: str | None = None
    person_profiles: str | None = None

    def is_empty(self) -> bool:
        return all(value is None for value in self.model_dump().values())


class PostHogConfig(CamelModel):
    """Configuration of the PostHog client.

    Immutable once created. Every option has an explicit default.

    @type api_key: SecretStr
    @param api_key: PostHog project API key. Required.
    @type api_host: str
    @param api_host: PostHog host URL. A full capture endpoint is
        accepted and reduced to its host.
    @type request_timeout_seconds: int
    @param request_timeout_seconds: Timeout applied by the SDK to every
        request.
    @type auto_capture: bool
    @param auto_capture: If C{True}, a C{$device:<device_id>} distinct
        id is used until the user is identified.
    @type device_id_source: str
    @param device_id_source: C{"machine"} derives the device id from the
        OS machine identifier, C{"random"} generates a fresh one.
    @type backend: str
    @param backend: Name of the registered backend to send events with.
    @type options: Optional[L{PostHogOptions}]
    @param options: Front-end options of the host application.
    """

    model_config = ConfigDict(frozen=True)

    api_key: SecretStr
    api_host: str = DEFAULT_API_HOST
    request_timeout_seconds: int = Field(
        default=DEFAULT_REQUEST_TIMEOUT, gt=0
    )
    auto_capture: bool = False
    device_id_source: DeviceIdSource = "machine"
    backend: str = "posthog"
    options: PostHogOptions | None = None

    @model_validator(mode="before")
    @classmethod
    def _require_api_key(cls, data: Any) -> Any:
        if isinstance(data, dict):
            value = data.get("api_key", data.get("apiKey"))
            if isinstance(value, SecretStr):
                value = value.get_secret_value()
            if value is None or (isinstance(value, str) and not value.strip()):
                raise MissingApiKeyError
        return data

    @field_validator("api_key", mode="after")
    @classmethod
    def _strip_api_key(cls, value: SecretStr) -> SecretStr:
        return SecretStr(value.get_secret_value().strip())

    @field_validator("api_host", mode="after")
    @classmethod
    def _normalize_host(cls, value: str) -> str:
        host = value.strip().rstrip("/")
        if not host.startswith(("http://", "https://")):
            raise ConfigurationError(
                f"Invalid API host '{value}': expected an http(s) URL."
            )
        for path in _CAPTURE_PATHS:
            if host.endswith(path):
                host = host[: -len(path)]
        return host

    @field_validator("options", mode="after")
    @classmethod
    def _drop_empty_options(
        cls, value: PostHogOptions | None
    ) -> PostHogOptions | None:
        if value is not None and value.is_empty():
            return None
        return value

    @field_validator("backend", mode="after")
    @classmethod
    def _lower_backend(cls, value: str) -> str:
        return value.strip().lower()

    @property
    def debug(self) -> bool:
        return bool(self.options is not None and self.options.debug)

    @classmethod
    def create(cls, data: Params) -> "PostHogConfig":
        """Validates a raw mapping into a config.

        @type data: dict
        @param data: Raw config values, camelCase or snake_case keys.
        @rtype: L{PostHogConfig}
        @raise ConfigurationError: If the values are invalid.
        """
        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid PostHog configuration: {e}"
            ) from e

    @classmethod
    def from_environ(cls, **overrides: Any) -> "PostHogConfig":
        """Builds a config from the C{POSTHOG_*} environment variables.

        @type overrides: Any
        @param overrides: Values taking precedence over the environment.
        @rtype: L{PostHogConfig}
        """
        data: Params = {}
        if environ.POSTHOG_API_KEY is not None:
            data["api_key"] = environ.POSTHOG_API_KEY.get_secret_value()
        if environ.POSTHOG_API_HOST:
            data["api_host"] = environ.POSTHOG_API_HOST
        if environ.POSTHOG_REQUEST_TIMEOUT is not None:
            data["request_timeout_seconds"] = environ.POSTHOG_REQUEST_TIMEOUT
        if environ.POSTHOG_AUTO_CAPTURE is not None:
            data["auto_capture"] = environ.POSTHOG_AUTO_CAPTURE
        if environ.POSTHOG_DEVICE_ID_SOURCE is not None:
            data["device_id_source"] = environ.POSTHOG_DEVICE_ID_SOURCE
        if environ.POSTHOG_BACKEND:
            data["backend"] = environ.POSTHOG_BACKEND
        if environ.POSTHOG_DEBUG:
            data["options"] = {"debug": True}
        data.update(overrides)
        return cls.create(data)

    @classmethod
    def from_file(
        cls, path: PathType, section: str = "posthog"
    ) -> "PostHogConfig":
        """Loads the config from a host application config file.

        The file can be YAML or JSON. The config is read from
        C{plugins.<section>}, from C{<section>} or from the top level,
        whichever is found first. C{POSTHOG_API_KEY} and
        C{POSTHOG_API_HOST} take precedence over the file.

        @type path: str
        @param path: Path to the config file.
        @type section: str
        @param section: Name of the plugin section.
        @rtype: L{PostHogConfig}
        @raise ConfigurationError: If the file cannot be read or the
            values are invalid.
        """
        path = Path(path)
        try:
            raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(
                f"Could not read PostHog config from '{path}': {e}"
            ) from e
        if not isinstance(raw, dict):
            raise ConfigurationError(
                f"Expected a mapping in '{path}', got {type(raw).__name__}."
            )

        plugins = raw.get("plugins")
        if isinstance(plugins, dict) and section in plugins:
            section_data = plugins[section] or {}
        elif section in raw:
            section_data = raw[section] or {}
        else:
            section_data = raw
        logger.debug(f"Loaded PostHog config section from '{path}'.")

        data = _split_options(dict(section_data))
        if environ.POSTHOG_API_KEY is not None:
            data["api_key"] = environ.POSTHOG_API_KEY.get_secret_value()
            data.pop("apiKey", None)
        if environ.POSTHOG_API_HOST:
            data["api_host"] = environ.POSTHOG_API_HOST
            data.pop("apiHost", None)
        return cls.create(data)

    def snapshot(self) -> Params:
        """Returns a JSON-friendly view of the config with the API key
        masked."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def __str__(self) -> str:
        return self.model_dump_json(indent=4, by_alias=True)


def _split_options(data: Params) -> Params:
    """Moves flat front-end option keys into a nested C{options}
    mapping."""
    options = dict(data.pop("options", None) or {})
    for name, field in PostHogOptions.model_fields.items():
        for key in (name, field.alias):
            if key is not None and key in data:
                options[name] = data.pop(key)
    if options:
        data["options"] = options
    return data
