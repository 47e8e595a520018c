"""Command handlers exposed to the host application.

Each handler takes the client wrapper and the request payload sent by
the front end, either as a parsed model or as a raw camelCase mapping.
L{invoke} runs a handler by name and turns errors into a
L{CommandResult}.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

from loguru import logger
from pydantic import BaseModel, ValidationError

from posthog_bridge.client import PostHogClientWrapper
from posthog_bridge.events import IDENTIFY_EVENT
from posthog_bridge.exceptions import PostHogBridgeError
from posthog_bridge.models import (
    AliasRequest,
    BatchCaptureRequest,
    CaptureRequest,
    IdentifyRequest,
    PingRequest,
    PingResponse,
)
from posthog_bridge.typing import Params
from posthog_bridge.utils.pydantic_utils import CamelModel

M = TypeVar("M", bound=BaseModel)

CommandHandler = Callable[[PostHogClientWrapper, Any], Any]


class CommandResult(CamelModel):
    """Outcome of a command, as returned to the host application."""

    ok: bool
    value: Any = None
    error: str | None = None
    error_kind: str | None = None


def capture(
    client: PostHogClientWrapper, request: CaptureRequest | Params
) -> None:
    client.capture(_parse(CaptureRequest, request))


def capture_batch(
    client: PostHogClientWrapper,
    request: BatchCaptureRequest | list[CaptureRequest | Params] | Params,
) -> None:
    if isinstance(request, list):
        request = {"events": request}
    client.capture_batch(_parse(BatchCaptureRequest, request).events)


def identify(
    client: PostHogClientWrapper, request: IdentifyRequest | Params
) -> None:
    """Identify the user and, if properties were given, send them in an
    C{$identify} event."""
    request = _parse(IdentifyRequest, request)
    client.identify(request.distinct_id)
    if request.properties:
        client.capture(
            CaptureRequest(
                event=IDENTIFY_EVENT,
                properties=request.properties,
                distinct_id=request.distinct_id,
            )
        )


def alias(client: PostHogClientWrapper, request: AliasRequest | Params) -> None:
    request = _parse(AliasRequest, request)
    client.identify(request.distinct_id)
    client.alias(request.alias)


def reset(client: PostHogClientWrapper, _: Any = None) -> None:
    client.reset()


def get_distinct_id(client: PostHogClientWrapper, _: Any = None) -> str | None:
    return client.get_distinct_id()


def get_device_id(client: PostHogClientWrapper, _: Any = None) -> str:
    return client.get_device_id()


def get_config(client: PostHogClientWrapper, _: Any = None) -> Params:
    return client.get_config().snapshot()


def ping(
    _client: PostHogClientWrapper, request: PingRequest | Params | None = None
) -> Params:
    request = _parse(PingRequest, request or {})
    return PingResponse(value=request.value).model_dump(by_alias=True)


COMMANDS: dict[str, CommandHandler] = {
    "capture": capture,
    "capture_batch": capture_batch,
    "identify": identify,
    "alias": alias,
    "reset": reset,
    "get_distinct_id": get_distinct_id,
    "get_device_id": get_device_id,
    "get_config": get_config,
    "ping": ping,
}


def invoke(
    client: PostHogClientWrapper, command: str, payload: Any = None
) -> CommandResult:
    """Run a command by name.

    Bridge errors and invalid payloads are returned as failed results,
    never raised.

    @type client: L{PostHogClientWrapper}
    @param client: The client wrapper to run the command against.
    @type command: str
    @param command: Command name, optionally prefixed with
        C{plugin:posthog|}.
    @type payload: Any
    @param payload: Request payload of the command.
    @rtype: L{CommandResult}
    """
    name = command.rpartition("|")[2]
    handler = COMMANDS.get(name)
    if handler is None:
        return CommandResult(
            ok=False,
            error=f"Unknown command '{command}'.",
            error_kind="unknown_command",
        )
    try:
        value = handler(client, payload)
    except PostHogBridgeError as e:
        logger.debug(f"Command '{name}' failed: {e}")
        return CommandResult(ok=False, error=str(e), error_kind=e.kind)
    except ValidationError as e:
        return CommandResult(ok=False, error=str(e), error_kind="validation")
    return CommandResult(ok=True, value=value)


def _parse(model: type[M], payload: M | Params) -> M:
    if isinstance(payload, model):
        return payload
    return model.model_validate(payload)
