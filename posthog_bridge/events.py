from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from posthog_bridge.exceptions import BuildError
from posthog_bridge.identity import IdentityStore
from posthog_bridge.models import CaptureRequest
from posthog_bridge.typing import Groups, Params

DEVICE_ID_PROPERTY = "$device_id"
ALIAS_EVENT = "$create_alias"
IDENTIFY_EVENT = "$identify"


@dataclass(frozen=True)
class Event:
    """Outbound analytics event, ready to be handed to a backend.

    Anonymous events have no distinct id.
    """

    name: str
    distinct_id: str | None
    properties: Params = field(default_factory=dict)
    groups: Groups = field(default_factory=dict)
    timestamp: datetime | None = None
    anonymous: bool = False

    def to_payload(self) -> dict[str, Any]:
        """Serialize the event into a JSON-friendly dict."""
        return {
            "event": self.name,
            "distinct_id": self.distinct_id,
            "anonymous": self.anonymous,
            "properties": self.properties,
            "groups": self.groups,
            "timestamp": self.timestamp.isoformat()
            if self.timestamp is not None
            else None,
        }


def build_event(request: CaptureRequest, identity: IdentityStore) -> Event:
    """Map a capture request and the current identity onto an event.

    The distinct id is the one given in the request, else the current
    identity of the store. Caller properties are merged first and
    C{$device_id} is assigned last, so it cannot be overridden.

    @type request: L{CaptureRequest}
    @param request: The capture request.
    @type identity: L{IdentityStore}
    @param identity: Identity store to resolve the distinct id from.
        It is only read.
    @rtype: L{Event}
    @raise BuildError: If a property, group or timestamp is rejected.
    """
    if request.anonymous:
        distinct_id = None
    else:
        distinct_id = request.distinct_id or identity.effective_id()

    properties: Params = {}
    for key, value in (request.properties or {}).items():
        properties[key] = _check_json(request.event, key, value)
    properties[DEVICE_ID_PROPERTY] = identity.device_id

    groups: Groups = {}
    for group_type, group_id in (request.groups or {}).items():
        if not isinstance(group_id, str) or not group_id:
            raise BuildError(
                request.event,
                f"group '{group_type}'",
                "group id must be a non-empty string",
            )
        groups[group_type] = group_id

    return Event(
        name=request.event,
        distinct_id=distinct_id,
        properties=properties,
        groups=groups,
        timestamp=_normalize_timestamp(request.event, request.timestamp),
        anonymous=request.anonymous,
    )


def build_alias_event(alias: str, distinct_id: str, device_id: str) -> Event:
    """Build the C{$create_alias} event linking C{alias} to
    C{distinct_id}."""
    return Event(
        name=ALIAS_EVENT,
        distinct_id=distinct_id,
        properties={"alias": alias, DEVICE_ID_PROPERTY: device_id},
    )


def _check_json(event: str, key: str, value: Any) -> Any:
    try:
        json.dumps(value, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise BuildError(event, f"property '{key}'", str(e)) from e
    return value


def _normalize_timestamp(
    event: str, timestamp: datetime | None
) -> datetime | None:
    if timestamp is None:
        return None
    if not isinstance(timestamp, datetime):
        raise BuildError(
            event, "timestamp", f"expected datetime, got {type(timestamp)}"
        )
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(timezone.utc)
