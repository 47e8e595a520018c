from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from posthog_bridge.typing import Groups, Params
from posthog_bridge.utils.pydantic_utils import CamelModel


class CaptureRequest(CamelModel):
    """Request to capture a single event.

    @type event: str
    @param event: Event name.
    @type properties: Optional[dict]
    @param properties: Event properties, any JSON values.
    @type distinct_id: Optional[str]
    @param distinct_id: Distinct id overriding the current identity.
    @type groups: Optional[dict]
    @param groups: Mapping of group type to group id.
    @type timestamp: Optional[datetime]
    @param timestamp: Explicit event time. If not set, the SDK stamps
        the event at capture time.
    @type anonymous: bool
    @param anonymous: Capture without any distinct id.
    """

    event: str = Field(min_length=1)
    properties: Params | None = None
    distinct_id: str | None = Field(default=None, min_length=1)
    groups: Groups | None = None
    timestamp: datetime | None = None
    anonymous: bool = False

    @field_validator("groups", mode="before")
    @classmethod
    def _stringify_group_ids(cls, value: object) -> object:
        # Front ends may send numeric group ids.
        if isinstance(value, dict):
            return {
                str(key): str(group_id)
                if isinstance(group_id, (int, float))
                and not isinstance(group_id, bool)
                else group_id
                for key, group_id in value.items()
            }
        return value


class IdentifyRequest(CamelModel):
    distinct_id: str = Field(min_length=1)
    properties: Params | None = None


class AliasRequest(CamelModel):
    distinct_id: str = Field(min_length=1)
    alias: str = Field(min_length=1)


class BatchCaptureRequest(CamelModel):
    events: list[CaptureRequest]


class PingRequest(CamelModel):
    value: str | None = None


class PingResponse(CamelModel):
    value: str | None = None
