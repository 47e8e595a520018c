from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BaseModelExtraForbid(BaseModel):
    model_config: ConfigDict = ConfigDict(extra="forbid")


class CamelModel(BaseModelExtraForbid):
    """Model accepting both snake_case names and the camelCase keys
    sent by JavaScript front ends."""

    model_config: ConfigDict = ConfigDict(
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )
