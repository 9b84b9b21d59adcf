from datetime import datetime, timezone
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ..config import settings
from ..services.time_rules import local_to_utc


def _to_naive_utc(value: datetime) -> datetime:
    # Naive input is wall-clock time in the service timezone
    if value.tzinfo is None:
        value = local_to_utc(value, settings.tz_default)
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# Incoming timestamps, normalized to the naive UTC the store keeps
InputDatetime = Annotated[datetime, AfterValidator(_to_naive_utc)]
# Outgoing timestamps, always rendered with an explicit UTC offset
UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]


class CamelModel(BaseModel):
    """Request payload: camelCase on the wire, unknown fields rejected."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class CamelResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)
