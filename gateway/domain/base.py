from datetime import UTC, datetime
from typing import Callable

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Naive UTC timestamp, the form every table column stores."""
    return datetime.now(UTC).replace(tzinfo=None)


def to_epoch_ms(value: datetime) -> int:
    """Milliseconds since the epoch for a naive UTC timestamp."""
    return int(value.replace(tzinfo=UTC).timestamp() * 1000)


def from_epoch_ms(value: int) -> datetime:
    return datetime.fromtimestamp(value / 1000, UTC).replace(tzinfo=None)


class CamelModel(BaseModel):
    """DTO base whose JSON field names are camelCase; snake_case input is accepted too."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
