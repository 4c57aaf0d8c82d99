"""Record model shared by producer and consumer.

The JSON shape is ``{"id", "name", "value", "createdAt"}``. ``value`` is a
decimal in Python and a plain JSON number on the wire. It is limited to 15
significant digits with 2 decimal places, the range a double carries
exactly, so a frame decodes back to the same value.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_serializer

# NUMERIC(15, 2): at most 15 significant digits survive a trip through a double
VALUE_MAX_DIGITS = 15
VALUE_DECIMAL_PLACES = 2


class Record(BaseModel):
    """A single immutable record.

    Attributes:
        id: Unique, monotonically assigned by the source.
        name: Display name.
        value: Decimal amount (up to 13 integer digits, 2 decimal places),
            serialized as a JSON number.
        created_at: Creation timestamp, serialized as ISO-8601 ``createdAt``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int
    name: str
    value: Decimal = Field(max_digits=VALUE_MAX_DIGITS, decimal_places=VALUE_DECIMAL_PLACES)
    created_at: datetime = Field(alias="createdAt")

    @field_serializer("value", when_used="json")
    def _value_as_number(self, value: Decimal) -> float:
        return float(value)
