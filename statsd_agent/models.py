import re
from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator

# characters that would split a tag or a line on the wire
_UNSAFE = re.compile(r"[.\s:|]")
EMPTY_VALUE = "none"


class InvalidMetricType(ValueError):
    def __init__(self, value):
        self.value = value
        super().__init__(
            f"{value!r} is not a statsd metric type (one of 'c', 's', 'ms', or 'g')"
        )


class MetricType(str, Enum):
    COUNTER = "c"
    SET = "s"
    GAUGE = "g"
    TIMER = "ms"

    @classmethod
    def parse(cls, value) -> "MetricType":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidMetricType(value) from None


def format_number(value) -> str:
    """Render a value the way statsd expects it: 10.0 -> "10", 0.25 -> "0.25"."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class Tag(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    value: str

    @field_validator("name", "value", mode="before")
    @classmethod
    def sanitize(cls, v):
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            v = format_number(v)
        return _UNSAFE.sub("-", str(v))

    @field_validator("value")
    @classmethod
    def placeholder(cls, v):
        # an empty value would leave two dots in a row on the wire
        return v or EMPTY_VALUE

    def render(self, prefix: str) -> str:
        return f"{prefix}{self.name}.{self.value}"


class Sample(BaseModel):
    model_config = ConfigDict(frozen=True)

    metric: str = Field(..., min_length=1)
    value: int | float | str
    type: MetricType
    tags: List[Tag] = []

    def line(self, prefix: str) -> str:
        tags = ".".join(t.render(prefix) for t in self.tags)
        name = f"{self.metric}.{tags}" if tags else self.metric
        value = self.value if isinstance(self.value, str) else format_number(self.value)
        return f"{name}:{value}|{self.type.value}"
