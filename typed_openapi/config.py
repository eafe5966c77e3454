"""Encoder configuration."""
import os
from dataclasses import dataclass, field, replace
from enum import Enum

from typed_openapi.naming import DEFAULT_KEY_STRATEGY, KeyEncodingStrategy


class DateEncodingFormat(str, Enum):
    """How date leaves are written into structural values"""
    ISO8601 = "iso8601"  # string, date-time
    DATE = "date"  # string, date
    EPOCH_SECONDS = "epoch_seconds"  # number
    EPOCH_MILLISECONDS = "epoch_milliseconds"  # integer


@dataclass(frozen=True)
class EncoderConfig:
    """Options threaded through every traversal, schema and parameter call."""

    key_strategy: KeyEncodingStrategy = field(default=DEFAULT_KEY_STRATEGY)
    date_format: DateEncodingFormat = DateEncodingFormat.ISO8601
    percent_encode: bool = True

    @classmethod
    def from_env(cls) -> "EncoderConfig":
        """Load config from environment variables."""
        return cls(
            key_strategy=KeyEncodingStrategy.from_name(
                os.getenv("TYPED_OPENAPI_KEY_STRATEGY", "snake_case")
            ),
            date_format=DateEncodingFormat(
                os.getenv("TYPED_OPENAPI_DATE_FORMAT", DateEncodingFormat.ISO8601.value)
            ),
            percent_encode=os.getenv("TYPED_OPENAPI_PERCENT_ENCODE", "1") not in ("0", "false", "no"),
        )

    def with_options(self, **changes) -> "EncoderConfig":
        """Return a copy with some options replaced."""
        return replace(self, **changes)


DEFAULT_CONFIG = EncoderConfig()
