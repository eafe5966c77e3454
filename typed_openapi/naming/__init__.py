"""
Naming conventions

Case conversion between identifier style and wire style, and the key
encoding strategies that carry a conversion through encode/decode calls.
"""

from .case import to_camel_case, to_snake_case
from .key_strategy import DEFAULT_KEY_STRATEGY, KeyEncodingStrategy

__all__ = [
    "to_camel_case",
    "to_snake_case",
    "KeyEncodingStrategy",
    "DEFAULT_KEY_STRATEGY",
]
