"""Key encoding strategies applied to record field names."""
import logging
from dataclasses import dataclass
from typing import Callable, Dict

from .case import to_camel_case, to_snake_case

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeyEncodingStrategy:
    """
    Maps a field identifier to its wire name

    The same instance must be used to encode and to decode a value, otherwise
    decoding looks fields up under the wrong names.

    Usage:
    ```python
    strategy = KeyEncodingStrategy.convert_to_snake_case()
    strategy.encode("userId")  # "user_id"
    ```
    """

    encode: Callable[[str], str]
    name: str = "custom"

    @classmethod
    def custom(cls, encode: Callable[[str], str], name: str = "custom") -> "KeyEncodingStrategy":
        return cls(encode=encode, name=name)

    @classmethod
    def use_default_keys(cls) -> "KeyEncodingStrategy":
        return cls(encode=lambda key: key, name="identity")

    @classmethod
    def convert_to_snake_case(cls, separator: str = "_") -> "KeyEncodingStrategy":
        return cls(encode=lambda key: to_snake_case(key, separator), name="snake_case")

    @classmethod
    def convert_to_camel_case(cls, separator: str = "_") -> "KeyEncodingStrategy":
        return cls(encode=lambda key: to_camel_case(key, separator), name="camel_case")

    @classmethod
    def from_name(cls, name: str) -> "KeyEncodingStrategy":
        """
        Resolve a built-in strategy by name

        Raises:
            ValueError: If the name is not one of the built-in strategies
        """
        factories: Dict[str, Callable[[], KeyEncodingStrategy]] = {
            "snake_case": cls.convert_to_snake_case,
            "camel_case": cls.convert_to_camel_case,
            "identity": cls.use_default_keys,
        }
        key = name.strip().lower()
        if key not in factories:
            raise ValueError(
                f"Unknown key encoding strategy: {name!r}. "
                f"Expected one of: {sorted(factories)}"
            )
        logger.debug(f"Resolved key encoding strategy {key}")
        return factories[key]()

    def __call__(self, key: str) -> str:
        return self.encode(key)


DEFAULT_KEY_STRATEGY = KeyEncodingStrategy.convert_to_snake_case()
