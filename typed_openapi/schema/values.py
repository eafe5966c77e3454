"""
Structural values - the intermediate tree every traversal produces.

A structural value is one of a closed set of frozen node types. Mapping
entries keep insertion order, which drives both schema property order and
parameter emission order.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union


@dataclass(frozen=True)
class NullValue:
    """Explicit null"""

    def to_python(self) -> Any:
        return None


@dataclass(frozen=True)
class BoolValue:
    value: bool

    def to_python(self) -> Any:
        return self.value


@dataclass(frozen=True)
class IntValue:
    value: int

    def to_python(self) -> Any:
        return self.value


@dataclass(frozen=True)
class FloatValue:
    value: float

    def to_python(self) -> Any:
        return self.value


@dataclass(frozen=True)
class StringValue:
    value: str

    def to_python(self) -> Any:
        return self.value


@dataclass(frozen=True)
class BytesValue:
    value: bytes

    def to_python(self) -> Any:
        return self.value


@dataclass(frozen=True)
class SequenceValue:
    """Ordered positional children"""
    items: Tuple["StructuralValue", ...] = ()

    def __iter__(self) -> Iterator["StructuralValue"]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def to_python(self) -> Any:
        return [item.to_python() for item in self.items]


@dataclass(frozen=True)
class MappingValue:
    """Ordered keyed children with unique keys"""
    entries: Tuple[Tuple[str, "StructuralValue"], ...] = ()

    def __post_init__(self):
        seen = set()
        for key, _ in self.entries:
            if key in seen:
                raise ValueError(f"Duplicate key in mapping value: {key!r}")
            seen.add(key)

    @classmethod
    def from_pairs(cls, pairs: List[Tuple[str, "StructuralValue"]]) -> "MappingValue":
        return cls(entries=tuple(pairs))

    def keys(self) -> List[str]:
        return [key for key, _ in self.entries]

    def get(self, key: str) -> Optional["StructuralValue"]:
        for entry_key, value in self.entries:
            if entry_key == key:
                return value
        return None

    def __contains__(self, key: object) -> bool:
        return any(entry_key == key for entry_key, _ in self.entries)

    def __iter__(self) -> Iterator[Tuple[str, "StructuralValue"]]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def to_python(self) -> Any:
        return {key: value.to_python() for key, value in self.entries}


StructuralValue = Union[
    NullValue,
    BoolValue,
    IntValue,
    FloatValue,
    StringValue,
    BytesValue,
    SequenceValue,
    MappingValue,
]

SCALAR_TYPES = (NullValue, BoolValue, IntValue, FloatValue, StringValue, BytesValue)

NULL = NullValue()


def is_scalar(value: StructuralValue) -> bool:
    """Check if value is a leaf node"""
    return isinstance(value, SCALAR_TYPES)


def from_python(obj: Any) -> StructuralValue:
    """
    Convert JSON-shaped Python data into a structural value

    Args:
        obj: None, bool, int, float, str, bytes, list/tuple or str-keyed dict

    Returns:
        Equivalent structural value

    Raises:
        TypeError: If obj contains something that is not JSON-shaped
    """
    if obj is None:
        return NULL
    # bool before int: bool is an int subclass
    if isinstance(obj, bool):
        return BoolValue(obj)
    if isinstance(obj, int):
        return IntValue(obj)
    if isinstance(obj, float):
        return FloatValue(obj)
    if isinstance(obj, str):
        return StringValue(obj)
    if isinstance(obj, (bytes, bytearray)):
        return BytesValue(bytes(obj))
    if isinstance(obj, Mapping):
        pairs = []
        for key, value in obj.items():
            if not isinstance(key, str):
                raise TypeError(f"Mapping keys must be strings, got {type(key).__name__}")
            pairs.append((key, from_python(value)))
        return MappingValue.from_pairs(pairs)
    if isinstance(obj, (list, tuple)):
        return SequenceValue(tuple(from_python(item) for item in obj))

    raise TypeError(f"Cannot convert {type(obj).__name__} to a structural value")


def kind_of(value: StructuralValue) -> str:
    """Short human-readable kind name, used in error messages"""
    kinds: Dict[type, str] = {
        NullValue: "null",
        BoolValue: "boolean",
        IntValue: "integer",
        FloatValue: "number",
        StringValue: "string",
        BytesValue: "bytes",
        SequenceValue: "sequence",
        MappingValue: "mapping",
    }
    return kinds.get(type(value), "unknown")
