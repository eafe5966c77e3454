"""
Scalar traversals - primitive and date leaves.

Decoding is lenient towards String nodes: parameter values always arrive as
text, so every scalar knows how to parse itself back from a string.
"""

import base64
import binascii
import datetime
import decimal
import uuid
from enum import Enum
from typing import Any, Optional, Tuple, Type

from typed_openapi.config import DateEncodingFormat
from typed_openapi.errors import DecodingMismatch, UnsupportedShape
from typed_openapi.schema.models import SchemaKind
from typed_openapi.schema.values import (
    BoolValue,
    BytesValue,
    FloatValue,
    IntValue,
    StringValue,
    StructuralValue,
    kind_of,
)

from .traversal import Traversal, TraversalContext, TraversalKind

TRUE_STRINGS = ("true", "1")
FALSE_STRINGS = ("false", "0")


class ScalarTraversal(Traversal):
    """
    Base scalar leaf

    Subclasses set ``python_types`` and override ``to_node`` / ``from_node``.
    """

    kind = TraversalKind.SCALAR
    python_types: Tuple[type, ...] = ()

    def schema_type(self, context: TraversalContext) -> Tuple[SchemaKind, Optional[str]]:
        """Return (schema kind, format) for this leaf"""
        raise NotImplementedError

    def encode(self, value: Any, context: TraversalContext, path: str = "$") -> StructuralValue:
        if not isinstance(value, self.python_types):
            raise UnsupportedShape(
                f"{path}: expected {self.identity.name}, got {type(value).__name__}"
            )
        return self.to_node(value, context)

    def decode(self, node: StructuralValue, context: TraversalContext, path: str = "$") -> Any:
        try:
            return self.from_node(node, context)
        except (ValueError, TypeError, AttributeError, ArithmeticError, binascii.Error) as e:
            raise DecodingMismatch(
                f"cannot read {kind_of(node)} as {self.identity.name}: {e}", path
            ) from e

    def to_node(self, value: Any, context: TraversalContext) -> StructuralValue:
        raise NotImplementedError

    def from_node(self, node: StructuralValue, context: TraversalContext) -> Any:
        raise NotImplementedError


class BoolTraversal(ScalarTraversal):
    python_types = (bool,)

    def schema_type(self, context):
        return SchemaKind.BOOLEAN, None

    def to_node(self, value, context):
        return BoolValue(value)

    def from_node(self, node, context):
        if isinstance(node, BoolValue):
            return node.value
        if isinstance(node, StringValue):
            text = node.value.strip().lower()
            if text in TRUE_STRINGS:
                return True
            if text in FALSE_STRINGS:
                return False
            raise ValueError(f"invalid boolean {node.value!r}")
        raise TypeError("not a boolean")


class IntTraversal(ScalarTraversal):
    python_types = (int,)

    def schema_type(self, context):
        return SchemaKind.INTEGER, "int64"

    def encode(self, value, context, path="$"):
        # bool is an int subclass but not an integer on the wire
        if isinstance(value, bool):
            raise UnsupportedShape(f"{path}: expected int, got bool")
        return super().encode(value, context, path)

    def to_node(self, value, context):
        return IntValue(value)

    def from_node(self, node, context):
        if isinstance(node, IntValue):
            return node.value
        if isinstance(node, FloatValue) and node.value.is_integer():
            return int(node.value)
        if isinstance(node, StringValue):
            return int(node.value)
        raise TypeError("not an integer")


class FloatTraversal(ScalarTraversal):
    python_types = (float, int)

    def schema_type(self, context):
        return SchemaKind.NUMBER, "double"

    def encode(self, value, context, path="$"):
        if isinstance(value, bool):
            raise UnsupportedShape(f"{path}: expected float, got bool")
        return super().encode(value, context, path)

    def to_node(self, value, context):
        return FloatValue(float(value))

    def from_node(self, node, context):
        if isinstance(node, (FloatValue, IntValue)) and not isinstance(node.value, bool):
            return float(node.value)
        if isinstance(node, StringValue):
            return float(node.value)
        raise TypeError("not a number")


class StringTraversal(ScalarTraversal):
    python_types = (str,)

    def schema_type(self, context):
        return SchemaKind.STRING, None

    def to_node(self, value, context):
        return StringValue(value)

    def from_node(self, node, context):
        if isinstance(node, StringValue):
            return node.value
        raise TypeError("not a string")


class BytesTraversal(ScalarTraversal):
    """Raw bytes; base64 when carried as text"""
    python_types = (bytes, bytearray)

    def schema_type(self, context):
        return SchemaKind.STRING, "byte"

    def to_node(self, value, context):
        return BytesValue(bytes(value))

    def from_node(self, node, context):
        if isinstance(node, BytesValue):
            return node.value
        if isinstance(node, StringValue):
            return base64.b64decode(node.value, validate=True)
        raise TypeError("not bytes")


class DecimalTraversal(ScalarTraversal):
    """Decimals travel as strings to keep their precision"""
    python_types = (decimal.Decimal,)

    def schema_type(self, context):
        return SchemaKind.STRING, "decimal"

    def to_node(self, value, context):
        return StringValue(str(value))

    def from_node(self, node, context):
        if isinstance(node, (StringValue, IntValue)):
            return decimal.Decimal(str(node.value))
        if isinstance(node, FloatValue):
            return decimal.Decimal(repr(node.value))
        raise TypeError("not a decimal")


class UUIDTraversal(ScalarTraversal):
    python_types = (uuid.UUID,)

    def schema_type(self, context):
        return SchemaKind.STRING, "uuid"

    def to_node(self, value, context):
        return StringValue(str(value))

    def from_node(self, node, context):
        if isinstance(node, StringValue):
            return uuid.UUID(node.value)
        raise TypeError("not a uuid")


def _parse_iso_datetime(text: str) -> datetime.datetime:
    # fromisoformat() only accepts a trailing "Z" from Python 3.11
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return datetime.datetime.fromisoformat(text)


class DateTimeTraversal(ScalarTraversal):
    """
    datetime leaves, written according to the configured date format

    Epoch formats decode to timezone-aware UTC datetimes.
    """
    python_types = (datetime.datetime,)

    def schema_type(self, context):
        date_format = context.config.date_format
        if date_format == DateEncodingFormat.EPOCH_SECONDS:
            return SchemaKind.NUMBER, "double"
        if date_format == DateEncodingFormat.EPOCH_MILLISECONDS:
            return SchemaKind.INTEGER, "int64"
        if date_format == DateEncodingFormat.DATE:
            return SchemaKind.STRING, "date"
        return SchemaKind.STRING, "date-time"

    def to_node(self, value, context):
        date_format = context.config.date_format
        if date_format == DateEncodingFormat.EPOCH_SECONDS:
            return FloatValue(value.timestamp())
        if date_format == DateEncodingFormat.EPOCH_MILLISECONDS:
            return IntValue(round(value.timestamp() * 1000))
        if date_format == DateEncodingFormat.DATE:
            return StringValue(value.date().isoformat())
        return StringValue(value.isoformat())

    def from_node(self, node, context):
        date_format = context.config.date_format
        if date_format in (DateEncodingFormat.EPOCH_SECONDS, DateEncodingFormat.EPOCH_MILLISECONDS):
            if isinstance(node, StringValue):
                seconds = float(node.value)
            elif isinstance(node, (IntValue, FloatValue)):
                seconds = float(node.value)
            else:
                raise TypeError("not a timestamp")
            if date_format == DateEncodingFormat.EPOCH_MILLISECONDS:
                seconds = seconds / 1000
            return datetime.datetime.fromtimestamp(seconds, tz=datetime.timezone.utc)
        if isinstance(node, StringValue):
            return _parse_iso_datetime(node.value)
        raise TypeError("not a date-time string")


class DateTraversal(ScalarTraversal):
    """Calendar dates, always ISO "YYYY-MM-DD" strings"""
    python_types = (datetime.date,)

    def schema_type(self, context):
        return SchemaKind.STRING, "date"

    def encode(self, value, context, path="$"):
        if isinstance(value, datetime.datetime):
            value = value.date()
        return super().encode(value, context, path)

    def to_node(self, value, context):
        return StringValue(value.isoformat())

    def from_node(self, node, context):
        if isinstance(node, StringValue):
            return datetime.date.fromisoformat(node.value)
        raise TypeError("not a date string")


class EnumTraversal(ScalarTraversal):
    """Enum members travel as their raw values"""

    def __init__(self, declared_type: Type[Enum]):
        super().__init__(declared_type)
        self.python_types = (declared_type,)
        self.member_type = self._member_type(declared_type)

    @property
    def is_named(self) -> bool:
        return True

    @staticmethod
    def _member_type(enum_cls: Type[Enum]) -> type:
        raw = [member.value for member in enum_cls]
        if raw and all(isinstance(value, int) and not isinstance(value, bool) for value in raw):
            return int
        if raw and all(isinstance(value, (int, float)) and not isinstance(value, bool) for value in raw):
            return float
        return str

    @property
    def values(self) -> Tuple[Any, ...]:
        return tuple(member.value for member in self.declared_type)

    def schema_type(self, context):
        if self.member_type is int:
            return SchemaKind.INTEGER, None
        if self.member_type is float:
            return SchemaKind.NUMBER, None
        return SchemaKind.STRING, None

    def to_node(self, value, context):
        if self.member_type is int:
            return IntValue(value.value)
        if self.member_type is float:
            return FloatValue(float(value.value))
        return StringValue(str(value.value))

    def from_node(self, node, context):
        raw = node.value
        if isinstance(node, StringValue) and self.member_type is not str:
            raw = self.member_type(node.value)
        return self.declared_type(raw)
