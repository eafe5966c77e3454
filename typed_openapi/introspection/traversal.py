"""
Traversal protocol - walks typed values into structural values and back.

A Traversal is bound to one declared type. It exposes the type's shape
(scalar, keyed or unkeyed) for schema building, and converts values of that
type to and from structural values for parameter projection. Types either
get a derived traversal (dataclasses, enums, typed containers) or provide
their own through a ``__traversal__`` classmethod.

Usage:
```python
resolver = TraversalResolver()
context = TraversalContext(resolver=resolver)
traversal = resolver.resolve(User)
node = traversal.encode(User(user_id=1), context)
user = traversal.decode(node, context)
```
"""

import dataclasses
import logging
import typing
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Optional

from typed_openapi.config import DEFAULT_CONFIG, EncoderConfig
from typed_openapi.errors import DecodingMismatch, UnsupportedShape
from typed_openapi.schema.values import (
    NULL,
    MappingValue,
    NullValue,
    SequenceValue,
    StringValue,
    StructuralValue,
    from_python,
    kind_of,
)

from .type_identity import TypeIdentity, identity_of, unwrap_optional

if TYPE_CHECKING:
    from .resolver import TraversalResolver

logger = logging.getLogger(__name__)

# Dataclass field metadata key overriding a field's wire name
WIRE_NAME_KEY = "typed_openapi.name"


class TraversalKind(str, Enum):
    """Shape of a traversal"""
    SCALAR = "scalar"
    KEYED = "keyed"
    UNKEYED = "unkeyed"


@dataclass(frozen=True)
class TraversalContext:
    """Configuration and resolver shared by one encode/decode call."""

    resolver: "TraversalResolver"
    config: EncoderConfig = DEFAULT_CONFIG

    def resolve(self, declared_type: Any) -> "Traversal":
        return self.resolver.resolve(declared_type)

    def wire_name(self, attribute: str) -> str:
        return self.config.key_strategy.encode(attribute)


@dataclass(frozen=True)
class FieldDescriptor:
    """One field of a keyed (record-like) type"""

    attribute: str
    declared_type: Any
    optional: bool = False
    has_default: bool = False
    default: Any = None
    default_factory: Optional[Callable[[], Any]] = None
    metadata: Mapping[str, Any] = field(default_factory=dict)

    @property
    def required(self) -> bool:
        return not (self.optional or self.has_default)

    def wire_name(self, context: TraversalContext) -> str:
        if WIRE_NAME_KEY in self.metadata:
            return self.metadata[WIRE_NAME_KEY]
        return context.wire_name(self.attribute)

    def default_value(self) -> Any:
        if self.default_factory is not None:
            return self.default_factory()
        return self.default


class Traversal:
    """
    Base traversal bound to a declared type

    Subclasses implement encode/decode for their shape. ``path`` arguments
    are dotted locations used only for error messages.
    """

    kind: TraversalKind = TraversalKind.SCALAR

    def __init__(self, declared_type: Any, identity: Optional[TypeIdentity] = None):
        self.declared_type = declared_type
        self.identity = identity or identity_of(declared_type)

    @property
    def is_named(self) -> bool:
        """Whether this type gets its own component entry in the registry"""
        return False

    @property
    def optional(self) -> bool:
        return False

    def encode(self, value: Any, context: TraversalContext, path: str = "$") -> StructuralValue:
        raise NotImplementedError

    def decode(self, node: StructuralValue, context: TraversalContext, path: str = "$") -> Any:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.identity.key})"


class OptionalTraversal(Traversal):
    """Wraps another traversal so that None maps to an explicit Null node."""

    def __init__(self, inner: Traversal):
        super().__init__(inner.declared_type, inner.identity)
        self.inner = inner
        self.kind = inner.kind

    @property
    def is_named(self) -> bool:
        return self.inner.is_named

    @property
    def optional(self) -> bool:
        return True

    def encode(self, value: Any, context: TraversalContext, path: str = "$") -> StructuralValue:
        if value is None:
            return NULL
        return self.inner.encode(value, context, path)

    def decode(self, node: StructuralValue, context: TraversalContext, path: str = "$") -> Any:
        if isinstance(node, NullValue):
            return None
        return self.inner.decode(node, context, path)

    def __repr__(self) -> str:
        return f"Optional[{self.inner!r}]"


class SequenceTraversal(Traversal):
    """Unkeyed traversal for homogeneous sequences and sets."""

    kind = TraversalKind.UNKEYED

    def __init__(self, declared_type: Any, item_type: Any, container: type = list):
        super().__init__(declared_type)
        self.item_type = item_type
        self.container = container

    def item_traversal(self, context: TraversalContext) -> Traversal:
        return context.resolve(self.item_type)

    def encode(self, value: Any, context: TraversalContext, path: str = "$") -> StructuralValue:
        if isinstance(value, (str, bytes)) or not hasattr(value, "__iter__"):
            raise UnsupportedShape(f"{path}: expected a sequence, got {type(value).__name__}")
        items = self.item_traversal(context)
        return SequenceValue(tuple(
            items.encode(item, context, f"{path}[{index}]")
            for index, item in enumerate(value)
        ))

    def decode(self, node: StructuralValue, context: TraversalContext, path: str = "$") -> Any:
        if not isinstance(node, SequenceValue):
            raise DecodingMismatch(f"expected a sequence, got {kind_of(node)}", path)
        items = self.item_traversal(context)
        return self.container(
            items.decode(item, context, f"{path}[{index}]")
            for index, item in enumerate(node)
        )


class MappingTraversal(Traversal):
    """Keyed traversal with dynamic string keys (dict[str, X])."""

    kind = TraversalKind.KEYED

    def __init__(self, declared_type: Any, value_type: Any):
        super().__init__(declared_type)
        self.value_type = value_type

    def value_traversal(self, context: TraversalContext) -> Traversal:
        return context.resolve(self.value_type)

    def fields(self, context: TraversalContext) -> List[FieldDescriptor]:
        return []

    def encode(self, value: Any, context: TraversalContext, path: str = "$") -> StructuralValue:
        if not isinstance(value, Mapping):
            raise UnsupportedShape(f"{path}: expected a mapping, got {type(value).__name__}")
        values = self.value_traversal(context)
        pairs = []
        for key, item in value.items():
            if not isinstance(key, str):
                raise UnsupportedShape(f"{path}: mapping keys must be strings")
            pairs.append((key, values.encode(item, context, f"{path}.{key}")))
        return MappingValue.from_pairs(pairs)

    def decode(self, node: StructuralValue, context: TraversalContext, path: str = "$") -> Any:
        if not isinstance(node, MappingValue):
            raise DecodingMismatch(f"expected a mapping, got {kind_of(node)}", path)
        values = self.value_traversal(context)
        return {
            key: values.decode(item, context, f"{path}.{key}")
            for key, item in node
        }


class RecordTraversal(Traversal):
    """
    Keyed traversal derived from a dataclass

    Field descriptors are computed on first use, so resolving a type that
    refers to itself never recurses.
    """

    kind = TraversalKind.KEYED

    def __init__(self, declared_type: Any):
        super().__init__(declared_type)
        self.cls = typing.get_origin(declared_type) or declared_type
        self._fields: Optional[List[FieldDescriptor]] = None

    @property
    def is_named(self) -> bool:
        return True

    def _type_hints(self) -> Dict[str, Any]:
        try:
            hints = typing.get_type_hints(self.cls, include_extras=True)
        except (NameError, TypeError) as e:
            raise UnsupportedShape(f"Cannot resolve field types of {self.identity.key}: {e}") from e
        params = getattr(self.cls, "__parameters__", ())
        args = typing.get_args(self.declared_type)
        if params and args:
            substitutions = dict(zip(params, args))
            hints = {name: _substitute(hint, substitutions) for name, hint in hints.items()}
        return hints

    def fields(self, context: Optional[TraversalContext] = None) -> List[FieldDescriptor]:
        if self._fields is None:
            hints = self._type_hints()
            descriptors = []
            for dc_field in dataclasses.fields(self.cls):
                if not dc_field.init:
                    continue
                declared = hints.get(dc_field.name, Any)
                _, optional = unwrap_optional(declared)
                has_default = (
                    dc_field.default is not dataclasses.MISSING
                    or dc_field.default_factory is not dataclasses.MISSING
                )
                default = None if dc_field.default is dataclasses.MISSING else dc_field.default
                factory = (
                    None if dc_field.default_factory is dataclasses.MISSING
                    else dc_field.default_factory
                )
                descriptors.append(FieldDescriptor(
                    attribute=dc_field.name,
                    declared_type=declared,
                    optional=optional,
                    has_default=has_default,
                    default=default,
                    default_factory=factory,
                    metadata=dc_field.metadata,
                ))
            self._fields = descriptors
            logger.debug(f"Derived {len(descriptors)} fields for {self.identity.key}")
        return self._fields

    def encode(self, value: Any, context: TraversalContext, path: str = "$") -> StructuralValue:
        if not isinstance(value, self.cls):
            raise UnsupportedShape(
                f"{path}: expected {self.cls.__name__}, got {type(value).__name__}"
            )
        pairs = []
        for descriptor in self.fields(context):
            item = getattr(value, descriptor.attribute)
            # Absent optional fields are omitted from keyed output
            if item is None:
                continue
            traversal = context.resolve(descriptor.declared_type)
            pairs.append((
                descriptor.wire_name(context),
                traversal.encode(item, context, f"{path}.{descriptor.attribute}"),
            ))
        return MappingValue.from_pairs(pairs)

    def decode(self, node: StructuralValue, context: TraversalContext, path: str = "$") -> Any:
        if not isinstance(node, MappingValue):
            raise DecodingMismatch(f"expected a mapping, got {kind_of(node)}", path)
        kwargs = {}
        for descriptor in self.fields(context):
            field_path = f"{path}.{descriptor.attribute}"
            item = node.get(descriptor.wire_name(context))
            if item is None or isinstance(item, NullValue):
                if descriptor.has_default:
                    kwargs[descriptor.attribute] = descriptor.default_value()
                elif descriptor.optional:
                    kwargs[descriptor.attribute] = None
                else:
                    raise DecodingMismatch("missing required field", field_path)
                continue
            traversal = context.resolve(descriptor.declared_type)
            kwargs[descriptor.attribute] = traversal.decode(item, context, field_path)
        try:
            return self.cls(**kwargs)
        except (TypeError, ValueError) as e:
            raise DecodingMismatch(f"cannot construct {self.cls.__name__}: {e}", path) from e


class AnyTraversal(Traversal):
    """Passes JSON-shaped values through unchanged."""

    def encode(self, value: Any, context: TraversalContext, path: str = "$") -> StructuralValue:
        if dataclasses.is_dataclass(value) and not isinstance(value, type):
            return context.resolve(type(value)).encode(value, context, path)
        try:
            return from_python(value)
        except TypeError as e:
            raise UnsupportedShape(f"{path}: {e}") from e

    def decode(self, node: StructuralValue, context: TraversalContext, path: str = "$") -> Any:
        return node.to_python()


def _substitute(hint: Any, substitutions: Dict[Any, Any]) -> Any:
    """Replace TypeVars in a hint with concrete type arguments"""
    if hint in substitutions:
        return substitutions[hint]
    params = getattr(hint, "__parameters__", ())
    if params:
        try:
            return hint[tuple(substitutions.get(param, param) for param in params)]
        except TypeError:
            return hint
    return hint


def expect_string(node: StructuralValue, path: str) -> str:
    """Return the text of a String node or raise DecodingMismatch"""
    if not isinstance(node, StringValue):
        raise DecodingMismatch(f"expected a string, got {kind_of(node)}", path)
    return node.value
