"""Maps declared types to traversals."""
import dataclasses
import datetime
import decimal
import logging
import typing
import uuid
from enum import Enum
from typing import Any, Callable, Dict

from typed_openapi.errors import UnsupportedShape

from .scalars import (
    BoolTraversal,
    BytesTraversal,
    DateTimeTraversal,
    DateTraversal,
    DecimalTraversal,
    EnumTraversal,
    FloatTraversal,
    IntTraversal,
    StringTraversal,
    UUIDTraversal,
)
from .traversal import (
    AnyTraversal,
    MappingTraversal,
    OptionalTraversal,
    RecordTraversal,
    SequenceTraversal,
    Traversal,
)
from .type_identity import canonical_origin, is_union, unwrap_optional

logger = logging.getLogger(__name__)

TraversalFactory = Callable[[Any], Traversal]

# datetime must come before date: datetime is a date subclass
SCALAR_TRAVERSALS: Dict[type, TraversalFactory] = {
    bool: BoolTraversal,
    int: IntTraversal,
    float: FloatTraversal,
    str: StringTraversal,
    bytes: BytesTraversal,
    bytearray: BytesTraversal,
    decimal.Decimal: DecimalTraversal,
    uuid.UUID: UUIDTraversal,
    datetime.datetime: DateTimeTraversal,
    datetime.date: DateTraversal,
}

SEQUENCE_CONTAINERS = {
    tuple: tuple,
    set: set,
    frozenset: frozenset,
}


class TraversalResolver:
    """
    Resolves declared types to Traversal instances, caching per type

    Custom types plug in either by defining a ``__traversal__(declared_type)``
    classmethod or through :meth:`register`.

    Usage:
    ```python
    resolver = TraversalResolver()
    resolver.register(Money, MoneyTraversal)
    traversal = resolver.resolve(Optional[list[Order]])
    ```
    """

    def __init__(self):
        self._custom: Dict[Any, TraversalFactory] = {}
        self._cache: Dict[Any, Traversal] = {}

    def register(self, declared_type: Any, factory: TraversalFactory) -> None:
        """Use ``factory(declared_type)`` to build the traversal for a type"""
        self._custom[declared_type] = factory
        self._cache.pop(declared_type, None)

    def resolve(self, declared_type: Any) -> Traversal:
        """
        Get the traversal for a declared type

        Raises:
            UnsupportedShape: If the type has no traversal
        """
        try:
            cached = self._cache.get(declared_type)
        except TypeError:
            # Unhashable typing constructs are resolved uncached
            return self._build(declared_type)
        if cached is not None:
            return cached

        traversal = self._build(declared_type)
        self._cache[declared_type] = traversal
        return traversal

    def _build(self, declared_type: Any) -> Traversal:
        inner, optional = unwrap_optional(declared_type)
        if optional:
            return OptionalTraversal(self.resolve(inner))
        declared_type = inner

        if declared_type is typing.Any or declared_type is object:
            return AnyTraversal(typing.Any)

        if declared_type in self._custom:
            return self._custom[declared_type](declared_type)

        hook = getattr(declared_type, "__traversal__", None)
        if hook is not None:
            logger.debug(f"Using __traversal__ hook of {declared_type!r}")
            return hook(declared_type)

        if isinstance(declared_type, type):
            for scalar_type, factory in SCALAR_TRAVERSALS.items():
                if declared_type is scalar_type:
                    return factory(declared_type)
            if issubclass(declared_type, Enum):
                return EnumTraversal(declared_type)

        if is_union(declared_type):
            raise UnsupportedShape(f"Unions of several types are not supported: {declared_type!r}")

        container = canonical_origin(declared_type)
        args = [arg for arg in typing.get_args(declared_type) if arg is not Ellipsis]
        if container == "list":
            origin = typing.get_origin(declared_type) or declared_type
            if origin is tuple and len(args) > 1 and len(set(args)) > 1:
                raise UnsupportedShape(f"Heterogeneous tuples are not supported: {declared_type!r}")
            item_type = args[0] if args else typing.Any
            return SequenceTraversal(
                declared_type, item_type, SEQUENCE_CONTAINERS.get(origin, list)
            )
        if container == "dict":
            if args and args[0] is not str:
                raise UnsupportedShape(f"Mapping keys must be str: {declared_type!r}")
            value_type = args[1] if len(args) > 1 else typing.Any
            return MappingTraversal(declared_type, value_type)

        origin = typing.get_origin(declared_type) or declared_type
        if dataclasses.is_dataclass(origin) and isinstance(origin, type):
            return RecordTraversal(declared_type)

        # Subclasses of scalar types (e.g. IntEnum handled above, str subclasses)
        if isinstance(declared_type, type):
            for scalar_type, factory in SCALAR_TRAVERSALS.items():
                if issubclass(declared_type, scalar_type):
                    return factory(declared_type)

        raise UnsupportedShape(f"No traversal for type {declared_type!r}")
