"""
Introspection Module - traversal of typed values

Walks arbitrary typed values into structural values and back:
- Scalar leaves (primitives, decimals, UUIDs, dates, enums)
- Keyed traversal for dataclasses and str-keyed mappings
- Unkeyed traversal for sequences and sets
- Stable type identities for schema deduplication
"""

from .resolver import TraversalResolver
from .scalars import EnumTraversal, ScalarTraversal
from .traversal import (
    WIRE_NAME_KEY,
    AnyTraversal,
    FieldDescriptor,
    MappingTraversal,
    OptionalTraversal,
    RecordTraversal,
    SequenceTraversal,
    Traversal,
    TraversalContext,
    TraversalKind,
)
from .type_identity import TypeIdentity, identity_of, unwrap_optional

__all__ = [
    "TraversalResolver",
    "Traversal",
    "TraversalContext",
    "TraversalKind",
    "FieldDescriptor",
    "ScalarTraversal",
    "EnumTraversal",
    "OptionalTraversal",
    "SequenceTraversal",
    "MappingTraversal",
    "RecordTraversal",
    "AnyTraversal",
    "TypeIdentity",
    "identity_of",
    "unwrap_optional",
    "WIRE_NAME_KEY",
]
