"""
Schema Builder - turns declared types and structural values into schema nodes

Supports:
- Type-driven description through the traversal protocol
- Value-driven description of bare structural values
- Component registration of dataclasses and enums (with $ref reuse)
- Self-referential types, terminated by registry pre-reservation
"""

import logging
import re
from typing import Any, List, Optional

from typed_openapi.config import DEFAULT_CONFIG, EncoderConfig
from typed_openapi.errors import TypedOpenAPIError, UnsupportedShape
from typed_openapi.introspection import (
    AnyTraversal,
    EnumTraversal,
    MappingTraversal,
    OptionalTraversal,
    ScalarTraversal,
    SequenceTraversal,
    Traversal,
    TraversalContext,
    TraversalKind,
    TraversalResolver,
    TypeIdentity,
)
from typed_openapi.registry.schema_registry import SchemaRegistry
from typed_openapi.schema.models import (
    ArraySchema,
    EnumSchema,
    ObjectSchema,
    PrimitiveSchema,
    Property,
    ReferenceSchema,
    SchemaKind,
    SchemaNode,
)
from typed_openapi.schema.values import (
    BoolValue,
    BytesValue,
    FloatValue,
    IntValue,
    MappingValue,
    NullValue,
    SequenceValue,
    StringValue,
    StructuralValue,
)

logger = logging.getLogger(__name__)

# ISO 8601 date-time with a time part, e.g. 2024-05-01T10:30:00Z
DATE_TIME_PATTERN = re.compile(
    r"^\d{4}-\d{2}-\d{2}[Tt]\d{2}:\d{2}(:\d{2}(\.\d+)?)?([Zz]|[+-]\d{2}:?\d{2})?$"
)


class SchemaBuilder:
    """
    Builds schema nodes and registers named shapes

    Usage:
    ```python
    registry = SchemaRegistry()
    builder = SchemaBuilder(registry)
    ref = builder.describe(User)       # ReferenceSchema("User")
    registry.schemas["User"].to_dict()  # {"type": "object", ...}
    ```
    """

    def __init__(
        self,
        registry: SchemaRegistry,
        config: EncoderConfig = DEFAULT_CONFIG,
        resolver: Optional[TraversalResolver] = None,
    ):
        self.registry = registry
        self.config = config
        self.resolver = resolver or TraversalResolver()
        self.context = TraversalContext(resolver=self.resolver, config=config)

    # ------------------------------------------------------------------
    # Type-driven
    # ------------------------------------------------------------------

    def describe(self, declared_type: Any, name_hint: Optional[str] = None) -> SchemaNode:
        """
        Describe a declared type

        Dataclasses and enums are registered as components and returned as
        references; everything else is returned inline.

        Args:
            declared_type: Type to describe
            name_hint: Component name to prefer for the top-level type

        Returns:
            Schema node (a ReferenceSchema for named types)

        Raises:
            UnsupportedShape: If the type has no representable schema
        """
        reserved: List[str] = []
        try:
            traversal = self.resolver.resolve(declared_type)
            node = self._describe(traversal, reserved, name_hint=name_hint)
        except TypedOpenAPIError:
            self._rollback(reserved)
            raise
        logger.info(f"Described {traversal.identity.key} ({len(reserved)} new schemas)")
        return node

    def _describe(
        self,
        traversal: Traversal,
        reserved: List[str],
        name_hint: Optional[str] = None,
        nullable: bool = False,
    ) -> SchemaNode:
        if isinstance(traversal, OptionalTraversal):
            return self._describe(traversal.inner, reserved, name_hint, nullable=True)

        if traversal.is_named:
            name, is_new = self.registry.register(traversal.identity, name_hint)
            if not is_new:
                return ReferenceSchema(name)
            reserved.append(name)
            self.registry.commit(name, self._body(traversal, reserved, nullable=False))
            return ReferenceSchema(name)

        return self._body(traversal, reserved, nullable)

    def _body(self, traversal: Traversal, reserved: List[str], nullable: bool) -> SchemaNode:
        if isinstance(traversal, EnumTraversal):
            kind, _ = traversal.schema_type(self.context)
            return EnumSchema(values=traversal.values, kind=kind)

        if isinstance(traversal, ScalarTraversal):
            kind, fmt = traversal.schema_type(self.context)
            return PrimitiveSchema(kind=kind, format=fmt, nullable=nullable)

        if isinstance(traversal, SequenceTraversal):
            items = self._container_member(traversal.item_traversal(self.context), reserved)
            return ArraySchema(items=items, nullable=nullable)

        if isinstance(traversal, MappingTraversal):
            values = self._container_member(traversal.value_traversal(self.context), reserved)
            return ObjectSchema(additional_properties=values, nullable=nullable)

        if traversal.kind == TraversalKind.KEYED and hasattr(traversal, "fields"):
            properties = []
            for descriptor in traversal.fields(self.context):
                field_traversal = self.resolver.resolve(descriptor.declared_type)
                if isinstance(field_traversal, OptionalTraversal):
                    field_traversal = field_traversal.inner
                properties.append(Property(
                    name=descriptor.wire_name(self.context),
                    schema=self._describe(field_traversal, reserved),
                    required=descriptor.required,
                ))
            return ObjectSchema(properties=tuple(properties), nullable=nullable)

        raise UnsupportedShape(f"No schema for {traversal!r}")

    def _container_member(self, traversal: Traversal, reserved: List[str]) -> Optional[SchemaNode]:
        # Any members describe as an unconstrained schema
        if isinstance(traversal, AnyTraversal):
            return None
        return self._describe(traversal, reserved)

    # ------------------------------------------------------------------
    # Value-driven
    # ------------------------------------------------------------------

    def build_schema_node(
        self,
        value: StructuralValue,
        identity: Optional[TypeIdentity] = None,
        name_hint: Optional[str] = None,
    ) -> SchemaNode:
        """
        Describe a bare structural value

        Args:
            value: Structural value to describe
            identity: When given, the top-level object/array is registered
                      under this identity and a reference is returned
            name_hint: Component name to prefer

        Returns:
            Schema node

        Raises:
            UnsupportedShape: For a top-level null
        """
        if isinstance(value, NullValue):
            raise UnsupportedShape("A bare null has no representable schema")

        if identity is None or not isinstance(value, (MappingValue, SequenceValue)):
            return self._value_body(value)

        name, is_new = self.registry.register(identity, name_hint)
        if not is_new:
            return ReferenceSchema(name)
        try:
            self.registry.commit(name, self._value_body(value))
        except TypedOpenAPIError:
            self.registry.discard(name)
            raise
        return ReferenceSchema(name)

    def _value_body(self, value: StructuralValue, nullable: bool = False) -> SchemaNode:
        if isinstance(value, BoolValue):
            return PrimitiveSchema(SchemaKind.BOOLEAN, nullable=nullable)
        if isinstance(value, IntValue):
            return PrimitiveSchema(SchemaKind.INTEGER, "int64", nullable=nullable)
        if isinstance(value, FloatValue):
            return PrimitiveSchema(SchemaKind.NUMBER, "double", nullable=nullable)
        if isinstance(value, StringValue):
            fmt = "date-time" if DATE_TIME_PATTERN.match(value.value) else None
            return PrimitiveSchema(SchemaKind.STRING, fmt, nullable=nullable)
        if isinstance(value, BytesValue):
            return PrimitiveSchema(SchemaKind.STRING, "byte", nullable=nullable)
        if isinstance(value, SequenceValue):
            present = [item for item in value if not isinstance(item, NullValue)]
            items = self._value_body(present[0]) if present else None
            return ArraySchema(items=items, nullable=nullable)
        if isinstance(value, MappingValue):
            properties = []
            for key, item in value:
                if isinstance(item, NullValue):
                    # Present-but-null: type unknown, mark nullable and optional
                    properties.append(Property(
                        key, PrimitiveSchema(SchemaKind.STRING, nullable=True), required=False
                    ))
                    continue
                properties.append(Property(key, self._value_body(item), required=True))
            return ObjectSchema(properties=tuple(properties), nullable=nullable)

        raise UnsupportedShape(f"No schema for structural value {value!r}")

    def _rollback(self, reserved: List[str]) -> None:
        for name in reserved:
            self.registry.discard(name)
        if reserved:
            logger.warning(f"Discarded {len(reserved)} partially built schemas: {reserved}")
