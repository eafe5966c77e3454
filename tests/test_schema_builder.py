"""
Unit tests for Schema Registry and Schema Builder

Tests:
- SchemaRegistry: reservation, disambiguation, commit, finalize
- SchemaBuilder: type-driven schemas, components and references
- SchemaBuilder: self-referential types and rollback on failure
- SchemaBuilder: value-driven schemas
- Document containers receiving committed schemas
"""

import datetime
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

import pytest

from typed_openapi.builder import SchemaBuilder
from typed_openapi.config import DateEncodingFormat, EncoderConfig
from typed_openapi.document.models import OpenAPIDocument
from typed_openapi.errors import DanglingReference, SchemaNameCollision, UnsupportedShape
from typed_openapi.introspection import TypeIdentity
from typed_openapi.naming import KeyEncodingStrategy
from typed_openapi.registry.schema_registry import SchemaRegistry
from typed_openapi.schema.models import (
    ArraySchema,
    ObjectSchema,
    PrimitiveSchema,
    ReferenceSchema,
    SchemaKind,
)
from typed_openapi.schema.values import NULL, from_python

from sample_types import Address, Broken, Order, Page, TreeNode, User


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def registry():
    return SchemaRegistry()


@pytest.fixture
def builder(registry):
    return SchemaBuilder(registry)


# ============================================================================
# TEST: SchemaRegistry
# ============================================================================


class TestSchemaRegistry:
    """Tests for SchemaRegistry"""

    def test_register_is_idempotent(self, registry):
        identity = TypeIdentity("a.Item", "Item")

        assert registry.register(identity) == ("Item", True)
        assert registry.register(identity) == ("Item", False)
        assert len(registry) == 1

    def test_name_collision_gets_suffix(self, registry):
        """Test distinct identities with one name hint"""
        assert registry.register(TypeIdentity("a.Item", "Item")) == ("Item", True)
        assert registry.register(TypeIdentity("b.Item", "Item")) == ("Item2", True)
        assert registry.register(TypeIdentity("c.Item", "Item")) == ("Item3", True)

    def test_suffixes_exhausted(self):
        registry = SchemaRegistry(max_suffix=2)
        registry.register(TypeIdentity("a.Item", "Item"))
        registry.register(TypeIdentity("b.Item", "Item"))

        with pytest.raises(SchemaNameCollision):
            registry.register(TypeIdentity("c.Item", "Item"))

    def test_name_hint_overrides_identity_name(self, registry):
        name, _ = registry.register(TypeIdentity("a.Item", "Item"), "Product")

        assert name == "Product"

    def test_commit_and_resolve(self, registry):
        name, _ = registry.register(TypeIdentity("a.Item", "Item"))
        node = ObjectSchema()

        registry.commit(name, node)

        assert registry.resolve("Item") is node
        assert registry.resolve("#/components/schemas/Item") is node

    def test_commit_unreserved(self, registry):
        with pytest.raises(SchemaNameCollision, match="never reserved"):
            registry.commit("Ghost", ObjectSchema())

    def test_commit_twice(self, registry):
        name, _ = registry.register(TypeIdentity("a.Item", "Item"))
        registry.commit(name, ObjectSchema())

        with pytest.raises(SchemaNameCollision, match="already committed"):
            registry.commit(name, ObjectSchema())

    def test_finalize_detects_dangling(self, registry):
        """Test reserved names must be committed before finalizing"""
        registry.register(TypeIdentity("a.Item", "Item"))

        with pytest.raises(DanglingReference):
            registry.finalize()

    def test_discard_frees_name(self, registry):
        identity = TypeIdentity("a.Item", "Item")
        registry.register(identity)

        registry.discard("Item")

        assert identity not in registry
        assert registry.register(TypeIdentity("b.Item", "Item")) == ("Item", True)


# ============================================================================
# TEST: SchemaBuilder - type-driven
# ============================================================================


class TestSchemaBuilderTypes:
    """Tests for SchemaBuilder.describe"""

    def test_record_schema(self, builder, registry):
        """Test dataclass schema with nested components"""
        ref = builder.describe(User)

        assert ref == ReferenceSchema("User")
        assert registry.schemas["User"].to_dict() == {
            "type": "object",
            "properties": {
                "user_id": {"type": "integer", "format": "int64"},
                "display_name": {"type": "string"},
                "created_at": {"type": "string", "format": "date-time"},
                "tags": {"type": "array", "items": {"type": "string"}},
                "address": {"$ref": "#/components/schemas/Address"},
                "favorite_color": {"$ref": "#/components/schemas/Color"},
            },
            "required": ["user_id", "display_name", "created_at"],
        }
        assert registry.schemas["Address"].to_dict() == {
            "type": "object",
            "properties": {
                "street_name": {"type": "string"},
                "zip_code": {"type": "string"},
            },
            "required": ["street_name"],
        }
        assert registry.schemas["Color"].to_dict() == {"type": "string", "enum": ["red", "green"]}

    def test_describe_is_idempotent(self, builder, registry):
        """Test describing again reuses registered components"""
        builder.describe(User)
        before = dict(registry.schemas)

        assert builder.describe(User) == ReferenceSchema("User")
        assert builder.describe(Address) == ReferenceSchema("Address")
        assert registry.schemas == before
        assert len(registry) == 3

    def test_self_referential_record(self, builder, registry):
        """Test recursion terminates in a reference to the type itself"""
        builder.describe(TreeNode)

        schema = registry.schemas["TreeNode"]
        assert schema.get_property("parent").schema == ReferenceSchema("TreeNode")
        assert schema.get_property("children").schema == ArraySchema(items=ReferenceSchema("TreeNode"))
        assert schema.required == ["label"]
        registry.finalize()

    def test_generic_record(self, builder, registry):
        assert builder.describe(Page[User]) == ReferenceSchema("PageUser")
        assert registry.schemas["PageUser"].get_property("items").schema == ArraySchema(
            items=ReferenceSchema("User")
        )

    def test_containers_are_inline(self, builder, registry):
        """Test anonymous containers are not registered"""
        assert builder.describe(List[int]) == ArraySchema(items=PrimitiveSchema(SchemaKind.INTEGER, "int64"))
        assert builder.describe(Dict[str, int]).to_dict() == {
            "type": "object",
            "additionalProperties": {"type": "integer", "format": "int64"},
        }
        assert builder.describe(Dict[str, Any]).to_dict() == {"type": "object"}
        assert len(registry) == 0

    def test_optional_top_level_is_nullable(self, builder):
        assert builder.describe(Optional[int]).to_dict() == {
            "type": "integer",
            "format": "int64",
            "nullable": True,
        }

    def test_custom_traversal_schema(self, builder, registry):
        builder.describe(Order)

        order = registry.schemas["Order"].to_dict()
        assert order["properties"]["price"] == {"type": "string", "format": "money"}
        assert order["properties"]["metadata"] == {"type": "object", "additionalProperties": {"type": "string"}}
        assert order["required"] == ["order_id", "price"]

    def test_key_strategy_names_properties(self, registry):
        config = EncoderConfig(key_strategy=KeyEncodingStrategy.convert_to_camel_case())
        SchemaBuilder(registry, config).describe(User)

        assert registry.schemas["User"].required == ["userId", "displayName", "createdAt"]

    def test_epoch_date_format(self, builder, registry):
        config = EncoderConfig(date_format=DateEncodingFormat.EPOCH_MILLISECONDS)

        node = SchemaBuilder(registry, config).describe(datetime.datetime)

        assert node == PrimitiveSchema(SchemaKind.INTEGER, "int64")

    def test_unsupported_type(self, builder):
        with pytest.raises(UnsupportedShape):
            builder.describe(Union[int, str])

    def test_failure_rolls_back(self, builder, registry):
        """Test a failed description leaves the registry untouched"""
        with pytest.raises(UnsupportedShape):
            builder.describe(Broken)

        assert "Broken" not in registry.schemas
        assert len(registry) == 0
        registry.finalize()

    def test_unresolvable_forward_reference_rolls_back(self, builder, registry):
        """Test a record whose annotations cannot be resolved leaves no reservation"""
        @dataclass
        class LocalNode:
            child: Optional["LocalNode"] = None

        with pytest.raises(UnsupportedShape, match="LocalNode"):
            builder.describe(LocalNode)

        assert registry.reserved_names() == set()
        registry.finalize()


# ============================================================================
# TEST: SchemaBuilder - value-driven
# ============================================================================


class TestSchemaBuilderValues:
    """Tests for SchemaBuilder.build_schema_node"""

    def test_object_value(self, builder):
        value = from_python({
            "id": 1,
            "name": "x",
            "when": "2024-05-01T10:30:00Z",
            "tags": ["a"],
            "note": None,
        })

        assert builder.build_schema_node(value).to_dict() == {
            "type": "object",
            "properties": {
                "id": {"type": "integer", "format": "int64"},
                "name": {"type": "string"},
                "when": {"type": "string", "format": "date-time"},
                "tags": {"type": "array", "items": {"type": "string"}},
                "note": {"type": "string", "nullable": True},
            },
            "required": ["id", "name", "when", "tags"],
        }

    def test_empty_array_has_open_items(self, builder):
        assert builder.build_schema_node(from_python([])).to_dict() == {"type": "array", "items": {}}

    def test_registered_by_identity(self, builder, registry):
        """Test the first value registered for an identity wins"""
        identity = TypeIdentity("payloads.Payload", "Payload")

        first = builder.build_schema_node(from_python({"a": 1}), identity)
        second = builder.build_schema_node(from_python({"b": "x"}), identity)

        assert first == second == ReferenceSchema("Payload")
        assert registry.schemas["Payload"].to_dict()["required"] == ["a"]

    def test_bare_null_unsupported(self, builder):
        with pytest.raises(UnsupportedShape):
            builder.build_schema_node(NULL)


# ============================================================================
# TEST: Document containers
# ============================================================================


class TestDocument:
    """Tests for document output"""

    def test_registry_writes_into_document(self):
        document = OpenAPIDocument()
        builder = SchemaBuilder(SchemaRegistry(document.components))

        builder.describe(Address)
        data = document.to_dict()

        assert data["openapi"] == "3.0.3"
        assert data["paths"] == {}
        assert list(data["components"]["schemas"]) == ["Address"]


# ============================================================================
# RUN TESTS
# ============================================================================


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
