"""
Unit tests for Parameter Projection Module

Tests:
- StyleSerializer: the style/explode table for scalars, arrays and objects
- StyleSerializer: percent-encoding and allowReserved
- ParameterProjector.project: records onto path/query/header/cookie
- ParameterProjector.reconstruct: entries back into records
- ParameterProjector.describe_parameters: parameter definitions
"""

from decimal import Decimal
from typing import Dict

import pytest

from typed_openapi.config import EncoderConfig
from typed_openapi.errors import DecodingMismatch, MissingRequiredParameter, UnsupportedShape
from typed_openapi.introspection import TraversalKind
from typed_openapi.naming import KeyEncodingStrategy
from typed_openapi.parameters import (
    ParameterEntry,
    ParameterLocation,
    ParameterProjector,
    ParameterStyle,
    StyleSerializer,
    project,
    reconstruct,
)
from typed_openapi.registry.schema_registry import SchemaRegistry
from typed_openapi.schema.values import MappingValue, SequenceValue, StringValue, from_python

from sample_types import (
    RGB,
    Broken,
    ColorQuery,
    Filters,
    Headers,
    ItemPath,
    Money,
    Order,
    Ordered,
    Paging,
    Redirect,
    Search,
    Session,
)


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def serializer():
    return StyleSerializer()


@pytest.fixture
def projector():
    return ParameterProjector()


@pytest.fixture
def color_object():
    """Object content from the OpenAPI style examples"""
    return from_python({"R": 100, "G": 200, "B": 150})


@pytest.fixture
def color_array():
    """Array content from the OpenAPI style examples"""
    return from_python(["blue", "black", "brown"])


# ============================================================================
# TEST: StyleSerializer
# ============================================================================


class TestStyleSerializer:
    """Tests for the style/explode table"""

    @pytest.mark.parametrize(
        "style, explode, expected",
        [
            (ParameterStyle.SIMPLE, False, [("color", "blue,black,brown")]),
            (ParameterStyle.SIMPLE, True, [("color", "blue,black,brown")]),
            (ParameterStyle.FORM, False, [("color", "blue,black,brown")]),
            (ParameterStyle.FORM, True, [("color", "blue"), ("color", "black"), ("color", "brown")]),
            (ParameterStyle.SPACE_DELIMITED, False, [("color", "blue%20black%20brown")]),
            (ParameterStyle.PIPE_DELIMITED, False, [("color", "blue|black|brown")]),
            (ParameterStyle.MATRIX, False, [("color", ";color=blue,black,brown")]),
            (ParameterStyle.MATRIX, True, [("color", ";color=blue;color=black;color=brown")]),
            (ParameterStyle.LABEL, False, [("color", ".blue,black,brown")]),
            (ParameterStyle.LABEL, True, [("color", ".blue.black.brown")]),
        ],
    )
    def test_array_styles(self, serializer, color_array, style, explode, expected):
        assert serializer.serialize("color", color_array, style, explode) == expected

    @pytest.mark.parametrize(
        "style, explode, expected",
        [
            (ParameterStyle.SIMPLE, False, [("color", "R,100,G,200,B,150")]),
            (ParameterStyle.SIMPLE, True, [("color", "R=100,G=200,B=150")]),
            (ParameterStyle.FORM, False, [("color", "R,100,G,200,B,150")]),
            (ParameterStyle.FORM, True, [("R", "100"), ("G", "200"), ("B", "150")]),
            (ParameterStyle.DEEP_OBJECT, True, [("color[R]", "100"), ("color[G]", "200"), ("color[B]", "150")]),
            (ParameterStyle.MATRIX, True, [("color", ";R=100;G=200;B=150")]),
            (ParameterStyle.LABEL, True, [("color", ".R=100.G=200.B=150")]),
        ],
    )
    def test_object_styles(self, serializer, color_object, style, explode, expected):
        assert serializer.serialize("color", color_object, style, explode) == expected

    def test_scalar_styles(self, serializer):
        blue = StringValue("blue")

        assert serializer.serialize("color", blue, ParameterStyle.FORM, True) == [("color", "blue")]
        assert serializer.serialize("color", blue, ParameterStyle.MATRIX, False) == [("color", ";color=blue")]
        assert serializer.serialize("color", blue, ParameterStyle.LABEL, False) == [("color", ".blue")]

    def test_scalar_text(self, serializer):
        """Test non-string scalars are written as text"""
        content = from_python([True, 1.5, 3])

        assert serializer.serialize("v", content, ParameterStyle.FORM, False) == [("v", "true,1.5,3")]

    def test_percent_encoding(self, serializer):
        """Test reserved characters in values never collide with delimiters"""
        content = from_python(["a,b", "c d"])

        assert serializer.serialize("q", content, ParameterStyle.FORM, False) == [("q", "a%2Cb,c%20d")]

    def test_allow_reserved(self, serializer):
        content = StringValue("a b&c/d")

        assert serializer.serialize("q", content, ParameterStyle.FORM, True) == [("q", "a%20b%26c%2Fd")]
        assert serializer.serialize("q", content, ParameterStyle.FORM, True, allow_reserved=True) == [
            ("q", "a%20b&c/d")
        ]

    def test_percent_encoding_disabled(self):
        serializer = StyleSerializer(percent_encode=False)

        assert serializer.serialize("q", from_python(["a", "b"]), ParameterStyle.SPACE_DELIMITED, False) == [
            ("q", "a b")
        ]

    def test_nested_deep_object(self, serializer):
        content = from_python({"filter": {"min": 1}})

        assert serializer.serialize("q", content, ParameterStyle.DEEP_OBJECT, True) == [("q[filter][min]", "1")]

    @pytest.mark.parametrize(
        "content, style",
        [
            (["a"], ParameterStyle.DEEP_OBJECT),
            ({"a": [1]}, ParameterStyle.DEEP_OBJECT),
            ({"a": 1}, ParameterStyle.SPACE_DELIMITED),
            ({"a": 1}, ParameterStyle.PIPE_DELIMITED),
            ({"a": {"b": 1}}, ParameterStyle.FORM),
            ([[1]], ParameterStyle.SIMPLE),
        ],
    )
    def test_unsupported_combinations(self, serializer, content, style):
        with pytest.raises(UnsupportedShape):
            serializer.serialize("p", from_python(content), style, True)

    def test_deserialize_deep_object(self, serializer):
        entries = [ParameterEntry("color[R]", "100"), ParameterEntry("other", "x")]

        content = serializer.deserialize("color", entries, ParameterStyle.DEEP_OBJECT, True, TraversalKind.KEYED)

        assert content == MappingValue.from_pairs([("R", StringValue("100"))])

    def test_deserialize_space_delimited(self, serializer):
        entries = [ParameterEntry("q", "a%20b%20c")]

        content = serializer.deserialize("q", entries, ParameterStyle.SPACE_DELIMITED, False, TraversalKind.UNKEYED)

        assert content == SequenceValue((StringValue("a"), StringValue("b"), StringValue("c")))

    def test_deserialize_absent(self, serializer):
        assert serializer.deserialize("q", [], ParameterStyle.FORM, True, TraversalKind.SCALAR) is None

    def test_deserialize_odd_object_tokens(self, serializer):
        entries = [ParameterEntry("color", "R,100,G")]

        with pytest.raises(DecodingMismatch):
            serializer.deserialize("color", entries, ParameterStyle.SIMPLE, False, TraversalKind.KEYED)


# ============================================================================
# TEST: ParameterProjector.project
# ============================================================================


class TestProject:
    """Tests for projecting records onto parameter locations"""

    def test_query_defaults(self, projector):
        """Test form/explode is the query default"""
        entries = projector.project(Search(id=1, tags=["a", "b"]), ParameterLocation.QUERY)

        assert entries == [("id", "1"), ("tags", "a"), ("tags", "b")]

    def test_order_follows_fields(self, projector):
        entries = projector.project(Ordered(zeta=1, alpha=2, middle=3), ParameterLocation.QUERY)

        assert [entry.name for entry in entries] == ["zeta", "alpha", "middle"]

    def test_deep_object_field(self, projector):
        entries = projector.project(ColorQuery(color=RGB(100, 200, 150)), ParameterLocation.QUERY)

        assert entries == [("color[r]", "100"), ("color[g]", "200"), ("color[b]", "150")]

    def test_field_style_overrides(self, projector):
        value = Filters(ids=[1, 2, 3], labels=["x", "y"], weight=0.5)

        entries = projector.project(value, ParameterLocation.QUERY)

        assert entries == [("ids", "1,2,3"), ("labels", "x|y"), ("weight", "0.5")]

    def test_empty_and_absent_fields_emit_nothing(self, projector):
        assert projector.project(Filters(), ParameterLocation.QUERY) == []

    def test_path_parameters(self, projector):
        entries = projector.project(ItemPath(item_id=5, version="v1"), ParameterLocation.PATH)

        assert entries == [("item_id", "5"), ("version", "v1")]

    def test_path_parameters_always_required(self, projector):
        """Test an unset optional field cannot fill a path parameter"""
        with pytest.raises(MissingRequiredParameter) as exc_info:
            projector.project(ItemPath(item_id=5), ParameterLocation.PATH)

        assert exc_info.value.name == "version"
        assert exc_info.value.location == "path"
        assert str(exc_info.value) == "Missing required path parameter: version"

    def test_missing_required_field(self, projector):
        with pytest.raises(MissingRequiredParameter, match="id"):
            projector.project(Search(id=None, tags=[]), ParameterLocation.QUERY)

    def test_headers(self, projector):
        """Test simple style headers with a wire-name override"""
        entries = projector.project(
            Headers(request_id="abc-123", accept_language=["en", "fr"]), ParameterLocation.HEADER
        )

        assert entries == [("X-Request-ID", "abc-123"), ("accept_language", "en,fr")]

    def test_cookies(self, projector):
        assert projector.project(Session(session_id="s1"), ParameterLocation.COOKIE) == [("session_id", "s1")]

    def test_allow_reserved_query_only(self, projector):
        value = Redirect(next_url="https://x.io/a?b=1")

        assert projector.project(value, ParameterLocation.QUERY) == [("next_url", "https://x.io/a?b=1")]
        assert projector.project(value, ParameterLocation.HEADER) == [
            ("next_url", "https%3A%2F%2Fx.io%2Fa%3Fb%3D1")
        ]

    def test_key_strategy(self):
        projector = ParameterProjector(EncoderConfig(key_strategy=KeyEncodingStrategy.convert_to_camel_case()))

        assert projector.project(Paging(page_size=10), ParameterLocation.QUERY) == [("pageSize", "10")]

    def test_custom_traversal_field(self, projector):
        value = Order(order_id=3, price=Money(Decimal("9.99"), "EUR"))

        assert projector.project(value, ParameterLocation.QUERY) == [("order_id", "3"), ("price", "9.99%20EUR")]

    def test_free_form_mapping(self, projector):
        entries = projector.project({"q": "x", "n": 1}, ParameterLocation.QUERY)

        assert entries == [("q", "x"), ("n", "1")]

    def test_non_record_rejected(self, projector):
        with pytest.raises(UnsupportedShape):
            projector.project(5, ParameterLocation.QUERY)

    def test_module_level_project(self):
        assert project(Session(session_id="s1"), "cookie") == [("session_id", "s1")]


# ============================================================================
# TEST: ParameterProjector.reconstruct
# ============================================================================


class TestReconstruct:
    """Tests for rebuilding records from entries"""

    @pytest.mark.parametrize(
        "value, location",
        [
            (Search(id=1, tags=["a", "b"]), ParameterLocation.QUERY),
            (Search(id=1, tags=[]), ParameterLocation.QUERY),
            (ColorQuery(color=RGB(100, 200, 150)), ParameterLocation.QUERY),
            (Filters(ids=[1, 2], labels=["x y", "z"], weight=0.5, active=True), ParameterLocation.QUERY),
            (ItemPath(item_id=5, version="v 1"), ParameterLocation.PATH),
            (Headers(request_id="abc", accept_language=["en", "fr"]), ParameterLocation.HEADER),
            (Session(session_id="s1", theme="dark"), ParameterLocation.COOKIE),
            (Redirect(next_url="https://x.io/a?b=1", note="a&b"), ParameterLocation.QUERY),
            (Order(order_id=3, price=Money(Decimal("9.99"), "EUR")), ParameterLocation.QUERY),
        ],
    )
    def test_round_trip(self, projector, value, location):
        """Test reconstruct inverts project"""
        entries = projector.project(value, location)

        assert projector.reconstruct(entries, location, type(value)) == value

    @pytest.mark.parametrize("tags", [[""], ["a", ""], ["", "b"]])
    @pytest.mark.parametrize("location", [ParameterLocation.HEADER, ParameterLocation.PATH])
    def test_round_trip_empty_strings(self, projector, tags, location):
        """Test empty string items survive non-exploded styles"""
        value = Search(id=1, tags=tags)

        entries = projector.project(value, location)

        assert projector.reconstruct(entries, location, Search) == value

    def test_round_trip_empty_string_delimited(self, projector):
        value = Filters(ids=[3], labels=[""])

        entries = projector.project(value, ParameterLocation.QUERY)

        assert ParameterEntry("labels", "") in entries
        assert projector.reconstruct(entries, ParameterLocation.QUERY, Filters) == value

    @pytest.mark.parametrize(
        "style, explode, raw",
        [
            (ParameterStyle.SIMPLE, False, ""),
            (ParameterStyle.FORM, False, ""),
            (ParameterStyle.MATRIX, False, ";q="),
            (ParameterStyle.LABEL, False, "."),
            (ParameterStyle.LABEL, True, "."),
        ],
    )
    def test_present_empty_value_is_one_empty_item(self, serializer, style, explode, raw):
        entries = [ParameterEntry("q", raw)]

        content = serializer.deserialize("q", entries, style, explode, TraversalKind.UNKEYED)

        assert content == SequenceValue((StringValue(""),))

    def test_accepts_plain_tuples(self, projector):
        value = projector.reconstruct([("id", "7"), ("tags", "x")], "query", Search)

        assert value == Search(id=7, tags=["x"])

    def test_free_form_mapping(self, projector):
        value = projector.reconstruct([("q", "a%20b"), ("n", "1")], ParameterLocation.QUERY, Dict[str, str])

        assert value == {"q": "a b", "n": "1"}

    def test_missing_required(self, projector):
        with pytest.raises(DecodingMismatch, match="missing required query parameter"):
            projector.reconstruct([("tags", "a")], ParameterLocation.QUERY, Search)

    def test_unparseable_value(self, projector):
        with pytest.raises(DecodingMismatch):
            projector.reconstruct([("id", "abc")], ParameterLocation.QUERY, Search)

    def test_key_strategy_must_match(self):
        """Test entries from one key strategy do not decode under another"""
        camel = ParameterProjector(EncoderConfig(key_strategy=KeyEncodingStrategy.convert_to_camel_case()))
        entries = camel.project(Paging(page_size=10), ParameterLocation.QUERY)

        assert camel.reconstruct(entries, ParameterLocation.QUERY, Paging) == Paging(page_size=10)
        with pytest.raises(DecodingMismatch):
            ParameterProjector().reconstruct(entries, ParameterLocation.QUERY, Paging)

    def test_module_level_reconstruct(self):
        assert reconstruct([("session_id", "s1")], "cookie", Session) == Session(session_id="s1")


# ============================================================================
# TEST: ParameterProjector.describe_parameters
# ============================================================================


class TestDescribeParameters:
    """Tests for parameter definitions"""

    def test_path_parameters(self, projector):
        registry = SchemaRegistry()

        parameters = projector.describe_parameters(ItemPath, ParameterLocation.PATH, registry)

        assert [parameter.to_dict() for parameter in parameters] == [
            {"name": "item_id", "in": "path", "required": True, "schema": {"type": "integer", "format": "int64"}},
            {"name": "version", "in": "path", "required": True, "schema": {"type": "string"}},
        ]

    def test_query_parameters(self, projector):
        parameters = projector.describe_parameters(Filters, ParameterLocation.QUERY, SchemaRegistry())

        assert parameters[0].to_dict() == {
            "name": "ids",
            "in": "query",
            "explode": False,
            "schema": {"type": "array", "items": {"type": "integer", "format": "int64"}},
        }
        assert parameters[1].to_dict()["style"] == "pipeDelimited"
        assert parameters[2].to_dict() == {
            "name": "weight",
            "in": "query",
            "schema": {"type": "number", "format": "double"},
        }

    def test_deep_object_registers_schema(self, projector):
        registry = SchemaRegistry()

        parameters = projector.describe_parameters(ColorQuery, ParameterLocation.QUERY, registry)

        assert parameters[0].to_dict() == {
            "name": "color",
            "in": "query",
            "required": True,
            "style": "deepObject",
            "explode": True,
            "schema": {"$ref": "#/components/schemas/RGB"},
        }
        assert "RGB" in registry.schemas

    def test_field_options(self, projector):
        parameters = projector.describe_parameters(Headers, ParameterLocation.HEADER, SchemaRegistry())

        assert parameters[0].to_dict() == {
            "name": "X-Request-ID",
            "in": "header",
            "description": "Correlation id",
            "required": True,
            "schema": {"type": "string"},
        }

    def test_allow_reserved(self, projector):
        parameters = projector.describe_parameters(Redirect, ParameterLocation.QUERY, SchemaRegistry())

        assert parameters[0].allow_reserved is True
        assert parameters[1].allow_reserved is None

    def test_failure_leaves_registry_clean(self, projector):
        registry = SchemaRegistry()

        with pytest.raises(UnsupportedShape):
            projector.describe_parameters(Broken, ParameterLocation.QUERY, registry)

        assert registry.reserved_names() == set()


# ============================================================================
# RUN TESTS
# ============================================================================


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
