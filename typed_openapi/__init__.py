"""
typed-openapi - OpenAPI schemas and parameter encodings from Python types

Walks dataclasses, enums, typed containers and scalars through one traversal
protocol and projects the result two ways:
- deduplicated component schemas for an OpenAPI document
- path/query/header/cookie parameter entries following OpenAPI styles
"""

__version__ = "0.1.0"

from .builder import SchemaBuilder
from .config import DEFAULT_CONFIG, DateEncodingFormat, EncoderConfig
from .document.models import ComponentsObject, OpenAPIDocument, ParameterObject
from .errors import (
    DanglingReference,
    DecodingMismatch,
    MissingRequiredParameter,
    SchemaNameCollision,
    TypedOpenAPIError,
    UnsupportedShape,
)
from .introspection import TraversalResolver, TypeIdentity, identity_of
from .naming import KeyEncodingStrategy, to_camel_case, to_snake_case
from .parameters import (
    ParameterEntry,
    ParameterLocation,
    ParameterProjector,
    ParameterStyle,
    parameter,
)
from .registry.schema_registry import SchemaRegistry

__all__ = [
    "__version__",
    "SchemaBuilder",
    "SchemaRegistry",
    "ParameterProjector",
    "ParameterEntry",
    "ParameterLocation",
    "ParameterStyle",
    "ParameterObject",
    "parameter",
    "ComponentsObject",
    "OpenAPIDocument",
    "TraversalResolver",
    "TypeIdentity",
    "identity_of",
    "KeyEncodingStrategy",
    "to_camel_case",
    "to_snake_case",
    "EncoderConfig",
    "DateEncodingFormat",
    "DEFAULT_CONFIG",
    "TypedOpenAPIError",
    "UnsupportedShape",
    "MissingRequiredParameter",
    "DecodingMismatch",
    "SchemaNameCollision",
    "DanglingReference",
]
