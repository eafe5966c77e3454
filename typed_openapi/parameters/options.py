"""Per-field parameter options carried in dataclass field metadata."""
from dataclasses import dataclass, field
from typing import Any, Dict, NamedTuple, Optional

from typed_openapi.document.models import (
    ParameterLocation,
    ParameterStyle,
    default_explode,
    default_style,
)
from typed_openapi.introspection import WIRE_NAME_KEY, FieldDescriptor, TraversalContext

PARAMETER_OPTIONS_KEY = "typed_openapi.parameter"


class ParameterEntry(NamedTuple):
    """One (name, serialized value) pair for a transport location"""

    name: str
    value: str


@dataclass(frozen=True)
class ParameterOptions:
    """Overrides for how one field is serialized as a parameter"""

    style: Optional[ParameterStyle] = None
    explode: Optional[bool] = None
    allow_reserved: bool = False
    description: Optional[str] = None
    deprecated: Optional[bool] = None
    example: Any = None


def parameter(
    *,
    name: Optional[str] = None,
    style: Optional[ParameterStyle] = None,
    explode: Optional[bool] = None,
    allow_reserved: bool = False,
    description: Optional[str] = None,
    deprecated: Optional[bool] = None,
    example: Any = None,
) -> Dict[str, Any]:
    """
    Build dataclass field metadata for a parameter field

    Example:
        @dataclass
        class Filter:
            color: Dict[str, int] = field(
                default_factory=dict,
                metadata=parameter(style=ParameterStyle.DEEP_OBJECT),
            )

    Args:
        name: Wire name overriding the key encoding strategy
        style: Serialization style (defaults per location)
        explode: Explode flag (defaults per style)
        allow_reserved: Keep RFC 3986 reserved characters unencoded (query only)
        description: Parameter description for the document
        deprecated: Mark the parameter deprecated
        example: Example value for the document

    Returns:
        Metadata dict for ``dataclasses.field(metadata=...)``
    """
    metadata: Dict[str, Any] = {
        PARAMETER_OPTIONS_KEY: ParameterOptions(
            style=ParameterStyle(style) if style is not None else None,
            explode=explode,
            allow_reserved=allow_reserved,
            description=description,
            deprecated=deprecated,
            example=example,
        )
    }
    if name is not None:
        metadata[WIRE_NAME_KEY] = name
    return metadata


@dataclass(frozen=True)
class FieldParameterSpec:
    """Resolved serialization settings for one field at one location"""

    name: str
    location: ParameterLocation
    style: ParameterStyle
    explode: bool
    allow_reserved: bool
    required: bool
    options: ParameterOptions = field(default_factory=ParameterOptions)

    @property
    def style_is_default(self) -> bool:
        return self.style == default_style(self.location)

    @property
    def explode_is_default(self) -> bool:
        return self.explode == default_explode(self.style)


def field_spec(
    descriptor: FieldDescriptor,
    location: ParameterLocation,
    context: TraversalContext,
) -> FieldParameterSpec:
    """Resolve a field's style/explode/required settings for a location"""
    location = ParameterLocation(location)
    options = descriptor.metadata.get(PARAMETER_OPTIONS_KEY) or ParameterOptions()
    style = options.style or default_style(location)
    explode = options.explode if options.explode is not None else default_explode(style)
    return FieldParameterSpec(
        name=descriptor.wire_name(context),
        location=location,
        style=style,
        explode=explode,
        allow_reserved=options.allow_reserved and location == ParameterLocation.QUERY,
        required=descriptor.required or location == ParameterLocation.PATH,
        options=options,
    )
