"""Passive OpenAPI document containers that receive generated output."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from typed_openapi.schema.models import COMPONENTS_SCHEMAS_PREFIX, SchemaNode


class ParameterLocation(str, Enum):
    """Where a parameter travels"""
    QUERY = "query"
    HEADER = "header"
    PATH = "path"
    COOKIE = "cookie"


class ParameterStyle(str, Enum):
    """Parameter serialization styles"""
    MATRIX = "matrix"
    LABEL = "label"
    FORM = "form"
    SIMPLE = "simple"
    SPACE_DELIMITED = "spaceDelimited"
    PIPE_DELIMITED = "pipeDelimited"
    DEEP_OBJECT = "deepObject"


DEFAULT_STYLES = {
    ParameterLocation.QUERY: ParameterStyle.FORM,
    ParameterLocation.PATH: ParameterStyle.SIMPLE,
    ParameterLocation.HEADER: ParameterStyle.SIMPLE,
    ParameterLocation.COOKIE: ParameterStyle.FORM,
}


def default_style(location: ParameterLocation) -> ParameterStyle:
    return DEFAULT_STYLES[ParameterLocation(location)]


def default_explode(style: ParameterStyle) -> bool:
    """form explodes by default, every other style does not"""
    return ParameterStyle(style) == ParameterStyle.FORM


@dataclass
class ParameterObject:
    """
    Describes a single operation parameter

    A parameter is unique by (name, location). Path parameters are always
    required.
    """

    name: str
    location: ParameterLocation
    description: Optional[str] = None
    required: Optional[bool] = None
    deprecated: Optional[bool] = None
    allow_empty_value: Optional[bool] = None
    style: Optional[ParameterStyle] = None
    explode: Optional[bool] = None
    allow_reserved: Optional[bool] = None
    schema: Optional[SchemaNode] = None
    example: Any = None

    def __post_init__(self):
        self.location = ParameterLocation(self.location)
        if self.location == ParameterLocation.PATH:
            self.required = True

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation"""
        result: Dict[str, Any] = {"name": self.name, "in": self.location.value}
        optional_fields = [
            ("description", self.description),
            ("required", self.required),
            ("deprecated", self.deprecated),
            ("allowEmptyValue", self.allow_empty_value),
            ("style", self.style.value if self.style else None),
            ("explode", self.explode),
            ("allowReserved", self.allow_reserved),
            ("schema", self.schema.to_dict() if self.schema is not None else None),
            ("example", self.example),
        ]
        for key, value in optional_fields:
            if value is not None:
                result[key] = value
        return result


@dataclass
class ComponentsObject:
    """Named reusable schemas and parameters"""

    schemas: Dict[str, SchemaNode] = field(default_factory=dict)
    parameters: Dict[str, ParameterObject] = field(default_factory=dict)

    def insert_schema(self, name: str, node: SchemaNode) -> None:
        self.schemas[name] = node

    def resolve_reference(self, name: str) -> Optional[SchemaNode]:
        """Look up a schema by component name or full "#/components/schemas/..." ref"""
        if name.startswith(COMPONENTS_SCHEMAS_PREFIX):
            name = name[len(COMPONENTS_SCHEMAS_PREFIX):]
        return self.schemas.get(name)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        if self.schemas:
            result["schemas"] = {name: node.to_dict() for name, node in self.schemas.items()}
        if self.parameters:
            result["parameters"] = {
                name: parameter.to_dict() for name, parameter in self.parameters.items()
            }
        return result


@dataclass
class InfoObject:
    title: str = "API"
    version: str = "1.0.0"
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {"title": self.title, "version": self.version}
        if self.description:
            result["description"] = self.description
        return result


@dataclass
class OpenAPIDocument:
    """Top-level document container"""

    info: InfoObject = field(default_factory=InfoObject)
    openapi: str = "3.0.3"
    servers: List[str] = field(default_factory=list)
    components: ComponentsObject = field(default_factory=ComponentsObject)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation"""
        result: Dict[str, Any] = {
            "openapi": self.openapi,
            "info": self.info.to_dict(),
            "paths": {},
        }
        if self.servers:
            result["servers"] = [{"url": url} for url in self.servers]
        components = self.components.to_dict()
        if components:
            result["components"] = components
        return result
