"""Schema node models emitted into a document's components section."""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

COMPONENTS_SCHEMAS_PREFIX = "#/components/schemas/"


class SchemaKind(str, Enum):
    """OpenAPI primitive type names"""
    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"
    ARRAY = "array"


@dataclass(frozen=True)
class ReferenceSchema:
    """Points at a named schema in the registry."""

    name: str

    @property
    def ref(self) -> str:
        return f"{COMPONENTS_SCHEMAS_PREFIX}{self.name}"

    def to_dict(self) -> Dict[str, Any]:
        return {"$ref": self.ref}


@dataclass(frozen=True)
class PrimitiveSchema:
    """A scalar type, optionally narrowed by a format (e.g. "date-time")."""

    kind: SchemaKind
    format: Optional[str] = None
    nullable: bool = False

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"type": self.kind.value}
        if self.format:
            result["format"] = self.format
        if self.nullable:
            result["nullable"] = True
        return result


@dataclass(frozen=True)
class ArraySchema:
    """Homogeneous array; items is None when the item shape is unknown."""

    items: Optional["SchemaNode"] = None
    nullable: bool = False

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "type": SchemaKind.ARRAY.value,
            "items": self.items.to_dict() if self.items is not None else {},
        }
        if self.nullable:
            result["nullable"] = True
        return result


@dataclass(frozen=True)
class Property:
    """A named object property"""

    name: str
    schema: "SchemaNode"
    required: bool = True


@dataclass(frozen=True)
class ObjectSchema:
    """Object with ordered properties and/or a value schema for extra keys."""

    properties: Tuple[Property, ...] = ()
    additional_properties: Optional["SchemaNode"] = None
    nullable: bool = False

    @property
    def required(self) -> List[str]:
        return [prop.name for prop in self.properties if prop.required]

    def get_property(self, name: str) -> Optional[Property]:
        for prop in self.properties:
            if prop.name == name:
                return prop
        return None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"type": SchemaKind.OBJECT.value}
        if self.properties:
            result["properties"] = {
                prop.name: prop.schema.to_dict() for prop in self.properties
            }
        if self.required:
            result["required"] = self.required
        if self.additional_properties is not None:
            result["additionalProperties"] = self.additional_properties.to_dict()
        if self.nullable:
            result["nullable"] = True
        return result


@dataclass(frozen=True)
class EnumSchema:
    """Closed set of literal values of one primitive kind"""

    values: Tuple[Any, ...]
    kind: SchemaKind = SchemaKind.STRING

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.kind.value, "enum": list(self.values)}


SchemaNode = Union[PrimitiveSchema, ArraySchema, ObjectSchema, EnumSchema, ReferenceSchema]

