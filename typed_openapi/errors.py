"""Error kinds raised by the introspection and projection engine."""
from typing import Optional


class TypedOpenAPIError(Exception):
    """Base class for all engine errors."""


class UnsupportedShape(TypedOpenAPIError):
    """A type or value has no representable schema or parameter form."""


class MissingRequiredParameter(TypedOpenAPIError):
    """A required parameter is absent from the source value."""

    def __init__(self, name: str, location: str):
        self.name = name
        self.location = location
        super().__init__(f"Missing required {location} parameter: {name}")


class DecodingMismatch(TypedOpenAPIError):
    """Parameter entries cannot be turned back into the target type."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        if path:
            message = f"{path}: {message}"
        super().__init__(message)


class SchemaNameCollision(TypedOpenAPIError):
    """Two distinct type identities were forced onto one registry name."""


class DanglingReference(TypedOpenAPIError):
    """A reserved schema name was never committed."""
