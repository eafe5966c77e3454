"""
Parameter Projection Module

Turns typed records into path/query/header/cookie parameter entries and
back, following OpenAPI style and explode rules:
- form, simple, spaceDelimited, pipeDelimited, deepObject, matrix, label
- per-field overrides through ``parameter(...)`` field metadata
- parameter object descriptions with registered schemas
"""

from typed_openapi.document.models import ParameterLocation, ParameterStyle

from .options import (
    FieldParameterSpec,
    ParameterEntry,
    ParameterOptions,
    field_spec,
    parameter,
)
from .projector import ParameterProjector, project, reconstruct
from .serializer import StyleSerializer

__all__ = [
    "ParameterLocation",
    "ParameterStyle",
    "ParameterEntry",
    "ParameterOptions",
    "FieldParameterSpec",
    "field_spec",
    "parameter",
    "ParameterProjector",
    "StyleSerializer",
    "project",
    "reconstruct",
]
