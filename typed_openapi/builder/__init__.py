"""
Schema Builder Module

Builds OpenAPI schema nodes from declared types and structural values,
registering named shapes (dataclasses, enums) in a SchemaRegistry so they
are emitted once and referenced afterwards.
"""

from .schema_builder import SchemaBuilder

__all__ = [
    "SchemaBuilder",
]
