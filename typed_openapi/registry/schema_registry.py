"""
Schema registry - deduplicates generated schemas by type identity.

A type's name is reserved before its schema body is built. A type that
refers to itself therefore finds its own reservation mid-build and gets a
reference instead of recursing.
"""

import logging
from typing import Dict, Optional, Set, Tuple

from typed_openapi.document.models import ComponentsObject
from typed_openapi.errors import DanglingReference, SchemaNameCollision
from typed_openapi.introspection.type_identity import TypeIdentity
from typed_openapi.schema.models import SchemaNode

logger = logging.getLogger(__name__)


class SchemaRegistry:
    """
    Maps type identities to generated component names and schemas

    Not thread-safe: whoever builds a document owns the registry and must
    serialize calls that use it.

    Usage:
    ```python
    registry = SchemaRegistry()
    name, is_new = registry.register(identity, "User")
    if is_new:
        registry.commit(name, build_node())
    ```
    """

    def __init__(self, components: Optional[ComponentsObject] = None, max_suffix: int = 1000):
        """
        Initialize SchemaRegistry

        Args:
            components: Document container receiving committed schemas
            max_suffix: Highest numeric suffix tried when disambiguating names
        """
        self.components = components if components is not None else ComponentsObject()
        self.max_suffix = max_suffix
        self._names: Dict[TypeIdentity, str] = {}
        self._owners: Dict[str, TypeIdentity] = {}
        self._pending: Set[str] = set()

    def register(self, identity: TypeIdentity, name_hint: Optional[str] = None) -> Tuple[str, bool]:
        """
        Reserve a name for a type identity

        Args:
            identity: Type identity to register
            name_hint: Preferred component name (defaults to identity.name)

        Returns:
            Tuple of (name, is_new). When is_new is False the schema already
            exists or is being built; callers must not build it again.

        Raises:
            SchemaNameCollision: If no free name is left for the hint
        """
        existing = self._names.get(identity)
        if existing is not None:
            return existing, False

        name = self._disambiguate(name_hint or identity.name or "Schema")
        self._names[identity] = name
        self._owners[name] = identity
        self._pending.add(name)
        logger.debug(f"Reserved schema name {name} for {identity.key}")
        return name, True

    def _disambiguate(self, hint: str) -> str:
        if hint not in self._owners and hint not in self.components.schemas:
            return hint
        for suffix in range(2, self.max_suffix + 1):
            candidate = f"{hint}{suffix}"
            if candidate not in self._owners and candidate not in self.components.schemas:
                return candidate
        raise SchemaNameCollision(
            f"No free schema name for {hint!r} after {self.max_suffix} attempts"
        )

    def commit(self, name: str, node: SchemaNode) -> None:
        """
        Store the built schema for a reserved name

        Raises:
            SchemaNameCollision: If the name was not reserved or is already committed
        """
        if name not in self._owners:
            raise SchemaNameCollision(f"Schema name {name!r} was never reserved")
        if name not in self._pending:
            raise SchemaNameCollision(f"Schema name {name!r} is already committed")
        self._pending.discard(name)
        self.components.insert_schema(name, node)
        logger.debug(f"Committed schema {name}")

    def discard(self, name: str) -> None:
        """Drop a reservation (and its schema, if committed)"""
        identity = self._owners.pop(name, None)
        if identity is not None:
            self._names.pop(identity, None)
        self._pending.discard(name)
        self.components.schemas.pop(name, None)

    def resolve(self, name: str) -> Optional[SchemaNode]:
        return self.components.resolve_reference(name)

    def reserved_names(self) -> Set[str]:
        """Names reserved so far, committed or not"""
        return set(self._owners)

    def name_for(self, identity: TypeIdentity) -> Optional[str]:
        return self._names.get(identity)

    @property
    def schemas(self) -> Dict[str, SchemaNode]:
        return self.components.schemas

    def finalize(self) -> Dict[str, SchemaNode]:
        """
        Check that every reservation was committed

        Returns:
            The committed schemas

        Raises:
            DanglingReference: If a reserved name has no schema
        """
        if self._pending:
            raise DanglingReference(
                f"Reserved schemas were never built: {sorted(self._pending)}"
            )
        logger.info(f"Schema registry holds {len(self.components.schemas)} schemas")
        return self.components.schemas

    def __contains__(self, identity: object) -> bool:
        return identity in self._names

    def __len__(self) -> int:
        return len(self._names)
