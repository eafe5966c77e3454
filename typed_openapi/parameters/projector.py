"""
Parameter Projector - maps typed records onto parameter locations

Each field of a record becomes one parameter of the target location
(path, query, header or cookie):
- project(): record value -> ordered (name, value) entries
- reconstruct(): entries -> record value of a target type
- describe_parameters(): record type -> ParameterObject definitions
"""

import logging
from typing import Any, Iterable, List, Optional, Sequence, Set, Tuple, Union

from typed_openapi.builder import SchemaBuilder
from typed_openapi.config import DEFAULT_CONFIG, EncoderConfig
from typed_openapi.document.models import ParameterLocation, ParameterObject, ParameterStyle
from typed_openapi.errors import (
    DecodingMismatch,
    MissingRequiredParameter,
    TypedOpenAPIError,
    UnsupportedShape,
)
from typed_openapi.introspection import (
    WIRE_NAME_KEY,
    FieldDescriptor,
    MappingTraversal,
    OptionalTraversal,
    RecordTraversal,
    Traversal,
    TraversalContext,
    TraversalKind,
    TraversalResolver,
    unwrap_optional,
)
from typed_openapi.registry.schema_registry import SchemaRegistry
from typed_openapi.schema.values import MappingValue, NullValue, SequenceValue, StructuralValue

from .options import FieldParameterSpec, ParameterEntry, field_spec
from .serializer import StyleSerializer

logger = logging.getLogger(__name__)

EntryLike = Union[ParameterEntry, Tuple[str, str]]


class ParameterProjector:
    """
    Projects record values to parameter entries and back

    Usage:
    ```python
    @dataclass
    class Search:
        id: int
        tags: List[str]

    projector = ParameterProjector()
    entries = projector.project(Search(id=1, tags=["a", "b"]), ParameterLocation.QUERY)
    # [("id", "1"), ("tags", "a"), ("tags", "b")]
    projector.reconstruct(entries, ParameterLocation.QUERY, Search)
    ```
    """

    def __init__(self, config: EncoderConfig = DEFAULT_CONFIG, resolver: Optional[TraversalResolver] = None):
        self.config = config
        self.resolver = resolver or TraversalResolver()
        self.context = TraversalContext(resolver=self.resolver, config=config)
        self.serializer = StyleSerializer(percent_encode=config.percent_encode)

    def _record_traversal(self, declared_type: Any) -> Traversal:
        traversal = self.resolver.resolve(declared_type)
        if isinstance(traversal, OptionalTraversal):
            traversal = traversal.inner
        if traversal.kind != TraversalKind.KEYED:
            raise UnsupportedShape(
                f"Parameters must come from a record or mapping type, got {traversal.identity.key}"
            )
        return traversal

    def _fields(self, traversal: Traversal) -> List[FieldDescriptor]:
        if isinstance(traversal, MappingTraversal):
            return []
        return list(traversal.fields(self.context))

    def _free_spec(self, name: str, location: ParameterLocation) -> FieldParameterSpec:
        # Keys of a free-form mapping use location defaults
        descriptor = FieldDescriptor(attribute=name, declared_type=Any, optional=True,
                                     metadata={WIRE_NAME_KEY: name})
        return field_spec(descriptor, location, self.context)

    # ------------------------------------------------------------------
    # Encoding
    # ------------------------------------------------------------------

    def project(
        self,
        value: Any,
        location: ParameterLocation,
        declared_type: Any = None,
    ) -> List[ParameterEntry]:
        """
        Project a record value onto a parameter location

        Args:
            value: Dataclass instance (or str-keyed mapping)
            location: Target parameter location
            declared_type: Declared type of value (defaults to type(value))

        Returns:
            Ordered parameter entries, in field order

        Raises:
            MissingRequiredParameter: If a required field is absent
            UnsupportedShape: If a field cannot be serialized in its style
        """
        location = ParameterLocation(location)
        traversal = self._record_traversal(declared_type if declared_type is not None else type(value))
        node = traversal.encode(value, self.context)
        if not isinstance(node, MappingValue):
            raise UnsupportedShape(f"{traversal.identity.key} did not produce a keyed value")

        specs = {}
        for descriptor in self._fields(traversal):
            spec = field_spec(descriptor, location, self.context)
            content = node.get(spec.name)
            if spec.required and (content is None or isinstance(content, NullValue)):
                logger.warning(f"Missing required {location.value} parameter {spec.name}")
                raise MissingRequiredParameter(spec.name, location.value)
            specs[spec.name] = spec

        entries: List[ParameterEntry] = []
        for name, content in node:
            # Empty sequences emit nothing in every style and reconstruct as empty
            if isinstance(content, NullValue) or (isinstance(content, SequenceValue) and not content):
                continue
            spec = specs.get(name) or self._free_spec(name, location)
            entries.extend(self.serializer.serialize(
                spec.name, content, spec.style, spec.explode, spec.allow_reserved
            ))

        logger.debug(f"Projected {traversal.identity.key} to {len(entries)} {location.value} entries")
        return entries

    # ------------------------------------------------------------------
    # Decoding
    # ------------------------------------------------------------------

    def reconstruct(
        self,
        entries: Iterable[EntryLike],
        location: ParameterLocation,
        target_type: Any,
    ) -> Any:
        """
        Rebuild a record value from parameter entries

        Must use the same key strategy that produced the entries.

        Args:
            entries: (name, value) pairs of one location
            location: Parameter location the entries came from
            target_type: Record type to populate

        Returns:
            Instance of target_type

        Raises:
            DecodingMismatch: If a required field is absent or a value cannot be parsed
        """
        location = ParameterLocation(location)
        entries = [ParameterEntry(*entry) for entry in entries]
        traversal = self._record_traversal(target_type)

        if isinstance(traversal, MappingTraversal):
            shape = traversal.value_traversal(self.context).kind
            if shape == TraversalKind.KEYED:
                raise UnsupportedShape("Free-form parameter maps must hold scalars or sequences")
            pairs = []
            for name in dict.fromkeys(entry.name for entry in entries):
                spec = self._free_spec(name, location)
                pairs.append((name, self.serializer.deserialize(
                    name, entries, spec.style, spec.explode, shape
                )))
            return traversal.decode(MappingValue.from_pairs(pairs), self.context)

        plans = []
        claimed: Set[str] = set()
        for descriptor in self._fields(traversal):
            spec = field_spec(descriptor, location, self.context)
            field_traversal = self.resolver.resolve(descriptor.declared_type)
            if isinstance(field_traversal, OptionalTraversal):
                field_traversal = field_traversal.inner
            keys = self._object_keys(field_traversal)
            claimed.add(spec.name)
            if keys:
                claimed.update(keys)
            plans.append((descriptor, spec, field_traversal, keys))

        pairs: List[Tuple[str, StructuralValue]] = []
        for descriptor, spec, field_traversal, keys in plans:
            content = self.serializer.deserialize(
                spec.name,
                entries,
                spec.style,
                spec.explode,
                field_traversal.kind,
                keys=keys,
                claimed=claimed - {spec.name},
            )
            if content is None:
                if field_traversal.kind == TraversalKind.UNKEYED:
                    # An exploded empty array leaves no entries behind
                    content = SequenceValue(())
                elif spec.required:
                    raise DecodingMismatch(
                        f"missing required {location.value} parameter", spec.name
                    )
                else:
                    continue
            pairs.append((spec.name, content))

        result = traversal.decode(MappingValue.from_pairs(pairs), self.context)
        logger.debug(f"Reconstructed {traversal.identity.key} from {len(entries)} entries")
        return result

    @staticmethod
    def _described_explode(spec: FieldParameterSpec) -> Optional[bool]:
        # deepObject is always exploded on the wire
        if spec.style == ParameterStyle.DEEP_OBJECT:
            return True
        return None if spec.explode_is_default else spec.explode

    def _object_keys(self, traversal: Traversal) -> Optional[Set[str]]:
        if isinstance(traversal, RecordTraversal):
            return {descriptor.wire_name(self.context) for descriptor in traversal.fields(self.context)}
        return None

    # ------------------------------------------------------------------
    # Description
    # ------------------------------------------------------------------

    def describe_parameters(
        self,
        target_type: Any,
        location: ParameterLocation,
        registry: SchemaRegistry,
    ) -> List[ParameterObject]:
        """
        Describe each field of a record type as a parameter definition

        Args:
            target_type: Record type
            location: Parameter location
            registry: Registry receiving any component schemas

        Returns:
            One ParameterObject per field, in field order
        """
        location = ParameterLocation(location)
        traversal = self._record_traversal(target_type)
        builder = SchemaBuilder(registry, self.config, self.resolver)
        before = registry.reserved_names()

        parameters = []
        try:
            for descriptor in self._fields(traversal):
                spec = field_spec(descriptor, location, self.context)
                inner_type, _ = unwrap_optional(descriptor.declared_type)
                options = spec.options
                parameters.append(ParameterObject(
                    name=spec.name,
                    location=location,
                    description=options.description,
                    required=True if spec.required else None,
                    deprecated=options.deprecated,
                    style=None if spec.style_is_default else spec.style,
                    explode=self._described_explode(spec),
                    allow_reserved=True if spec.allow_reserved else None,
                    schema=builder.describe(inner_type),
                    example=options.example,
                ))
        except TypedOpenAPIError:
            for name in registry.reserved_names() - before:
                registry.discard(name)
            raise

        logger.info(f"Described {len(parameters)} {location.value} parameters of {traversal.identity.key}")
        return parameters


def project(value: Any, location: ParameterLocation, config: EncoderConfig = DEFAULT_CONFIG) -> List[ParameterEntry]:
    """Convenience wrapper around ParameterProjector.project"""
    return ParameterProjector(config).project(value, location)


def reconstruct(
    entries: Sequence[EntryLike],
    location: ParameterLocation,
    target_type: Any,
    config: EncoderConfig = DEFAULT_CONFIG,
) -> Any:
    """Convenience wrapper around ParameterProjector.reconstruct"""
    return ParameterProjector(config).reconstruct(entries, location, target_type)
