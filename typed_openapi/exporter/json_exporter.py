"""JSON exporter."""
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from typed_openapi.builder import SchemaBuilder
from typed_openapi.config import DEFAULT_CONFIG, EncoderConfig
from typed_openapi.document.models import InfoObject, OpenAPIDocument, ParameterLocation
from typed_openapi.parameters import ParameterProjector
from typed_openapi.registry.schema_registry import SchemaRegistry

logger = logging.getLogger(__name__)


class JsonExporter:
    """Describe types into an OpenAPI document and export it to JSON."""

    def __init__(self, config: EncoderConfig = DEFAULT_CONFIG, info: Optional[InfoObject] = None):
        self.config = config
        self.document = OpenAPIDocument(info=info or InfoObject())
        self.registry = SchemaRegistry(self.document.components)
        self.builder = SchemaBuilder(self.registry, config)
        self.projector = ParameterProjector(config, self.builder.resolver)

    def add_schemas(self, types: Iterable[Any]) -> None:
        """Describe each type into the document's component schemas."""
        for declared_type in types:
            self.builder.describe(declared_type)

    def add_parameters(self, declared_type: Any, location: ParameterLocation) -> None:
        """Describe a record's fields as reusable component parameters."""
        for parameter in self.projector.describe_parameters(declared_type, location, self.registry):
            key = f"{parameter.location.value}.{parameter.name}"
            self.document.components.parameters[key] = parameter

    def to_dict(self) -> Dict[str, Any]:
        self.registry.finalize()
        return self.document.to_dict()

    def export(self, output_file: Path) -> None:
        """Export to JSON file."""
        output_file = Path(output_file)
        output_file.parent.mkdir(parents=True, exist_ok=True)

        data = self.to_dict()
        with open(output_file, "w") as f:
            json.dump(data, f, indent=2, default=str)
        logger.info(f"Exported {len(self.registry.schemas)} schemas to {output_file}")

    @staticmethod
    def dumps(data: Dict[str, Any]) -> str:
        return json.dumps(data, indent=2, default=str)


def export_types(output_file: Path, types: List[Any], config: EncoderConfig = DEFAULT_CONFIG) -> None:
    """Convenience: describe types and write them to a JSON document."""
    exporter = JsonExporter(config)
    exporter.add_schemas(types)
    exporter.export(output_file)
