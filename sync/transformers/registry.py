"""
Unified schema definitions and the registry that serves them.

A SchemaDefinition describes one unified entity table: its fields and, per
source API, the endpoint to read and how the source's (possibly nested)
field names map onto the unified field names.
"""

from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional
from pydantic import BaseModel, ConfigDict, Field
from core.exceptions import (
    SchemaDefinitionError,
    UnknownSchemaError,
    UnknownSourceMappingError,
)
import logging

logger = logging.getLogger(__name__)

UnifiedRecord = Dict[str, Any]
Transform = Callable[[UnifiedRecord], UnifiedRecord]


class FieldType(str, Enum):
    INTEGER = "integer"
    STRING = "string"
    TEXT = "text"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"


class FieldSpec(BaseModel):
    """Definition of one unified field"""

    model_config = ConfigDict(frozen=True)

    type: FieldType
    required: bool = False
    max_length: Optional[int] = None
    foreign_key: Optional[str] = None


class SourceMapping(BaseModel):
    """
    How one source API feeds a schema.

    field_map keys are dot paths into the raw record (``category.id``),
    values are unified field names. The optional transform runs on the
    mapped record and its return value replaces it.
    """

    model_config = ConfigDict(frozen=True)

    endpoint: str
    field_map: Dict[str, str]
    transform: Optional[Transform] = None


class SchemaDefinition(BaseModel):
    """One unified entity type. Never mutated after the registry is built."""

    model_config = ConfigDict(frozen=True)

    table_name: str
    primary_key: str = "id"
    fields: Dict[str, FieldSpec]
    api_mappings: Dict[str, SourceMapping] = Field(default_factory=dict)

    def mapping_for(self, source_id: str) -> SourceMapping:
        mapping = self.api_mappings.get(source_id)
        if mapping is None:
            raise UnknownSourceMappingError(self.table_name, source_id)
        return mapping

    @property
    def required_fields(self) -> List[str]:
        return [name for name, spec in self.fields.items() if spec.required]


class SchemaRegistry:
    """
    Read-only lookup of schema definitions.

    Built once at startup and handed to the components that need it; every
    schema is checked against its invariants on construction.
    """

    def __init__(self, schemas: Iterable[SchemaDefinition]):
        self._schemas: Dict[str, SchemaDefinition] = {}
        for schema in schemas:
            self._check(schema)
            self._schemas[schema.table_name] = schema
        logger.debug(f"Schema registry built with {len(self._schemas)} schemas")

    @staticmethod
    def _check(schema: SchemaDefinition):
        if not schema.api_mappings:
            raise SchemaDefinitionError(
                f"Schema {schema.table_name} has no API mappings",
                context={"schema": schema.table_name}
            )

        if schema.primary_key not in schema.fields:
            raise SchemaDefinitionError(
                f"Primary key {schema.primary_key} is not a field of {schema.table_name}",
                context={"schema": schema.table_name}
            )

        mapped_fields = set()
        for mapping in schema.api_mappings.values():
            mapped_fields.update(mapping.field_map.values())

        unmapped = [f for f in schema.required_fields if f not in mapped_fields]
        if unmapped:
            raise SchemaDefinitionError(
                f"Required fields of {schema.table_name} not fed by any source: {', '.join(unmapped)}",
                context={"schema": schema.table_name, "fields": unmapped}
            )

    def get_schema(self, name: str) -> SchemaDefinition:
        schema = self._schemas.get(name)
        if schema is None:
            raise UnknownSchemaError(name)
        return schema

    def names(self) -> List[str]:
        return list(self._schemas)

    def __contains__(self, name: str) -> bool:
        return name in self._schemas
