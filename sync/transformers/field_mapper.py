"""
Map raw source API records into the unified schema and validate them.

Pure functions over data: no network, no storage, deterministic for the
same inputs.
"""

from typing import Any, Dict
from schemas.sync import ValidationResult
from sync.transformers.registry import SchemaDefinition, UnifiedRecord
import logging

logger = logging.getLogger(__name__)


class _Absent:
    """Marker for a dot path that does not resolve."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False


ABSENT = _Absent()


def resolve_path(obj: Any, path: str) -> Any:
    """
    Follow a dot path (``category.id``) into nested JSON.

    Returns ABSENT when a segment is missing or the current value cannot be
    indexed. Numeric segments index into lists.
    """
    current = obj
    for segment in path.split("."):
        if isinstance(current, dict):
            if segment not in current:
                return ABSENT
            current = current[segment]
        elif isinstance(current, list) and segment.lstrip("-").isdigit():
            index = int(segment)
            if not -len(current) <= index < len(current):
                return ABSENT
            current = current[index]
        else:
            return ABSENT
    return current


class FieldMapper:
    """
    Normalize records from different source APIs into unified records.

    Handles:
    - Dot-path field mapping
    - Omission of unset fields (no defaults are invented)
    - Per-source post-mapping transforms
    - Required / max-length validation
    """

    def map(self, schema: SchemaDefinition, source_id: str, raw_record: Dict[str, Any]) -> UnifiedRecord:
        """
        Map one raw record of ``source_id`` onto ``schema``.

        Raises:
            UnknownSourceMappingError: the schema has no mapping for the source
        """
        mapping = schema.mapping_for(source_id)

        mapped: UnifiedRecord = {}
        for api_path, unified_field in mapping.field_map.items():
            value = resolve_path(raw_record, api_path)
            if value is ABSENT or value is None:
                continue
            mapped[unified_field] = value

        if mapping.transform is not None:
            return mapping.transform(mapped)

        return mapped

    def validate(self, schema: SchemaDefinition, record: UnifiedRecord) -> ValidationResult:
        """Check required fields and string lengths; one message per violation."""
        errors = []

        for field_name, spec in schema.fields.items():
            value = record.get(field_name)

            if spec.required and (value is None or value == ""):
                errors.append(f"Missing required field: {field_name}")
                continue

            if spec.max_length and isinstance(value, str) and len(value) > spec.max_length:
                errors.append(f"Field {field_name} exceeds max length {spec.max_length}")

        return ValidationResult(valid=not errors, errors=errors)
