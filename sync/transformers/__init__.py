from sync.transformers.registry import (
    FieldSpec,
    FieldType,
    SchemaDefinition,
    SchemaRegistry,
    SourceMapping,
)
from sync.transformers.field_mapper import ABSENT, FieldMapper, resolve_path
from sync.transformers.merger import SourceMerger
from sync.transformers.definitions import build_default_registry

__all__ = [
    "ABSENT",
    "FieldMapper",
    "FieldSpec",
    "FieldType",
    "SchemaDefinition",
    "SchemaRegistry",
    "SourceMapping",
    "SourceMerger",
    "build_default_registry",
    "resolve_path",
]
