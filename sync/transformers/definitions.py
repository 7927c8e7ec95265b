"""
FFXIV collection schemas and their source API mappings.

xivapi fields are capitalised and sometimes nested (``TextCommand.Command``),
ffxivcollect fields are lowercase with nested ids (``category.id``).
"""

from typing import Any, Dict, List, Optional
from models.base import SourceId
from sync.transformers.registry import (
    FieldSpec,
    FieldType,
    SchemaDefinition,
    SchemaRegistry,
    SourceMapping,
    UnifiedRecord,
)

XIVAPI = SourceId.XIVAPI.value
FFXIVCOLLECT = SourceId.FFXIVCOLLECT.value


def _int(required: bool = False, foreign_key: Optional[str] = None) -> FieldSpec:
    return FieldSpec(type=FieldType.INTEGER, required=required, foreign_key=foreign_key)


def _str(max_length: int = 255, required: bool = False) -> FieldSpec:
    return FieldSpec(type=FieldType.STRING, required=required, max_length=max_length)


TEXT = FieldSpec(type=FieldType.TEXT)
DECIMAL = FieldSpec(type=FieldType.DECIMAL)
BOOLEAN = FieldSpec(type=FieldType.BOOLEAN)


# ============================================================================
# Transforms
# ============================================================================

def parse_game_patch(record: UnifiedRecord) -> UnifiedRecord:
    """Reduce xivapi's nested GamePatch object to its version number."""
    result = dict(record)
    patch = result.pop("patch", None)
    if isinstance(patch, dict):
        version = patch.get("Version")
        try:
            result["patch"] = float(version)
        except (TypeError, ValueError):
            pass
    elif patch is not None:
        result["patch"] = patch
    return result


def movement_from_flying_flag(record: UnifiedRecord) -> UnifiedRecord:
    """xivapi exposes IsFlying as 0/1, the unified schema wants a movement type."""
    result = dict(record)
    result["movement"] = "flying" if result.get("movement") in (1, True) else "ground"
    return result


# ============================================================================
# Shared field maps
# ============================================================================

def _collect_item_fields(*extra: str) -> Dict[str, str]:
    """ffxivcollect fields shared by every obtainable collectible"""
    field_map = {
        "id": "id",
        "name": "name",
        "patch": "patch",
        "item_id": "item_id",
        "tradeable": "tradeable",
        "owned": "owned",
        "icon": "icon",
    }
    for name in extra:
        field_map[name] = name
    return field_map


def build_schemas() -> List[SchemaDefinition]:
    achievements = SchemaDefinition(
        table_name="achievements",
        fields={
            "id": _int(required=True),
            "name": _str(required=True),
            "description": TEXT,
            "points": _int(),
            "sort_order": _int(),
            "patch": DECIMAL,
            "owned": DECIMAL,
            "icon": _str(),
            "category": _int(foreign_key="categories.id"),
            "type": _int(foreign_key="type.id"),
        },
        api_mappings={
            XIVAPI: SourceMapping(
                endpoint="/Achievement",
                field_map={
                    "Id": "id",
                    "Name": "name",
                    "Description": "description",
                    "Points": "points",
                    "Order": "sort_order",
                    "Icon": "icon",
                    "AchievementCategory": "category",
                    "Type": "type",
                    "GamePatch": "patch",
                },
                transform=parse_game_patch,
            ),
            FFXIVCOLLECT: SourceMapping(
                endpoint="/achievements",
                field_map={
                    "id": "id",
                    "name": "name",
                    "description": "description",
                    "points": "points",
                    "order": "sort_order",
                    "patch": "patch",
                    "owned": "owned",
                    "icon": "icon",
                    "category.id": "category",
                    "type.id": "type",
                },
            ),
        },
    )

    titles = SchemaDefinition(
        table_name="titles",
        fields={
            "id": _int(required=True),
            "name": _str(required=True),
            "female_name": _str(),
            "sort_order": _int(),
            "patch": DECIMAL,
            "owned": DECIMAL,
            "icon": _str(),
            "achievement": _int(foreign_key="achievements.id"),
            "sources": _int(foreign_key="sources.id"),
            "type": _int(foreign_key="type.id"),
        },
        api_mappings={
            XIVAPI: SourceMapping(
                endpoint="/Title",
                field_map={
                    "Id": "id",
                    "Name": "name",
                    "NameFemale": "female_name",
                    "Order": "sort_order",
                },
            ),
            FFXIVCOLLECT: SourceMapping(
                endpoint="/titles",
                field_map={
                    "id": "id",
                    "name": "name",
                    "female_name": "female_name",
                    "order": "sort_order",
                    "patch": "patch",
                    "owned": "owned",
                    "icon": "icon",
                    "achievement.id": "achievement",
                    "type.id": "type",
                },
            ),
        },
    )

    mounts = SchemaDefinition(
        table_name="mounts",
        fields={
            "id": _int(required=True),
            "name": _str(required=True),
            "description": TEXT,
            "enhanced_description": TEXT,
            "tooltip": _str(),
            "movement": _str(max_length=32),
            "seats": _int(),
            "sort_order": _int(),
            "order_group": _int(),
            "patch": DECIMAL,
            "item_id": _int(),
            "tradeable": BOOLEAN,
            "owned": DECIMAL,
            "image": _str(),
            "icon": _str(),
            "bgm": _str(),
            "sources": _int(foreign_key="sources.id"),
        },
        api_mappings={
            XIVAPI: SourceMapping(
                endpoint="/Mount",
                field_map={
                    "Id": "id",
                    "Name": "name",
                    "Description": "description",
                    "Tooltip": "tooltip",
                    "Order": "sort_order",
                    "Icon": "icon",
                    "IsFlying": "movement",
                },
                transform=movement_from_flying_flag,
            ),
            FFXIVCOLLECT: SourceMapping(
                endpoint="/mounts",
                field_map={
                    **_collect_item_fields(
                        "description", "enhanced_description", "tooltip",
                        "movement", "seats", "order_group", "image", "bgm",
                    ),
                    "order": "sort_order",
                },
            ),
        },
    )

    minions = SchemaDefinition(
        table_name="minions",
        fields={
            "id": _int(required=True),
            "name": _str(required=True),
            "description": _str(),
            "enhanced_description": TEXT,
            "tooltip": _str(),
            "patch": DECIMAL,
            "item_id": _int(),
            "tradeable": BOOLEAN,
            "behavior": _int(foreign_key="behavior.id"),
            "race": _int(foreign_key="race.id"),
            "image": _str(),
            "icon": _str(),
            "owned": DECIMAL,
            "sources": _int(foreign_key="sources.id"),
        },
        api_mappings={
            XIVAPI: SourceMapping(
                endpoint="/Companion",
                field_map={
                    "Id": "id",
                    "Name": "name",
                    "Description": "description",
                    "Tooltip": "tooltip",
                    "Icon": "icon",
                    "Behavior": "behavior",
                    "Race": "race",
                },
            ),
            FFXIVCOLLECT: SourceMapping(
                endpoint="/minions",
                field_map={
                    **_collect_item_fields("description", "enhanced_description", "tooltip", "image"),
                    "behavior.id": "behavior",
                    "race.id": "race",
                },
            ),
        },
    )

    orchestrions = SchemaDefinition(
        table_name="orchestrions",
        fields={
            "id": _int(required=True),
            "name": _str(required=True),
            "description": _str(),
            "patch": DECIMAL,
            "item_id": _int(),
            "tradeable": BOOLEAN,
            "owned": DECIMAL,
            "number": _int(),
            "icon": _str(),
            "category": _int(foreign_key="categories.id"),
            "sources": _int(foreign_key="sources.id"),
        },
        api_mappings={
            XIVAPI: SourceMapping(
                endpoint="/Orchestrion",
                field_map={
                    "Id": "id",
                    "Name": "name",
                    "Description": "description",
                },
            ),
            FFXIVCOLLECT: SourceMapping(
                endpoint="/orchestrions",
                field_map={
                    **_collect_item_fields("description", "number"),
                    "category.id": "category",
                },
            ),
        },
    )

    emotes = SchemaDefinition(
        table_name="emotes",
        fields={
            "id": _int(required=True),
            "name": _str(required=True),
            "command": _str(max_length=25),
            "sort_order": _int(),
            "patch": DECIMAL,
            "item_id": _int(),
            "tradeable": BOOLEAN,
            "owned": DECIMAL,
            "icon": _str(),
            "category": _int(foreign_key="categories.id"),
            "sources": _int(foreign_key="sources.id"),
        },
        api_mappings={
            XIVAPI: SourceMapping(
                endpoint="/Emote",
                field_map={
                    "Id": "id",
                    "Name": "name",
                    "TextCommand.Command": "command",
                    "Order": "sort_order",
                    "Icon": "icon",
                },
            ),
            FFXIVCOLLECT: SourceMapping(
                endpoint="/emotes",
                field_map={
                    **_collect_item_fields("command"),
                    "order": "sort_order",
                    "category.id": "category",
                },
            ),
        },
    )

    # Collect-only collectibles share one shape
    bardings = _collect_only("bardings", with_order=True)
    hairstyles = _collect_only("hairstyles", with_description=True)
    facewear = _collect_only("facewear", with_order=True)

    return [
        achievements, titles, mounts, minions, orchestrions,
        emotes, bardings, hairstyles, facewear,
    ]


def _collect_only(
    table_name: str,
    with_order: bool = False,
    with_description: bool = False
) -> SchemaDefinition:
    fields: Dict[str, Any] = {
        "id": _int(required=True),
        "name": _str(required=True),
    }
    field_map = _collect_item_fields()

    if with_order:
        fields["sort_order"] = _int()
        field_map["order"] = "sort_order"
    if with_description:
        fields["description"] = TEXT
        field_map["description"] = "description"

    fields.update({
        "patch": DECIMAL,
        "item_id": _int(),
        "tradeable": BOOLEAN,
        "owned": DECIMAL,
        "icon": _str(),
        "sources": _int(foreign_key="sources.id"),
    })

    return SchemaDefinition(
        table_name=table_name,
        fields=fields,
        api_mappings={
            FFXIVCOLLECT: SourceMapping(endpoint=f"/{table_name}", field_map=field_map),
        },
    )


def build_default_registry() -> SchemaRegistry:
    return SchemaRegistry(build_schemas())
