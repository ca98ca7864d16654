"""
Canonical shared constants for the Salvage Union reference catalog.

The schema catalog below is the fixed, ordered set of schema names the
catalog knows about; every Model and every cross-reference uses one of
these ids.
"""

from typing import Any, Dict, List

# ---------------------------------------------------------------------------
# Schema catalog
# ---------------------------------------------------------------------------

SCHEMA_CATALOG: List[Dict[str, Any]] = [
    {
        "id": "abilities",
        "title": "Abilities",
        "displayName": "Ability",
        "displayNamePlural": "Abilities",
        "meta": False,
    },
    {
        "id": "ability-tree-requirements",
        "title": "Ability Tree Requirements",
        "displayName": "Ability Tree Requirement",
        "displayNamePlural": "Ability Tree Requirements",
        "meta": False,
    },
    {
        "id": "actions",
        "title": "Actions",
        "displayName": "Action",
        "displayNamePlural": "Actions",
        "meta": True,
    },
    {
        "id": "bio-titans",
        "title": "Bio-Titans",
        "displayName": "Bio-Titan",
        "displayNamePlural": "Bio-Titans",
        "meta": False,
    },
    {
        "id": "chassis",
        "title": "Chassis",
        "displayName": "Chassis",
        "displayNamePlural": "Chassis",
        "meta": False,
    },
    {
        "id": "chassis-abilities",
        "title": "Chassis Abilities",
        "displayName": "Chassis Ability",
        "displayNamePlural": "Chassis Abilities",
        "meta": True,
    },
    {
        "id": "classes.advanced",
        "title": "Advanced Classes",
        "displayName": "Advanced Class",
        "displayNamePlural": "Advanced Classes",
        "meta": False,
    },
    {
        "id": "classes.core",
        "title": "Core Classes",
        "displayName": "Core Class",
        "displayNamePlural": "Core Classes",
        "meta": False,
    },
    {
        "id": "crawler-bays",
        "title": "Crawler Bays",
        "displayName": "Crawler Bay",
        "displayNamePlural": "Crawler Bays",
        "meta": False,
    },
    {
        "id": "crawler-tech-levels",
        "title": "Crawler Tech Levels",
        "displayName": "Crawler Tech Level",
        "displayNamePlural": "Crawler Tech Levels",
        "meta": False,
    },
    {
        "id": "crawlers",
        "title": "Crawlers",
        "displayName": "Crawler",
        "displayNamePlural": "Crawlers",
        "meta": False,
    },
    {
        "id": "creatures",
        "title": "Creatures",
        "displayName": "Creature",
        "displayNamePlural": "Creatures",
        "meta": False,
    },
    {
        "id": "distances",
        "title": "Distances",
        "displayName": "Distance",
        "displayNamePlural": "Distances",
        "meta": False,
    },
    {
        "id": "drones",
        "title": "Drones",
        "displayName": "Drone",
        "displayNamePlural": "Drones",
        "meta": False,
    },
    {
        "id": "equipment",
        "title": "Equipment",
        "displayName": "Equipment",
        "displayNamePlural": "Equipment",
        "meta": False,
    },
    {
        "id": "keywords",
        "title": "Keywords",
        "displayName": "Keyword",
        "displayNamePlural": "Keywords",
        "meta": False,
    },
    {
        "id": "meld",
        "title": "Meld",
        "displayName": "Meld",
        "displayNamePlural": "Meld",
        "meta": False,
    },
    {
        "id": "modules",
        "title": "Modules",
        "displayName": "Module",
        "displayNamePlural": "Modules",
        "meta": False,
    },
    {
        "id": "npcs",
        "title": "NPCs",
        "displayName": "NPC",
        "displayNamePlural": "NPCs",
        "meta": False,
    },
    {
        "id": "roll-tables",
        "title": "Roll Tables",
        "displayName": "Roll Table",
        "displayNamePlural": "Roll Tables",
        "meta": False,
    },
    {
        "id": "squads",
        "title": "Squads",
        "displayName": "Squad",
        "displayNamePlural": "Squads",
        "meta": False,
    },
    {
        "id": "systems",
        "title": "Systems",
        "displayName": "System",
        "displayNamePlural": "Systems",
        "meta": False,
    },
    {
        "id": "traits",
        "title": "Traits",
        "displayName": "Trait",
        "displayNamePlural": "Traits",
        "meta": False,
    },
    {
        "id": "vehicles",
        "title": "Vehicles",
        "displayName": "Vehicle",
        "displayNamePlural": "Vehicles",
        "meta": False,
    },
]

for _entry in SCHEMA_CATALOG:
    _entry.setdefault("dataFile", f"{_entry['id']}.json")
    _entry.setdefault("schemaFile", f"{_entry['id']}.schema.json")

SCHEMA_IDS: List[str] = [s["id"] for s in SCHEMA_CATALOG]

SCHEMA_BY_ID: Dict[str, Dict[str, Any]] = {s["id"]: s for s in SCHEMA_CATALOG}

SCHEMA_NAME_ALIASES: Dict[str, str] = {
    "classes-core": "classes.core",
    "classes-advanced": "classes.advanced",
    "classes-hybrid": "classes.advanced",
    "classes.hybrid": "classes.advanced",
}

SCHEMA_CATALOG_TITLE = "Salvage Union Reference Schemas"
SCHEMA_CATALOG_VERSION = "1.0.0"

# Every record carries these, whatever its schema.
BASE_RECORD_FIELDS = ("id", "name", "source", "page")

# Descriptor used when a caller builds a catalog from raw records without
# shipping a JSON schema alongside them.
BASE_RECORD_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "array",
    "items": {
        "type": "object",
        "required": ["id", "name", "source", "page"],
        "properties": {
            "id": {"type": "string", "minLength": 1},
            "name": {"type": "string", "minLength": 1},
            "source": {"type": "string"},
            "page": {"type": "number"},
        },
    },
}

REF_SEPARATOR = "::"

CHASSIS_PLACEHOLDER = "[(CHASSIS)]"

# ---------------------------------------------------------------------------
# Game rules
# ---------------------------------------------------------------------------

# Abilities held from the core trees before the advanced tree opens up.
ADVANCED_TREE_ABILITY_THRESHOLD = 6

# Abilities held in a single tree for that tree to count as complete.
COMPLETE_TREE_ABILITY_COUNT = 3

CORE_ABILITY_COST = 1
ADVANCED_ABILITY_COST = 2
LEGENDARY_ABILITY_COST = 3
DEFAULT_ABILITY_COST = 1

MIN_TECH_LEVEL = 1
DEFAULT_MAX_TECH_LEVEL = 6
DEFAULT_CRAWLER_STRUCTURE_POINTS = 20

PILOT_DEFAULTS: Dict[str, int] = {
    "maxHP": 10,
    "maxAP": 5,
    "startingTP": 0,
}

CRAWLER_DEFAULTS: Dict[str, int] = {
    "initialTechLevel": 1,
    "baseStructurePoints": DEFAULT_CRAWLER_STRUCTURE_POINTS,
    "baseUpgrade": 0,
}

MECH_DEFAULTS: Dict[str, int] = {
    "startingDamage": 0,
    "startingHeat": 0,
}

CARGO_SCHEMA_NAMES = ("equipment", "systems", "modules")

D20_MIN = 1
D20_MAX = 20
