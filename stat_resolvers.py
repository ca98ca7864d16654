"""
Derived stats computed from raw reference records.

Each getter looks for the field on whatever record it is handed and
returns None when that record's kind has no such stat. A stat that is
present and zero comes back as 0, never as None.
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Set, Union

from constants import DEFAULT_CRAWLER_STRUCTURE_POINTS, DEFAULT_MAX_TECH_LEVEL

if TYPE_CHECKING:
    from catalog_service import ReferenceCatalog


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _numeric_field(entity: Any, key: str) -> Optional[float]:
    if not isinstance(entity, dict):
        return None
    value = entity.get(key)
    return value if _is_number(value) else None


def get_slots_required(entity: Any) -> Optional[float]:
    return _numeric_field(entity, "slotsRequired")


def get_structure_points(entity: Any) -> Optional[float]:
    return _numeric_field(entity, "structurePoints")


def get_hit_points(entity: Any) -> Optional[float]:
    return _numeric_field(entity, "hitPoints")


def get_energy_points(entity: Any) -> Optional[float]:
    return _numeric_field(entity, "energyPoints")


def get_heat_capacity(entity: Any) -> Optional[float]:
    return _numeric_field(entity, "heatCapacity")


def get_salvage_value(entity: Any) -> Optional[float]:
    return _numeric_field(entity, "salvageValue")


def get_system_slots(entity: Any) -> Optional[float]:
    return _numeric_field(entity, "systemSlots")


def get_module_slots(entity: Any) -> Optional[float]:
    return _numeric_field(entity, "moduleSlots")


def get_cargo_capacity(entity: Any) -> Optional[float]:
    return _numeric_field(entity, "cargoCapacity")


def get_tech_level(entity: Any) -> Optional[float]:
    return _numeric_field(entity, "techLevel")


def get_page_reference(entity: Any) -> Optional[float]:
    return _numeric_field(entity, "page")


def get_display_name(entity: Any) -> Optional[str]:
    if not isinstance(entity, dict):
        return None
    display_name = entity.get("displayName")
    if isinstance(display_name, str):
        return display_name
    name = entity.get("name")
    return name if isinstance(name, str) else None


def get_chassis_abilities(entity: Any, catalog: "ReferenceCatalog") -> Optional[List[Dict[str, Any]]]:
    """Chassis abilities of a chassis, in listed order.

    Entries are either names looked up in the ``chassis-abilities`` schema
    or records embedded directly on the chassis. The same ability listed
    twice is returned once.
    """
    if not isinstance(entity, dict) or not isinstance(entity.get("chassisAbilities"), list):
        return None

    model = catalog.model("chassis-abilities")
    seen_ids: Set[str] = set()
    resolved: List[Dict[str, Any]] = []
    for raw in entity["chassisAbilities"]:
        if isinstance(raw, str):
            ability = model.find(lambda r, name=raw: r.get("name") == name)
            if ability is None:
                logging.warning(
                    "Chassis ability %r on %r not found in chassis-abilities",
                    raw,
                    entity.get("name"),
                )
                continue
        elif isinstance(raw, dict):
            ability = raw
        else:
            logging.warning("Invalid chassis ability on %r: %r", entity.get("name"), raw)
            continue

        ability_id = ability.get("id")
        if isinstance(ability_id, str) and ability_id:
            if ability_id in seen_ids:
                continue
            seen_ids.add(ability_id)
        resolved.append(ability)

    return resolved or None


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------

def extract_actions(catalog: "ReferenceCatalog", entity: Any) -> Optional[List[Dict[str, Any]]]:
    names = entity.get("actions") if isinstance(entity, dict) else None
    if not isinstance(names, list):
        return None

    by_name = {a.get("name"): a for a in reversed(catalog.model("actions").all())}
    resolved: List[Dict[str, Any]] = []
    for name in names:
        if not isinstance(name, str):
            logging.warning("Invalid action on %r: expected a name, got %r", entity.get("name"), name)
            continue
        action = by_name.get(name)
        if action is None:
            logging.warning("Action %r not found in actions", name)
            continue
        resolved.append(action)
    return resolved or None


def extract_visible_actions(catalog: "ReferenceCatalog", entity: Any) -> Optional[List[Dict[str, Any]]]:
    actions = extract_actions(catalog, entity)
    if actions is None:
        return None
    return [a for a in actions if not a.get("hidden")]


def find_matching_action(entity: Any, catalog: Optional["ReferenceCatalog"]) -> Optional[Dict[str, Any]]:
    """The visible action that carries the entity's own name, if any."""
    if catalog is None or not isinstance(entity, dict) or not isinstance(entity.get("name"), str):
        return None
    for action in extract_visible_actions(catalog, entity) or []:
        if action.get("name") == entity["name"]:
            return action
    return None


def _action_field(entity: Any, catalog: Optional["ReferenceCatalog"], key: str, accepts) -> Any:
    # Base-level value wins over the same-name action's.
    if not isinstance(entity, dict):
        return None
    if accepts(entity.get(key)):
        return entity[key]
    action = find_matching_action(entity, catalog)
    if action is not None and accepts(action.get(key)):
        return action[key]
    return None


def get_activation_cost(entity: Any, catalog: Optional["ReferenceCatalog"] = None) -> Optional[Union[float, str]]:
    return _action_field(entity, catalog, "activationCost", lambda v: _is_number(v) or isinstance(v, str))


def get_action_type(entity: Any, catalog: Optional["ReferenceCatalog"] = None) -> Optional[str]:
    return _action_field(entity, catalog, "actionType", lambda v: isinstance(v, str))


def get_range(entity: Any, catalog: Optional["ReferenceCatalog"] = None) -> Optional[List[str]]:
    return _action_field(entity, catalog, "range", lambda v: isinstance(v, list))


def get_damage(entity: Any, catalog: Optional["ReferenceCatalog"] = None) -> Optional[Dict[str, Any]]:
    return _action_field(entity, catalog, "damage", lambda v: isinstance(v, dict))


def get_traits(entity: Any, catalog: Optional["ReferenceCatalog"] = None) -> Optional[List[Dict[str, Any]]]:
    return _action_field(entity, catalog, "traits", lambda v: isinstance(v, list))


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------

def total_salvage_value(entities: Iterable[Any]) -> float:
    return sum(get_salvage_value(e) or 0 for e in entities)


def slots_used(entities: Iterable[Any]) -> float:
    return sum(get_slots_required(e) or 0 for e in entities)


def slot_usage(
    chassis: Dict[str, Any],
    systems: Iterable[Any] = (),
    modules: Iterable[Any] = (),
) -> Dict[str, Optional[float]]:
    """Slot capacity against what is installed.

    Over-capacity loadouts are reported with negative remaining slots;
    refusing them is left to the caller.
    """
    system_capacity = get_system_slots(chassis)
    module_capacity = get_module_slots(chassis)
    system_used = slots_used(systems)
    module_used = slots_used(modules)
    return {
        "systemSlots": system_capacity,
        "systemSlotsUsed": system_used,
        "systemSlotsRemaining": None if system_capacity is None else system_capacity - system_used,
        "moduleSlots": module_capacity,
        "moduleSlotsUsed": module_used,
        "moduleSlotsRemaining": None if module_capacity is None else module_capacity - module_used,
    }


def filter_by_tech_level(entities: Iterable[Any], max_tech_level: float) -> List[Any]:
    """Keep entities at or below a tech level; entities without one always pass."""
    kept: List[Any] = []
    for entity in entities:
        tech_level = get_tech_level(entity)
        if tech_level is None or tech_level <= max_tech_level:
            kept.append(entity)
    return kept


def get_tech_levels(catalog: "ReferenceCatalog") -> List[int]:
    levels = {
        int(tl["techLevel"])
        for tl in catalog.model("crawler-tech-levels").all()
        if _is_number(tl.get("techLevel"))
    }
    return sorted(levels)


def get_max_tech_level(catalog: "ReferenceCatalog") -> int:
    levels = get_tech_levels(catalog)
    return levels[-1] if levels else DEFAULT_MAX_TECH_LEVEL


def find_crawler_tech_level(catalog: "ReferenceCatalog", tech_level: Any) -> Optional[Dict[str, Any]]:
    return catalog.model("crawler-tech-levels").find(lambda r: r.get("techLevel") == tech_level)


def get_structure_points_for_tech_level(
    catalog: "ReferenceCatalog",
    tech_level: Optional[int],
    fallback: float = DEFAULT_CRAWLER_STRUCTURE_POINTS,
) -> float:
    if tech_level is None:
        return fallback
    structure_points = get_structure_points(find_crawler_tech_level(catalog, tech_level))
    return fallback if structure_points is None else structure_points


def get_scrap_conversion_rates(catalog: "ReferenceCatalog") -> Dict[int, int]:
    # Scrap of tech level N is worth N tech-level-1 scrap.
    return {tl: tl for tl in get_tech_levels(catalog)}


def entity_stats(entity: Any, catalog: Optional["ReferenceCatalog"] = None) -> Dict[str, Any]:
    """All applicable derived stats for one record, skipping the inapplicable ones.

    With a catalog, action stats missing on the record are taken from its
    same-name action.
    """
    getters = {
        "techLevel": get_tech_level,
        "salvageValue": get_salvage_value,
        "slotsRequired": get_slots_required,
        "structurePoints": get_structure_points,
        "hitPoints": get_hit_points,
        "energyPoints": get_energy_points,
        "heatCapacity": get_heat_capacity,
        "systemSlots": get_system_slots,
        "moduleSlots": get_module_slots,
        "cargoCapacity": get_cargo_capacity,
    }
    stats: Dict[str, Any] = {}
    for key, getter in getters.items():
        value = getter(entity)
        if value is not None:
            stats[key] = value

    action_getters = {
        "activationCost": get_activation_cost,
        "actionType": get_action_type,
        "range": get_range,
        "damage": get_damage,
    }
    for key, getter in action_getters.items():
        value = getter(entity, catalog)
        if value is not None:
            stats[key] = value
    return stats
