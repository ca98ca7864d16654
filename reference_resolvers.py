"""
Reference resolvers.

Expand the name references a record carries (an ability's tree, a class's
core/advanced/legendary trees, a chassis's abilities, an entity's actions)
into the records they point at. Holder state is passed in as a plain
collection of held ability ids and nothing here is cached, so eligibility
always reflects the state handed to the call.
"""

import copy
import re
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Set

from constants import (
    ADVANCED_ABILITY_COST,
    ADVANCED_TREE_ABILITY_THRESHOLD,
    CHASSIS_PLACEHOLDER,
    COMPLETE_TREE_ABILITY_COUNT,
    CORE_ABILITY_COST,
    DEFAULT_ABILITY_COST,
    LEGENDARY_ABILITY_COST,
)
from stat_resolvers import get_chassis_abilities, get_traits

if TYPE_CHECKING:
    from catalog_service import ReferenceCatalog

Record = Dict[str, Any]

_PARAM_TRAIT_RE = re.compile(r"\[\[\[([A-Z][A-Za-z-]+(?:\s+[A-Z][A-Za-z-]+)*)\]\s+\(([^)]+)\)\]\]")
_SIMPLE_TRAIT_RE = re.compile(r"\[\[([A-Z][A-Za-z-]+(?:\s+[A-Z][A-Za-z-]+)*)\]\]")


def _level_value(ability: Record) -> float:
    try:
        return float(ability.get("level"))
    except (TypeError, ValueError):
        return float("inf")


def _name_key(ability: Record) -> str:
    return str(ability.get("name") or "").lower()


def _class_trees(cls: Optional[Record], key: str) -> List[str]:
    if not cls:
        return []
    value = cls.get(key)
    if isinstance(value, str):
        return [value] if value else []
    if isinstance(value, list):
        return [t for t in value if isinstance(t, str) and t]
    return []


def _held_abilities(catalog: "ReferenceCatalog", held_ids: Iterable[str]) -> List[Record]:
    held: List[Record] = []
    seen: Set[str] = set()
    for ability_id in held_ids:
        if ability_id in seen:
            continue
        seen.add(ability_id)
        ability = catalog.get("abilities", ability_id)
        if ability is not None:
            held.append(ability)
    return held


def _tree_counts(abilities: Iterable[Record]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for ability in abilities:
        tree = ability.get("tree")
        if isinstance(tree, str):
            counts[tree] = counts.get(tree, 0) + 1
    return counts


# ── Ability trees ────────────────────────────────────────────────────────


def abilities_for_tree(catalog: "ReferenceCatalog", tree: str, legendary: bool = False) -> List[Record]:
    """Abilities of one tree ordered by level.

    Equal levels keep file order, except in legendary trees where they are
    ordered by name.
    """
    abilities = catalog.find_all_in("abilities", lambda a: a.get("tree") == tree)
    if legendary:
        return sorted(abilities, key=lambda a: (_level_value(a), _name_key(a)))
    return sorted(abilities, key=_level_value)


def resolve_class_trees(
    catalog: "ReferenceCatalog",
    core_class: Record,
    advanced_class: Optional[Record] = None,
) -> Dict[str, List[Record]]:
    trees: Dict[str, List[Record]] = {}
    for tree in _class_trees(core_class, "coreTrees"):
        trees[tree] = abilities_for_tree(catalog, tree)

    source = advanced_class or core_class
    for tree in _class_trees(source, "advancedTree"):
        trees.setdefault(tree, abilities_for_tree(catalog, tree))
    for tree in _class_trees(source, "legendaryTree"):
        trees[tree] = abilities_for_tree(catalog, tree, legendary=True)
    return trees


def count_core_tree_abilities(catalog: "ReferenceCatalog", core_class: Record, held_ids: Iterable[str]) -> int:
    core_trees = set(_class_trees(core_class, "coreTrees"))
    return sum(1 for a in _held_abilities(catalog, held_ids) if a.get("tree") in core_trees)


def is_advanced_tree_eligible(
    catalog: "ReferenceCatalog",
    core_class: Record,
    held_ids: Iterable[str],
    hybrid_class: Optional[Record] = None,
) -> bool:
    if hybrid_class is not None:
        return False
    if not core_class or not core_class.get("advanceable"):
        return False
    return count_core_tree_abilities(catalog, core_class, held_ids) >= ADVANCED_TREE_ABILITY_THRESHOLD


def visible_trees(
    catalog: "ReferenceCatalog",
    core_class: Record,
    held_ids: Iterable[str],
    advanced_class: Optional[Record] = None,
) -> List[str]:
    """Tree names a holder of ``core_class`` should currently see.

    A selected hybrid class replaces the core class's own advanced and
    legendary trees with its own. A non-hybrid advanced class only shows
    its trees once the holder passes the advanced-tree gate.
    """
    held = list(held_ids)
    trees = _class_trees(core_class, "coreTrees")

    if advanced_class is not None and advanced_class.get("hybrid"):
        extra = _class_trees(advanced_class, "advancedTree") + _class_trees(advanced_class, "legendaryTree")
    elif is_advanced_tree_eligible(catalog, core_class, held):
        source = advanced_class or core_class
        extra = _class_trees(source, "advancedTree") + _class_trees(source, "legendaryTree")
    else:
        extra = []

    for tree in extra:
        if tree not in trees:
            trees.append(tree)
    return trees


def available_advanced_classes(
    catalog: "ReferenceCatalog",
    core_class: Record,
    held_ids: Iterable[str],
) -> List[Record]:
    """Advanced classes a holder may take next.

    Hybrids qualify when any tree their requirement names is complete;
    the class's own advanced version qualifies when any of its core trees
    is complete. Holding any ability from the core class's own advanced or
    legendary tree rules out every hybrid.
    """
    if not core_class or not core_class.get("advanceable"):
        return []

    held = _held_abilities(catalog, held_ids)
    if len(held) < ADVANCED_TREE_ABILITY_THRESHOLD:
        return []

    counts = _tree_counts(held)
    complete = {tree for tree, n in counts.items() if n >= COMPLETE_TREE_ABILITY_COUNT}
    if not complete:
        return []

    own_trees = set(_class_trees(core_class, "advancedTree") + _class_trees(core_class, "legendaryTree"))
    hybrids_open = not any(tree in own_trees for tree in counts)

    results: List[Record] = []
    hybrids = catalog.find_all_in("classes.advanced", lambda c: bool(c.get("hybrid"))) if hybrids_open else []
    for cls in hybrids:
        advanced_tree = cls.get("advancedTree")
        requirement = catalog.find_in("ability-tree-requirements", lambda r: r.get("tree") == advanced_tree)
        required = (requirement or {}).get("requirement") or []
        if any(tree in complete for tree in required):
            results.append(cls)

    if any(tree in complete for tree in _class_trees(core_class, "coreTrees")):
        own_tree = core_class.get("advancedTree")
        own = catalog.find_in(
            "classes.advanced",
            lambda c: not c.get("hybrid") and c.get("advancedTree") == own_tree,
        )
        if own is not None:
            results.append(own)
    return results


def available_levels(catalog: "ReferenceCatalog", tree: str, held_ids: Iterable[str]) -> List[int]:
    """Levels of ``tree`` selectable now: every lower level must already be held."""
    held_levels = {
        int(_level_value(a))
        for a in _held_abilities(catalog, held_ids)
        if a.get("tree") == tree and _level_value(a) != float("inf")
    }
    levels: Set[int] = set()
    for ability in catalog.find_all_in("abilities", lambda a: a.get("tree") == tree):
        level = _level_value(ability)
        if level == float("inf"):
            continue
        level = int(level)
        if all(lower in held_levels for lower in range(1, level)):
            levels.add(level)
    return sorted(levels)


def get_ability_cost(
    ability: Record,
    core_class: Optional[Record],
    advanced_class: Optional[Record] = None,
) -> int:
    tree = ability.get("tree") if ability else None
    if not tree:
        return DEFAULT_ABILITY_COST

    legendary = set(_class_trees(core_class, "legendaryTree")) | set(_class_trees(advanced_class, "legendaryTree"))
    if tree in legendary:
        return LEGENDARY_ABILITY_COST
    if tree in _class_trees(core_class, "coreTrees"):
        return CORE_ABILITY_COST
    advanced = set(_class_trees(core_class, "advancedTree")) | set(_class_trees(advanced_class, "advancedTree"))
    if tree in advanced:
        return ADVANCED_ABILITY_COST
    return DEFAULT_ABILITY_COST


# ── Tree requirements ────────────────────────────────────────────────────


def resolve_tree_requirements(catalog: "ReferenceCatalog", tree: str) -> List[Record]:
    """Requirement records for ``tree`` followed by those of the trees it requires."""
    chain: List[Record] = []
    visited: Set[str] = set()
    pending = [tree]
    while pending:
        current = pending.pop(0)
        if current in visited:
            continue
        visited.add(current)
        record = catalog.find_in("ability-tree-requirements", lambda r: r.get("tree") == current)
        if record is None:
            continue
        chain.append(record)
        for required in record.get("requirement") or []:
            if isinstance(required, str) and required not in visited:
                pending.append(required)
    return chain


def resolve_ability_requirements(catalog: "ReferenceCatalog", ability: Record) -> List[Record]:
    tree = ability.get("tree")
    if not isinstance(tree, str):
        return []
    return resolve_tree_requirements(catalog, tree)


# ── Chassis abilities ────────────────────────────────────────────────────


def substitute_chassis_placeholder(text: Any, chassis_name: str) -> Any:
    if not isinstance(text, str):
        return text
    return text.replace(CHASSIS_PLACEHOLDER, f"The {chassis_name}")


def _substitute_nested(value: Any, chassis_name: str) -> Any:
    if isinstance(value, str):
        return substitute_chassis_placeholder(value, chassis_name)
    if isinstance(value, list):
        return [_substitute_nested(v, chassis_name) for v in value]
    if isinstance(value, dict):
        return {k: _substitute_nested(v, chassis_name) for k, v in value.items()}
    return value


def resolve_chassis_abilities(catalog: "ReferenceCatalog", chassis: Record) -> List[Record]:
    """Chassis abilities hydrated with their owning chassis.

    Returns copies; the catalog's records are never modified.
    """
    chassis_name = str(chassis.get("name") or "")
    hydrated: List[Record] = []
    for ability in get_chassis_abilities(chassis, catalog) or []:
        item = copy.deepcopy(ability)
        item["chassisName"] = chassis_name
        for key in ("description", "effect"):
            if key in item:
                item[key] = substitute_chassis_placeholder(item[key], chassis_name)
        if "content" in item:
            item["content"] = _substitute_nested(item["content"], chassis_name)
        hydrated.append(item)
    return hydrated


# ── Traits ───────────────────────────────────────────────────────────────


def parse_trait_references(text: str) -> List[Dict[str, Any]]:
    """Find ``[[Trait]]`` and ``[[[Trait] (param)]]`` references in text, in order."""
    if not isinstance(text, str):
        return []

    references: List[Dict[str, Any]] = []
    for match in _PARAM_TRAIT_RE.finditer(text):
        references.append(
            {
                "fullMatch": match.group(0),
                "traitName": match.group(1),
                "parameter": match.group(2),
                "startIndex": match.start(),
                "endIndex": match.end(),
            }
        )

    for match in _SIMPLE_TRAIT_RE.finditer(text):
        covered = any(ref["startIndex"] <= match.start() < ref["endIndex"] for ref in references)
        if covered:
            continue
        references.append(
            {
                "fullMatch": match.group(0),
                "traitName": match.group(1),
                "startIndex": match.start(),
                "endIndex": match.end(),
            }
        )

    references.sort(key=lambda ref: ref["startIndex"])
    return references


def format_traits(entity: Record, catalog: Optional["ReferenceCatalog"] = None) -> List[str]:
    """Trait labels like ``Hot(3)``, read from the entity or its same-name action."""
    traits = get_traits(entity, catalog)
    if traits is None:
        return []
    labels: List[str] = []
    for trait in traits:
        if not isinstance(trait, dict) or not trait.get("type"):
            continue
        label = str(trait["type"])
        amount = trait.get("amount")
        if amount is not None and amount != "":
            label = f"{label}({amount})"
        labels.append(label)
    return labels
