"""Cross-schema name reference checks over a loaded catalog."""

from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Set

if TYPE_CHECKING:
    from catalog_service import ReferenceCatalog


def _names(catalog: "ReferenceCatalog", schema_names: Iterable[str]) -> Set[str]:
    names: Set[str] = set()
    for schema_name in schema_names:
        names.update(r.get("name") for r in catalog.model(schema_name).all() if isinstance(r.get("name"), str))
    return names


def _error(schema_name: str, entity: Dict[str, Any], field: str, referenced: Any, target: str) -> Dict[str, Any]:
    entity_name = entity.get("name")
    return {
        "schemaName": schema_name,
        "entityName": entity_name,
        "field": field,
        "referencedName": referenced,
        "message": f"{schema_name} '{entity_name}' {field} references unknown {target} '{referenced}'",
    }


def _check_names(
    errors: List[Dict[str, Any]],
    schema_name: str,
    entity: Dict[str, Any],
    field: str,
    values: Any,
    known: Set[str],
    target: str,
) -> None:
    if not isinstance(values, list):
        return
    for value in values:
        if isinstance(value, dict):
            # Embedded records need no lookup.
            continue
        if value not in known:
            errors.append(_error(schema_name, entity, field, value, target))


def find_reference_errors(catalog: "ReferenceCatalog") -> List[Dict[str, Any]]:
    """Every name reference that does not resolve, in schema order."""
    errors: List[Dict[str, Any]] = []

    system_names = _names(catalog, ["systems"])
    module_names = _names(catalog, ["modules"])
    action_names = _names(catalog, ["actions"])
    chassis_ability_names = _names(catalog, ["chassis-abilities"])
    ability_trees = {a.get("tree") for a in catalog.model("abilities").all() if isinstance(a.get("tree"), str)}

    for chassis in catalog.model("chassis").all():
        _check_names(
            errors, "chassis", chassis, "chassisAbilities",
            chassis.get("chassisAbilities"), chassis_ability_names, "chassis ability",
        )
        for index, pattern in enumerate(chassis.get("patterns") or []):
            if not isinstance(pattern, dict):
                continue
            _check_names(
                errors, "chassis", chassis, f"patterns[{index}].systems",
                pattern.get("systems"), system_names, "system",
            )
            _check_names(
                errors, "chassis", chassis, f"patterns[{index}].modules",
                pattern.get("modules"), module_names, "module",
            )

    for drone in catalog.model("drones").all():
        _check_names(errors, "drones", drone, "systems", drone.get("systems"), system_names | module_names, "system")

    for vehicle in catalog.model("vehicles").all():
        _check_names(errors, "vehicles", vehicle, "systems", vehicle.get("systems"), system_names, "system")

    for schema_name in catalog.schema_names:
        if schema_name == "actions":
            continue
        for entity in catalog.model(schema_name).all():
            _check_names(errors, schema_name, entity, "actions", entity.get("actions"), action_names, "action")

    for schema_name in ("classes.core", "classes.advanced"):
        for cls in catalog.model(schema_name).all():
            for field in ("coreTrees", "advancedTree", "legendaryTree"):
                value = cls.get(field)
                trees = value if isinstance(value, list) else [value] if isinstance(value, str) else []
                for tree in trees:
                    if tree not in ability_trees:
                        errors.append(_error(schema_name, cls, field, tree, "ability tree"))

    for requirement in catalog.model("ability-tree-requirements").all():
        _check_names(
            errors, "ability-tree-requirements", requirement, "tree",
            [requirement.get("tree")], ability_trees, "ability tree",
        )
        _check_names(
            errors, "ability-tree-requirements", requirement, "requirement",
            requirement.get("requirement"), ability_trees, "ability tree",
        )

    return errors
