"""
Reference catalog API routes.

Read-only lookups over the loaded catalog:
  /api/health
  /api/schemas
  /api/schemas/{schema_name}
  /api/schemas/{schema_name}/{entity_id}
  /api/search
  /api/classes/{class_id}/trees
  /api/classes/{class_id}/advancement
  /api/chassis/{chassis_id}/abilities
  /api/roll-tables/{table_id}/roll
  /api/cargo/validate
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from cargo_validation import CargoValidationError, validate_cargo
from catalog_service import ReferenceCatalog, UnknownSchemaError, load_reference_catalog
import reference_resolvers
from roll_tables import result_for_table, roll_d20
from search_service import search
import stat_resolvers

router = APIRouter(tags=["catalog"])


def get_catalog() -> ReferenceCatalog:
    return load_reference_catalog()


def _require_entity(catalog: ReferenceCatalog, schema_name: str, entity_id: str) -> Dict[str, Any]:
    if not catalog.has_schema(schema_name):
        raise HTTPException(status_code=404, detail=f"Schema not found: {schema_name}")
    entity = catalog.get(schema_name, entity_id)
    if entity is None:
        raise HTTPException(status_code=404, detail=f"{schema_name} entry not found: {entity_id}")
    return entity


def _find_class(catalog: ReferenceCatalog, class_id: str) -> Dict[str, Any]:
    cls = catalog.get("classes.core", class_id)
    if cls is None:
        raise HTTPException(status_code=404, detail=f"Class not found: {class_id}")
    return cls


def _find_advanced_class(catalog: ReferenceCatalog, class_id: Optional[str]) -> Optional[Dict[str, Any]]:
    if not class_id:
        return None
    cls = catalog.get("classes.advanced", class_id)
    if cls is None:
        raise HTTPException(status_code=404, detail=f"Advanced class not found: {class_id}")
    return cls


class AdvancementReq(BaseModel):
    ability_ids: List[str] = Field(default_factory=list)
    advanced_class_id: Optional[str] = None


class RollReq(BaseModel):
    roll: Optional[int] = None


@router.get("/api/health")
def api_health(catalog: ReferenceCatalog = Depends(get_catalog)) -> Dict[str, Any]:
    return {
        "ok": True,
        "service": "salvage-reference",
        "schemas": len(catalog.schema_names),
    }


@router.get("/api/schemas")
def api_schemas(
    include_meta: bool = Query(False),
    catalog: ReferenceCatalog = Depends(get_catalog),
) -> Dict[str, Any]:
    payload = catalog.schema_catalog()
    if not include_meta:
        payload["schemas"] = catalog.navigation_schemas()
    return payload


@router.get("/api/schemas/{schema_name}")
def api_schema_entries(schema_name: str, catalog: ReferenceCatalog = Depends(get_catalog)) -> Dict[str, Any]:
    try:
        model = catalog.model(schema_name)
    except UnknownSchemaError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return {
        "schemaName": model.schema_name,
        "displayName": model.display_name,
        "items": model.all(),
    }


@router.get("/api/schemas/{schema_name}/{entity_id}")
def api_schema_entry(
    schema_name: str,
    entity_id: str,
    catalog: ReferenceCatalog = Depends(get_catalog),
) -> Dict[str, Any]:
    entity = _require_entity(catalog, schema_name, entity_id)
    return {
        "schemaName": catalog.model(schema_name).schema_name,
        "ref": catalog.compose_ref(catalog.model(schema_name).schema_name, entity_id),
        "entity": entity,
        "displayName": stat_resolvers.get_display_name(entity),
        "stats": stat_resolvers.entity_stats(entity, catalog),
        "actions": stat_resolvers.extract_visible_actions(catalog, entity) or [],
        "traits": reference_resolvers.format_traits(entity, catalog),
    }


@router.get("/api/search")
def api_search(
    q: str = Query(""),
    schemas: Optional[List[str]] = Query(None),
    limit: Optional[int] = Query(None, ge=1),
    case_sensitive: bool = Query(False),
    catalog: ReferenceCatalog = Depends(get_catalog),
) -> Dict[str, Any]:
    return {
        "query": q,
        "results": search(catalog, q, schemas=schemas, limit=limit, case_sensitive=case_sensitive),
    }


@router.get("/api/classes/{class_id}/trees")
def api_class_trees(
    class_id: str,
    advanced_class_id: Optional[str] = Query(None),
    catalog: ReferenceCatalog = Depends(get_catalog),
) -> Dict[str, Any]:
    core_class = _find_class(catalog, class_id)
    advanced_class = _find_advanced_class(catalog, advanced_class_id)
    trees = reference_resolvers.resolve_class_trees(catalog, core_class, advanced_class)
    return {
        "class": core_class,
        "advancedClass": advanced_class,
        "trees": [{"tree": name, "abilities": abilities} for name, abilities in trees.items()],
    }


@router.post("/api/classes/{class_id}/advancement")
def api_class_advancement(
    class_id: str,
    req: AdvancementReq,
    catalog: ReferenceCatalog = Depends(get_catalog),
) -> Dict[str, Any]:
    core_class = _find_class(catalog, class_id)
    advanced_class = _find_advanced_class(catalog, req.advanced_class_id)
    hybrid_class = advanced_class if advanced_class and advanced_class.get("hybrid") else None
    held = req.ability_ids

    trees = reference_resolvers.visible_trees(catalog, core_class, held, advanced_class)
    return {
        "classId": core_class["id"],
        "coreTreeAbilityCount": reference_resolvers.count_core_tree_abilities(catalog, core_class, held),
        "advancedTreeEligible": reference_resolvers.is_advanced_tree_eligible(catalog, core_class, held, hybrid_class),
        "visibleTrees": trees,
        "availableLevels": {tree: reference_resolvers.available_levels(catalog, tree, held) for tree in trees},
        "availableAdvancedClasses": [
            {"id": cls["id"], "name": cls["name"], "hybrid": bool(cls.get("hybrid"))}
            for cls in reference_resolvers.available_advanced_classes(catalog, core_class, held)
        ],
    }


@router.get("/api/chassis/{chassis_id}/abilities")
def api_chassis_abilities(chassis_id: str, catalog: ReferenceCatalog = Depends(get_catalog)) -> Dict[str, Any]:
    chassis = _require_entity(catalog, "chassis", chassis_id)
    return {
        "chassisId": chassis["id"],
        "chassisName": chassis.get("name"),
        "abilities": reference_resolvers.resolve_chassis_abilities(catalog, chassis),
        "slots": stat_resolvers.slot_usage(chassis),
    }


@router.post("/api/roll-tables/{table_id}/roll")
def api_roll_table(
    table_id: str,
    req: Optional[RollReq] = None,
    catalog: ReferenceCatalog = Depends(get_catalog),
) -> Dict[str, Any]:
    entry = _require_entity(catalog, "roll-tables", table_id)
    roll = req.roll if req and req.roll is not None else roll_d20()
    outcome = result_for_table(entry.get("table"), roll)
    outcome["roll"] = roll
    outcome["tableId"] = entry["id"]
    return outcome


@router.post("/api/cargo/validate")
def api_cargo_validate(payload: Dict[str, Any], catalog: ReferenceCatalog = Depends(get_catalog)) -> Dict[str, Any]:
    try:
        cargo = validate_cargo(catalog, payload)
    except CargoValidationError as exc:
        logging.info("Rejected cargo payload: %s", exc)
        raise HTTPException(status_code=422, detail=exc.errors) from exc
    return {"ok": True, "cargo": cargo.model_dump(exclude_none=True)}
