"""
Write-path checks for cargo that points at reference data.

A cargo row belongs to exactly one mech or crawler and is either a plain
amount of scrap or a reference to an equipment/system/module record. The
reference is checked against the catalog with ``exists`` before anything
is persisted. Slot caps are the caller's concern.
"""

from typing import TYPE_CHECKING, Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, ValidationError

from constants import CARGO_SCHEMA_NAMES

if TYPE_CHECKING:
    from catalog_service import ReferenceCatalog

CargoSchemaName = Literal["equipment", "systems", "modules"]

PARENT_MESSAGE = "Exactly one parent (mech_id or crawler_id) must be set"
PAYLOAD_MESSAGE = "Either amount or both schema_name and schema_ref_id must be set"
REFERENCE_MESSAGE = "Invalid cargo reference - schema_ref_id does not exist in reference data"


class CargoValidationError(ValueError):
    def __init__(self, errors: List[str]):
        super().__init__("; ".join(errors) or "Invalid cargo")
        self.errors = list(errors)


class CargoCreate(BaseModel):
    mech_id: Optional[str] = None
    crawler_id: Optional[str] = None
    amount: Optional[int] = Field(default=None, gt=0)
    schema_name: Optional[CargoSchemaName] = None
    schema_ref_id: Optional[str] = None
    name: Optional[str] = None
    color: Optional[str] = None


class CargoUpdate(BaseModel):
    amount: Optional[int] = Field(default=None, gt=0)
    name: Optional[str] = None
    color: Optional[str] = None


def _shape_errors(exc: ValidationError) -> List[str]:
    messages: List[str] = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ())) or "cargo"
        messages.append(f"{field}: {err.get('msg')}")
    return messages


def cargo_rule_errors(catalog: "ReferenceCatalog", cargo: CargoCreate) -> List[str]:
    errors: List[str] = []

    parents = [p for p in (cargo.mech_id, cargo.crawler_id) if p]
    if len(parents) != 1:
        errors.append(PARENT_MESSAGE)

    has_amount = cargo.amount is not None
    has_ref = cargo.schema_name is not None and cargo.schema_ref_id is not None
    if not has_amount and not has_ref:
        errors.append(PAYLOAD_MESSAGE)

    if cargo.schema_name and cargo.schema_ref_id:
        if cargo.schema_name not in CARGO_SCHEMA_NAMES or not catalog.exists(cargo.schema_name, cargo.schema_ref_id):
            errors.append(REFERENCE_MESSAGE)
    return errors


def validate_cargo(catalog: "ReferenceCatalog", payload: Dict[str, Any]) -> CargoCreate:
    """Parse and check a cargo insert payload, raising CargoValidationError with every problem found."""
    try:
        cargo = CargoCreate.model_validate(payload)
    except ValidationError as exc:
        raise CargoValidationError(_shape_errors(exc)) from exc

    errors = cargo_rule_errors(catalog, cargo)
    if errors:
        raise CargoValidationError(errors)
    return cargo


def validate_cargo_update(payload: Dict[str, Any]) -> CargoUpdate:
    try:
        return CargoUpdate.model_validate(payload)
    except ValidationError as exc:
        raise CargoValidationError(_shape_errors(exc)) from exc
