import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple

import jsonschema

from constants import SCHEMA_CATALOG

RecordStore = Dict[str, List[Dict[str, Any]]]
SchemaMap = Dict[str, Dict[str, Any]]


def _load_json_file(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except Exception as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc


def _validate_non_empty_str(entry: Dict[str, Any], key: str, ctx: str, errors: List[str]) -> None:
    value = entry.get(key)
    if not isinstance(value, str) or not value.strip():
        errors.append(f"{ctx}: '{key}' must be a non-empty string")


def _validate_str(entry: Dict[str, Any], key: str, ctx: str, errors: List[str]) -> None:
    if not isinstance(entry.get(key), str):
        errors.append(f"{ctx}: '{key}' must be a string")


def _validate_number(entry: Dict[str, Any], key: str, ctx: str, errors: List[str]) -> None:
    value = entry.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        errors.append(f"{ctx}: '{key}' must be a number")


def validate_base_records(schema_id: str, records: Any, errors: List[str]) -> None:
    """Check the fields every record must carry and that ids are unique."""
    if not isinstance(records, list):
        errors.append(f"{schema_id}: top-level JSON must be an array")
        return

    seen: Set[str] = set()
    for index, entry in enumerate(records):
        ctx = f"{schema_id}[{index}]"
        if not isinstance(entry, dict):
            errors.append(f"{ctx}: record must be an object")
            continue
        _validate_non_empty_str(entry, "id", ctx, errors)
        _validate_non_empty_str(entry, "name", ctx, errors)
        _validate_str(entry, "source", ctx, errors)
        _validate_number(entry, "page", ctx, errors)

        record_id = entry.get("id")
        if isinstance(record_id, str) and record_id:
            if record_id in seen:
                errors.append(f"{ctx}: duplicate id '{record_id}'")
            seen.add(record_id)


def schema_validation_errors(schema_id: str, records: Any, descriptor: Dict[str, Any]) -> List[str]:
    """Validate one schema's record array against its JSON schema descriptor."""
    validator_cls = jsonschema.validators.validator_for(descriptor, default=jsonschema.Draft202012Validator)
    validator = validator_cls(descriptor)
    messages: List[str] = []
    for err in sorted(validator.iter_errors(records), key=lambda e: list(e.absolute_path)):
        path = ".".join(str(p) for p in err.absolute_path) or "(root)"
        messages.append(f"{schema_id}: {path}: {err.message}")
    return messages


def load_record_store(
    data_dir: Path,
    schema_dir: Path,
    validate: bool = True,
    schema_entries: Optional[List[Dict[str, Any]]] = None,
) -> Tuple[RecordStore, SchemaMap]:
    """Load every schema's data array and descriptor from disk.

    All problems are collected first and raised together, so a broken data
    directory reports every bad file at once.
    """
    entries = schema_entries if schema_entries is not None else SCHEMA_CATALOG
    records: RecordStore = {}
    schemas: SchemaMap = {}
    validation_errors: List[str] = []

    for entry in entries:
        schema_id = entry["id"]
        data_path = data_dir / entry["dataFile"]
        schema_path = schema_dir / entry["schemaFile"]

        if not data_path.exists():
            validation_errors.append(f"{data_path}: data file for schema '{schema_id}' is missing")
            continue
        if not schema_path.exists():
            validation_errors.append(f"{schema_path}: schema descriptor for '{schema_id}' is missing")
            continue

        try:
            data = _load_json_file(data_path)
            descriptor = _load_json_file(schema_path)
        except ValueError as exc:
            validation_errors.append(str(exc))
            continue
        if not isinstance(descriptor, dict):
            validation_errors.append(f"{schema_path}: top-level JSON must be an object")
            continue

        errors_before = len(validation_errors)
        validate_base_records(schema_id, data, validation_errors)
        if validate and len(validation_errors) == errors_before:
            validation_errors.extend(schema_validation_errors(schema_id, data, descriptor))

        if isinstance(data, list):
            records[schema_id] = [r for r in data if isinstance(r, dict)]
        schemas[schema_id] = descriptor
        logging.debug("Loaded %d %s records from %s", len(records.get(schema_id, [])), schema_id, data_path)

    if validation_errors:
        joined = "\n".join(f"- {msg}" for msg in validation_errors)
        raise RuntimeError(f"Reference data validation failed:\n{joined}")

    logging.info(
        "Loaded reference data: %d schemas, %d records",
        len(records),
        sum(len(v) for v in records.values()),
    )
    return records, schemas
