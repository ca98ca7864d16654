import logging
from functools import lru_cache
from typing import Any, Dict, Iterable, List, Optional, Tuple

import settings
from constants import (
    BASE_RECORD_SCHEMA,
    REF_SEPARATOR,
    SCHEMA_BY_ID,
    SCHEMA_CATALOG,
    SCHEMA_CATALOG_TITLE,
    SCHEMA_CATALOG_VERSION,
    SCHEMA_IDS,
    SCHEMA_NAME_ALIASES,
)
from record_store import RecordStore, SchemaMap, load_record_store, validate_base_records
from reference_model import CatalogConfigError, Predicate, Record, ReferenceModel


class UnknownSchemaError(LookupError):
    def __init__(self, schema_name: Any):
        super().__init__(f"Schema not found: {schema_name}")
        self.schema_name = schema_name


def normalize_schema_name(raw: Any) -> str:
    """Map alias spellings (``classes-core``, ``classes.hybrid``, ...) to canonical schema ids."""
    text = str(raw or "").strip()
    return SCHEMA_NAME_ALIASES.get(text, text)


def get_schema_display_name(schema_name: str) -> str:
    entry = SCHEMA_BY_ID.get(normalize_schema_name(schema_name))
    if entry is None:
        return schema_name
    return str(entry.get("displayNamePlural") or entry.get("title") or schema_name)


def get_schema_catalog() -> Dict[str, Any]:
    return {
        "title": SCHEMA_CATALOG_TITLE,
        "version": SCHEMA_CATALOG_VERSION,
        "schemas": [
            {
                "id": entry["id"],
                "title": entry["title"],
                "displayName": entry["displayName"],
                "displayNamePlural": entry["displayNamePlural"],
                "dataFile": entry["dataFile"],
                "schemaFile": entry["schemaFile"],
                "meta": bool(entry.get("meta")),
            }
            for entry in SCHEMA_CATALOG
        ],
    }


class ReferenceCatalog:
    """Registry of one ReferenceModel per schema.

    Built once at startup and handed to whatever needs it. Everything it
    holds is read-only, so a single instance is safe to share.
    """

    def __init__(self, models: Dict[str, ReferenceModel]):
        missing = [schema_id for schema_id in SCHEMA_IDS if schema_id not in models]
        if missing:
            raise CatalogConfigError(f"No data or schema found for schema ID(s): {', '.join(missing)}")
        unknown = sorted(schema_id for schema_id in models if schema_id not in SCHEMA_BY_ID)
        if unknown:
            raise CatalogConfigError(f"Unknown schema ID(s): {', '.join(unknown)}")

        self._models: Dict[str, ReferenceModel] = {schema_id: models[schema_id] for schema_id in SCHEMA_IDS}
        self._by_id: Dict[str, Dict[str, Record]] = {}
        self._id_counts: Dict[str, Dict[str, int]] = {}
        for schema_id, model in self._models.items():
            index: Dict[str, Record] = {}
            counts: Dict[str, int] = {}
            for record in model.all():
                record_id = record.get("id")
                if not isinstance(record_id, str):
                    continue
                counts[record_id] = counts.get(record_id, 0) + 1
                index.setdefault(record_id, record)
            self._by_id[schema_id] = index
            self._id_counts[schema_id] = counts

    @classmethod
    def from_records(cls, records: RecordStore, schemas: Optional[SchemaMap] = None) -> "ReferenceCatalog":
        schemas = schemas or {}
        unknown = sorted(schema_id for schema_id in records if schema_id not in SCHEMA_BY_ID)
        if unknown:
            raise CatalogConfigError(f"Unknown schema ID(s): {', '.join(unknown)}")

        missing = [entry["id"] for entry in SCHEMA_CATALOG if entry["id"] not in records]
        if missing:
            raise CatalogConfigError(f"No data found for schema ID(s): {', '.join(missing)}")

        errors: List[str] = []
        for entry in SCHEMA_CATALOG:
            validate_base_records(entry["id"], records[entry["id"]], errors)
        if errors:
            joined = "\n".join(f"- {msg}" for msg in errors)
            raise CatalogConfigError(f"Reference records are invalid:\n{joined}")

        models: Dict[str, ReferenceModel] = {}
        for entry in SCHEMA_CATALOG:
            schema_id = entry["id"]
            models[schema_id] = ReferenceModel(
                records[schema_id],
                schemas.get(schema_id, BASE_RECORD_SCHEMA),
                schema_id,
                entry["displayNamePlural"],
            )
        return cls(models)

    def __repr__(self) -> str:
        return f"ReferenceCatalog({len(self._models)} schemas)"

    # ── Model access ─────────────────────────────────────────────────────

    @property
    def schema_names(self) -> List[str]:
        return list(self._models.keys())

    @property
    def models(self) -> Dict[str, ReferenceModel]:
        return dict(self._models)

    def has_schema(self, schema_name: Any) -> bool:
        return normalize_schema_name(schema_name) in self._models

    def model(self, schema_name: str) -> ReferenceModel:
        model = self._models.get(normalize_schema_name(schema_name))
        if model is None:
            raise UnknownSchemaError(schema_name)
        return model

    # ── Lookups ──────────────────────────────────────────────────────────

    def exists(self, schema_name: Any, entity_id: Any) -> bool:
        """True iff the schema holds exactly one record with this id.

        Unknown schema names answer False instead of raising, so write-path
        validators can probe untrusted input safely.
        """
        counts = self._id_counts.get(normalize_schema_name(schema_name))
        if counts is None or not isinstance(entity_id, str):
            return False
        return counts.get(entity_id, 0) == 1

    def find_in(self, schema_name: str, predicate: Predicate) -> Optional[Record]:
        return self.model(schema_name).find(predicate)

    def find_all_in(self, schema_name: str, predicate: Predicate) -> List[Record]:
        return self.model(schema_name).find_all(predicate)

    def get(self, schema_name: Any, entity_id: Any) -> Optional[Record]:
        index = self._by_id.get(normalize_schema_name(schema_name))
        if index is None or not isinstance(entity_id, str):
            return None
        return index.get(entity_id)

    def get_many(self, requests: Iterable[Tuple[str, str]]) -> List[Optional[Record]]:
        return [self.get(schema_name, entity_id) for schema_name, entity_id in requests]

    def get_name_by_id(self, schema_name: str, entity_id: Optional[str], fallback: str = "Unknown") -> str:
        if not entity_id:
            return fallback
        entity = self.get(schema_name, entity_id)
        name = entity.get("name") if entity else None
        return name if isinstance(name, str) else fallback

    # ── References ───────────────────────────────────────────────────────

    @staticmethod
    def compose_ref(schema_name: str, entity_id: str) -> str:
        return f"{schema_name}{REF_SEPARATOR}{entity_id}"

    def parse_ref(self, ref: Any) -> Optional[Tuple[str, str]]:
        if not isinstance(ref, str):
            return None
        parts = ref.split(REF_SEPARATOR)
        if len(parts) != 2:
            return None
        schema_name, entity_id = normalize_schema_name(parts[0]), parts[1].strip()
        if schema_name not in self._models or not entity_id:
            return None
        return schema_name, entity_id

    def get_by_ref(self, ref: Any) -> Optional[Record]:
        parsed = self.parse_ref(ref)
        if parsed is None:
            return None
        return self.get(*parsed)

    def get_many_by_ref(self, refs: Iterable[str]) -> Dict[str, Optional[Record]]:
        return {ref: self.get_by_ref(ref) for ref in refs}

    # ── Schema listing ───────────────────────────────────────────────────

    def schema_catalog(self) -> Dict[str, Any]:
        payload = get_schema_catalog()
        for entry in payload["schemas"]:
            entry["itemCount"] = len(self._models[entry["id"]])
        return payload

    def navigation_schemas(self) -> List[Dict[str, Any]]:
        """Schemas browsable on their own; meta schemas stay resolvable but unlisted."""
        return [entry for entry in self.schema_catalog()["schemas"] if not entry["meta"]]

    def static_paths(self) -> List[Dict[str, str]]:
        paths: List[Dict[str, str]] = []
        for entry in self.navigation_schemas():
            for record in self.find_all_in(entry["id"], lambda r: isinstance(r.get("id"), str)):
                paths.append({"schemaName": entry["id"], "id": record["id"]})
        return paths


@lru_cache(maxsize=1)
def load_reference_catalog() -> ReferenceCatalog:
    """Build the process-wide catalog from the bundled data directory."""
    records, schemas = load_record_store(
        settings.DATA_DIR,
        settings.SCHEMA_DIR,
        validate=settings.VALIDATE_ON_LOAD,
    )
    catalog = ReferenceCatalog.from_records(records, schemas)
    logging.info("Reference catalog ready: %s", catalog)
    return catalog
