"""
Text search across the reference catalog.

Results are scored by where the query matched (name first, then
description, effect and content) and returned best first. Repeated
searches are served from an LRU cache keyed on the catalog instance and
the search options.
"""

from functools import lru_cache
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Tuple

from catalog_service import normalize_schema_name
from constants import SCHEMA_BY_ID
from stat_resolvers import extract_actions

if TYPE_CHECKING:
    from catalog_service import ReferenceCatalog

SEARCH_CACHE_SIZE = 100
DEFAULT_SUGGESTION_LIMIT = 10

EXACT_NAME_SCORE = 100
NAME_PREFIX_SCORE = 50
NAME_SUBSTRING_SCORE = 25
DESCRIPTION_SCORE = 10
MATCHED_FIELD_SCORE = 5


def extract_content_text(content: Any) -> str:
    """Flatten nested content blocks into one searchable string."""
    if not content:
        return ""
    if isinstance(content, list):
        return " ".join(extract_content_text(block) for block in content)
    if isinstance(content, dict):
        text = ""
        if isinstance(content.get("value"), str):
            text += content["value"] + " "
        if isinstance(content.get("label"), str):
            text += content["label"] + " "
        if isinstance(content.get("items"), list):
            text += extract_content_text(content["items"])
        return text
    return ""


def _fold(text: str, case_sensitive: bool) -> str:
    return text if case_sensitive else text.lower()


def _matched_fields(catalog: "ReferenceCatalog", entity: Dict[str, Any], query: str, case_sensitive: bool) -> List[str]:
    needle = _fold(query, case_sensitive)
    matched: List[str] = []

    if needle in _fold(str(entity.get("name") or ""), case_sensitive):
        matched.append("name")
    for field in ("description", "effect"):
        value = entity.get(field)
        if isinstance(value, str) and needle in _fold(value, case_sensitive):
            matched.append(field)
    if entity.get("content") and needle in _fold(extract_content_text(entity["content"]), case_sensitive):
        matched.append("content")

    for action in extract_actions(catalog, entity) or []:
        if needle in _fold(extract_content_text(action.get("content")), case_sensitive):
            matched.append("actions.content")
            break
    return matched


def _score(entity: Dict[str, Any], query: str, matched: List[str], case_sensitive: bool) -> int:
    name = _fold(str(entity.get("name") or ""), case_sensitive)
    needle = _fold(query, case_sensitive)
    score = 0
    if name == needle:
        score += EXACT_NAME_SCORE
    elif name.startswith(needle):
        score += NAME_PREFIX_SCORE
    elif needle in name:
        score += NAME_SUBSTRING_SCORE

    description = entity.get("description")
    if isinstance(description, str) and needle in _fold(description, case_sensitive):
        score += DESCRIPTION_SCORE
    return score + len(matched) * MATCHED_FIELD_SCORE


@lru_cache(maxsize=SEARCH_CACHE_SIZE)
def _cached_search(
    catalog: "ReferenceCatalog",
    query: str,
    schemas: Optional[Tuple[str, ...]],
    limit: Optional[int],
    case_sensitive: bool,
) -> Tuple[Dict[str, Any], ...]:
    results: List[Dict[str, Any]] = []
    for schema_id in catalog.schema_names:
        if schemas is not None and schema_id not in schemas:
            continue
        title = SCHEMA_BY_ID[schema_id]["title"]
        for entity in catalog.model(schema_id).all():
            matched = _matched_fields(catalog, entity, query, case_sensitive)
            if not matched:
                continue
            results.append(
                {
                    "schemaName": schema_id,
                    "schemaTitle": title,
                    "entity": entity,
                    "entityId": entity.get("id"),
                    "entityName": entity.get("name"),
                    "matchedFields": matched,
                    "matchScore": _score(entity, query, matched, case_sensitive),
                }
            )

    results.sort(key=lambda r: r["matchScore"], reverse=True)
    if limit:
        results = results[:limit]
    return tuple(results)


def search(
    catalog: "ReferenceCatalog",
    query: str,
    schemas: Optional[Iterable[str]] = None,
    limit: Optional[int] = None,
    case_sensitive: bool = False,
) -> List[Dict[str, Any]]:
    if not query or not query.strip():
        return []
    schema_filter = None if schemas is None else tuple(sorted({normalize_schema_name(s) for s in schemas}))
    # Cached results are shared, so hand out copies.
    results = _cached_search(catalog, query, schema_filter, limit, case_sensitive)
    return [dict(r, matchedFields=list(r["matchedFields"])) for r in results]


def search_in(
    catalog: "ReferenceCatalog",
    schema_name: str,
    query: str,
    limit: Optional[int] = None,
    case_sensitive: bool = False,
) -> List[Dict[str, Any]]:
    results = search(catalog, query, schemas=[schema_name], limit=limit, case_sensitive=case_sensitive)
    return [r["entity"] for r in results]


def get_suggestions(
    catalog: "ReferenceCatalog",
    query: str,
    schemas: Optional[Iterable[str]] = None,
    limit: Optional[int] = None,
    case_sensitive: bool = False,
) -> List[str]:
    results = search(
        catalog,
        query,
        schemas=schemas,
        limit=limit or DEFAULT_SUGGESTION_LIMIT,
        case_sensitive=case_sensitive,
    )
    names: List[str] = []
    for result in results:
        name = result["entityName"]
        if name not in names:
            names.append(name)
    return names


def clear_search_cache() -> None:
    _cached_search.cache_clear()


def search_cache_size() -> int:
    return _cached_search.cache_info().currsize
