from typing import Any, Callable, Dict, Iterable, List, Optional

Record = Dict[str, Any]
Predicate = Callable[[Record], bool]


class CatalogConfigError(ValueError):
    pass


class ReferenceModel:
    """Read-only view over one schema's records.

    Records keep their file order. Nothing here raises for "no match";
    lookups that find nothing return None or an empty list.
    """

    __slots__ = ("_records", "_schema", "_schema_name", "_display_name")

    def __init__(
        self,
        records: Iterable[Record],
        schema: Optional[Dict[str, Any]],
        schema_name: str,
        display_name: Optional[str] = None,
    ):
        if not schema_name:
            raise CatalogConfigError("Model needs a schema name")
        if schema is None:
            raise CatalogConfigError(f"No schema descriptor found for schema: {schema_name}")
        if records is None:
            raise CatalogConfigError(f"No data found for schema: {schema_name}")
        self._records = tuple(records)
        self._schema = schema
        self._schema_name = schema_name
        self._display_name = display_name or schema_name

    @property
    def schema_name(self) -> str:
        return self._schema_name

    @property
    def display_name(self) -> str:
        return self._display_name

    @property
    def schema(self) -> Dict[str, Any]:
        return self._schema

    def __len__(self) -> int:
        return len(self._records)

    def __repr__(self) -> str:
        return f"ReferenceModel({self._schema_name!r}, {len(self._records)} records)"

    def all(self) -> List[Record]:
        return list(self._records)

    def find(self, predicate: Predicate) -> Optional[Record]:
        for record in self._records:
            if predicate(record):
                return record
        return None

    def find_all(self, predicate: Predicate) -> List[Record]:
        return [record for record in self._records if predicate(record)]
