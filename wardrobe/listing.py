"""
Client-side narrowing and ordering of an already fetched list.

Every function here returns a new list and leaves its input untouched. Sorting
relies on ``sorted`` being stable (also with ``reverse=True``), so records with
equal keys always keep the order the server returned them in.
"""
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Sequence

from .calculations import to_number

if TYPE_CHECKING:
    from .schemas import EntitySchema

ASC = "asc"
DESC = "desc"
ALL = "all"


@dataclass(frozen=True)
class SortKey:
    path: str
    kind: str = "text"   # "text" or "number"


@dataclass(frozen=True)
class Facet:
    path: str
    label: str
    lookup: Optional[str] = None
    choices: Sequence[tuple] = ()
    kind: str = "equals"   # "equals" or "date"


@dataclass
class Criteria:
    search: str = ""
    facets: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_args(cls, args: Mapping[str, Any], schema: "EntitySchema") -> "Criteria":
        """Build criteria from query-string style arguments (``q`` + one arg per facet)."""
        facets = {name: args.get(name) for name in schema.facets if args.get(name)}
        return cls(search=args.get("q") or "", facets=facets)

    @property
    def active(self) -> bool:
        return bool(self.search.strip()) or any(_facet_enabled(v) for v in self.facets.values())


def get_path(record: Any, path: str) -> Any:
    """Read ``a.b.c`` out of nested mappings; any missing hop gives ``None``."""
    value = record
    for part in path.split("."):
        if not isinstance(value, Mapping):
            return None
        value = value.get(part)
        if value is None:
            return None
    return value


def _facet_enabled(value: Any) -> bool:
    if value is None:
        return False
    text = str(value).strip()
    return bool(text) and text.lower() != ALL


def _norm(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip().casefold()


def matches_search(record: Any, term: str, fields: Sequence[str]) -> bool:
    needle = (term or "").strip().casefold()
    if not needle:
        return True
    for path in fields:
        value = get_path(record, path)
        if value is not None and needle in str(value).casefold():
            return True
    return False


def matches_facet(record: Any, facet: Facet, expected: Any) -> bool:
    if not _facet_enabled(expected):
        return True
    actual = get_path(record, facet.path)
    if facet.kind == "date":
        return _norm(actual)[:10] == _norm(expected)[:10]
    return _norm(actual) == _norm(expected)


def filter_records(records: Sequence[Any], criteria: Criteria, schema: "EntitySchema") -> List[Any]:
    facets = [
        (schema.facets[name], value)
        for name, value in criteria.facets.items()
        if name in schema.facets
    ]
    return [
        record for record in records
        if matches_search(record, criteria.search, schema.searchable)
        and all(matches_facet(record, facet, value) for facet, value in facets)
    ]


def sort_value(record: Any, key: SortKey) -> Any:
    value = get_path(record, key.path)
    if key.kind == "number":
        return to_number(value) or 0.0
    return "" if value is None else str(value).casefold()


def resolve_sort(sort_key: Optional[str], direction: Optional[str], schema: "EntitySchema") -> tuple:
    if sort_key not in schema.sort_keys:
        sort_key = schema.default_sort
    direction = DESC if (direction or "").lower() == DESC else ASC
    return sort_key, direction


def sort_records(records: Sequence[Any], sort_key: Optional[str], direction: Optional[str],
                 schema: "EntitySchema") -> List[Any]:
    sort_key, direction = resolve_sort(sort_key, direction, schema)
    if sort_key is None:
        return list(records)
    key = schema.sort_keys[sort_key]
    return sorted(records, key=lambda record: sort_value(record, key), reverse=direction == DESC)


def apply(records: Sequence[Any], criteria: Criteria, sort_key: Optional[str],
          direction: Optional[str], schema: "EntitySchema") -> List[Any]:
    return sort_records(filter_records(records, criteria, schema), sort_key, direction, schema)


def distinct_values(records: Sequence[Any], path: str) -> List[str]:
    """Sorted distinct non-empty values, used for facets without a lookup list."""
    seen = {str(v) for v in (get_path(r, path) for r in records) if v not in (None, "")}
    return sorted(seen, key=str.casefold)
