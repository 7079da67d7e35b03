from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from .exceptions import CatalogError
from .fields import DataField, DataType, FieldRole
from .predicates import Record, Scalar, parse_date, to_number


@dataclass(frozen=True)
class TableCatalog:
    """
    Field catalog of one logical table.

    - id / name: table identity ("meta_campaigns", "Meta Campaigns")
    - category_field: the natural category key used by the quick-bind path
    - fields: every DataField the fields panel offers for this table
    """
    id: str
    name: str
    category_field: str
    fields: Tuple[DataField, ...]

    def field(self, field_id: str) -> DataField:
        for f in self.fields:
            if f.id == field_id:
                return f
        raise CatalogError(f"Field '{field_id}' not found in table '{self.id}'")

    def first(self, *, role: Optional[FieldRole] = None, data_type: Optional[DataType] = None) -> Optional[DataField]:
        for f in self.fields:
            if role is not None and f.role != role:
                continue
            if data_type is not None and f.data_type != data_type:
                continue
            return f
        return None


class FieldCatalog(Mapping[str, TableCatalog]):
    """
    All tables known to the app, keyed by table id. Field ids are unique
    across tables so a drag payload carrying only a field id resolves.
    """

    def __init__(self, tables: Sequence[TableCatalog], default_table: Optional[str] = None):
        self._tables: Dict[str, TableCatalog] = {t.id: t for t in tables}
        self._field_index: Dict[str, DataField] = {}
        for t in tables:
            for f in t.fields:
                self._field_index[f.id] = f
        self.default_table_id = default_table or (tables[0].id if tables else None)

    def __getitem__(self, table_id: str) -> TableCatalog:
        try:
            return self._tables[table_id]
        except KeyError:
            raise CatalogError(f"Table '{table_id}' not found")

    def __iter__(self) -> Iterator[str]:
        return iter(self._tables)

    def __len__(self) -> int:
        return len(self._tables)

    @property
    def default_table(self) -> Optional[TableCatalog]:
        if self.default_table_id is None:
            return None
        return self._tables.get(self.default_table_id)

    def field(self, field_id: str) -> DataField:
        try:
            return self._field_index[field_id]
        except KeyError:
            raise CatalogError(f"Field '{field_id}' not found in catalog")

    def has_field(self, field_id: str) -> bool:
        return field_id in self._field_index

    def table_of(self, data_field: DataField) -> Optional[TableCatalog]:
        if data_field.table and data_field.table in self._tables:
            return self._tables[data_field.table]
        return self.default_table

    def category_field_for(self, data_field: DataField) -> Optional[DataField]:
        table = self.table_of(data_field)
        if table is None:
            return None
        return self._field_index.get(table.category_field)


class RecordSet:
    """
    Read-only wrapper over the materialised record list.

    Caches distinct values and numeric bounds per field, which slicers ask for
    on every render.
    """

    def __init__(self, records: Sequence[Record], source: Optional[str] = None):
        self._records: Tuple[Record, ...] = tuple(records)
        self.source = source
        self._distinct_cache: Dict[str, List[Scalar]] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self._records)

    @property
    def records(self) -> Sequence[Record]:
        return self._records

    @classmethod
    def empty(cls) -> RecordSet:
        return cls([])

    def distinct_values(self, field_id: str) -> List[Scalar]:
        """Distinct values of a field in first-seen order (missing values skipped)."""
        if field_id in self._distinct_cache:
            return list(self._distinct_cache[field_id])
        seen: Dict[Any, None] = {}
        for r in self._records:
            value = r.get(field_id)
            if value is None:
                continue
            seen.setdefault(value, None)
        values = list(seen)
        self._distinct_cache[field_id] = values
        return list(values)

    def numeric_bounds(self, field_id: str) -> Tuple[float, float]:
        """(min, max) over values that coerce to numbers. (0, 100) when there are none."""
        nums = [n for n in (to_number(v) for v in self.distinct_values(field_id)) if n == n]
        if not nums:
            return 0.0, 100.0
        return min(nums), max(nums)

    def date_bounds(self, field_id: str) -> Tuple[Optional[Any], Optional[Any]]:
        days = [d for d in (parse_date(v) for v in self.distinct_values(field_id)) if d is not None]
        if not days:
            return None, None
        return min(days), max(days)
