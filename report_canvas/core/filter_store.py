from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, Iterator, List, Optional, Sequence

from .predicates import FilterOperator, FilterValue, Record, Scalar, passes_all

logger = logging.getLogger(__name__)


class FilterStore:
    """
    Owns the ordered set of active filters, one per field.

    Design Notes:
    - The store is the single source of truth for what a slicer has selected.
      Slicers do not keep their own copy, they read {@link selected_values()}
      for their bound field, so clearing the store clears every slicer.
    - Filters keep insertion order. AND is commutative so order does not change
      results, but stable order keeps logs and saved workbooks deterministic.
    """

    def __init__(self, filters: Optional[Sequence[FilterValue]] = None):
        self._filters: List[FilterValue] = []
        for f in filters or []:
            self.add_or_replace(f)

    def __len__(self) -> int:
        return len(self._filters)

    def __iter__(self) -> Iterator[FilterValue]:
        return iter(list(self._filters))

    def __repr__(self) -> str:
        return f"FilterStore({self._filters!r})"

    @property
    def filters(self) -> List[FilterValue]:
        return list(self._filters)

    def _index_of(self, field: str) -> Optional[int]:
        return next((i for i, f in enumerate(self._filters) if f.field == field), None)

    def get(self, field: str) -> Optional[FilterValue]:
        idx = self._index_of(field)
        return self._filters[idx] if idx is not None else None

    def add_or_replace(self, flt: FilterValue) -> None:
        """
        Replace the filter for flt.field in place, or append it if the field has none yet.
        """
        idx = self._index_of(flt.field)
        if idx is not None:
            self._filters[idx] = flt
        else:
            self._filters.append(flt)

    def update_values(self, field: str, values: Sequence[Scalar]) -> None:
        """
        Set the selected values of a field. Keeps the operator of an existing
        filter, creates an equals filter otherwise. An empty selection removes
        the filter altogether.
        """
        values = list(values)
        if not values:
            self.remove(field)
            return
        existing = self.get(field)
        if existing is not None:
            self.add_or_replace(replace(existing, values=values))
        else:
            self.add_or_replace(FilterValue(field=field, values=values, operator=FilterOperator.EQUALS.value))

    def remove(self, field: str) -> bool:
        before = len(self._filters)
        self._filters = [f for f in self._filters if f.field != field]
        return len(self._filters) != before

    def clear_all(self) -> None:
        self._filters = []

    def selected_values(self, field: str) -> List[Scalar]:
        flt = self.get(field)
        return list(flt.values) if flt is not None else []

    def apply(self, records: Sequence[Record]) -> Sequence[Record]:
        """
        Return the records that pass every active filter.

        With no filters the input sequence itself is returned (no copy).
        """
        if not self._filters:
            return records
        active = list(self._filters)
        kept = [r for r in records if passes_all(active, r)]
        logger.debug(
            "filters applied",
            extra={"n_filters": len(active), "n_in": len(records), "n_out": len(kept)},
        )
        return kept

    def to_dict(self) -> Dict[str, Any]:
        return {"filters": [f.to_dict() for f in self._filters]}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> FilterStore:
        if not data:
            return cls()
        return cls([FilterValue.from_dict(f) for f in data.get("filters") or []])
