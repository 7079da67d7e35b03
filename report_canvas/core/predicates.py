from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

Scalar = Union[str, int, float, bool, None]
Record = Mapping[str, Any]

# decimal and 0x/0o/0b literals; no digit separators, no inf/nan spellings
_DECIMAL = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_RADIX = re.compile(r"0[xX][0-9a-fA-F]+|0[oO][0-7]+|0[bB][01]+")


class FilterOperator(str, Enum):
    EQUALS = "equals"
    CONTAINS = "contains"
    BETWEEN = "between"
    GT = "gt"
    LT = "lt"
    GTE = "gte"
    LTE = "lte"


@dataclass(frozen=True)
class NumericRange:
    min: float
    max: float


@dataclass(frozen=True)
class DateRange:
    """Inclusive calendar range. A None bound is open on that side."""
    start: Optional[date] = None
    end: Optional[date] = None


@dataclass(frozen=True)
class FilterValue:
    """
    One active filter predicate. The field is the dedup key: a filter store
    holds at most one FilterValue per field.

    operator is kept as a plain string so filters saved with an operator this
    version does not know still load; evaluate() treats those as equals.
    """

    field: str
    values: List[Scalar] = field(default_factory=list)
    operator: str = FilterOperator.EQUALS.value
    numeric_range: Optional[NumericRange] = None
    date_range: Optional[DateRange] = None

    @property
    def is_vacuous(self) -> bool:
        return not self.values and self.numeric_range is None and self.date_range is None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "field": self.field,
            "values": list(self.values),
            "operator": str(getattr(self.operator, "value", self.operator)),
        }
        if self.numeric_range is not None:
            data["numeric_range"] = {"min": self.numeric_range.min, "max": self.numeric_range.max}
        if self.date_range is not None:
            data["date_range"] = {
                "start": self.date_range.start.isoformat() if self.date_range.start else None,
                "end": self.date_range.end.isoformat() if self.date_range.end else None,
            }
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> FilterValue:
        nr = data.get("numeric_range") or data.get("numericRange")
        dr = data.get("date_range") or data.get("dateRange")
        return cls(
            field=str(data["field"]),
            values=list(data.get("values") or []),
            operator=str(data.get("operator") or FilterOperator.EQUALS.value),
            numeric_range=NumericRange(float(nr["min"]), float(nr["max"])) if nr else None,
            date_range=DateRange(parse_date(dr.get("start")), parse_date(dr.get("end"))) if dr else None,
        )


# -------------------------------------------------------------------------
# Coercion helpers
# -------------------------------------------------------------------------

def to_number(value: Any) -> float:
    """
    Numeric coercion with the semantics the saved dashboards were built on
    (JavaScript Number()): numbers pass through, bools are 0/1, blank strings
    are 0, numeric strings parse, anything else is NaN.

    Strings Python would read but JavaScript would not ("1_000", "inf",
    "nan") are NaN, as is anything that overflows to infinity.
    """
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        if _RADIX.fullmatch(text):
            try:
                return float(int(text, 0))
            except OverflowError:
                return math.nan
        if not _DECIMAL.fullmatch(text):
            return math.nan
        number = float(text)
        return number if math.isfinite(number) else math.nan
    return math.nan


def parse_date(value: Any) -> Optional[date]:
    """Parse an ISO date / datetime string (or date object). Returns None if unparseable."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).lower()


# -------------------------------------------------------------------------
# Evaluation
# -------------------------------------------------------------------------

def _equals(flt: FilterValue, value: Any) -> bool:
    if not flt.values:
        return True
    return value in flt.values


def _contains(flt: FilterValue, value: Any) -> bool:
    if not flt.values:
        return True
    haystack = _as_text(value)
    return any(_as_text(v) in haystack for v in flt.values)


def _compare(flt: FilterValue, value: Any) -> bool:
    if not flt.values:
        return True
    left = to_number(value)
    right = to_number(flt.values[0])
    # NaN on either side compares False, which drops bad data quietly
    if flt.operator == FilterOperator.GT:
        return left > right
    if flt.operator == FilterOperator.LT:
        return left < right
    if flt.operator == FilterOperator.GTE:
        return left >= right
    return left <= right


def _between(flt: FilterValue, value: Any) -> bool:
    if flt.numeric_range is not None:
        num = to_number(value)
        return flt.numeric_range.min <= num <= flt.numeric_range.max
    if flt.date_range is not None:
        day = parse_date(value)
        if day is None:
            return False
        if flt.date_range.start is not None and day < flt.date_range.start:
            return False
        if flt.date_range.end is not None and day > flt.date_range.end:
            return False
        return True
    return True


_EVALUATORS = {
    FilterOperator.EQUALS.value: _equals,
    FilterOperator.CONTAINS.value: _contains,
    FilterOperator.GT.value: _compare,
    FilterOperator.LT.value: _compare,
    FilterOperator.GTE.value: _compare,
    FilterOperator.LTE.value: _compare,
    FilterOperator.BETWEEN.value: _between,
}


def evaluate(flt: FilterValue, record: Record) -> bool:
    """
    Decide whether a single record passes a single filter.

    :param flt: the {@link FilterValue} to test
    :param record: a flat record mapping
    :return: True if the record is kept
    """
    if flt.is_vacuous:
        return True
    value = record.get(flt.field)
    operator = str(getattr(flt.operator, "value", flt.operator))
    check = _EVALUATORS.get(operator, _equals)
    return check(flt, value)


def passes_all(filters: Iterable[FilterValue], record: Record) -> bool:
    """AND across every filter."""
    return all(evaluate(f, record) for f in filters)
