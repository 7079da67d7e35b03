from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional


class FieldRole(str, Enum):
    METRIC = "metric"
    DIMENSION = "dimension"


class DataType(str, Enum):
    NUMBER = "number"
    STRING = "string"
    DATE = "date"


class AggregationType(str, Enum):
    SUM = "sum"
    AVG = "avg"
    COUNT = "count"
    MIN = "min"
    MAX = "max"
    DISTINCT_COUNT = "distinct_count"


class TimeGranularity(str, Enum):
    NONE = "none"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


class WellKind(str, Enum):
    AXIS = "axis"
    VALUES = "values"
    LEGEND = "legend"
    TOOLTIPS = "tooltips"


@dataclass(frozen=True)
class DataField:
    """
    A column of the record set as exposed in the field catalog.

    Fields:

    - id: record key the field reads from (e.g. "spend")
    - name: human-readable label ("Spend")
    - role: metric (aggregatable number) or dimension (grouping key)
    - data_type: number / string / date; date-typed axis fields can be time bucketed
    - table: id of the catalog table the field belongs to
    - aggregation: how the field is finalised when it sits in a values well
    - time_granularity: bucketing applied to a date axis, read from the first value field
    """

    id: str
    name: str
    role: FieldRole = FieldRole.DIMENSION
    data_type: DataType = DataType.STRING
    table: Optional[str] = None
    aggregation: Optional[AggregationType] = None
    time_granularity: Optional[TimeGranularity] = None

    @property
    def is_metric(self) -> bool:
        return self.role == FieldRole.METRIC

    @property
    def is_date(self) -> bool:
        return self.data_type == DataType.DATE

    @property
    def effective_aggregation(self) -> AggregationType:
        return self.aggregation or AggregationType.SUM

    @property
    def effective_granularity(self) -> TimeGranularity:
        return self.time_granularity or TimeGranularity.NONE

    def with_settings(
            self,
            *,
            aggregation: Optional[AggregationType] = None,
            time_granularity: Optional[TimeGranularity] = None,
    ) -> DataField:
        """Copy of this field with per-well overrides applied."""
        return replace(
            self,
            aggregation=aggregation if aggregation is not None else self.aggregation,
            time_granularity=time_granularity if time_granularity is not None else self.time_granularity,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "role": self.role.value,
            "data_type": self.data_type.value,
        }
        if self.table is not None:
            data["table"] = self.table
        if self.aggregation is not None:
            data["aggregation"] = self.aggregation.value
        if self.time_granularity is not None:
            data["time_granularity"] = self.time_granularity.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> DataField:
        # "type"/"dataType"/"timeGranularity" are the keys older saved sheets use
        role = data.get("role") or data.get("type") or FieldRole.DIMENSION.value
        data_type = data.get("data_type") or data.get("dataType") or DataType.STRING.value
        aggregation = data.get("aggregation")
        granularity = data.get("time_granularity") or data.get("timeGranularity")
        if aggregation == "distinctCount":
            aggregation = AggregationType.DISTINCT_COUNT.value
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or data["id"]),
            role=FieldRole(role),
            data_type=DataType(data_type),
            table=data.get("table"),
            aggregation=AggregationType(aggregation) if aggregation else None,
            time_granularity=TimeGranularity(granularity) if granularity else None,
        )


# -------------------------------------------------------------------------
# Field wells
# -------------------------------------------------------------------------

@dataclass
class AxisWell:
    """Grouping field. Stored as a list for compatibility, only the first entry groups rows."""
    fields: List[DataField] = field(default_factory=list)

    @property
    def primary(self) -> Optional[DataField]:
        return self.fields[0] if self.fields else None


@dataclass
class ValuesWell:
    """Ordered value fields; position n becomes output column value, value2, value3, ..."""
    fields: List[DataField] = field(default_factory=list)


@dataclass
class LegendWell:
    field: Optional[DataField] = None


@dataclass
class TooltipsWell:
    fields: List[DataField] = field(default_factory=list)


@dataclass
class FieldMapping:
    """
    The set of wells one visual's chart fields are dropped into.

    Multi-field wells append, the legend well holds a single field and
    replaces. A field lives in at most one well of a mapping: placing it in
    a well removes it from whichever well held it before.
    """

    axis: AxisWell = field(default_factory=AxisWell)
    values: ValuesWell = field(default_factory=ValuesWell)
    legend: LegendWell = field(default_factory=LegendWell)
    tooltips: TooltipsWell = field(default_factory=TooltipsWell)

    @property
    def axis_field(self) -> Optional[DataField]:
        return self.axis.primary

    @property
    def value_fields(self) -> List[DataField]:
        return list(self.values.fields)

    @property
    def is_complete(self) -> bool:
        return self.axis_field is not None and bool(self.values.fields)

    def fields_in(self, well: WellKind) -> List[DataField]:
        if well == WellKind.AXIS:
            return list(self.axis.fields)
        if well == WellKind.VALUES:
            return list(self.values.fields)
        if well == WellKind.LEGEND:
            return [self.legend.field] if self.legend.field is not None else []
        return list(self.tooltips.fields)

    def iter_fields(self) -> Iterator[DataField]:
        for well in WellKind:
            yield from self.fields_in(well)

    def well_of(self, field_id: str) -> Optional[WellKind]:
        for well in WellKind:
            if any(f.id == field_id for f in self.fields_in(well)):
                return well
        return None

    def place(self, well: WellKind, data_field: DataField) -> None:
        """Add data_field to well, taking it out of any other well first."""
        self.remove(data_field.id)
        if well == WellKind.LEGEND:
            self.legend.field = data_field
        elif well == WellKind.AXIS:
            self.axis.fields.append(data_field)
        elif well == WellKind.VALUES:
            self.values.fields.append(data_field)
        else:
            self.tooltips.fields.append(data_field)

    def remove(self, field_id: str) -> bool:
        """Drop field_id from whichever well holds it. Returns True if something was removed."""
        removed = False
        for well_fields in (self.axis.fields, self.values.fields, self.tooltips.fields):
            kept = [f for f in well_fields if f.id != field_id]
            if len(kept) != len(well_fields):
                well_fields[:] = kept
                removed = True
        if self.legend.field is not None and self.legend.field.id == field_id:
            self.legend.field = None
            removed = True
        return removed

    def update_field(self, field_id: str, updated: DataField) -> bool:
        for well_fields in (self.axis.fields, self.values.fields, self.tooltips.fields):
            for idx, f in enumerate(well_fields):
                if f.id == field_id:
                    well_fields[idx] = updated
                    return True
        if self.legend.field is not None and self.legend.field.id == field_id:
            self.legend.field = updated
            return True
        return False

    def find(self, field_id: str) -> Optional[DataField]:
        return next((f for f in self.iter_fields() if f.id == field_id), None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "axis": [f.to_dict() for f in self.axis.fields],
            "values": [f.to_dict() for f in self.values.fields],
            "legend": self.legend.field.to_dict() if self.legend.field is not None else None,
            "tooltips": [f.to_dict() for f in self.tooltips.fields],
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> FieldMapping:
        if not data:
            return cls()
        legend = data.get("legend")
        return cls(
            axis=AxisWell([DataField.from_dict(f) for f in data.get("axis") or []]),
            values=ValuesWell([DataField.from_dict(f) for f in data.get("values") or []]),
            legend=LegendWell(DataField.from_dict(legend) if legend else None),
            tooltips=TooltipsWell([DataField.from_dict(f) for f in data.get("tooltips") or []]),
        )
