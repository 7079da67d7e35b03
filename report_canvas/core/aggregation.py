from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

import numpy as np
import pandas as pd

from .fields import (
    AggregationType,
    AxisWell,
    DataField,
    FieldMapping,
    TimeGranularity,
    ValuesWell,
)
from .predicates import Record, to_number

logger = logging.getLogger(__name__)

ChartRow = Dict[str, Any]

CATEGORY_MAX_LEN = 25
BLANK_LABEL = "(blank)"


def value_key(position: int) -> str:
    """Output column for the n-th value field: value, value2, value3, ..."""
    return "value" if position == 0 else f"value{position + 1}"


def category_sort_key(label: str) -> Tuple[str, str]:
    """Locale-style ascending order: case-insensitive first, exact text as tie-break."""
    return label.casefold(), label


def round_half_up(series: pd.Series) -> pd.Series:
    # Python's round() is banker's rounding; saved reports were produced with half-up
    return np.floor(series.astype(float) * 100 + 0.5) / 100


# -------------------------------------------------------------------------
# Time bucketing
# -------------------------------------------------------------------------

def bucket_starts(timestamps: pd.Series, granularity: TimeGranularity) -> pd.Series:
    """
    Map each timestamp to the first instant of its bucket. NaT stays NaT.

    Weeks start on Monday.
    """
    day = timestamps.dt.normalize()
    if granularity == TimeGranularity.DAY:
        return day
    if granularity == TimeGranularity.WEEK:
        return day - pd.to_timedelta(day.dt.weekday, unit="D")
    if granularity == TimeGranularity.MONTH:
        return day.dt.to_period("M").dt.start_time
    if granularity == TimeGranularity.QUARTER:
        return day.dt.to_period("Q").dt.start_time
    if granularity == TimeGranularity.YEAR:
        return day.dt.to_period("Y").dt.start_time
    raise ValueError(f"No buckets for granularity '{granularity}'")


def bucket_label(start: pd.Timestamp, granularity: TimeGranularity) -> str:
    """
    Label of a bucket. Every format puts the year first so that label order
    and chronological order agree.
    """
    if granularity in (TimeGranularity.DAY, TimeGranularity.WEEK):
        return start.strftime("%Y-%m-%d")
    if granularity == TimeGranularity.MONTH:
        return start.strftime("%Y-%m")
    if granularity == TimeGranularity.QUARTER:
        return f"{start.year}-Q{start.quarter}"
    return f"{start.year}"


def parse_timestamps(raw: pd.Series) -> pd.Series:
    parsed = pd.to_datetime(raw, errors="coerce", utc=True, format="ISO8601")
    return parsed.dt.tz_localize(None)


# -------------------------------------------------------------------------
# Grouping
# -------------------------------------------------------------------------

def _column(records: Sequence[Record], key: str) -> pd.Series:
    # dtype=object keeps raw values as they came in (no int -> float upcasts)
    return pd.Series([r.get(key) for r in records], dtype=object)


def _raw_label(value: Any) -> str:
    if value is None or (isinstance(value, float) and np.isnan(value)):
        return BLANK_LABEL
    return str(value)


def _short_label(label: str, taken: Set[str]) -> str:
    """Truncate a group label for display. Groups that truncate alike get " (2)", " (3)", ..."""
    short = label[:CATEGORY_MAX_LEN]
    candidate, n = short, 2
    while candidate in taken:
        candidate = f"{short} ({n})"
        n += 1
    taken.add(candidate)
    return candidate


def _group_keys(
        axis_raw: pd.Series,
        granularity: TimeGranularity,
        bucketed: bool,
) -> Tuple[pd.Series, Dict[str, Any]]:
    """
    Compute the group key of every record plus a sort key per group label.
    """
    if not bucketed:
        labels = axis_raw.map(_raw_label)
        order = {label: (0, category_sort_key(label)) for label in labels.unique()}
        return labels, order

    starts = bucket_starts(parse_timestamps(axis_raw), granularity)
    labels = pd.Series(
        [
            bucket_label(start, granularity) if not pd.isna(start) else _raw_label(raw)
            for start, raw in zip(starts, axis_raw)
        ],
        dtype=object,
    )
    order: Dict[str, Any] = {}
    for label, start in zip(labels, starts):
        if label in order:
            continue
        # unparseable dates sort after every real bucket
        order[label] = (0, start.value) if not pd.isna(start) else (1, category_sort_key(label))
    return labels, order


def _finalise(
        grouped,
        numeric_col: str,
        raw_col: str,
        sizes: pd.Series,
        aggregation: AggregationType,
        legacy_min_max: bool,
) -> pd.Series:
    sums = grouped[numeric_col].sum()
    if aggregation == AggregationType.AVG:
        result = (sums / sizes).where(sizes > 0, 0.0)
    elif aggregation == AggregationType.COUNT:
        result = sizes.astype(float)
    elif aggregation == AggregationType.DISTINCT_COUNT:
        result = grouped[raw_col].nunique(dropna=True).astype(float)
    elif aggregation in (AggregationType.MIN, AggregationType.MAX) and legacy_min_max:
        result = sums
    elif aggregation == AggregationType.MIN:
        result = grouped[numeric_col].min().fillna(0.0)
    elif aggregation == AggregationType.MAX:
        result = grouped[numeric_col].max().fillna(0.0)
    else:
        result = sums
    return round_half_up(result)


def derive_rows(
        records: Sequence[Record],
        mapping: FieldMapping,
        *,
        legacy_min_max: bool = False,
) -> Optional[List[ChartRow]]:
    """
    Turn filtered records into chart rows for one visual's field mapping.

    Steps:
    - group by the axis field (or its time bucket, when the axis is a date and
      the FIRST value field asks for a granularity)
    - per value field and group, finalise sum/avg/count/min/max/distinct count
    - label groups (truncated to 25 chars, suffixed " (2)", " (3)", ... when
      two labels truncate to the same text), round to 2 decimals, sort

    :param records: the already filtered record set
    :param mapping: the visual's {@link FieldMapping}
    :param legacy_min_max: finalise min/max as a sum, as older reports did
    :return: rows like {"category": ..., "value": ..., "value2": ...}, or None
             when the mapping has no axis or no value fields yet
    """
    axis = mapping.axis_field
    value_fields = mapping.value_fields
    if axis is None or not value_fields:
        return None
    if not records:
        return []

    granularity = value_fields[0].effective_granularity
    bucketed = axis.is_date and granularity != TimeGranularity.NONE

    labels, order = _group_keys(_column(records, axis.id), granularity, bucketed)

    work = pd.DataFrame({"__key": labels})
    for pos, vf in enumerate(value_fields):
        raw = _column(records, vf.id)
        numeric = raw.map(to_number).astype(float)
        work[f"__raw{pos}"] = raw
        work[f"__num{pos}"] = numeric.where(np.isfinite(numeric))

    grouped = work.groupby("__key", sort=False)
    sizes = grouped.size()

    columns: Dict[str, pd.Series] = {}
    for pos, vf in enumerate(value_fields):
        columns[value_key(pos)] = _finalise(
            grouped,
            f"__num{pos}",
            f"__raw{pos}",
            sizes,
            vf.effective_aggregation,
            legacy_min_max,
        )

    rows: List[ChartRow] = []
    taken: Set[str] = set()
    for label in sorted(sizes.index, key=lambda k: order[k]):
        row: ChartRow = {"category": _short_label(str(label), taken)}
        for key, series in columns.items():
            row[key] = float(series[label])
        rows.append(row)

    logger.debug(
        "rows derived",
        extra={
            "axis": axis.id,
            "values": [vf.id for vf in value_fields],
            "granularity": granularity.value,
            "n_records": len(records),
            "n_rows": len(rows),
        },
    )
    return rows


def derive_title(mapping: FieldMapping) -> Optional[str]:
    """'Spend, Clicks by Date (Month)'. None until the mapping is complete."""
    axis = mapping.axis_field
    value_fields = mapping.value_fields
    if axis is None or not value_fields:
        return None
    title = f"{', '.join(vf.name for vf in value_fields)} by {axis.name}"
    granularity = value_fields[0].effective_granularity
    if axis.is_date and granularity != TimeGranularity.NONE:
        title += f" ({granularity.value.title()})"
    return title


def quick_bind_rows(
        records: Sequence[Record],
        data_field: DataField,
        category_field: DataField,
) -> List[ChartRow]:
    """
    Single-field quick bind: aggregate one dropped field against the table's
    natural category. Metrics are summed, dimensions count records.
    """
    aggregation = AggregationType.SUM if data_field.is_metric else AggregationType.COUNT
    mapping = FieldMapping(
        axis=AxisWell([category_field]),
        values=ValuesWell([data_field.with_settings(aggregation=aggregation)]),
    )
    return derive_rows(records, mapping) or []
