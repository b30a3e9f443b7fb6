"""
Stratified counts of alerts.

Tables are zero-filled over the full cartesian product of the requested
dimensions, so every category of the vocabulary (and every time bin of
the covered range) appears even when nothing was observed in it.
"""

import datetime
import logging
import typing
from enum import Enum

import pandas as pd

from .classifier import DEFINED_LABELS, DecisionLabel
from .record import Record
from .vocabulary import TOTAL, Vocabulary


COUNT = "count"


class Dimension(Enum):
    ZONE = "zone"
    TIME = "time"
    LABEL = "decision_label"
    ORIGIN = "origin"


class TimeBin(Enum):
    """Calendar bin width; weeks start on Monday in every table."""
    DAY = "D"
    WEEK = "W-SUN"


def _bin_start(date: datetime.date, time_bin: TimeBin) -> datetime.date:
    if time_bin is TimeBin.WEEK:
        return date - datetime.timedelta(days=date.weekday())
    return date


def time_axis(start: datetime.date, end: datetime.date, time_bin: TimeBin = TimeBin.WEEK) -> list[str]:
    """
    Contiguous bin labels (ISO start date of each bin) covering start..end.
    """
    if end < start:
        return []
    periods = pd.period_range(start=pd.Timestamp(start), end=pd.Timestamp(end), freq=time_bin.value)
    return [p.start_time.date().isoformat() for p in periods]


def _axis(dimension: Dimension, vocabulary: Vocabulary, time_labels: list[str]) -> list[str]:
    if dimension is Dimension.ZONE:
        return list(vocabulary.zones)
    if dimension is Dimension.ORIGIN:
        return list(vocabulary.origins)
    if dimension is Dimension.LABEL:
        return [label.value for label in DEFINED_LABELS]
    return time_labels


def _key(record: Record, dimension: Dimension, vocabulary: Vocabulary, time_bin: TimeBin) -> str:
    if dimension is Dimension.ZONE:
        if record.zone not in vocabulary.zones:
            raise ValueError(f"Alert {record.alert_id!r}: zone {record.zone!r} is not in the vocabulary")
        return record.zone
    if dimension is Dimension.ORIGIN:
        if record.origin not in vocabulary.origins:
            raise ValueError(f"Alert {record.alert_id!r}: origin {record.origin!r} is not in the vocabulary")
        return record.origin
    if dimension is Dimension.LABEL:
        label = getattr(record, "decision_label", None)
        if label not in DEFINED_LABELS:
            raise ValueError(f"Alert {record.alert_id!r}: no defined decision label ({label!r})")
        return typing.cast(DecisionLabel, label).value
    return _bin_start(record.date, time_bin).isoformat()


def aggregate(
        records: typing.Sequence[Record],
        group_by: typing.Sequence[Dimension],
        vocabulary: Vocabulary,
        time_bin: TimeBin = TimeBin.WEEK,
        date_range: typing.Optional[tuple[datetime.date, datetime.date]] = None,
) -> pd.DataFrame:
    """
    Count records per combination of `group_by` values.

    - one dimension: rows are its values, a single `count` column
    - two or more: the last dimension goes on the columns, the others on rows
    - a `Total` row is always appended, a `Total` column for 2+ dimensions
    - a TIME dimension spans `date_range` (inclusive) or min..max observed date;
      records without a date (or outside the range) are left out of such tables

    Returns a new DataFrame; an empty input gives a zero-row table.
    """
    group_by = list(group_by)
    if not group_by:
        raise ValueError("aggregate needs at least one dimension")
    if len(set(group_by)) != len(group_by):
        raise ValueError(f"Duplicate dimensions in {group_by}")

    names = [d.value for d in group_by]
    records = list(records)

    time_labels: list[str] = []
    if Dimension.TIME in group_by:
        dated = [r for r in records if r.date is not None]
        if len(dated) < len(records):
            logging.info(f"{len(records) - len(dated)} alert(s) without a date left out of the time table")
        if date_range is not None:
            start, end = date_range
            dated = [r for r in dated if start <= r.date <= end]
        elif dated:
            start, end = min(r.date for r in dated), max(r.date for r in dated)
        records = dated
        if records or date_range is not None:
            time_labels = time_axis(start, end, time_bin)

    if not records:
        return _empty_table(names, _axis(group_by[-1], vocabulary, time_labels))

    axes = [_axis(d, vocabulary, time_labels) for d in group_by]
    keys = pd.DataFrame(
        [[_key(r, d, vocabulary, time_bin) for d in group_by] for r in records],
        columns=names,
    )
    counts = keys.groupby(names[0] if len(names) == 1 else names, sort=False).size()

    if len(group_by) == 1:
        full = pd.Index(axes[0], name=names[0])
        table = counts.reindex(full, fill_value=0).astype("int64").to_frame(COUNT)
        return _append_total_row(table, names)

    full = pd.MultiIndex.from_product(axes, names=names)
    table = counts.reindex(full, fill_value=0).astype("int64").unstack(names[-1])
    # unstack sorts the levels; restore the declared order
    row_index = (
        pd.Index(axes[0], name=names[0])
        if len(group_by) == 2
        else pd.MultiIndex.from_product(axes[:-1], names=names[:-1])
    )
    table = table.reindex(index=row_index, columns=axes[-1], fill_value=0)
    table[TOTAL] = table.sum(axis=1)
    table = _append_total_row(table, names[:-1])
    table.columns.name = names[-1]
    return table


def _append_total_row(table: pd.DataFrame, row_names: list[str]) -> pd.DataFrame:
    if len(row_names) == 1:
        index = pd.Index([TOTAL], name=row_names[0])
    else:
        index = pd.MultiIndex.from_tuples([(TOTAL,) + ("",) * (len(row_names) - 1)], names=row_names)
    totals = pd.DataFrame([table.sum(axis=0).to_numpy()], index=index, columns=list(table.columns))
    table = pd.DataFrame(table.to_numpy(), index=table.index, columns=list(table.columns))
    return pd.concat([table, totals]).astype("int64")


def _empty_table(names: list[str], last_axis: list[str]) -> pd.DataFrame:
    """Zero rows, but the same columns a filled table would have."""
    if len(names) == 1:
        return pd.DataFrame({COUNT: pd.Series([], dtype="int64")}, index=pd.Index([], name=names[0]))
    if len(names) == 2:
        index = pd.Index([], name=names[0])
    else:
        index = pd.MultiIndex.from_arrays([[] for _ in names[:-1]], names=names[:-1])
    columns = pd.Index(list(last_axis) + [TOTAL], name=names[-1])
    return pd.DataFrame(index=index, columns=columns, dtype="int64")
