"""
Reporting views.

The report is computed twice with the same logic: over the full history,
and over the recent window (the `window_days` days before the database
completion date). Every table is an independent value built from the same
immutable record set.
"""

import datetime
import logging
import typing
from dataclasses import dataclass, field

import pandas as pd

from .aggregate import COUNT, TOTAL, Dimension, TimeBin, aggregate
from .classifier import ClassifiedRecord, classify_records
from .proportions import DEFAULT_PROPORTIONS, add_proportions
from .record import Record
from .vocabulary import Vocabulary

RECENT_WINDOW_DAYS = 21
MAJOR_ZONE_THRESHOLD = 100


@dataclass
class ReportConfig:
    """
    Attributes:
        window_days: Length of the recent window, in days.
        major_zone_threshold: Minimum number of alerts for a zone to be charted on its own.
        digits: Decimal places of percentages.
        confidence: Confidence level of the intervals.
        time_bin: Bin width of the historical time tables.
        completion_date: Date the database was closed; latest alert date if None.
    """

    window_days: int = RECENT_WINDOW_DAYS
    major_zone_threshold: int = MAJOR_ZONE_THRESHOLD
    digits: int = 1
    confidence: float = 0.95
    time_bin: TimeBin = TimeBin.WEEK
    completion_date: typing.Optional[datetime.date] = None


@dataclass
class Report:
    tables: dict[str, pd.DataFrame]
    classified: list[ClassifiedRecord]
    undefined_count: int
    recent_undefined_count: int
    completion_date: typing.Optional[datetime.date]
    window_start: typing.Optional[datetime.date]
    major_zones: list[str] = field(default_factory=list)


def select_recent(records: typing.Iterable[Record], cutoff: datetime.date) -> list[Record]:
    """Records notified on or after `cutoff`; undated records are excluded."""
    return [r for r in records if r.date is not None and r.date >= cutoff]


def major_zones(records: typing.Sequence[Record], vocabulary: Vocabulary, threshold: int = MAJOR_ZONE_THRESHOLD) -> list[str]:
    """Zones with at least `threshold` alerts, in vocabulary order."""
    table = aggregate(records, [Dimension.ZONE], vocabulary)
    if table.empty:
        return []
    counts = table[COUNT].drop(TOTAL)
    return [zone for zone, n in counts.items() if n >= threshold]


def build_report(records: typing.Sequence[Record], vocabulary: Vocabulary, config: ReportConfig | None = None) -> Report:
    config = config or ReportConfig()
    records = list(records)

    completion_date = config.completion_date
    if completion_date is None:
        dates = [r.date for r in records if r.date is not None]
        completion_date = max(dates) if dates else None

    classification = classify_records(records)
    classified = classification.records

    tables: dict[str, pd.DataFrame] = {}

    def with_rates(table: pd.DataFrame) -> pd.DataFrame:
        return add_proportions(table, DEFAULT_PROPORTIONS, digits=config.digits, confidence=config.confidence)

    # Full history
    tables["alerts_by_zone"] = aggregate(records, [Dimension.ZONE], vocabulary)
    tables["alerts_by_origin"] = aggregate(records, [Dimension.ORIGIN], vocabulary)
    tables["alerts_by_time"] = aggregate(records, [Dimension.TIME], vocabulary, time_bin=config.time_bin)
    tables["decisions_by_zone"] = with_rates(
        aggregate(classified, [Dimension.ZONE, Dimension.LABEL], vocabulary)
    )
    tables["decisions_by_time"] = with_rates(
        aggregate(classified, [Dimension.TIME, Dimension.LABEL], vocabulary, time_bin=config.time_bin)
    )

    majors = major_zones(records, vocabulary, config.major_zone_threshold)
    logging.info(f"Major zones (>= {config.major_zone_threshold} alerts): {majors}")
    by_zone_time = aggregate(
        [r for r in classified if r.zone in majors],
        [Dimension.ZONE, Dimension.TIME, Dimension.LABEL],
        vocabulary,
        time_bin=config.time_bin,
    )
    # only major zones get their own rows
    keep = [key for key in by_zone_time.index if key[0] in majors or key[0] == TOTAL]
    tables["decisions_by_zone_time"] = by_zone_time.loc[keep]

    # Recent window
    window_start = None
    recent_undefined = 0
    if completion_date is not None:
        window_start = completion_date - datetime.timedelta(days=config.window_days)
        recent = [r for r in select_recent(records, window_start) if r.date <= completion_date]
        recent_classification = classify_records(recent)
        recent_undefined = recent_classification.undefined_count
        window = (window_start, completion_date)
        logging.info(f"Recent window {window_start} to {completion_date}: {len(recent)} alert(s)")

        tables["recent_alerts_by_zone"] = aggregate(recent, [Dimension.ZONE], vocabulary)
        tables["recent_decisions_by_zone"] = with_rates(
            aggregate(recent_classification.records, [Dimension.ZONE, Dimension.LABEL], vocabulary)
        )
        tables["recent_decisions_by_day"] = with_rates(
            aggregate(
                recent_classification.records,
                [Dimension.TIME, Dimension.LABEL],
                vocabulary,
                time_bin=TimeBin.DAY,
                date_range=window,
            )
        )
    else:
        logging.warning("No dated alerts and no completion date; recent window tables skipped")

    return Report(
        tables=tables,
        classified=classified,
        undefined_count=classification.undefined_count,
        recent_undefined_count=recent_undefined,
        completion_date=completion_date,
        window_start=window_start,
        major_zones=majors,
    )
