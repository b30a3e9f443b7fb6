"""
Tests for the zero-filled stratified counts.
"""

import datetime

import pandas as pd
import pytest

from alertreview.aggregate import COUNT, TOTAL, Dimension, TimeBin, aggregate, time_axis
from alertreview.classifier import classify_records
from alertreview.record import DecisionStatus, Indicator
from alertreview.vocabulary import UNKNOWN_CATEGORY, Vocabulary


def _classified(records):
    return classify_records(records).records


def test_zero_filled_zone_row(make_record):
    """Zone B has no alerts and still gets an all-zero row."""
    vocab = Vocabulary(zones=("A", "B"))
    records = _classified([
        make_record(alert_id="1", zone="A", origin=UNKNOWN_CATEGORY, bleeding=Indicator.YES),
        make_record(alert_id="2", zone="A", origin=UNKNOWN_CATEGORY, bleeding=Indicator.YES),
    ])
    table = aggregate(records, [Dimension.ZONE, Dimension.LABEL], vocab)

    assert list(table.index) == ["A", "B", UNKNOWN_CATEGORY, TOTAL]
    assert (table.loc["B"] == 0).all()
    assert table.loc["A", "true_positive"] == 2
    assert table.loc[TOTAL, TOTAL] == 2
    assert list(table.columns) == [
        "true_positive", "true_negative", "false_positive", "false_negative", TOTAL
    ]


def test_one_dimension_has_count_column(make_record, vocabulary):
    records = [make_record(alert_id=str(i), zone="Butembo") for i in range(3)]
    table = aggregate(records, [Dimension.ZONE], vocabulary)
    assert list(table.columns) == [COUNT]
    assert table.loc["Butembo", COUNT] == 3
    assert table.loc["Beni", COUNT] == 0
    assert table.loc[TOTAL, COUNT] == 3


def test_totals_conserve_counts(make_record, vocabulary):
    records = _classified([
        make_record(alert_id="1", zone="Beni", bleeding=Indicator.YES),
        make_record(alert_id="2", zone="Beni", status=DecisionStatus.INVALIDATED),
        make_record(alert_id="3", zone="Mabalako"),
        make_record(alert_id="4", zone="Mabalako", origin="health_facility",
                    status=DecisionStatus.INVALIDATED, fever=Indicator.YES, symptoms=4),
    ])
    table = aggregate(records, [Dimension.ZONE, Dimension.LABEL], vocabulary)
    body = table.drop(index=TOTAL, columns=TOTAL)
    assert not body.isna().any().any()
    assert body.to_numpy().sum() == table.loc[TOTAL, TOTAL] == 4
    assert (body.sum(axis=1) == table[TOTAL].drop(TOTAL)).all()
    assert (body.sum(axis=0) == table.loc[TOTAL].drop(TOTAL)).all()


def test_weekly_bins_are_contiguous(make_record, vocabulary):
    """Weeks without alerts show up as empty bins; weeks start on Monday."""
    records = [
        make_record(alert_id="1", date=datetime.date(2024, 3, 6)),  # Wednesday
        make_record(alert_id="2", date=datetime.date(2024, 3, 27)),
    ]
    table = aggregate(records, [Dimension.TIME], vocabulary, time_bin=TimeBin.WEEK)
    assert list(table.index) == ["2024-03-04", "2024-03-11", "2024-03-18", "2024-03-25", TOTAL]
    assert list(table[COUNT]) == [1, 0, 0, 1, 2]


def test_daily_bins_with_caller_range(make_record, vocabulary):
    records = [
        make_record(alert_id="1", date=datetime.date(2024, 3, 2)),
        make_record(alert_id="2", date=datetime.date(2024, 2, 20)),  # before the range
        make_record(alert_id="3", date=None),
    ]
    table = aggregate(
        records,
        [Dimension.TIME],
        vocabulary,
        time_bin=TimeBin.DAY,
        date_range=(datetime.date(2024, 3, 1), datetime.date(2024, 3, 3)),
    )
    assert list(table.index) == ["2024-03-01", "2024-03-02", "2024-03-03", TOTAL]
    assert list(table[COUNT]) == [0, 1, 0, 1]


def test_time_axis():
    assert time_axis(datetime.date(2024, 1, 1), datetime.date(2024, 1, 3), TimeBin.DAY) == [
        "2024-01-01", "2024-01-02", "2024-01-03"
    ]
    assert time_axis(datetime.date(2024, 1, 3), datetime.date(2024, 1, 1)) == []


def test_three_dimensions(make_record, vocabulary):
    records = _classified([
        make_record(alert_id="1", zone="Beni", date=datetime.date(2024, 3, 4)),
        make_record(alert_id="2", zone="Beni", date=datetime.date(2024, 3, 12)),
    ])
    table = aggregate(records, [Dimension.ZONE, Dimension.TIME, Dimension.LABEL], vocabulary)
    assert table.index.names == ["zone", "time"]
    # 4 zones x 2 weeks + total
    assert len(table) == 4 * 2 + 1
    assert table.loc[("Beni", "2024-03-11"), "false_positive"] == 1
    assert table.loc[(TOTAL, ""), TOTAL] == 2


def test_empty_input_gives_empty_table(vocabulary):
    assert len(aggregate([], [Dimension.ZONE], vocabulary)) == 0
    assert len(aggregate([], [Dimension.ZONE, Dimension.LABEL], vocabulary)) == 0
    assert len(aggregate([], [Dimension.TIME], vocabulary)) == 0


def test_out_of_vocabulary_zone_raises(make_record, vocabulary):
    with pytest.raises(ValueError):
        aggregate([make_record(zone="Kinshasa")], [Dimension.ZONE], vocabulary)


def test_label_dimension_needs_classified_records(make_record, vocabulary):
    with pytest.raises(ValueError):
        aggregate([make_record()], [Dimension.LABEL], vocabulary)


def test_aggregate_is_idempotent(make_record, vocabulary):
    records = _classified([
        make_record(alert_id=str(i), zone=zone, date=datetime.date(2024, 3, 1 + i))
        for i, zone in enumerate(["Beni", "Butembo", "Beni", "Mabalako"])
    ])
    first = aggregate(records, [Dimension.TIME, Dimension.LABEL], vocabulary)
    second = aggregate(records, [Dimension.TIME, Dimension.LABEL], vocabulary)
    pd.testing.assert_frame_equal(first, second)
    assert first.to_csv() == second.to_csv()


def test_empty_table_keeps_category_columns(vocabulary):
    table = aggregate([], [Dimension.ZONE, Dimension.LABEL], vocabulary)
    assert len(table) == 0
    assert list(table.columns) == ["true_positive", "true_negative", "false_positive", "false_negative", TOTAL]

    table = aggregate([], [Dimension.LABEL, Dimension.ZONE], vocabulary)
    assert list(table.columns) == ["Beni", "Butembo", "Mabalako", UNKNOWN_CATEGORY, TOTAL]


def test_timestamp_dates_are_binned(make_record, vocabulary):
    records = [
        make_record(alert_id="1", date=pd.Timestamp("2024-03-04")),
        make_record(alert_id="2", date=pd.Timestamp("2024-03-06")),
    ]
    table = aggregate(records, [Dimension.TIME], vocabulary, time_bin=TimeBin.DAY)
    assert list(table.index) == ["2024-03-04", "2024-03-05", "2024-03-06", TOTAL]
    assert table.loc[TOTAL, COUNT] == 2


def test_mixed_date_kinds(make_record, vocabulary):
    records = [
        make_record(alert_id="1", date=datetime.datetime(2024, 3, 4, 15, 30)),
        make_record(alert_id="2", date=datetime.date(2024, 3, 12)),
    ]
    table = aggregate(records, [Dimension.TIME], vocabulary)
    assert table.loc["2024-03-04", COUNT] == 1
    assert table.loc["2024-03-11", COUNT] == 1
    assert table.loc[TOTAL, COUNT] == 2
