import datetime

import pandas as pd
import pytest

from alertreview.record import OTHER_SYMPTOMS, DecisionStatus, Indicator, Record


def test_indicator_from_label():
    """Known spellings, booleans and 0/1 map to the closed vocabulary."""
    assert Indicator.from_label("Yes") == Indicator.YES
    assert Indicator.from_label(" no ") == Indicator.NO
    assert Indicator.from_label(1) == Indicator.YES
    assert Indicator.from_label(0.0) == Indicator.NO
    assert Indicator.from_label(True) == Indicator.YES
    assert Indicator.from_label(None) == Indicator.MISSING
    assert Indicator.from_label(float("nan")) == Indicator.MISSING
    assert Indicator.from_label("") == Indicator.MISSING


@pytest.mark.parametrize("bad", ["maybe", "2", "oui?", 3])
def test_indicator_invalid_label_raises(bad):
    with pytest.raises(ValueError):
        Indicator.from_label(bad)


def test_missing_is_never_present():
    assert Indicator.YES.is_present
    assert not Indicator.NO.is_present
    assert not Indicator.MISSING.is_present


def test_decision_status_from_label():
    assert DecisionStatus.from_label("Validated") == DecisionStatus.VALIDATED
    assert DecisionStatus.from_label("invalidated ") == DecisionStatus.INVALIDATED
    # anything else is OTHER, not an error
    assert DecisionStatus.from_label("pending") == DecisionStatus.OTHER
    assert DecisionStatus.from_label(None) == DecisionStatus.OTHER
    assert not DecisionStatus.OTHER.is_known


def test_record_symptoms_order(make_record):
    record = make_record(fever=Indicator.YES, bleeding=Indicator.MISSING, symptoms=1)
    symptoms = record.symptoms()
    assert len(symptoms) == 2 + len(OTHER_SYMPTOMS)
    assert symptoms[:3] == [Indicator.YES, Indicator.MISSING, Indicator.YES]


def test_record_rejects_raw_indicator():
    """Indicators must already be normalized when a Record is built."""
    with pytest.raises(ValueError):
        Record(
            alert_id="A1",
            date=datetime.date(2024, 1, 1),
            zone="Beni",
            origin="community",
            status=DecisionStatus.VALIDATED,
            known_contact="yes",
            bleeding=Indicator.NO,
            fever=Indicator.NO,
            other_symptoms={name: Indicator.NO for name in OTHER_SYMPTOMS},
        )


def test_record_rejects_incomplete_symptom_set():
    with pytest.raises(ValueError):
        Record(
            alert_id="A1",
            date=None,
            zone="Beni",
            origin="community",
            status=DecisionStatus.OTHER,
            known_contact=Indicator.NO,
            bleeding=Indicator.NO,
            fever=Indicator.NO,
            other_symptoms={"vomiting": Indicator.NO},
        )


@pytest.mark.parametrize("value", [pd.Timestamp("2024-03-04 10:15"), datetime.datetime(2024, 3, 4, 10, 15)])
def test_record_keeps_calendar_date_only(make_record, value):
    record = make_record(date=value)
    assert type(record.date) is datetime.date
    assert record.date == datetime.date(2024, 3, 4)


def test_record_rejects_text_date(make_record):
    with pytest.raises(ValueError):
        make_record(date="2024-03-04")
