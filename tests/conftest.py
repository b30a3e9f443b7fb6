import datetime

import pandas as pd
import pytest

from alertreview.record import OTHER_SYMPTOMS, DecisionStatus, Indicator, Record
from alertreview.vocabulary import Vocabulary


@pytest.fixture(scope="session")
def vocabulary() -> Vocabulary:
    return Vocabulary(zones=("Beni", "Butembo", "Mabalako"), origins=("community", "health_facility"))


@pytest.fixture
def make_record():
    """
    Factory for Records; every indicator defaults to NO.
    `symptoms` sets the first n OTHER_SYMPTOMS to YES.
    """

    def _make(
        alert_id="A1",
        date=datetime.date(2024, 3, 4),
        zone="Beni",
        origin="community",
        status=DecisionStatus.VALIDATED,
        known_contact=Indicator.NO,
        bleeding=Indicator.NO,
        fever=Indicator.NO,
        symptoms=0,
    ):
        other = {
            name: (Indicator.YES if i < symptoms else Indicator.NO)
            for i, name in enumerate(OTHER_SYMPTOMS)
        }
        return Record(
            alert_id=alert_id,
            date=date,
            zone=zone,
            origin=origin,
            status=status,
            known_contact=known_contact,
            bleeding=bleeding,
            fever=fever,
            other_symptoms=other,
        )

    return _make


def alert_frame(rows: list[dict]) -> pd.DataFrame:
    """Line list as it looks after loading: alert ids on the index."""
    defaults = {
        "date": "04/03/2024",
        "zone": "Beni",
        "origin": "community",
        "status": "validated",
        "known_contact": "no",
        "bleeding": "no",
        "fever": "no",
    }
    defaults.update({name: "no" for name in OTHER_SYMPTOMS})
    data = [{**defaults, **row} for row in rows]
    ids = [f"A{i + 1}" for i in range(len(rows))]
    return pd.DataFrame(data, index=pd.Index(ids, name="alert_id"))


@pytest.fixture
def write_workbook(tmp_path):
    """Write line-list rows to an xlsx file and return its path."""

    def _write(rows: list[dict], sheet_name: str = "alerts", headers: dict[str, str] | None = None) -> str:
        df = alert_frame(rows)
        if headers:
            df = df.rename(columns=headers)
        path = tmp_path / "alerts.xlsx"
        with pd.ExcelWriter(path, engine="openpyxl") as w:
            df.to_excel(w, sheet_name=sheet_name)
        return str(path)

    return _write


@pytest.fixture
def make_frame():
    return alert_frame
