import pathlib
import typing
from dataclasses import fields
from datetime import datetime

import pandas as pd

from .classifier import ClassifiedRecord
from .record import OTHER_SYMPTOMS, Record
from .report import Report

WORKBOOK_NAME = "alert_report.xlsx"
SNAPSHOT_NAME = "classified_alerts.csv"

# Excel refuses longer sheet names
_MAX_SHEET_NAME = 31


def prepare_output_dir(base: typing.Optional[str] = None) -> pathlib.Path:
    # use YYYY-MM-DD_HH-MM-SS for human-readable timestamps
    timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    root = pathlib.Path(base) if base else pathlib.Path.cwd()
    output_dir = root / "alert_report" / timestamp
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir


def records_to_frame(records: typing.Sequence[Record]) -> pd.DataFrame:
    """Flatten records (enums to their values, one column per symptom)."""
    rows = []
    for record in records:
        row: dict[str, typing.Any] = {}
        for f in fields(record):
            value = getattr(record, f.name)
            if f.name == "other_symptoms":
                for name in OTHER_SYMPTOMS:
                    row[name] = value[name].value
            elif hasattr(value, "value"):
                row[f.name] = value.value
            else:
                row[f.name] = value
        rows.append(row)
    columns = [f.name for f in fields(ClassifiedRecord) if f.name != "other_symptoms"] + list(OTHER_SYMPTOMS)
    return pd.DataFrame(rows).reindex(columns=columns)


def write_report(report: Report, output_dir: pathlib.Path) -> list[pathlib.Path]:
    """
    Write every table to one workbook (one sheet each) and the classified
    alerts to a CSV snapshot. Returns the written paths.
    """
    workbook_path = output_dir / WORKBOOK_NAME
    with pd.ExcelWriter(workbook_path, engine="openpyxl") as writer:
        for name, table in report.tables.items():
            table.to_excel(writer, sheet_name=name[:_MAX_SHEET_NAME])

    snapshot_path = output_dir / SNAPSHOT_NAME
    records_to_frame(report.classified).to_csv(snapshot_path, index=False)
    return [workbook_path, snapshot_path]
