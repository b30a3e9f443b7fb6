import abc
import datetime
import typing

import pandas as pd
from stairval.notepad import Notepad

from .record import OTHER_SYMPTOMS, DecisionStatus, Indicator, Record
from .vocabulary import Vocabulary

# Indicator columns, by explicit name
INDICATOR_COLUMNS = ("known_contact", "bleeding", "fever") + OTHER_SYMPTOMS

# Minimal required columns (after header normalization) of an alert sheet
ALERT_KEY_COLUMNS = {"date", "zone", "status"} | set(INDICATOR_COLUMNS)

OPTIONAL_COLUMNS = {"origin"}


class TableMapper(metaclass=abc.ABCMeta):
    @abc.abstractmethod
    def apply_mapping(self, df: pd.DataFrame, notepad: Notepad) -> typing.Sequence[Record]:
        raise NotImplementedError


class DefaultAlertMapper(TableMapper):
    def __init__(self, vocabulary: Vocabulary, dayfirst: bool = True):
        """
        - vocabulary: closed zone/origin sets; other values are errors
        - dayfirst  : how ambiguous text dates (03/04/2024) are read
        """
        self._vocabulary = vocabulary
        self.dayfirst = dayfirst
        self.stats = {"rows": 0, "records": 0, "rejected": 0}

    def apply_mapping(self, df: pd.DataFrame, notepad: Notepad, sheet_name: str = "alerts") -> list[Record]:
        """
        Process:
        1) bring the index into an `alert_id` column
        2) check the required columns
        3) map every row to a Record, skipping (and reporting) bad rows
        """
        working = self._prepare_sheet(df)

        missing = sorted(ALERT_KEY_COLUMNS - set(working.columns))
        if missing:
            notepad.add_error(f"Sheet {sheet_name!r}: missing required columns: {missing}")
            return []

        records: list[Record] = []
        for _, row in working.iterrows():
            self.stats["rows"] += 1
            record = self.parse_alert_row(row, self._vocabulary, sheet_name, notepad, self.dayfirst)
            if record is None:
                self.stats["rejected"] += 1
            else:
                records.append(record)
        self.stats["records"] += len(records)
        return records

    @staticmethod
    def _prepare_sheet(df: pd.DataFrame) -> pd.DataFrame:
        """Bring the index into a column named alert_id."""
        working = df.reset_index()
        original = working.columns[0]
        return working.rename(columns={original: "alert_id"})

    @staticmethod
    def _to_date(value: typing.Any, dayfirst: bool = True) -> typing.Optional[datetime.date]:
        """
        Notification dates:
        - datetime/date/Timestamp values are used as they are
        - strings are parsed (day first unless told otherwise)
        - empty/NaN/NaT -> None
        Raises ValueError for a non-empty value that cannot be read.
        """
        if value is None or (not isinstance(value, str) and pd.isna(value)):
            return None
        if isinstance(value, str):
            if not value.strip():
                return None
            value = pd.to_datetime(value.strip(), dayfirst=dayfirst, errors="raise")
        if isinstance(value, pd.Timestamp):
            return value.date()
        if isinstance(value, datetime.datetime):
            return value.date()
        if isinstance(value, datetime.date):
            return value
        raise ValueError(f"Cannot read date {value!r}")

    @staticmethod
    def parse_alert_row(
            row: pd.Series,
            vocabulary: Vocabulary,
            sheet_name: str,
            notepad: Notepad,
            dayfirst: bool = True,
    ) -> typing.Optional[Record]:
        """
        Parse a single alert row into a Record.
        Returns None (after adding an error) if any value is out of vocabulary.
        """
        alert_id = str(row.get("alert_id", "")).strip()
        where = f"Sheet {sheet_name!r}, alert {alert_id!r}"
        failed = False

        indicators: dict[str, Indicator] = {}
        for column in INDICATOR_COLUMNS:
            try:
                indicators[column] = Indicator.from_label(row.get(column))
            except ValueError as e:
                notepad.add_error(f"{where}: column {column!r}: {e}")
                failed = True

        try:
            zone = vocabulary.check_zone(row.get("zone"))
        except ValueError as e:
            notepad.add_error(f"{where}: {e}")
            failed = True
        try:
            origin = vocabulary.check_origin(row.get("origin"))
        except ValueError as e:
            notepad.add_error(f"{where}: {e}")
            failed = True

        if failed:
            return None

        try:
            date = DefaultAlertMapper._to_date(row.get("date"), dayfirst)
        except (ValueError, TypeError) as e:
            notepad.add_warning(f"{where}: unreadable date {row.get('date')!r}, treated as missing ({e})")
            date = None

        try:
            return Record(
                alert_id=alert_id,
                date=date,
                zone=zone,
                origin=origin,
                status=DecisionStatus.from_label(row.get("status")),
                known_contact=indicators["known_contact"],
                bleeding=indicators["bleeding"],
                fever=indicators["fever"],
                other_symptoms={name: indicators[name] for name in OTHER_SYMPTOMS},
            )
        except (ValueError, TypeError) as e:
            notepad.add_error(f"{where}: {e}")
            return None
