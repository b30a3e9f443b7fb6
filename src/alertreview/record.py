"""
Alert domain model.

Defines the closed indicator and status vocabularies, and the Record
dataclass holding one cleaned alert.
"""

import datetime
import typing
from dataclasses import dataclass
from enum import Enum


# Symptoms other than fever and bleeding, in the order they are reported.
OTHER_SYMPTOMS = (
    "vomiting",
    "diarrhoea",
    "headache",
    "fatigue",
    "abdominal_pain",
)


class Indicator(Enum):
    """
    Yes/no/missing answer for a clinical indicator.
    A missing answer never counts as present.
    """
    YES = "yes"
    NO = "no"
    MISSING = "missing"

    @classmethod
    def from_label(cls, label: typing.Any) -> "Indicator":
        """
        Convert a raw cell value into the corresponding enum.
        Accepts booleans, 0/1 and the usual spellings; blanks are MISSING.
        """
        if isinstance(label, Indicator):
            return label
        if isinstance(label, bool):
            return cls.YES if label else cls.NO
        if label is None:
            return cls.MISSING
        if isinstance(label, float):
            if label != label:  # NaN
                return cls.MISSING
            if label.is_integer():
                label = int(label)
        key = str(label).strip().lower()
        mapping = {
            "yes": cls.YES,
            "y": cls.YES,
            "true": cls.YES,
            "1": cls.YES,
            "no": cls.NO,
            "n": cls.NO,
            "false": cls.NO,
            "0": cls.NO,
            "": cls.MISSING,
            "missing": cls.MISSING,
            "unknown": cls.MISSING,
            "nan": cls.MISSING,
        }
        try:
            return mapping[key]
        except KeyError:
            raise ValueError(f"Unknown indicator value: {label!r}")

    @property
    def is_present(self) -> bool:
        return self is Indicator.YES


class DecisionStatus(Enum):
    """Recorded outcome of an alert investigation."""
    VALIDATED = "validated"
    INVALIDATED = "invalidated"
    OTHER = "other"

    @classmethod
    def from_label(cls, label: typing.Any) -> "DecisionStatus":
        # anything outside the two known outcomes is OTHER, not an error
        if isinstance(label, DecisionStatus):
            return label
        if label is None:
            return cls.OTHER
        key = str(label).strip().lower()
        if key == cls.VALIDATED.value:
            return cls.VALIDATED
        if key == cls.INVALIDATED.value:
            return cls.INVALIDATED
        return cls.OTHER

    @property
    def is_known(self) -> bool:
        return self is not DecisionStatus.OTHER


@dataclass(frozen=True)
class Record:
    """
    Represents a single cleaned alert.

    Attributes:
        alert_id: Identifier of the alert in the source sheet.
        date: Notification date, or None when it was not recorded.
        zone: Canonical health zone name.
        origin: Canonical origin category (who raised the alert).
        status: Recorded decision outcome.
        known_contact: Whether the patient is a known contact of a case.
        bleeding: Unexplained bleeding.
        fever: Fever.
        other_symptoms: Indicator for each name in OTHER_SYMPTOMS.
    """

    alert_id: str
    date: typing.Optional[datetime.date]
    zone: str
    origin: str
    status: DecisionStatus
    known_contact: Indicator
    bleeding: Indicator
    fever: Indicator
    other_symptoms: typing.Mapping[str, Indicator]

    def __post_init__(self):
        # datetime and Timestamp are date subclasses; keep only the calendar date
        if isinstance(self.date, datetime.datetime):
            object.__setattr__(self, "date", self.date.date())
        if self.date is not None and not isinstance(self.date, datetime.date):
            raise ValueError(f"date must be a date or None, got {type(self.date).__name__}")

        if not isinstance(self.zone, str) or not self.zone:
            raise ValueError(f"Invalid zone: {self.zone!r}")
        if not isinstance(self.origin, str) or not self.origin:
            raise ValueError(f"Invalid origin: {self.origin!r}")

        if not isinstance(self.status, DecisionStatus):
            raise ValueError(f"status must be a DecisionStatus, got {self.status!r}")

        for name in ("known_contact", "bleeding", "fever"):
            value = getattr(self, name)
            if not isinstance(value, Indicator):
                raise ValueError(f"{name} must be an Indicator, got {value!r}")

        keys = set(self.other_symptoms)
        if keys != set(OTHER_SYMPTOMS):
            missing = sorted(set(OTHER_SYMPTOMS) - keys)
            extra = sorted(keys - set(OTHER_SYMPTOMS))
            raise ValueError(f"other_symptoms mismatch: missing {missing}, unexpected {extra}")
        for name, value in self.other_symptoms.items():
            if not isinstance(value, Indicator):
                raise ValueError(f"symptom {name!r} must be an Indicator, got {value!r}")

    def symptoms(self) -> list[Indicator]:
        """Every symptom indicator: fever, bleeding, then OTHER_SYMPTOMS order."""
        return [self.fever, self.bleeding] + [self.other_symptoms[name] for name in OTHER_SYMPTOMS]
