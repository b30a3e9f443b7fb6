"""
Expected-decision classification of alerts.

An alert should be validated when it satisfies one of three admission
rules, checked in priority order:

1. contact: known contact of a case with at least one symptom;
2. bleeding: unexplained bleeding;
3. fever: fever with at least FEVER_RULE_MIN_SYMPTOMS other symptoms.

Each later rule is conjoined with the negation of the earlier ones, so at
most one of the `fits_*` predicates is true for any record. The expected
decision is then compared with the recorded status to label the alert.
"""

import logging
import typing
from dataclasses import dataclass, fields
from enum import Enum

from .record import OTHER_SYMPTOMS, DecisionStatus, Indicator, Record

FEVER_RULE_MIN_SYMPTOMS = 3


class InvalidIndicatorError(ValueError):
    """An indicator reached the classifier outside the yes/no/missing vocabulary."""


class AdmissionRule(Enum):
    CONTACT = "contact"
    BLEEDING = "bleeding"
    FEVER = "fever"


class ExpectedDecision(Enum):
    VALIDATED = "validated"
    INVALIDATED = "invalidated"


class DecisionLabel(Enum):
    TRUE_POSITIVE = "true_positive"
    TRUE_NEGATIVE = "true_negative"
    FALSE_POSITIVE = "false_positive"
    FALSE_NEGATIVE = "false_negative"
    UNDEFINED = "undefined"


# Labels that can appear in aggregated tables, in display order.
DEFINED_LABELS = (
    DecisionLabel.TRUE_POSITIVE,
    DecisionLabel.TRUE_NEGATIVE,
    DecisionLabel.FALSE_POSITIVE,
    DecisionLabel.FALSE_NEGATIVE,
)

_LABEL_TABLE = {
    (DecisionStatus.VALIDATED, ExpectedDecision.VALIDATED): DecisionLabel.TRUE_POSITIVE,
    (DecisionStatus.INVALIDATED, ExpectedDecision.INVALIDATED): DecisionLabel.TRUE_NEGATIVE,
    (DecisionStatus.VALIDATED, ExpectedDecision.INVALIDATED): DecisionLabel.FALSE_POSITIVE,
    (DecisionStatus.INVALIDATED, ExpectedDecision.VALIDATED): DecisionLabel.FALSE_NEGATIVE,
}


def _require_indicators(record: Record) -> None:
    checked = {
        "known_contact": record.known_contact,
        "bleeding": record.bleeding,
        "fever": record.fever,
    }
    for name in OTHER_SYMPTOMS:
        checked[name] = record.other_symptoms.get(name)
    for name, value in checked.items():
        if not isinstance(value, Indicator):
            raise InvalidIndicatorError(
                f"Alert {record.alert_id!r}: indicator {name!r} has unexpected value {value!r}"
            )


def _count_other_symptoms(record: Record) -> int:
    return sum(record.other_symptoms[name].is_present for name in OTHER_SYMPTOMS)


def fits_contact_rule(record: Record) -> bool:
    return record.known_contact.is_present and any(s.is_present for s in record.symptoms())


def fits_bleeding_rule(record: Record) -> bool:
    return not fits_contact_rule(record) and record.bleeding.is_present


def fits_fever_rule(record: Record) -> bool:
    return (
        not fits_contact_rule(record)
        and not fits_bleeding_rule(record)
        and record.fever.is_present
        and _count_other_symptoms(record) >= FEVER_RULE_MIN_SYMPTOMS
    )


def admission_rule(record: Record) -> typing.Optional[AdmissionRule]:
    """The deciding admission rule, or None if the alert does not qualify."""
    _require_indicators(record)
    if fits_contact_rule(record):
        return AdmissionRule.CONTACT
    if fits_bleeding_rule(record):
        return AdmissionRule.BLEEDING
    if fits_fever_rule(record):
        return AdmissionRule.FEVER
    return None


def expected_decision(record: Record) -> ExpectedDecision:
    if admission_rule(record) is None:
        return ExpectedDecision.INVALIDATED
    return ExpectedDecision.VALIDATED


@dataclass(frozen=True)
class Classification:
    expected_decision: ExpectedDecision
    decision_label: DecisionLabel
    admission_rule: typing.Optional[AdmissionRule]


def classify(record: Record) -> Classification:
    """
    Compare the recorded status with the expected decision.
    Records whose status is neither validated nor invalidated are UNDEFINED.
    Raises InvalidIndicatorError on malformed indicators.
    """
    rule = admission_rule(record)
    expected = ExpectedDecision.INVALIDATED if rule is None else ExpectedDecision.VALIDATED
    label = _LABEL_TABLE.get((record.status, expected), DecisionLabel.UNDEFINED)
    return Classification(expected_decision=expected, decision_label=label, admission_rule=rule)


@dataclass(frozen=True)
class ClassifiedRecord(Record):
    """A Record extended with its classification."""

    expected_decision: ExpectedDecision
    decision_label: DecisionLabel
    admission_rule: typing.Optional[AdmissionRule]

    @classmethod
    def from_record(cls, record: Record, classification: Classification) -> "ClassifiedRecord":
        values = {f.name: getattr(record, f.name) for f in fields(Record)}
        return cls(
            **values,
            expected_decision=classification.expected_decision,
            decision_label=classification.decision_label,
            admission_rule=classification.admission_rule,
        )


@dataclass(frozen=True)
class ClassificationResult:
    """
    Attributes:
        records: Classified alerts with a defined label.
        undefined_count: Alerts left out because their status is unknown.
    """

    records: list[ClassifiedRecord]
    undefined_count: int


def classify_records(records: typing.Iterable[Record]) -> ClassificationResult:
    classified: list[ClassifiedRecord] = []
    undefined = 0
    for record in records:
        result = classify(record)
        if result.decision_label is DecisionLabel.UNDEFINED:
            undefined += 1
            continue
        classified.append(ClassifiedRecord.from_record(record, result))

    if undefined:
        logging.warning(f"{undefined} alert(s) without a validated/invalidated status left out of the classification")
    logging.debug(f"Classified {len(classified)} alert(s)")
    return ClassificationResult(records=classified, undefined_count=undefined)
