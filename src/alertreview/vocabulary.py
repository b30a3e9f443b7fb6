"""
Closed category sets for zones and alert origins.

Axes of every table are taken from a Vocabulary, never from whatever
values happen to appear in one run, so zero-count categories still show up.
"""

import typing
from dataclasses import dataclass, field

# Blank zone/origin cells are mapped here.
UNKNOWN_CATEGORY = "unknown"

# Row/column label of table totals; no category may use it.
TOTAL = "Total"


def _canonical(values: typing.Iterable[str]) -> tuple[str, ...]:
    seen: dict[str, str] = {}
    for value in values:
        name = str(value).strip()
        if name.casefold() == TOTAL.casefold():
            raise ValueError(f"{name!r} is reserved for table totals and cannot be a category")
        if not name or name.casefold() == UNKNOWN_CATEGORY:
            continue
        seen.setdefault(name.casefold(), name)
    return tuple(seen.values()) + (UNKNOWN_CATEGORY,)


@dataclass(frozen=True)
class Vocabulary:
    """
    Declared canonical values for the categorical dimensions.

    Attributes:
        zones: Health zones, in reporting order.
        origins: Alert origin categories, in reporting order.
    """

    zones: tuple[str, ...]
    origins: tuple[str, ...] = field(default=())

    def __post_init__(self):
        # frozen: normalise through object.__setattr__
        object.__setattr__(self, "zones", _canonical(self.zones))
        object.__setattr__(self, "origins", _canonical(self.origins))

    @classmethod
    def from_observed(cls, zones: typing.Iterable[typing.Any], origins: typing.Iterable[typing.Any] = ()) -> "Vocabulary":
        """Build a vocabulary from observed values, sorted case-insensitively."""

        def clean(values):
            names = {str(v).strip() for v in values if _is_filled(v)}
            return sorted(names, key=str.casefold)

        return cls(zones=tuple(clean(zones)), origins=tuple(clean(origins)))

    def check_zone(self, value: typing.Any) -> str:
        return self._check(value, self.zones, "zone")

    def check_origin(self, value: typing.Any) -> str:
        return self._check(value, self.origins, "origin")

    @staticmethod
    def _check(value: typing.Any, allowed: tuple[str, ...], kind: str) -> str:
        if not _is_filled(value):
            return UNKNOWN_CATEGORY
        key = str(value).strip().casefold()
        for name in allowed:
            if name.casefold() == key:
                return name
        raise ValueError(f"Unknown {kind} {str(value).strip()!r}; expected one of {list(allowed)}")


def _is_filled(value: typing.Any) -> bool:
    if value is None:
        return False
    if isinstance(value, float) and value != value:
        return False
    return bool(str(value).strip())
