"""Typed restriction rules attached to pass types and copied onto passes.

Rules are stored as JSON (`[{"type": "time_window", "value": "08:00-18:00"}, ...]`) and parsed
into typed predicates here. A rule is evaluated against a RestrictionContext built at
validation or redemption time, in the venue's local time.

- time_window: "HH:MM-HH:MM", start inclusive, end exclusive. A window whose end is before
  its start wraps around midnight ("22:00-02:00").
- day_of_week: comma separated day names ("mon,tue,sat" or "monday,saturday").
- usage_count: the maximum number of passes of the same type the holder may redeem at the
  venue per local day.
"""

import typing as t
from dataclasses import dataclass
from datetime import datetime, time
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError

from common.exceptions import DomainError, ErrorCategory

_DAYS = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")


class InvalidRestrictions(DomainError):
    code = "VALIDATION_ERROR"
    category = ErrorCategory.VALIDATION
    default_message = "Invalid pass restrictions."


@dataclass(frozen=True)
class RestrictionContext:
    at: datetime
    tz: ZoneInfo
    redemptions_today: int = 0

    @property
    def local(self) -> datetime:
        return self.at.astimezone(self.tz)


def parse_time_window(value: str) -> tuple[time, time]:
    try:
        start_str, end_str = value.replace(" ", "").split("-")
        return time.fromisoformat(start_str), time.fromisoformat(end_str)
    except ValueError as e:
        raise ValueError(f"time_window must look like HH:MM-HH:MM, got {value!r}") from e


def parse_days(value: str) -> set[int]:
    days: set[int] = set()
    for raw in value.split(","):
        day = raw.strip().lower()[:3]
        if day not in _DAYS:
            raise ValueError(f"Unknown day of week: {raw!r}")
        days.add(_DAYS.index(day))
    return days


class _BaseRestriction(BaseModel):
    model_config = ConfigDict(frozen=True)

    def is_satisfied(self, context: RestrictionContext) -> bool:
        raise NotImplementedError

    def describe(self) -> str:
        raise NotImplementedError

    def to_json(self) -> dict[str, str]:
        return {"type": self.type, "value": self.value}  # type: ignore[attr-defined]


class TimeWindowRestriction(_BaseRestriction):
    type: t.Literal["time_window"]
    value: str

    @field_validator("value")
    @classmethod
    def validate_window(cls, v: str) -> str:
        parse_time_window(v)
        return v

    def is_satisfied(self, context: RestrictionContext) -> bool:
        start, end = parse_time_window(self.value)
        now = context.local.time().replace(tzinfo=None)
        if start <= end:
            return start <= now < end
        return now >= start or now < end

    def describe(self) -> str:
        return f"Pass is only valid between {self.value}."


class DayOfWeekRestriction(_BaseRestriction):
    type: t.Literal["day_of_week"]
    value: str

    @field_validator("value")
    @classmethod
    def validate_days(cls, v: str) -> str:
        parse_days(v)
        return v

    def is_satisfied(self, context: RestrictionContext) -> bool:
        return context.local.weekday() in parse_days(self.value)

    def describe(self) -> str:
        return f"Pass is only valid on {self.value}."


class UsageCountRestriction(_BaseRestriction):
    type: t.Literal["usage_count"]
    value: str

    @field_validator("value", mode="before")
    @classmethod
    def validate_count(cls, v: t.Any) -> str:
        try:
            count = int(v)
        except (TypeError, ValueError) as e:
            raise ValueError(f"usage_count must be an integer, got {v!r}") from e
        if count < 1:
            raise ValueError("usage_count must be at least 1")
        return str(count)

    @property
    def limit(self) -> int:
        return int(self.value)

    def is_satisfied(self, context: RestrictionContext) -> bool:
        return context.redemptions_today < self.limit

    def describe(self) -> str:
        return f"Pass can be used at most {self.value} time(s) per day."


Restriction = t.Annotated[
    TimeWindowRestriction | DayOfWeekRestriction | UsageCountRestriction,
    Field(discriminator="type"),
]

_restrictions_adapter: TypeAdapter[list[Restriction]] = TypeAdapter(list[Restriction])


def parse_restrictions(raw: t.Any) -> list[Restriction]:
    """Parse stored restriction JSON into typed rules.

    Raises:
        InvalidRestrictions: If the payload is not a list of known rules.
    """
    try:
        return _restrictions_adapter.validate_python(raw or [])
    except PydanticValidationError as e:
        raise InvalidRestrictions(f"Invalid pass restrictions: {e.errors(include_url=False)[0]['msg']}") from e


def first_violation(restrictions: t.Iterable[Restriction], context: RestrictionContext) -> Restriction | None:
    """Return the first rule not satisfied in the given context, or None."""
    for restriction in restrictions:
        if not restriction.is_satisfied(context):
            return restriction
    return None


def needs_usage_count(restrictions: t.Iterable[Restriction]) -> bool:
    return any(isinstance(r, UsageCountRestriction) for r in restrictions)


def evaluate(
    restrictions: t.Iterable[Restriction], at: datetime, tz: ZoneInfo, usage_count: int = 0
) -> Restriction | None:
    """Return the first rule violated at `at` in the venue's timezone, or None."""
    return first_violation(restrictions, RestrictionContext(at=at, tz=tz, redemptions_today=usage_count))
