"""Minimal five-field cron expressions (minute hour day-of-month month day-of-week)"""

from dataclasses import dataclass
from datetime import datetime
from typing import FrozenSet


def _parse_field(field: str, min_val: int, max_val: int) -> FrozenSet[int]:
    """
    Parse one cron field.

    Supports `*`, `N`, `N-M`, `*/S`, `N-M/S` and comma-separated lists.

    Raises:
        ValueError: Malformed field or value out of range
    """
    values = set()
    for part in field.split(","):
        part = part.strip()
        step = 1
        if "/" in part:
            part, step_str = part.split("/", 1)
            step = int(step_str)
            if step <= 0:
                raise ValueError(f"Step must be positive: {step}")

        if part == "*":
            start, end = min_val, max_val
        elif "-" in part:
            start_str, end_str = part.split("-", 1)
            start, end = int(start_str), int(end_str)
        else:
            start = int(part)
            end = max_val if step > 1 else start

        if start < min_val or end > max_val or start > end:
            raise ValueError(f"Cron value out of range [{min_val}-{max_val}]: '{field}'")
        values.update(range(start, end + 1, step))

    return frozenset(values)


@dataclass(frozen=True)
class CronExpression:
    """Parsed cron expression; day-of-week uses 0 = Sunday"""

    minutes: FrozenSet[int]
    hours: FrozenSet[int]
    days_of_month: FrozenSet[int]
    months: FrozenSet[int]
    days_of_week: FrozenSet[int]

    @classmethod
    def parse(cls, expression: str) -> "CronExpression":
        parts = expression.split()
        if len(parts) != 5:
            raise ValueError(f"Cron expression must have 5 fields, got {len(parts)}: '{expression}'")

        return cls(
            minutes=_parse_field(parts[0], 0, 59),
            hours=_parse_field(parts[1], 0, 23),
            days_of_month=_parse_field(parts[2], 1, 31),
            months=_parse_field(parts[3], 1, 12),
            days_of_week=_parse_field(parts[4], 0, 6),
        )

    def matches(self, moment: datetime) -> bool:
        return (
            moment.minute in self.minutes
            and moment.hour in self.hours
            and moment.day in self.days_of_month
            and moment.month in self.months
            and (moment.weekday() + 1) % 7 in self.days_of_week
        )
