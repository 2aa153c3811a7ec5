"""
Repeat rule parsing and next-date advancement.

Rules:
  "d N"  every N days, 1 <= N <= 400
  "y"    every year on the same month/day (Feb 29 falls on Mar 1 in non-leap years)

next_date() always returns a date strictly after `now`.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from date_utils import format_date, parse_date
from errors import InvalidInterval, InvalidRule, RecurrenceError, UnsupportedRule

MAX_DAY_INTERVAL = 400

RULE_DAILY = "d"
RULE_YEARLY = "y"


@dataclass(frozen=True)
class Rule:
    kind: str
    days: int = 0


def parse_rule(rule: str | None) -> Rule:
    """Parse a repeat rule string. Raises InvalidRule (or a subclass) when it is not accepted."""
    if not rule or not rule.strip():
        raise InvalidRule("No repeat rule specified")
    tokens = rule.split()
    if not tokens:
        raise InvalidRule("Invalid repeat rule")

    kind = tokens[0]
    if kind == RULE_DAILY:
        if len(tokens) != 2:
            raise InvalidRule(f"Invalid repeat rule: {rule!r} (expected 'd <days>')")
        try:
            days = int(tokens[1])
        except ValueError as e:
            raise InvalidInterval(f"Invalid days value: {tokens[1]!r}") from e
        if days <= 0 or days > MAX_DAY_INTERVAL:
            raise InvalidInterval(f"Invalid days value: {days} (must be 1-{MAX_DAY_INTERVAL})")
        return Rule(kind=RULE_DAILY, days=days)
    if kind == RULE_YEARLY:
        if len(tokens) != 1:
            raise InvalidRule(f"Invalid repeat rule: {rule!r} ('y' takes no arguments)")
        return Rule(kind=RULE_YEARLY)
    raise UnsupportedRule(f"Unsupported repeat rule: {kind!r}")


def validate_rule(rule: str | None) -> None:
    parse_rule(rule)


def _add_years(anchor: date, years: int) -> date:
    y = anchor.year + years
    try:
        return anchor.replace(year=y)
    except ValueError:
        # Feb 29 in a non-leap year normalizes forward
        return date(y, 3, 1)


def _as_date(value: date | datetime | str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return parse_date(value)


def advance(now: date, task_date: date, rule: Rule) -> date:
    """
    Step task_date forward by the rule until it is strictly after now.
    A task_date already after now is returned unchanged.
    """
    try:
        return _advance(now, task_date, rule)
    except InvalidRule:
        raise
    except (OverflowError, ValueError) as e:
        # stepping past date.max (year 9999)
        raise RecurrenceError(f"Could not advance {task_date} past {now} with rule {rule}: {e}") from e


def _advance(now: date, task_date: date, rule: Rule) -> date:
    if rule.kind == RULE_DAILY:
        gap = max(0, (now - task_date).days)
        max_steps = math.ceil(gap / rule.days) + 1
        step = timedelta(days=rule.days)
        candidate = task_date
        for _ in range(max_steps + 1):
            if candidate > now:
                return candidate
            candidate += step
    elif rule.kind == RULE_YEARLY:
        max_steps = max(0, now.year - task_date.year) + 2
        for k in range(max_steps + 1):
            candidate = _add_years(task_date, k)
            if candidate > now:
                return candidate
    else:
        raise UnsupportedRule(f"Unsupported repeat rule: {rule.kind!r}")
    raise RecurrenceError(f"Could not advance {task_date} past {now} with rule {rule}")


def next_date(now: date | datetime, task_date: date | datetime | str, rule: str | None) -> str:
    """Next due date (YYYYMMDD) for a task with the given date and repeat rule, strictly after now."""
    parsed = parse_rule(rule)
    return format_date(advance(_as_date(now), _as_date(task_date), parsed))
