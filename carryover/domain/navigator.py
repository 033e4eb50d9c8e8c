"""Pure functions deciding which months may be viewed or created.

Rules, in order:
1. Month already exists -> allowed (navigation only).
2. No months exist yet -> allowed (bootstrap).
3. Month immediately after the latest -> allowed unless more than `window`
   months after today. Past-ness is not checked when walking forward.
4. Month immediately before the earliest -> allowed unless more than
   `window` months before today. Future-ness is not checked when walking back.
5. Anything else -> rejected. The month sequence has to be walked one month
   at a time.
"""

from collections.abc import Collection
from dataclasses import dataclass
from datetime import date
from enum import Enum

from carryover.dates import add_months, month_of, next_month, prev_month
from carryover.domain.errors import SequenceViolation, ViolationKind
from carryover.domain.models import MonthKey

DEFAULT_WINDOW_MONTHS = 3


class CreationReason(str, Enum):
    """Why a month may be opened."""

    EXISTS = "exists"
    WALK_FORWARD = "walk_forward"
    WALK_BACK = "walk_back"


@dataclass(frozen=True)
class MonthCreationResult:
    """Immutable outcome of a creation check."""

    allowed: bool
    reason: CreationReason | None
    error: SequenceViolation | None


@dataclass(frozen=True)
class NavigationState:
    """Immutable state of a previous/next month button."""

    can_navigate: bool
    can_create: bool
    disabled_reason: str | None


@dataclass(frozen=True)
class CalendarBounds:
    """Earliest and latest months that may be created relative to today."""

    current: MonthKey
    earliest: MonthKey
    latest: MonthKey


def calendar_bounds(today: date, window: int = DEFAULT_WINDOW_MONTHS) -> CalendarBounds:
    """Calculate the creation window around today's month."""
    current = month_of(today)
    return CalendarBounds(
        current=current,
        earliest=add_months(current, -window),
        latest=add_months(current, window),
    )


def sequence_bounds(month_map: Collection[MonthKey]) -> tuple[MonthKey, MonthKey] | None:
    """Return (earliest, latest) existing months, or None if there are none."""
    if not month_map:
        return None
    return min(month_map), max(month_map)


def _rejected(message: str, key: MonthKey, kind: ViolationKind) -> MonthCreationResult:
    return MonthCreationResult(
        allowed=False,
        reason=None,
        error=SequenceViolation(message, key.year, key.month, kind),
    )


def can_create_month(
    year: int,
    month: int,
    month_map: Collection[MonthKey],
    today: date | None = None,
    window: int = DEFAULT_WINDOW_MONTHS,
) -> MonthCreationResult:
    """Check whether a month can be opened.

    Args:
        year: Requested year.
        month: Requested month (1-12).
        month_map: Months that already exist for the budget.
        today: Real-world date. Defaults to date.today().
        window: How many months either side of today may be created.

    Returns:
        MonthCreationResult with allowed, reason and error.
    """
    key = MonthKey(year, month)
    bounds = calendar_bounds(today or date.today(), window)

    if key in month_map:
        return MonthCreationResult(allowed=True, reason=CreationReason.EXISTS, error=None)

    existing = sequence_bounds(month_map)
    if existing is None:
        return MonthCreationResult(allowed=True, reason=CreationReason.WALK_FORWARD, error=None)
    earliest, latest = existing

    if key == next_month(latest):
        if key <= bounds.latest:
            return MonthCreationResult(allowed=True, reason=CreationReason.WALK_FORWARD, error=None)
        return _rejected(
            f"Month {key} is more than {window} months in the future.",
            key,
            ViolationKind.FUTURE_BOUND,
        )

    if key == prev_month(earliest):
        if key >= bounds.earliest:
            return MonthCreationResult(allowed=True, reason=CreationReason.WALK_BACK, error=None)
        return _rejected(
            f"Month {key} is more than {window} months in the past.",
            key,
            ViolationKind.PAST_BOUND,
        )

    if key > latest:
        return _rejected(
            f"Month {key} is not immediately after the latest month ({latest}). "
            "You must walk forward one month at a time.",
            key,
            ViolationKind.SKIP_FORWARD,
        )

    if key < earliest:
        return _rejected(
            f"Month {key} is not immediately before the earliest month ({earliest}). "
            "You must walk back one month at a time.",
            key,
            ViolationKind.SKIP_BACKWARD,
        )

    # Inside the existing range but missing: the month map has a hole
    return _rejected(
        f"Month {key} does not exist in budget and cannot be created.",
        key,
        ViolationKind.GAP,
    )


def next_month_navigation(
    current: MonthKey,
    month_map: Collection[MonthKey],
    today: date | None = None,
    window: int = DEFAULT_WINDOW_MONTHS,
) -> NavigationState:
    """Get navigation state for the next month button."""
    target = next_month(current)
    if target in month_map:
        return NavigationState(can_navigate=True, can_create=False, disabled_reason=None)

    creation = can_create_month(target.year, target.month, month_map, today, window)
    if creation.allowed:
        return NavigationState(can_navigate=True, can_create=True, disabled_reason=None)

    if target > calendar_bounds(today or date.today(), window).latest:
        reason = f"Cannot create months more than {window} months into the future"
    else:
        reason = "Can only create the month immediately after the latest month"
    return NavigationState(can_navigate=False, can_create=False, disabled_reason=reason)


def prev_month_navigation(
    current: MonthKey,
    month_map: Collection[MonthKey],
    today: date | None = None,
    window: int = DEFAULT_WINDOW_MONTHS,
) -> NavigationState:
    """Get navigation state for the previous month button."""
    target = prev_month(current)
    if target in month_map:
        return NavigationState(can_navigate=True, can_create=False, disabled_reason=None)

    creation = can_create_month(target.year, target.month, month_map, today, window)
    if creation.allowed:
        return NavigationState(can_navigate=True, can_create=True, disabled_reason=None)

    if target < calendar_bounds(today or date.today(), window).earliest:
        reason = f"Cannot create months more than {window} months in the past"
    else:
        reason = "Can only create the month immediately before the earliest month"
    return NavigationState(can_navigate=False, can_create=False, disabled_reason=reason)
