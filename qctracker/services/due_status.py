"""Due-status evaluation for QC cadences.

Each cadence is a sequence of periods: a single day (daily), an ISO week
(weekly), a calendar month, quarter or year. The deadline of a period is its
last business day (Mon-Fri); weekend days are never deadlines, so a daily
cadence only requires weekday QC. A QC completed on any day inside a period
satisfies that period's deadline.

Evaluation walks the deadlines that fall inside a lookback window ending
today (inclusive):

* a missed deadline before today makes the cadence ``overdue``; the earliest
  one is reported,
* otherwise an unmet deadline falling on today makes it ``dueToday``,
* otherwise it is ``onTrack`` (including windows with no deadline at all).

Everything in this module is a pure function of its arguments.
"""

import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from qctracker.models.enums import Cadence, DueStatus
from qctracker.utils.error_handler import ValidationError
from qctracker.utils.helpers import parse_date, parse_optional_date

# Calendar days, today included
DEFAULT_LOOKBACK_DAYS = {
    Cadence.DAILY: 7,
    Cadence.WEEKLY: 7,
    Cadence.MONTHLY: 31,
    Cadence.QUARTERLY: 92,
    Cadence.ANNUAL: 366,
}

# (minimum days overdue, priority), checked in order
PRIORITY_THRESHOLDS = {
    Cadence.DAILY: ((5, 'critical'), (3, 'high'), (1, 'medium')),
    Cadence.WEEKLY: ((14, 'critical'), (7, 'high'), (3, 'medium')),
    Cadence.MONTHLY: ((60, 'critical'), (30, 'high'), (14, 'medium')),
    Cadence.QUARTERLY: ((180, 'critical'), (90, 'high'), (30, 'medium')),
    Cadence.ANNUAL: ((730, 'critical'), (365, 'high'), (90, 'medium')),
}

_STATUS_RANK = {DueStatus.ON_TRACK: 0, DueStatus.DUE_TODAY: 1, DueStatus.OVERDUE: 2}


@dataclass(frozen=True)
class QCHistoryEntry:
    date: date
    completed: bool = True

    @classmethod
    def coerce(cls, entry):
        """Accept a QCHistoryEntry or a {date, completed} mapping"""
        if isinstance(entry, cls):
            return entry
        if not isinstance(entry, dict):
            raise ValidationError(f"Invalid history entry: {entry!r}")
        completed = entry.get('completed', True)
        if not isinstance(completed, bool):
            raise ValidationError(f"Invalid completed flag: {completed!r}",
                                  {'completed': ['Must be true or false.']})
        return cls(date=parse_date(entry.get('date'), 'history date'), completed=completed)


@dataclass(frozen=True)
class DueStatusResult:
    status: DueStatus
    first_missing_date: Optional[date] = None

    def to_dict(self):
        return {
            'status': self.status.value,
            'firstMissingDate': self.first_missing_date.isoformat() if self.first_missing_date else None
        }


@dataclass(frozen=True)
class MissedDeadline:
    due_date: date
    days_overdue: int
    cadence: Cadence

    def to_dict(self):
        return {
            'dueDate': self.due_date.isoformat(),
            'daysOverdue': self.days_overdue,
            'cadence': self.cadence.value
        }


def as_cadence(value):
    if isinstance(value, Cadence):
        return value
    try:
        return Cadence(value)
    except ValueError:
        raise ValidationError(f"Unknown cadence: {value!r}", {'cadence': [f"Must be one of: {', '.join(c.value for c in Cadence)}."]})


def is_business_day(day):
    return day.weekday() < 5


def period_bounds(cadence, day):
    """First and last calendar day of the cadence period containing ``day``."""
    cadence = as_cadence(cadence)
    if cadence is Cadence.DAILY:
        return day, day
    if cadence is Cadence.WEEKLY:
        start = day - timedelta(days=day.weekday())
        return start, start + timedelta(days=6)
    if cadence is Cadence.MONTHLY:
        last = calendar.monthrange(day.year, day.month)[1]
        return day.replace(day=1), day.replace(day=last)
    if cadence is Cadence.QUARTERLY:
        first_month = 3 * ((day.month - 1) // 3) + 1
        last_month = first_month + 2
        last = calendar.monthrange(day.year, last_month)[1]
        return date(day.year, first_month, 1), date(day.year, last_month, last)
    return date(day.year, 1, 1), date(day.year, 12, 31)


def deadline_for(cadence, day):
    """Last business day of the period containing ``day``; None if it has none."""
    start, end = period_bounds(cadence, day)
    deadline = end
    while deadline >= start and not is_business_day(deadline):
        deadline -= timedelta(days=1)
    return deadline if deadline >= start else None


def deadlines_between(cadence, first, last):
    """Deadlines falling within [first, last], oldest first."""
    deadlines = []
    cursor = first
    while cursor <= last:
        deadline = deadline_for(cadence, cursor)
        if deadline is not None and first <= deadline <= last:
            deadlines.append(deadline)
        cursor = period_bounds(cadence, cursor)[1] + timedelta(days=1)
    return deadlines


def _completed_periods(cadence, history, today):
    starts = set()
    for raw in history or ():
        entry = QCHistoryEntry.coerce(raw)
        if entry.completed and entry.date <= today:
            starts.add(period_bounds(cadence, entry.date)[0])
    return starts


def _window_start(cadence, today, lookback_days, start_date):
    window = DEFAULT_LOOKBACK_DAYS[cadence] if lookback_days is None else lookback_days
    if isinstance(window, bool) or not isinstance(window, int) or window < 1:
        raise ValidationError(f"Invalid lookback window: {window!r}", {'lookbackDays': ['Must be a positive integer.']})
    first = today - timedelta(days=window - 1)
    if start_date is not None and start_date > first:
        first = start_date
    return first


def evaluate_due_status(cadence, history, today, lookback_days=None, start_date=None):
    """Classify one cadence as on track, due today or overdue.

    ``history`` is any iterable of QCHistoryEntry or {date, completed} mappings;
    None or empty means nothing has been completed. ``start_date`` is when QC
    tracking began; deadlines before it are not applicable.
    """
    cadence = as_cadence(cadence)
    today = parse_date(today, 'today')
    start_date = parse_optional_date(start_date, 'start date')

    first = _window_start(cadence, today, lookback_days, start_date)
    completed = _completed_periods(cadence, history, today)

    due_today = False
    for deadline in deadlines_between(cadence, first, today):
        if period_bounds(cadence, deadline)[0] in completed:
            continue
        if deadline < today:
            return DueStatusResult(DueStatus.OVERDUE, deadline)
        due_today = True

    if due_today:
        return DueStatusResult(DueStatus.DUE_TODAY, today)
    return DueStatusResult(DueStatus.ON_TRACK)


def next_due_date(cadence, history, today, start_date=None, lookback_days=None):
    """Date the cadence next needs attention.

    The first missing date while overdue or due today, otherwise the first
    deadline on or after today whose period has no completion yet.
    """
    cadence = as_cadence(cadence)
    today = parse_date(today, 'today')
    start_date = parse_optional_date(start_date, 'start date')

    result = evaluate_due_status(cadence, history, today, lookback_days, start_date)
    if result.status is not DueStatus.ON_TRACK:
        return result.first_missing_date

    completed = _completed_periods(cadence, history, today)
    cursor = max(today, start_date) if start_date else today
    while True:
        start, end = period_bounds(cadence, cursor)
        deadline = deadline_for(cadence, cursor)
        if deadline is not None and deadline >= cursor and start not in completed:
            return deadline
        cursor = end + timedelta(days=1)


def missed_deadlines(cadence, history, start_date, today):
    """Every deadline since ``start_date`` and strictly before today left without QC."""
    cadence = as_cadence(cadence)
    today = parse_date(today, 'today')
    start_date = parse_date(start_date, 'start date')

    completed = _completed_periods(cadence, history, today)
    missed = []
    for deadline in deadlines_between(cadence, start_date, today - timedelta(days=1)):
        if period_bounds(cadence, deadline)[0] not in completed:
            missed.append(MissedDeadline(deadline, (today - deadline).days, cadence))
    return missed


def qc_priority(days_overdue, cadence):
    """Priority of a due or overdue task; zero days overdue means due today."""
    if days_overdue <= 0:
        return 'medium'
    for minimum, priority in PRIORITY_THRESHOLDS[as_cadence(cadence)]:
        if days_overdue >= minimum:
            return priority
    return 'low'


def evaluate_schedule(schedule, histories, today, lookback=None, start_date=None):
    """Evaluate every enabled cadence against its own history and window.

    ``schedule`` maps cadence names to booleans, ``histories`` and ``lookback``
    map cadence names (or Cadence members) to a history and a window length.
    Returns {Cadence: DueStatusResult} for the enabled cadences.
    """
    histories = {as_cadence(key): value for key, value in (histories or {}).items()}
    lookback = {as_cadence(key): value for key, value in (lookback or {}).items()}

    results = {}
    for name, enabled in (schedule or {}).items():
        if not enabled:
            continue
        cadence = as_cadence(name)
        results[cadence] = evaluate_due_status(
            cadence, histories.get(cadence), today,
            lookback_days=lookback.get(cadence), start_date=start_date
        )
    return results


def earliest_next_due(schedule, histories, today, start_date=None, lookback=None):
    """Earliest next_due_date across the enabled cadences of a schedule.

    A schedule with nothing enabled falls back to today.
    """
    today = parse_date(today, 'today')
    histories = {as_cadence(key): value for key, value in (histories or {}).items()}
    lookback = {as_cadence(key): value for key, value in (lookback or {}).items()}

    due_dates = [
        next_due_date(cadence, histories.get(cadence), today,
                      start_date=start_date, lookback_days=lookback.get(cadence))
        for cadence in (as_cadence(name) for name, enabled in (schedule or {}).items() if enabled)
    ]
    return min(due_dates) if due_dates else today


def worst_status(results):
    """Most severe status among results (overdue > dueToday > onTrack)."""
    statuses = [result.status for result in results]
    if not statuses:
        return DueStatus.ON_TRACK
    return max(statuses, key=_STATUS_RANK.__getitem__)
