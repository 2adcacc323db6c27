"""
Derived metrics over the project and time-entry tables.

All functions here are pure: they take lists of row dicts (as produced by
``analytics.snapshot``) and return new values without touching the database or
mutating their input, so running them twice over the same snapshot gives the
same answer.

Cost is always ``hours * rate``. Which rate applies is chosen with a rate policy:

* ``"target"``  - the project's ``target_hourly_rate`` (missing counts as 0).
* ``"flat"``    - one constant rate for every project (``DEFAULT_HOURLY_RATE``).

The two policies give different numbers for the same data; ``"target"`` is the
default everywhere.
"""
from datetime import date, datetime, timedelta

import pandas as pd

STATUS_ACTIVE = 'active'
STATUS_COMPLETED = 'completed'
STATUS_PLANNING = 'planning'
STATUS_ON_HOLD = 'on-hold'
STATUS_OTHER = 'other'
KNOWN_STATUSES = (STATUS_ACTIVE, STATUS_COMPLETED, STATUS_PLANNING, STATUS_ON_HOLD)
STATUS_LABELS = {
    STATUS_ACTIVE: 'Active',
    STATUS_COMPLETED: 'Completed',
    STATUS_PLANNING: 'Planning',
    STATUS_ON_HOLD: 'On Hold',
    STATUS_OTHER: 'Other',
}

UNKNOWN = 'Unknown'

RATE_TARGET = 'target'
RATE_FLAT = 'flat'
RATE_POLICIES = (RATE_TARGET, RATE_FLAT)
DEFAULT_HOURLY_RATE = 100.0

TIME_RANGE_ALL = 'all'
TIME_RANGES = (TIME_RANGE_ALL, 'week', 'month', 'quarter', 'year')

DAY_LABELS = ('Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun')
HOURS_PER_WORK_DAY = 8


def as_number(value):
    """Numeric value of a nullable column; missing or garbage counts as 0."""
    if value is None:
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _as_date(value):
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _clamp_pct(value):
    return max(0.0, min(100.0, value))


def _role(entry):
    role = (entry.get('role') or '').strip()
    return role or UNKNOWN


# --- Counts and totals ---

def status_distribution(projects):
    """
    Number of projects per status.

    Unrecognised or missing statuses are counted under ``"other"``, so the
    values always add up to ``len(projects)``.
    """
    counts = {status: 0 for status in KNOWN_STATUSES}
    counts[STATUS_OTHER] = 0
    for project in projects:
        status = project.get('status')
        counts[status if status in KNOWN_STATUSES else STATUS_OTHER] += 1
    return counts


def status_chart(projects):
    counts = status_distribution(projects)
    return [{'name': STATUS_LABELS[status], 'status': status, 'value': value}
            for status, value in counts.items()]


def count_status(projects, status):
    return sum(1 for project in projects if project.get('status') == status)


def total_hours(entries):
    return sum(as_number(entry.get('hours')) for entry in entries)


def total_fees(projects):
    return sum(as_number(project.get('fee')) for project in projects)


def average_progress(projects):
    if not projects:
        return 0.0
    return sum(as_number(project.get('progress')) for project in projects) / len(projects)


def hours_by_project(entries):
    hours = {}
    for entry in entries:
        project_id = entry.get('project_id')
        hours[project_id] = hours.get(project_id, 0.0) + as_number(entry.get('hours'))
    return hours


# --- Cost, margin and burn rate ---

def hourly_rate(project, rate_policy=RATE_TARGET, flat_rate=DEFAULT_HOURLY_RATE):
    if rate_policy == RATE_TARGET:
        return as_number(project.get('target_hourly_rate'))
    if rate_policy == RATE_FLAT:
        return float(flat_rate)
    raise ValueError(f"Unknown rate policy: {rate_policy!r}")


def project_cost(project, hours, rate_policy=RATE_TARGET, flat_rate=DEFAULT_HOURLY_RATE):
    return as_number(hours) * hourly_rate(project, rate_policy, flat_rate)


def project_margin(project, hours, rate_policy=RATE_TARGET, flat_rate=DEFAULT_HOURLY_RATE):
    return as_number(project.get('fee')) - project_cost(project, hours, rate_policy, flat_rate)


def financial_summary(projects, entries, rate_policy=RATE_TARGET, flat_rate=DEFAULT_HOURLY_RATE):
    """
    Fees, estimated cost and margins over every loaded project.

    Entries whose project is not loaded add hours but no cost.
    """
    by_id = {project['id']: project for project in projects}
    cost = 0.0
    for entry in entries:
        project = by_id.get(entry.get('project_id'))
        if project is not None:
            cost += project_cost(project, entry.get('hours'), rate_policy, flat_rate)

    fees = total_fees(projects)
    hours = total_hours(entries)
    margin = fees - cost
    return {
        'total_fees': round(fees, 2),
        'total_cost': round(cost, 2),
        'gross_margin': round(margin, 2),
        'profit_margin_pct': round(margin / fees * 100, 1) if fees > 0 else 0.0,
        'effective_hourly_rate': round(fees / hours, 2) if hours > 0 else 0.0,
    }


def burn_rate(project, hours, today, rate_policy=RATE_TARGET, flat_rate=DEFAULT_HOURLY_RATE):
    """
    Fee consumed versus schedule elapsed for one project.

    Both percentages are clamped to [0, 100]. A zero or missing fee, or a
    schedule without a positive length, is divided by 1 instead; the
    ``fee_defined`` and ``schedule_defined`` flags report when that happened.
    """
    fee = as_number(project.get('fee'))
    cost = project_cost(project, hours, rate_policy, flat_rate)
    fee_defined = fee > 0
    fee_used = _clamp_pct(cost / (fee if fee_defined else 1) * 100)

    start = _as_date(project.get('start_date'))
    end = _as_date(project.get('end_date'))
    total_days = (end - start).days if start and end else 0
    schedule_defined = total_days > 0
    days_elapsed = (today - start).days if start else 0
    time_elapsed = _clamp_pct(days_elapsed / (total_days if schedule_defined else 1) * 100)

    over_budget = fee_used > time_elapsed
    return {
        'project_id': project.get('id'),
        'name': project.get('name'),
        'hours': round(as_number(hours), 2),
        'cost': round(cost, 2),
        'fee': round(fee, 2),
        'fee_used_pct': round(fee_used, 1),
        'time_elapsed_pct': round(time_elapsed, 1),
        'over_budget': over_budget,
        'label': 'Over Budget' if over_budget else 'On Track',
        'fee_defined': fee_defined,
        'schedule_defined': schedule_defined,
    }


def burn_rates(projects, entries, today, rate_policy=RATE_TARGET, flat_rate=DEFAULT_HOURLY_RATE):
    hours = hours_by_project(entries)
    return [burn_rate(project, hours.get(project['id'], 0.0), today, rate_policy, flat_rate)
            for project in projects]


# --- Groupings ---

def hours_by_role(entries):
    """Hours per task role; blank roles are tallied as "Unknown"."""
    tally = {}
    for entry in entries:
        role = _role(entry)
        tally[role] = tally.get(role, 0.0) + as_number(entry.get('hours'))
    return tally


def person_names(users):
    return {user['user_id']: (user.get('full_name') or user.get('email') or UNKNOWN) for user in users}


def hours_by_person_and_project(entries, users):
    """Nested tally ``{person: {project_id: hours}}`` built in one pass over the entries."""
    names = person_names(users)
    tally = {}
    for entry in entries:
        person = names.get(entry.get('user_id'), UNKNOWN)
        projects = tally.setdefault(person, {})
        project_id = entry.get('project_id')
        projects[project_id] = projects.get(project_id, 0.0) + as_number(entry.get('hours'))
    return tally


def week_start(day):
    return day - timedelta(days=day.weekday())


def weekly_hours_by_role(entries, start):
    """
    Hours per weekday (Mon..Sun) split by role for the week starting ``start``.

    Returns one row per weekday: ``{'day': 'Mon', 'roles': {'<role>': hours, ...}}``.
    """
    end = start + timedelta(days=7)
    records = []
    for entry in entries:
        day = _as_date(entry.get('date'))
        if day is not None and start <= day < end:
            records.append({'weekday': day.weekday(), 'role': _role(entry), 'hours': as_number(entry.get('hours'))})

    if not records:
        return [{'day': label, 'roles': {}} for label in DAY_LABELS]

    frame = pd.DataFrame.from_records(records)
    pivot = frame.pivot_table(index='weekday', columns='role', values='hours', aggfunc='sum', fill_value=0.0)
    pivot = pivot.reindex(range(7), fill_value=0.0)

    rows = []
    for weekday, values in pivot.iterrows():
        rows.append({
            'day': DAY_LABELS[weekday],
            'roles': {role: round(float(hours), 2) for role, hours in values.items()},
        })
    return rows


# --- Time range ---

def period_start(time_range, today):
    """First day of the calendar week/month/quarter/year containing ``today``."""
    if time_range == 'week':
        return week_start(today)
    if time_range == 'month':
        return today.replace(day=1)
    if time_range == 'quarter':
        return today.replace(month=3 * ((today.month - 1) // 3) + 1, day=1)
    if time_range == 'year':
        return today.replace(month=1, day=1)
    raise ValueError(f"Unknown time range: {time_range!r}")


def filter_entries_by_range(entries, time_range, today):
    """
    Entries whose ``date`` falls between the start of the period and ``today``,
    both inclusive. ``"all"`` keeps every entry.
    """
    if time_range == TIME_RANGE_ALL:
        return list(entries)
    start = period_start(time_range, today)
    kept = []
    for entry in entries:
        day = _as_date(entry.get('date'))
        if day is not None and start <= day <= today:
            kept.append(entry)
    return kept


# --- Page summaries ---

def analysis_summary(projects, entries, rate_policy=RATE_TARGET, flat_rate=DEFAULT_HOURLY_RATE):
    total_projects = len(projects)
    active = count_status(projects, STATUS_ACTIVE)
    return {
        'total_projects': total_projects,
        'active_projects': active,
        'completed_projects': count_status(projects, STATUS_COMPLETED),
        'active_share_pct': round(active / total_projects * 100) if total_projects else 0,
        'total_time_entries': len(entries),
        'total_hours': round(total_hours(entries), 2),
        'average_progress': round(average_progress(projects), 1),
        'financials': financial_summary(projects, entries, rate_policy, flat_rate),
        'status_distribution': status_chart(projects),
        'project_progress': [
            {'name': project.get('name'), 'progress': int(as_number(project.get('progress')))}
            for project in projects[:5]
        ],
    }
