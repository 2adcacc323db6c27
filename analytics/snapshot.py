"""
Full-table reads that feed the analytics.

Every analytics request starts from a fresh, unfiltered copy of the tables it
needs. Rows are materialised as plain dicts so that the aggregation functions in
``analytics.metrics`` never touch the ORM.
"""
import logging
from dataclasses import dataclass, field

from django.db import DatabaseError

from tracking.models import Project, TimeEntry, UserProfile

logger = logging.getLogger(__name__)

PROJECT_FIELDS = (
    'id', 'name', 'description', 'status', 'progress', 'project_type', 'fee',
    'budget', 'start_date', 'end_date', 'target_hourly_rate', 'created_by_id',
    'created_at', 'updated_at',
)
TIME_ENTRY_FIELDS = (
    'id', 'user_id', 'project_id', 'hours', 'description', 'date', 'role', 'created_at',
)
USER_FIELDS = ('user_id', 'email', 'full_name', 'role')


class DataFetchError(Exception):
    """A primary table could not be read; the page has nothing to show."""


@dataclass
class Snapshot:
    projects: list = field(default_factory=list)
    time_entries: list = field(default_factory=list)
    users: list = field(default_factory=list)


def _fetch_required(table, queryset, fields):
    try:
        return list(queryset.values(*fields))
    except DatabaseError as exc:
        logger.error("%s error: %s", table, exc)
        raise DataFetchError(f"Failed to fetch {table}: {exc}") from exc


def _fetch_optional(table, queryset, fields):
    try:
        return list(queryset.values(*fields))
    except DatabaseError as exc:
        logger.warning("Error fetching %s, continuing without it: %s", table, exc)
        return []


def fetch_snapshot(include_users=False):
    """
    Read projects and time entries in full, plus user profiles when asked.

    Raises ``DataFetchError`` when projects or time entries cannot be read.
    User profiles are secondary: a failure there is logged and yields an empty
    list.
    """
    snapshot = Snapshot(
        projects=_fetch_required('projects', Project.objects.all(), PROJECT_FIELDS),
        time_entries=_fetch_required('time entries', TimeEntry.objects.all(), TIME_ENTRY_FIELDS),
    )
    if include_users:
        snapshot.users = _fetch_optional('users', UserProfile.objects.all(), USER_FIELDS)

    logger.debug(
        "Fetched %s projects and %s time entries",
        len(snapshot.projects), len(snapshot.time_entries),
    )
    return snapshot
