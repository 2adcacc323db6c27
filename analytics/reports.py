"""
Project report builders (table rows, CSV, plain text and JSON).

Everything is derived from an already fetched snapshot; nothing here queries
the database.
"""
import csv
import io
import json

from django.core.serializers.json import DjangoJSONEncoder

from . import metrics

REPORT_FORMATS = {
    'csv': 'text/csv; charset=utf-8',
    'txt': 'text/plain; charset=utf-8',
    'json': 'application/json',
}
STATUS_FILTERS = ('all',) + metrics.KNOWN_STATUSES

CSV_HEADER = ['Project Name', 'Status', 'Progress', 'Hours', 'Cost', 'Margin', 'Type', 'Fee', 'Budget']


def filter_projects(projects, search='', status='all'):
    """Case-insensitive match on name or description, optionally narrowed to one status."""
    if status not in STATUS_FILTERS:
        raise ValueError(f"Unknown status filter: {status!r}")
    term = (search or '').strip().lower()
    kept = []
    for project in projects:
        if status != 'all' and project.get('status') != status:
            continue
        if term and term not in (project.get('name') or '').lower() \
                and term not in (project.get('description') or '').lower():
            continue
        kept.append(project)
    return kept


def project_rows(projects, entries, rate_policy=metrics.RATE_TARGET, flat_rate=metrics.DEFAULT_HOURLY_RATE):
    hours = metrics.hours_by_project(entries)
    rows = []
    for project in projects:
        project_hours = hours.get(project['id'], 0.0)
        cost = metrics.project_cost(project, project_hours, rate_policy, flat_rate)
        fee = metrics.as_number(project.get('fee'))
        rows.append({
            'id': project['id'],
            'name': project.get('name'),
            'status': project.get('status'),
            'progress': int(metrics.as_number(project.get('progress'))),
            'hours': round(project_hours, 2),
            'cost': round(cost, 2),
            'margin': round(fee - cost, 2),
            'project_type': project.get('project_type') or 'N/A',
            'fee': round(fee, 2),
            'budget': round(metrics.as_number(project.get('budget')), 2),
            'created_at': project.get('created_at'),
            'updated_at': project.get('updated_at'),
        })
    return rows


def report_summary(projects, entries):
    total = len(projects)
    hours = metrics.total_hours(entries)
    completed = metrics.count_status(projects, metrics.STATUS_COMPLETED)
    return {
        'total_projects': total,
        'active_projects': metrics.count_status(projects, metrics.STATUS_ACTIVE),
        'total_hours': round(hours, 1),
        'work_days': round(hours / metrics.HOURS_PER_WORK_DAY),
        'total_fees': round(metrics.total_fees(projects), 2),
        'average_progress': round(metrics.average_progress(projects)),
        'completion_rate_pct': round(completed / total * 100) if total else 0,
    }


def write_csv(stream, rows):
    writer = csv.writer(stream)
    writer.writerow(CSV_HEADER)
    for row in rows:
        writer.writerow([
            row['name'],
            row['status'],
            f"{row['progress']}%",
            row['hours'],
            f"{row['cost']:.2f}",
            f"{row['margin']:.2f}",
            row['project_type'],
            f"{row['fee']:.2f}",
            f"{row['budget']:.2f}",
        ])


def render_text(projects, entries, rows, user_email, generated_at):
    summary = report_summary(projects, entries)
    lines = [
        'PROJECT MANAGEMENT REPORT',
        f'Generated: {generated_at:%Y-%m-%d %H:%M}',
        f"User: {user_email or 'Unknown'}",
        '',
        'PROJECT SUMMARY:',
        f"Total Projects: {summary['total_projects']}",
        f"Active Projects: {summary['active_projects']}",
        f"Total Hours: {summary['total_hours']}",
        f"Total Fees: ${summary['total_fees']:,.2f}",
        '',
        'PROJECT DETAILS:',
    ]
    for row in rows:
        lines.extend([
            f"  {row['name']}",
            f"    Status: {row['status']}",
            f"    Progress: {row['progress']}%",
            f"    Hours: {row['hours']}",
            f"    Type: {row['project_type']}",
            f"    Fee: ${row['fee']:,.2f}",
            f"    Budget: ${row['budget']:,.2f}",
            '',
        ])
    return '\n'.join(lines)


def render_report(fmt, projects, entries, user_email, generated_at,
                  rate_policy=metrics.RATE_TARGET, flat_rate=metrics.DEFAULT_HOURLY_RATE):
    """
    Serialise the report for ``projects`` in one of ``REPORT_FORMATS``.

    ``entries`` is the full time-entry list; each project's hours only count
    entries that reference it.
    """
    if fmt not in REPORT_FORMATS:
        raise ValueError(f"Unknown report format: {fmt!r}")

    project_ids = {project['id'] for project in projects}
    related = [entry for entry in entries if entry.get('project_id') in project_ids]
    rows = project_rows(projects, related, rate_policy, flat_rate)

    if fmt == 'csv':
        buffer = io.StringIO()
        write_csv(buffer, rows)
        return buffer.getvalue()
    if fmt == 'txt':
        return render_text(projects, related, rows, user_email, generated_at)
    return json.dumps({
        'projects': projects,
        'time_entries': related,
        'generated_at': generated_at,
        'user': user_email,
    }, cls=DjangoJSONEncoder, indent=2)


def report_filename(fmt, generated_at):
    return f'project-report-{generated_at:%Y-%m-%d}.{fmt}'
