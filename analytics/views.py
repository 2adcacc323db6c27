import logging

from django.conf import settings
from django.http import HttpResponse
from django.utils import timezone
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema, OpenApiParameter

from . import metrics, reports
from .serializers import (
    AnalysisSerializer, BurnRateSerializer, BreakdownSerializer,
    DashboardSerializer, ReportSerializer, FetchErrorSerializer,
)
from .snapshot import fetch_snapshot, DataFetchError

logger = logging.getLogger(__name__)

RANGE_PARAMETER = OpenApiParameter(
    'range', str, enum=list(metrics.TIME_RANGES),
    description="Calendar period (up to today) applied to time entry dates. Defaults to 'all'.",
)
RATE_PARAMETER = OpenApiParameter(
    'rate', str, enum=list(metrics.RATE_POLICIES),
    description="Hourly rate used for cost: the project's target rate (default) or the flat rate.",
)
REPORT_PARAMETERS = [
    OpenApiParameter('search', str, description="Case-insensitive match on project name or description."),
    OpenApiParameter('status', str, enum=list(reports.STATUS_FILTERS)),
    RATE_PARAMETER,
]
EXPORT_TYPE_PARAMETER = OpenApiParameter(
    'type', str, enum=list(reports.REPORT_FORMATS), description="Export file type (default csv).",
)


def _choice(request, name, choices, default):
    value = request.query_params.get(name, default) or default
    if value not in choices:
        raise ValidationError({name: f"Must be one of: {', '.join(choices)}."})
    return value


def _time_range(request):
    return _choice(request, 'range', metrics.TIME_RANGES, metrics.TIME_RANGE_ALL)


def _rate_options(request):
    return {
        'rate_policy': _choice(request, 'rate', metrics.RATE_POLICIES, metrics.RATE_TARGET),
        'flat_rate': settings.DEFAULT_HOURLY_RATE,
    }


def _fetch_failed(exc):
    return Response({"error": str(exc), "retry": True}, status=status.HTTP_503_SERVICE_UNAVAILABLE)


class AnalysisViewSet(viewsets.ViewSet):
    """
    Headline numbers for the Analysis page.
    """
    permission_classes = [IsAuthenticated]

    @extend_schema(
        parameters=[RANGE_PARAMETER, RATE_PARAMETER],
        responses={200: AnalysisSerializer, 503: FetchErrorSerializer},
        summary="Get analysis summary",
        description="Project counts, hours, fees, margins and status distribution.",
    )
    def list(self, request):
        time_range = _time_range(request)
        options = _rate_options(request)
        try:
            snapshot = fetch_snapshot()
        except DataFetchError as exc:
            return _fetch_failed(exc)

        entries = metrics.filter_entries_by_range(snapshot.time_entries, time_range, timezone.localdate())
        data = metrics.analysis_summary(snapshot.projects, entries, **options)
        return Response(AnalysisSerializer(data).data)


class BurnRateViewSet(viewsets.ViewSet):
    """
    Fee consumption against schedule, per project.
    """
    permission_classes = [IsAuthenticated]

    @extend_schema(
        parameters=[RANGE_PARAMETER, RATE_PARAMETER],
        responses={200: BurnRateSerializer(many=True), 503: FetchErrorSerializer},
        summary="Get burn rate per project",
    )
    def list(self, request):
        time_range = _time_range(request)
        options = _rate_options(request)
        try:
            snapshot = fetch_snapshot()
        except DataFetchError as exc:
            return _fetch_failed(exc)

        today = timezone.localdate()
        entries = metrics.filter_entries_by_range(snapshot.time_entries, time_range, today)
        rows = metrics.burn_rates(snapshot.projects, entries, today, **options)
        return Response(BurnRateSerializer(rows, many=True).data)


class BreakdownViewSet(viewsets.ViewSet):
    """
    Logged hours grouped by task role and by person x project.
    """
    permission_classes = [IsAuthenticated]

    @extend_schema(
        parameters=[RANGE_PARAMETER],
        responses={200: BreakdownSerializer, 503: FetchErrorSerializer},
        summary="Get hours breakdown",
    )
    def list(self, request):
        time_range = _time_range(request)
        try:
            snapshot = fetch_snapshot(include_users=True)
        except DataFetchError as exc:
            return _fetch_failed(exc)

        entries = metrics.filter_entries_by_range(snapshot.time_entries, time_range, timezone.localdate())
        project_names = {project['id']: project['name'] for project in snapshot.projects}

        by_role = [
            {'role': role, 'hours': round(hours, 2)}
            for role, hours in sorted(metrics.hours_by_role(entries).items())
        ]
        by_person = []
        for person, projects in sorted(metrics.hours_by_person_and_project(entries, snapshot.users).items()):
            for project_id, hours in projects.items():
                by_person.append({
                    'person': person,
                    'project_id': project_id,
                    'project_name': project_names.get(project_id, 'Unknown Project'),
                    'hours': round(hours, 2),
                })

        data = {'hours_by_role': by_role, 'hours_by_person_and_project': by_person}
        return Response(BreakdownSerializer(data).data)


class DashboardViewSet(viewsets.ViewSet):
    """
    Today's overview for the landing dashboard.
    """
    permission_classes = [IsAuthenticated]

    @extend_schema(
        responses={200: DashboardSerializer, 503: FetchErrorSerializer},
        summary="Get dashboard overview",
        description="Hours today and this week, active projects, over-budget alerts, "
                    "weekly hours by role and the most recent projects.",
    )
    def list(self, request):
        try:
            snapshot = fetch_snapshot()
        except DataFetchError as exc:
            return _fetch_failed(exc)

        today = timezone.localdate()
        week_entries = metrics.filter_entries_by_range(snapshot.time_entries, 'week', today)
        today_entries = [entry for entry in week_entries if entry['date'] == today]

        alerts = [
            f"{row['name']} is over budget ({row['fee_used_pct']}% of fee used, "
            f"{row['time_elapsed_pct']}% of schedule elapsed)"
            for row in metrics.burn_rates(snapshot.projects, snapshot.time_entries, today)
            if row['over_budget']
        ]
        recent = sorted(snapshot.projects, key=lambda project: (project['created_at'], project['id']), reverse=True)[:3]

        data = {
            'hours_today': round(metrics.total_hours(today_entries), 2),
            'hours_this_week': round(metrics.total_hours(week_entries), 2),
            'active_projects': metrics.count_status(snapshot.projects, metrics.STATUS_ACTIVE),
            'alerts': alerts,
            'weekly_hours_by_role': metrics.weekly_hours_by_role(week_entries, metrics.week_start(today)),
            'recent_projects': recent,
        }
        return Response(DashboardSerializer(data).data)


class ReportViewSet(viewsets.ViewSet):
    """
    Project report table and its downloadable exports.
    """
    permission_classes = [IsAuthenticated]

    def _filtered(self, request):
        search = request.query_params.get('search', '')
        status_filter = _choice(request, 'status', reports.STATUS_FILTERS, 'all')
        snapshot = fetch_snapshot()
        return reports.filter_projects(snapshot.projects, search, status_filter), snapshot.time_entries

    @extend_schema(
        parameters=REPORT_PARAMETERS,
        responses={200: ReportSerializer, 503: FetchErrorSerializer},
        summary="Get project report",
    )
    def list(self, request):
        options = _rate_options(request)
        try:
            projects, entries = self._filtered(request)
        except DataFetchError as exc:
            return _fetch_failed(exc)

        project_ids = {project['id'] for project in projects}
        related = [entry for entry in entries if entry['project_id'] in project_ids]
        data = {
            'projects': reports.project_rows(projects, related, **options),
            'summary': reports.report_summary(projects, related),
        }
        return Response(ReportSerializer(data).data)

    @extend_schema(
        parameters=REPORT_PARAMETERS + [EXPORT_TYPE_PARAMETER],
        responses={(200, 'text/csv'): OpenApiTypes.STR, 503: FetchErrorSerializer},
        summary="Download project report",
    )
    @action(detail=False, methods=['get'])
    def export(self, request):
        fmt = _choice(request, 'type', tuple(reports.REPORT_FORMATS), 'csv')
        options = _rate_options(request)
        try:
            projects, entries = self._filtered(request)
        except DataFetchError as exc:
            return _fetch_failed(exc)

        generated_at = timezone.localtime()
        content = reports.render_report(fmt, projects, entries, request.user.email, generated_at, **options)

        response = HttpResponse(content, content_type=reports.REPORT_FORMATS[fmt])
        response['Content-Disposition'] = f'attachment; filename="{reports.report_filename(fmt, generated_at)}"'
        logger.info("Exported %s report with %s projects for %s", fmt, len(projects), request.user.get_username())
        return response
