from pathlib import Path

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from analytics import metrics, reports
from analytics.snapshot import fetch_snapshot, DataFetchError


class Command(BaseCommand):
    help = 'Writes the project report (csv, txt or json) to a file'

    def add_arguments(self, parser):
        parser.add_argument('--type', dest='fmt', choices=list(reports.REPORT_FORMATS), default='csv')
        parser.add_argument('--search', default='')
        parser.add_argument('--status', choices=list(reports.STATUS_FILTERS), default='all')
        parser.add_argument('--rate', choices=list(metrics.RATE_POLICIES), default=metrics.RATE_TARGET)
        parser.add_argument('--output', help='Target file; defaults to project-report-<date>.<type> in the current directory')

    def handle(self, *args, **options):
        try:
            snapshot = fetch_snapshot()
        except DataFetchError as exc:
            raise CommandError(str(exc)) from exc

        fmt = options['fmt']
        generated_at = timezone.localtime()
        projects = reports.filter_projects(snapshot.projects, options['search'], options['status'])
        content = reports.render_report(
            fmt, projects, snapshot.time_entries, None, generated_at,
            rate_policy=options['rate'], flat_rate=settings.DEFAULT_HOURLY_RATE,
        )

        output = Path(options['output'] or reports.report_filename(fmt, generated_at))
        output.write_text(content, encoding='utf-8')
        self.stdout.write(self.style.SUCCESS(f"Wrote {len(projects)} projects to {output}"))
