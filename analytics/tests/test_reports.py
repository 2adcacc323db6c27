"""
Unit tests for the project report builders.
"""
import csv
import io
import json
from datetime import datetime

from django.test import SimpleTestCase

from analytics import reports
from analytics.tests.test_metrics import make_entry, make_project


GENERATED_AT = datetime(2026, 5, 20, 14, 30)


class FilterProjectsTest(SimpleTestCase):

    def setUp(self):
        self.projects = [
            make_project(1, name='Bridge Deck Replacement', status='active'),
            make_project(2, name='Office Complex', description='Steel BRIDGE connectors', status='planning'),
            make_project(3, name='Warehouse Retrofit', status='active'),
        ]

    def test_search_matches_name_or_description(self):
        kept = reports.filter_projects(self.projects, search='bridge')
        self.assertEqual([project['id'] for project in kept], [1, 2])

    def test_status_filter(self):
        kept = reports.filter_projects(self.projects, status='active')
        self.assertEqual([project['id'] for project in kept], [1, 3])

    def test_search_and_status(self):
        kept = reports.filter_projects(self.projects, search='bridge', status='active')
        self.assertEqual([project['id'] for project in kept], [1])

    def test_unknown_status(self):
        with self.assertRaises(ValueError):
            reports.filter_projects(self.projects, status='archived')


class RenderReportTest(SimpleTestCase):

    def setUp(self):
        self.projects = [
            make_project(1, name='Bridge', status='active', fee=1000, target_hourly_rate=50, progress=30,
                         project_type='engineering', budget=800),
            make_project(2, name='Tower', status='completed', fee=5000, target_hourly_rate=100, progress=100),
            make_project(3, name='Depot', status='planning'),
        ]
        self.entries = [
            make_entry(1, 1, 4),
            make_entry(2, 1, 2.5),
            make_entry(3, 2, 10),
            make_entry(4, 42, 7),
        ]

    def read_csv(self, content):
        return list(csv.DictReader(io.StringIO(content)))

    def test_csv_has_one_row_per_project_with_its_hours(self):
        content = reports.render_report('csv', self.projects, self.entries, 'pm@example.com', GENERATED_AT)
        rows = self.read_csv(content)

        self.assertEqual(list(rows[0].keys()), reports.CSV_HEADER)
        self.assertEqual(len(rows), len(self.projects))
        for row, project in zip(rows, self.projects):
            expected = sum(entry['hours'] for entry in self.entries if entry['project_id'] == project['id'])
            self.assertAlmostEqual(float(row['Hours']), expected)

    def test_csv_cost_and_margin(self):
        rows = self.read_csv(reports.render_report('csv', self.projects, self.entries, None, GENERATED_AT))
        self.assertEqual(rows[0]['Cost'], '325.00')
        self.assertEqual(rows[0]['Margin'], '675.00')
        self.assertEqual(rows[0]['Progress'], '30%')
        self.assertEqual(rows[0]['Type'], 'engineering')
        self.assertEqual(rows[2]['Type'], 'N/A')

    def test_csv_with_flat_rate(self):
        content = reports.render_report('csv', self.projects[:1], self.entries, None, GENERATED_AT,
                                        rate_policy='flat', flat_rate=100)
        row = self.read_csv(content)[0]
        self.assertEqual(row['Cost'], '650.00')
        self.assertEqual(row['Margin'], '350.00')

    def test_csv_after_filtering(self):
        active = reports.filter_projects(self.projects, status='active')
        rows = self.read_csv(reports.render_report('csv', active, self.entries, None, GENERATED_AT))
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]['Project Name'], 'Bridge')

    def test_text_report(self):
        content = reports.render_report('txt', self.projects, self.entries, 'pm@example.com', GENERATED_AT)
        self.assertTrue(content.startswith('PROJECT MANAGEMENT REPORT'))
        self.assertIn('Generated: 2026-05-20 14:30', content)
        self.assertIn('User: pm@example.com', content)
        self.assertIn('Total Projects: 3', content)
        self.assertIn('Total Hours: 16.5', content)
        self.assertIn('Total Fees: $6,000.00', content)
        self.assertIn('  Tower', content)

    def test_json_report_only_includes_related_entries(self):
        data = json.loads(reports.render_report('json', self.projects, self.entries, 'pm@example.com', GENERATED_AT))
        self.assertEqual(len(data['projects']), 3)
        self.assertEqual(len(data['time_entries']), 3)
        self.assertEqual(data['user'], 'pm@example.com')

    def test_unknown_format(self):
        with self.assertRaises(ValueError):
            reports.render_report('pdf', self.projects, self.entries, None, GENERATED_AT)

    def test_filename(self):
        self.assertEqual(reports.report_filename('csv', GENERATED_AT), 'project-report-2026-05-20.csv')


class ReportSummaryTest(SimpleTestCase):

    def test_summary(self):
        projects = [
            make_project(1, status='active', progress=20),
            make_project(2, status='completed', progress=100),
            make_project(3, status='completed', progress=60),
            make_project(4, status='planning', progress=0),
        ]
        entries = [make_entry(1, 1, 20), make_entry(2, 2, 20)]
        summary = reports.report_summary(projects, entries)

        self.assertEqual(summary['total_projects'], 4)
        self.assertEqual(summary['active_projects'], 1)
        self.assertEqual(summary['total_hours'], 40)
        self.assertEqual(summary['work_days'], 5)
        self.assertEqual(summary['average_progress'], 45)
        self.assertEqual(summary['completion_rate_pct'], 50)

    def test_empty(self):
        summary = reports.report_summary([], [])
        self.assertEqual(summary['completion_rate_pct'], 0)
        self.assertEqual(summary['average_progress'], 0)
