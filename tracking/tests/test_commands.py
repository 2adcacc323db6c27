import csv
import tempfile
from io import StringIO
from pathlib import Path

from django.core.management import call_command
from django.test import TestCase

from tracking.models import Project, Person, TimeEntry, UserProfile


class PopulateDbCommandTest(TestCase):

    def test_generates_linked_data(self):
        out = StringIO()
        call_command('populate_db', people=3, projects=2, entries=2, stdout=out)

        self.assertEqual(Person.objects.count(), 3)
        self.assertEqual(UserProfile.objects.count(), 3)
        self.assertEqual(Project.objects.count(), 2)
        self.assertTrue(TimeEntry.objects.exists())
        for entry in TimeEntry.objects.select_related('project'):
            self.assertGreaterEqual(entry.date, entry.project.start_date)
        self.assertIn('Created 3 people, 2 projects', out.getvalue())

    def test_flush(self):
        call_command('populate_db', people=1, projects=1, entries=1, stdout=StringIO())
        call_command('populate_db', people=1, projects=2, entries=1, flush=True, stdout=StringIO())
        self.assertEqual(Project.objects.count(), 2)
        self.assertEqual(Person.objects.count(), 1)


class ExportReportCommandTest(TestCase):

    def test_writes_csv(self):
        Project.objects.create(name='Culvert', status='active', fee=100, budget=100)
        Project.objects.create(name='Levee', status='completed', fee=100, budget=100)

        with tempfile.TemporaryDirectory() as tmp:
            target = Path(tmp) / 'report.csv'
            call_command('export_report', output=str(target), status='active', stdout=StringIO())
            with target.open(encoding='utf-8') as handle:
                rows = list(csv.DictReader(handle))

        self.assertEqual([row['Project Name'] for row in rows], ['Culvert'])
