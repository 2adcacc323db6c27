"""
API tests for the analytics and report endpoints.
"""
import csv
import io
from datetime import timedelta
from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from analytics.snapshot import DataFetchError
from tracking.models import Project, TimeEntry, UserProfile

User = get_user_model()


class AnalyticsAPITestCase(APITestCase):

    def setUp(self):
        self.today = timezone.localdate()
        self.user = User.objects.create_user(username='pm', email='pm@example.com', password='testpass123')
        UserProfile.objects.create(user=self.user, email='pm@example.com', full_name='Pat Morgan')
        self.client.force_authenticate(user=self.user)

        self.bridge = Project.objects.create(
            name='Bridge Deck', status='active', progress=40, fee=Decimal('1000'),
            budget=Decimal('900'), target_hourly_rate=Decimal('50'), project_type='engineering',
            start_date=self.today - timedelta(days=10), end_date=self.today + timedelta(days=90),
            created_by=self.user,
        )
        self.tower = Project.objects.create(
            name='Tower Foundation', status='completed', progress=100, fee=Decimal('5000'),
            budget=Decimal('4000'), target_hourly_rate=Decimal('100'), created_by=self.user,
            start_date=self.today - timedelta(days=500), end_date=self.today - timedelta(days=100),
        )
        self.depot = Project.objects.create(name='Depot', status='planning', fee=0, budget=0)

        TimeEntry.objects.create(user=self.user, project=self.bridge, hours=4, date=self.today, role='Engineering')
        TimeEntry.objects.create(user=self.user, project=self.bridge, hours=6, date=self.today, role='')
        TimeEntry.objects.create(user=self.user, project=self.tower, hours=2.5,
                                 date=self.today - timedelta(days=400), role='Drafting')


class AnalysisViewTest(AnalyticsAPITestCase):

    def test_summary(self):
        response = self.client.get(reverse('analysis-list'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        data = response.json()
        self.assertEqual(data['total_projects'], 3)
        self.assertEqual(data['active_projects'], 1)
        self.assertEqual(data['completed_projects'], 1)
        self.assertEqual(data['total_hours'], 12.5)
        self.assertEqual(data['financials']['total_cost'], 750.0)
        self.assertEqual(data['financials']['gross_margin'], 5250.0)
        self.assertEqual(sum(bucket['value'] for bucket in data['status_distribution']), 3)

    def test_range_filters_time_entries(self):
        response = self.client.get(reverse('analysis-list'), {'range': 'month'})
        self.assertEqual(response.json()['total_hours'], 10)

    def test_flat_rate(self):
        response = self.client.get(reverse('analysis-list'), {'rate': 'flat'})
        self.assertEqual(response.json()['financials']['total_cost'], 1250.0)

    def test_invalid_range(self):
        response = self.client.get(reverse('analysis-list'), {'range': 'decade'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_fetch_failure_offers_retry(self):
        failure = DataFetchError('Failed to fetch projects: connection refused')
        with mock.patch('analytics.views.fetch_snapshot', side_effect=failure):
            response = self.client.get(reverse('analysis-list'))

        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertEqual(response.json(), {
            'error': 'Failed to fetch projects: connection refused',
            'retry': True,
        })

    def test_requires_authentication(self):
        self.client.force_authenticate(user=None)
        response = self.client.get(reverse('analysis-list'))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class BurnRateViewTest(AnalyticsAPITestCase):

    def test_rows(self):
        response = self.client.get(reverse('burn-rate-list'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        rows = {row['project_id']: row for row in response.json()}
        self.assertEqual(len(rows), 3)

        bridge = rows[self.bridge.pk]
        self.assertEqual(bridge['fee_used_pct'], 50.0)
        self.assertEqual(bridge['time_elapsed_pct'], 10.0)
        self.assertTrue(bridge['over_budget'])
        self.assertEqual(bridge['label'], 'Over Budget')

        depot = rows[self.depot.pk]
        self.assertFalse(depot['fee_defined'])
        self.assertFalse(depot['schedule_defined'])
        for row in rows.values():
            self.assertTrue(0 <= row['fee_used_pct'] <= 100)
            self.assertTrue(0 <= row['time_elapsed_pct'] <= 100)


class BreakdownViewTest(AnalyticsAPITestCase):

    def test_breakdown(self):
        response = self.client.get(reverse('breakdown-list'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.json()

        self.assertEqual(data['hours_by_role'], [
            {'role': 'Drafting', 'hours': 2.5},
            {'role': 'Engineering', 'hours': 4.0},
            {'role': 'Unknown', 'hours': 6.0},
        ])
        self.assertEqual(
            sum(row['hours'] for row in data['hours_by_role']),
            sum(TimeEntry.objects.values_list('hours', flat=True)),
        )
        by_project = {row['project_name']: row for row in data['hours_by_person_and_project']}
        self.assertEqual(by_project['Bridge Deck']['person'], 'Pat Morgan')
        self.assertEqual(by_project['Bridge Deck']['hours'], 10.0)

    def test_secondary_user_fetch_failure_is_not_fatal(self):
        with mock.patch('analytics.snapshot.UserProfile') as profiles:
            profiles.objects.all.return_value.values.side_effect = DatabaseError('boom')
            response = self.client.get(reverse('breakdown-list'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        people = {row['person'] for row in response.json()['hours_by_person_and_project']}
        self.assertEqual(people, {'Unknown'})


class DashboardViewTest(AnalyticsAPITestCase):

    def test_overview(self):
        response = self.client.get(reverse('dashboard-list'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.json()

        self.assertEqual(data['hours_today'], 10.0)
        self.assertEqual(data['hours_this_week'], 10.0)
        self.assertEqual(data['active_projects'], 1)
        self.assertEqual(len(data['alerts']), 1)
        self.assertIn('Bridge Deck', data['alerts'][0])
        self.assertEqual(len(data['weekly_hours_by_role']), 7)

        today_row = data['weekly_hours_by_role'][self.today.weekday()]
        self.assertEqual(today_row['roles']['Engineering'], 4.0)
        self.assertEqual(today_row['roles']['Unknown'], 6.0)
        self.assertEqual([project['name'] for project in data['recent_projects']],
                         ['Depot', 'Tower Foundation', 'Bridge Deck'])


class ReportViewTest(AnalyticsAPITestCase):

    def test_report_table(self):
        response = self.client.get(reverse('reports-list'), {'status': 'active'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.json()

        self.assertEqual(len(data['projects']), 1)
        self.assertEqual(data['projects'][0]['hours'], 10.0)
        self.assertEqual(data['projects'][0]['cost'], 500.0)
        self.assertEqual(data['summary']['total_hours'], 10.0)

    def test_search(self):
        response = self.client.get(reverse('reports-list'), {'search': 'tower'})
        names = [row['name'] for row in response.json()['projects']]
        self.assertEqual(names, ['Tower Foundation'])

    def test_invalid_status(self):
        response = self.client.get(reverse('reports-list'), {'status': 'archived'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_csv_export(self):
        response = self.client.get(reverse('reports-export'), {'type': 'csv'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response['Content-Type'].startswith('text/csv'))
        self.assertIn(f'project-report-{timezone.localdate():%Y-%m-%d}.csv', response['Content-Disposition'])

        rows = list(csv.DictReader(io.StringIO(response.content.decode('utf-8'))))
        self.assertEqual(len(rows), Project.objects.count())
        for row in rows:
            project = Project.objects.get(name=row['Project Name'])
            expected = sum(project.time_entries.values_list('hours', flat=True))
            self.assertAlmostEqual(float(row['Hours']), expected)

    def test_filtered_csv_export(self):
        response = self.client.get(reverse('reports-export'), {'type': 'csv', 'status': 'completed'})
        rows = list(csv.DictReader(io.StringIO(response.content.decode('utf-8'))))
        self.assertEqual([row['Project Name'] for row in rows], ['Tower Foundation'])

    def test_text_export(self):
        response = self.client.get(reverse('reports-export'), {'type': 'txt'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        content = response.content.decode('utf-8')
        self.assertIn('User: pm@example.com', content)
        self.assertIn('Total Projects: 3', content)

    def test_json_export(self):
        response = self.client.get(reverse('reports-export'), {'type': 'json'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.json()['time_entries']), 3)

    def test_unknown_export_type(self):
        response = self.client.get(reverse('reports-export'), {'type': 'pdf'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class SchemaViewTest(APITestCase):

    def test_schema_lists_analytics_routes(self):
        response = self.client.get(reverse('schema'), {'format': 'json'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        paths = response.json()['paths']
        self.assertIn('/api/analytics/reports/export/', paths)
        self.assertIn('/api/tracking/projects/', paths)
        parameters = {param['name']: param for param in paths['/api/analytics/reports/export/']['get']['parameters']}
        self.assertCountEqual(parameters['type']['schema']['enum'], ['csv', 'txt', 'json'])
