from rest_framework import serializers


class StatusBucketSerializer(serializers.Serializer):
    name = serializers.CharField()
    status = serializers.CharField()
    value = serializers.IntegerField()


class FinancialSummarySerializer(serializers.Serializer):
    total_fees = serializers.FloatField()
    total_cost = serializers.FloatField()
    gross_margin = serializers.FloatField()
    profit_margin_pct = serializers.FloatField()
    effective_hourly_rate = serializers.FloatField(help_text="Fees divided by logged hours")


class ProjectProgressSerializer(serializers.Serializer):
    name = serializers.CharField()
    progress = serializers.IntegerField()


class AnalysisSerializer(serializers.Serializer):
    total_projects = serializers.IntegerField()
    active_projects = serializers.IntegerField()
    completed_projects = serializers.IntegerField()
    active_share_pct = serializers.IntegerField()
    total_time_entries = serializers.IntegerField()
    total_hours = serializers.FloatField()
    average_progress = serializers.FloatField()
    financials = FinancialSummarySerializer()
    status_distribution = StatusBucketSerializer(many=True)
    project_progress = ProjectProgressSerializer(many=True)


class BurnRateSerializer(serializers.Serializer):
    project_id = serializers.IntegerField()
    name = serializers.CharField()
    hours = serializers.FloatField()
    cost = serializers.FloatField()
    fee = serializers.FloatField()
    fee_used_pct = serializers.FloatField(help_text="Estimated cost as a share of the fee, clamped to 0-100")
    time_elapsed_pct = serializers.FloatField(help_text="Elapsed share of the schedule, clamped to 0-100")
    over_budget = serializers.BooleanField()
    label = serializers.CharField()
    fee_defined = serializers.BooleanField(help_text="False when the fee was zero or missing")
    schedule_defined = serializers.BooleanField(help_text="False when start/end dates give no positive length")


class RoleHoursSerializer(serializers.Serializer):
    role = serializers.CharField()
    hours = serializers.FloatField()


class PersonProjectHoursSerializer(serializers.Serializer):
    person = serializers.CharField()
    project_id = serializers.IntegerField()
    project_name = serializers.CharField()
    hours = serializers.FloatField()


class BreakdownSerializer(serializers.Serializer):
    hours_by_role = RoleHoursSerializer(many=True)
    hours_by_person_and_project = PersonProjectHoursSerializer(many=True)


class WeekdayRoleHoursSerializer(serializers.Serializer):
    day = serializers.CharField()
    roles = serializers.DictField(child=serializers.FloatField(), help_text="Hours logged that day, keyed by task role")


class RecentProjectSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    name = serializers.CharField()
    progress = serializers.IntegerField()
    status = serializers.CharField()


class DashboardSerializer(serializers.Serializer):
    hours_today = serializers.FloatField()
    hours_this_week = serializers.FloatField()
    active_projects = serializers.IntegerField()
    alerts = serializers.ListField(child=serializers.CharField())
    weekly_hours_by_role = WeekdayRoleHoursSerializer(many=True)
    recent_projects = RecentProjectSerializer(many=True)


class ReportRowSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    name = serializers.CharField()
    status = serializers.CharField()
    progress = serializers.IntegerField()
    hours = serializers.FloatField()
    cost = serializers.FloatField()
    margin = serializers.FloatField()
    project_type = serializers.CharField()
    fee = serializers.FloatField()
    budget = serializers.FloatField()
    created_at = serializers.DateTimeField(allow_null=True)
    updated_at = serializers.DateTimeField(allow_null=True)


class ReportSummarySerializer(serializers.Serializer):
    total_projects = serializers.IntegerField()
    active_projects = serializers.IntegerField()
    total_hours = serializers.FloatField()
    work_days = serializers.IntegerField(help_text="Total hours divided by 8")
    total_fees = serializers.FloatField()
    average_progress = serializers.IntegerField()
    completion_rate_pct = serializers.IntegerField()


class ReportSerializer(serializers.Serializer):
    projects = ReportRowSerializer(many=True)
    summary = ReportSummarySerializer()


class FetchErrorSerializer(serializers.Serializer):
    error = serializers.CharField()
    retry = serializers.BooleanField()
