from django.contrib import admin

from .models import Project, Person, TimeEntry, UserProfile


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ('name', 'status', 'progress', 'project_type', 'fee', 'budget', 'start_date', 'end_date')
    list_filter = ('status', 'project_type')
    search_fields = ('name', 'description')


@admin.register(Person)
class PersonAdmin(admin.ModelAdmin):
    list_display = ('name', 'role', 'department', 'hourly_rate', 'email')
    search_fields = ('name', 'email', 'department')


@admin.register(TimeEntry)
class TimeEntryAdmin(admin.ModelAdmin):
    list_display = ('date', 'project', 'user', 'hours', 'role')
    list_filter = ('role',)


admin.site.register(UserProfile)
