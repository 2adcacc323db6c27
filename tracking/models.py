from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


class UserProfile(models.Model):
    user = models.OneToOneField(settings.AUTH_USER_MODEL, models.CASCADE, related_name='profile')
    email = models.CharField(max_length=254, blank=True, default='')
    full_name = models.CharField(max_length=150, blank=True, default='')
    role = models.CharField(max_length=50, blank=True, default='member')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'users'

    def __str__(self):
        return self.full_name or self.email or str(self.user_id)

    @classmethod
    def for_user(cls, user):
        """Return the profile of ``user``, creating it from the auth record if missing."""
        profile, _ = cls.objects.get_or_create(
            user=user,
            defaults={
                'email': user.email or '',
                'full_name': user.get_full_name() or user.get_username(),
            },
        )
        return profile


class Project(models.Model):
    class Status(models.TextChoices):
        PLANNING = 'planning', 'Planning'
        ACTIVE = 'active', 'Active'
        ON_HOLD = 'on-hold', 'On Hold'
        COMPLETED = 'completed', 'Completed'

    class ProjectType(models.TextChoices):
        ENGINEERING = 'engineering', 'Engineering'
        DRAFTING = 'drafting', 'Drafting'
        PM = 'pm', 'Project Management'
        CONSULTING = 'consulting', 'Consulting'
        OTHER = 'other', 'Other'

    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, default='')
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PLANNING)
    progress = models.IntegerField(
        default=0, validators=[MinValueValidator(0), MaxValueValidator(100)]
    )
    project_type = models.CharField(max_length=20, choices=ProjectType.choices, blank=True, default='')
    fee = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    budget = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    start_date = models.DateField(blank=True, null=True)
    end_date = models.DateField(blank=True, null=True)
    target_hourly_rate = models.DecimalField(max_digits=10, decimal_places=2, blank=True, null=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, models.SET_NULL, blank=True, null=True, related_name='projects_created'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'projects'

    def __str__(self):
        return self.name


class Person(models.Model):
    name = models.CharField(max_length=150)
    email = models.CharField(max_length=254, blank=True, default='')
    phone = models.CharField(max_length=50, blank=True, default='')
    role = models.CharField(max_length=50, blank=True, default='')
    department = models.CharField(max_length=100, blank=True, default='')
    hourly_rate = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    notes = models.TextField(blank=True, default='')
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, models.SET_NULL, blank=True, null=True, related_name='people_created'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'people'
        verbose_name_plural = 'people'

    def __str__(self):
        return self.name


class TimeEntry(models.Model):
    # Deleting a project removes its entries; ProjectViewSet.remove does it explicitly in one transaction.
    user = models.ForeignKey(settings.AUTH_USER_MODEL, models.DO_NOTHING, db_constraint=False, related_name='time_entries')
    project = models.ForeignKey(Project, models.CASCADE, related_name='time_entries')
    hours = models.FloatField()
    description = models.TextField(blank=True, default='')
    date = models.DateField()
    role = models.CharField(max_length=50, blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'time_entries'
        verbose_name_plural = 'time entries'

    def __str__(self):
        return f'{self.hours}h on {self.project_id} ({self.date})'
