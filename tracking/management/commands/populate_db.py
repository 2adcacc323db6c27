import random
from datetime import timedelta
from faker import Faker
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from tracking.models import Project, Person, TimeEntry, UserProfile

fake = Faker('en_US')

# --- GENERATION PARAMETERS ---
NUM_PEOPLE = 15
NUM_PROJECTS = 12
AVG_TIME_ENTRIES_PER_PROJECT = 30

# --- DOMAIN DATA ---
ROLES = {
    "Engineer": (80, 120),
    "Architect": (90, 140),
    "Project Manager": (85, 130),
    "Drafter": (45, 70),
    "Consultant": (100, 160),
    "Intern": (25, 40),
}
TASK_ROLES = ['Engineering', 'Drafting', 'PM']
DEPARTMENTS = ['Structural', 'Civil', 'Mechanical', 'Electrical', 'Geotechnical']
PROJECT_STATUSES = [choice for choice, _ in Project.Status.choices]
PROJECT_TYPES = [choice for choice, _ in Project.ProjectType.choices]
PROJECT_NAMES = [
    'Office Complex Phase 1', 'Residential Tower Foundation', 'Industrial Warehouse Retrofit',
    'Bridge Deck Replacement', 'Hospital Wing Expansion', 'Water Treatment Upgrade',
    'School Seismic Retrofit', 'Parking Structure Assessment', 'Retail Center Fit-out',
]


class Command(BaseCommand):
    help = 'Generates synthetic people, users, projects and time entries'

    def add_arguments(self, parser):
        parser.add_argument('--people', type=int, default=NUM_PEOPLE)
        parser.add_argument('--projects', type=int, default=NUM_PROJECTS)
        parser.add_argument('--entries', type=int, default=AVG_TIME_ENTRIES_PER_PROJECT,
                            help='Average number of time entries per project')
        parser.add_argument('--flush', action='store_true',
                            help='Delete existing projects, people and time entries first')

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write(self.style.WARNING("Generating synthetic data..."))
        today = timezone.localdate()
        User = get_user_model()

        if options['flush']:
            self.stdout.write("Clearing existing tables...")
            TimeEntry.objects.all().delete()
            Project.objects.all().delete()
            Person.objects.all().delete()

        # 1. PEOPLE (each one also gets a login so time can be logged as them)
        self.stdout.write(f"Generating {options['people']} people...")
        users = []
        for _ in range(options['people']):
            role = random.choice(list(ROLES.keys()))
            low, high = ROLES[role]
            name = fake.name()
            email = fake.unique.email()
            Person.objects.create(
                name=name,
                email=email,
                phone=fake.phone_number(),
                role=role,
                department=random.choice(DEPARTMENTS),
                hourly_rate=round(random.uniform(low, high), 2),
                notes=fake.sentence(nb_words=8),
            )
            user, _ = User.objects.get_or_create(username=email, defaults={'email': email})
            UserProfile.objects.update_or_create(
                user=user, defaults={'email': email, 'full_name': name, 'role': role}
            )
            users.append(user)

        # 2. PROJECTS
        self.stdout.write(f"Generating {options['projects']} projects...")
        projects = []
        for _ in range(options['projects']):
            start_date = fake.date_between(start_date='-1y', end_date='-1M')
            end_date = start_date + timedelta(days=random.randint(60, 540))
            fee = random.randint(20000, 250000)
            projects.append(Project.objects.create(
                name=f"{random.choice(PROJECT_NAMES)} {fake.city()}",
                description=fake.sentence(nb_words=12),
                status=random.choice(PROJECT_STATUSES),
                progress=random.randint(0, 100),
                project_type=random.choice(PROJECT_TYPES),
                fee=fee,
                budget=round(fee * random.uniform(0.6, 0.9)),
                start_date=start_date,
                end_date=end_date,
                target_hourly_rate=random.choice([85, 95, 110, 125]),
                created_by=random.choice(users) if users else None,
            ))

        # 3. TIME ENTRIES (only between project start and today)
        self.stdout.write("Generating time entries...")
        entries = []
        if users:
            for project in projects:
                for _ in range(random.randint(1, max(1, options['entries'] * 2))):
                    entries.append(TimeEntry(
                        user=random.choice(users),
                        project=project,
                        hours=round(random.uniform(0.5, 8), 2),
                        description=fake.sentence(nb_words=6),
                        date=fake.date_between(start_date=project.start_date, end_date=today),
                        role=random.choice(TASK_ROLES),
                    ))
            TimeEntry.objects.bulk_create(entries)

        self.stdout.write(self.style.SUCCESS(
            f"Created {len(users)} people, {len(projects)} projects and {len(entries)} time entries."
        ))
