"""
Management command to seed demo users and reports for CleanCity.

Usage:
    python manage.py seed_reports
    python manage.py seed_reports --reports 200 --days 60 --seed 7

Creates users for all roles with known passwords for testing:
    - admin@cleancity.local / Admin@123 (Administrator)
    - driver1@cleancity.local, driver2@..., driver3@... / Driver@123
    - citizen1@cleancity.local, citizen2@..., citizen3@... / Citizen@123

Reports are spread over the last ``--days`` days and walked through the
workflow with ReportWorkflowService, so their history logs are complete.
"""

import random
from datetime import timedelta

from django.core.management.base import BaseCommand
from django.utils import timezone

from authentication.models import User, UserRole
from reports.models import ReportCategory, ReportStatus
from reports.services import ReportWorkflowService


DEMO_USERS = [
    {
        'identifier': 'admin@cleancity.local',
        'password': 'Admin@123',
        'role': UserRole.ADMIN,
        'full_name': 'Admin User',
        'is_staff': True,
        'is_superuser': True,
    },
    {'identifier': 'driver1@cleancity.local', 'password': 'Driver@123', 'role': UserRole.DRIVER, 'full_name': 'Mike Johnson'},
    {'identifier': 'driver2@cleancity.local', 'password': 'Driver@123', 'role': UserRole.DRIVER, 'full_name': 'Sarah Wilson'},
    {'identifier': 'driver3@cleancity.local', 'password': 'Driver@123', 'role': UserRole.DRIVER, 'full_name': 'Lisa Garcia'},
    {'identifier': 'citizen1@cleancity.local', 'password': 'Citizen@123', 'role': UserRole.CITIZEN, 'full_name': 'John Doe'},
    {'identifier': 'citizen2@cleancity.local', 'password': 'Citizen@123', 'role': UserRole.CITIZEN, 'full_name': 'Jane Smith'},
    {'identifier': 'citizen3@cleancity.local', 'password': 'Citizen@123', 'role': UserRole.CITIZEN, 'full_name': 'David Brown'},
]

SAMPLE_ADDRESSES = [
    '123 Main Street, New York, NY 10001',
    '456 Oak Avenue, Los Angeles, CA 90210',
    '789 Pine Road, Chicago, IL 60601',
    '321 Elm Street, Houston, TX 77001',
    '654 Maple Drive, Phoenix, AZ 85001',
    '987 Cedar Lane, Philadelphia, PA 19101',
    '555 Broadway, New York, NY 10012',
    '888 Michigan Avenue, Chicago, IL 60611',
]

SAMPLE_DESCRIPTIONS = {
    ReportCategory.GENERAL_WASTE: 'Overflowing street bin with bags piled beside it.',
    ReportCategory.RECYCLABLE: 'Cardboard boxes scattered around a full recycling bin.',
    ReportCategory.HAZARDOUS: 'Paint cans and chemical containers left near a storm drain.',
    ReportCategory.ILLEGAL_DUMPING: 'Construction debris dumped on the sidewalk.',
    ReportCategory.BULKY_ITEMS: 'Old mattress and sofa left on the curb.',
}

# Workflow path (after Pending) for each target status
STATUS_PATHS = {
    ReportStatus.PENDING: [],
    ReportStatus.ASSIGNED: [ReportStatus.ASSIGNED],
    ReportStatus.IN_PROGRESS: [ReportStatus.ASSIGNED, ReportStatus.IN_PROGRESS],
    ReportStatus.COMPLETED: [ReportStatus.ASSIGNED, ReportStatus.IN_PROGRESS, ReportStatus.COMPLETED],
    ReportStatus.RESOLVED: [ReportStatus.RESOLVED],
    ReportStatus.REJECTED: [ReportStatus.REJECTED],
}

STATUS_WEIGHTS = {
    ReportStatus.PENDING: 2,
    ReportStatus.ASSIGNED: 2,
    ReportStatus.IN_PROGRESS: 2,
    ReportStatus.COMPLETED: 5,
    ReportStatus.RESOLVED: 1,
    ReportStatus.REJECTED: 1,
}

REJECTION_MESSAGES = [
    'Location could not be accessed due to private property restrictions.',
    'Area has been cleaned by property maintenance team.',
    'Requires specialized hazmat team; forwarded to environmental services.',
]


class Command(BaseCommand):
    help = 'Seed demo users and reports with complete status histories'

    def add_arguments(self, parser):
        parser.add_argument(
            '--reports',
            type=int,
            default=60,
            help='Number of reports to create (default: 60)',
        )
        parser.add_argument(
            '--days',
            type=int,
            default=30,
            help='Spread report creation over this many past days (default: 30)',
        )
        parser.add_argument(
            '--seed',
            type=int,
            default=None,
            help='Random seed for reproducible data',
        )
        parser.add_argument(
            '--force',
            action='store_true',
            help='Reset demo user passwords even if users already exist',
        )

    def handle(self, *args, **options):
        rng = random.Random(options['seed'])
        users = self._seed_users(options['force'])

        admin = users[UserRole.ADMIN][0]
        drivers = users[UserRole.DRIVER]
        citizens = users[UserRole.CITIZEN]

        now = timezone.now()
        statuses = list(STATUS_WEIGHTS)
        weights = [STATUS_WEIGHTS[value] for value in statuses]
        counts = {value: 0 for value in statuses}

        for _ in range(options['reports']):
            created_at = now - timedelta(
                days=rng.randint(0, max(options['days'] - 1, 0)),
                hours=rng.randint(0, 23),
                minutes=rng.randint(0, 59),
            )
            category = rng.choice(ReportCategory.ALL)
            report = ReportWorkflowService.create_report(
                submitted_by=rng.choice(citizens),
                category=category,
                address=rng.choice(SAMPLE_ADDRESSES),
                description=SAMPLE_DESCRIPTIONS[category],
                created_at=created_at,
            )

            target = rng.choices(statuses, weights=weights)[0]
            driver = rng.choice(drivers)
            moment = created_at
            reached = ReportStatus.PENDING

            for step in STATUS_PATHS[target]:
                moment = moment + timedelta(hours=rng.randint(1, 72), minutes=rng.randint(0, 59))
                # Never write events in the future
                if moment > now:
                    break
                actor = driver if step in (ReportStatus.IN_PROGRESS, ReportStatus.COMPLETED) else admin
                report = ReportWorkflowService.transition(
                    report,
                    step,
                    actor=actor,
                    driver=driver if step == ReportStatus.ASSIGNED else None,
                    rejection_message=rng.choice(REJECTION_MESSAGES) if step == ReportStatus.REJECTED else '',
                    timestamp=moment,
                )
                reached = step

            counts[reached] += 1

        self.stdout.write('')
        for value, count in counts.items():
            self.stdout.write(f'  {value:<12} {count}')
        self.stdout.write(self.style.SUCCESS(
            f"Done! Created {options['reports']} reports over {options['days']} days"
        ))

    def _seed_users(self, force):
        users = {UserRole.ADMIN: [], UserRole.DRIVER: [], UserRole.CITIZEN: []}
        created_count = 0
        updated_count = 0

        for entry in DEMO_USERS:
            user_data = dict(entry)
            identifier = user_data.pop('identifier')
            password = user_data.pop('password')

            try:
                user = User.objects.get(identifier=identifier)
                if force:
                    user.set_password(password)
                    for field, value in user_data.items():
                        setattr(user, field, value)
                    user.is_active = True
                    user.save()
                    updated_count += 1
                    self.stdout.write(self.style.WARNING(f'  Updated: {identifier} ({user.role})'))
                else:
                    self.stdout.write(self.style.NOTICE(f'  Exists:  {identifier} ({user.role})'))
            except User.DoesNotExist:
                user = User.objects.create_user(identifier=identifier, password=password, **user_data)
                created_count += 1
                self.stdout.write(self.style.SUCCESS(f'  Created: {identifier} ({user.role})'))

            users[user.role].append(user)

        self.stdout.write(self.style.SUCCESS(
            f'Users created: {created_count}, updated: {updated_count}'
        ))
        return users
