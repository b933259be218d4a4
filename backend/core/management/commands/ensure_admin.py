"""
Management command to create or reset the admin account
"""
from django.conf import settings
from django.core.management.base import BaseCommand
from backend.core.models import User


class Command(BaseCommand):
    help = "Creates the admin account, or resets its password and role when it already exists"

    def add_arguments(self, parser):
        parser.add_argument(
            '--email',
            type=str,
            default=None,
            help='Admin email (default: ADMIN_EMAIL setting)',
        )
        parser.add_argument(
            '--password',
            type=str,
            default=None,
            help='Admin password (default: ADMIN_PASSWORD setting)',
        )
        parser.add_argument(
            '--name',
            type=str,
            default='Admin',
            help='Display name for a newly created admin',
        )

    def handle(self, *args, **options):
        email = (options['email'] or settings.DEFAULT_ADMIN_EMAIL).strip().lower()
        password = options['password'] or settings.DEFAULT_ADMIN_PASSWORD

        user = User.objects.filter(email__iexact=email).first()
        if user is None:
            User.objects.create_superuser(email=email, password=password, name=options['name'])
            self.stdout.write(self.style.SUCCESS(f"Created admin account {email}"))
            return

        user.role = User.ROLE_ADMIN
        user.is_staff = True
        user.is_superuser = True
        user.is_active = True
        user.set_password(password)
        user.save()
        self.stdout.write(self.style.WARNING(f"Admin account {email} already existed; password and role reset"))
