"""
Management command: bootstrap_admin

Create the administrator account from ADMIN_EMAIL / ADMIN_PASSWORD.

Usage:
    python manage.py bootstrap_admin
"""
from django.core.management.base import BaseCommand, CommandError

from apps.users.services import AuthService


class Command(BaseCommand):
    help = 'Create the administrator account from ADMIN_EMAIL / ADMIN_PASSWORD'

    def handle(self, *args, **options):
        user, created = AuthService.bootstrap_admin()

        if user is None:
            raise CommandError('ADMIN_EMAIL and ADMIN_PASSWORD must both be set')

        if created:
            self.stdout.write(self.style.SUCCESS(f"Administrator {user.email} created"))
        else:
            self.stdout.write(self.style.WARNING(f"Administrator {user.email} already exists"))
