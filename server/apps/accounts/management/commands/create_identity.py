"""Management command to register a new identity."""

from typing import Any

from django.core.management.base import BaseCommand, CommandError

from server.apps.accounts.exceptions import DuplicateEmailError
from server.apps.accounts.logic.credential_store import CredentialStore


class Command(BaseCommand):
    """Register an identity with an email and a password."""

    help = 'Register a new identity'

    def add_arguments(self, parser: Any) -> None:
        """Add command line arguments.

        Args:
            parser: Argument parser.
        """
        parser.add_argument('name', help='Display name')
        parser.add_argument('email', help='Login email')
        parser.add_argument(
            '--password',
            required=True,
            help='Plaintext password (hashed before storing)',
        )
        parser.add_argument(
            '--admin',
            action='store_true',
            help='Allow the identity to bypass per-file permissions',
        )

    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the command.

        Args:
            args: Positional arguments (unused).
            options: Command options.
        """
        try:
            identity = CredentialStore().register(
                name=options['name'],
                email=options['email'],
                password=options['password'],
                is_admin=options['admin'],
            )
        except DuplicateEmailError as exc:
            raise CommandError(str(exc)) from exc

        role = 'admin' if identity.is_admin else 'user'
        self.stdout.write(
            self.style.SUCCESS(
                f'Registered {role} {identity.email} (ID: {identity.id})',
            ),
        )
