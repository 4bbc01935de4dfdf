"""Management command to change an identity's admin flag."""

from typing import Any

from django.core.management.base import BaseCommand, CommandError

from server.apps.accounts.logic.credential_store import CredentialStore


class Command(BaseCommand):
    """Grant or withdraw the admin flag."""

    help = 'Grant (--on) or withdraw (--off) admin rights'

    def add_arguments(self, parser: Any) -> None:
        """Add command line arguments.

        Args:
            parser: Argument parser.
        """
        parser.add_argument('email', help='Email of the identity')
        flag = parser.add_mutually_exclusive_group(required=True)
        flag.add_argument('--on', dest='is_admin', action='store_true')
        flag.add_argument('--off', dest='is_admin', action='store_false')

    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the command.

        Args:
            args: Positional arguments (unused).
            options: Command options.
        """
        store = CredentialStore()
        identity = store.find_by_email(options['email'])
        if identity is None:
            raise CommandError(f'Identity with email {options["email"]} not found')

        updated = store.set_admin(identity.id, options['is_admin'])
        role = 'admin' if updated.is_admin else 'user'
        self.stdout.write(
            self.style.SUCCESS(f'{updated.email} is now {role}'),
        )
