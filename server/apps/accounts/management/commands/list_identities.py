"""Management command to list identities."""

from typing import Any

from django.core.management.base import BaseCommand

from server.apps.accounts.logic.credential_store import CredentialStore


class Command(BaseCommand):
    """Print every identity with its role."""

    help = 'List all identities'

    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the command.

        Args:
            args: Positional arguments (unused).
            options: Command options (unused).
        """
        identities = CredentialStore().list_identities()
        if not identities:
            self.stdout.write('No identities found')
            return

        for identity in identities:
            role = 'admin' if identity.is_admin else 'user'
            self.stdout.write(
                f'{identity.id}  {identity.email}  {identity.name}  ({role})',
            )
        self.stdout.write(
            self.style.SUCCESS(f'{len(identities)} identities'),
        )
