"""Management command to revoke every token of an identity."""

from typing import Any

from django.core.management.base import BaseCommand, CommandError

from server.apps.accounts.logic.credential_store import CredentialStore
from server.apps.accounts.logic.token_authority import TokenAuthority


class Command(BaseCommand):
    """Log an identity out everywhere."""

    help = 'Revoke all bearer tokens of the identity with the given email'

    def add_arguments(self, parser: Any) -> None:
        """Add command line arguments.

        Args:
            parser: Argument parser.
        """
        parser.add_argument('email', help='Email of the identity')

    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the command.

        Args:
            args: Positional arguments (unused).
            options: Command options.
        """
        identity = CredentialStore().find_by_email(options['email'])
        if identity is None:
            raise CommandError(f'Identity with email {options["email"]} not found')

        revoked = TokenAuthority().revoke_all_for_identity(identity.id)
        self.stdout.write(
            self.style.SUCCESS(f'Revoked {revoked} tokens for {identity.email}'),
        )
