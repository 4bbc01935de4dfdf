"""Management command to issue a bearer token for an identity."""

from typing import Any

from django.core.management.base import BaseCommand, CommandError

from server.apps.accounts.logic.credential_store import CredentialStore
from server.apps.accounts.logic.token_authority import (
    DEFAULT_TOKEN_NAME,
    TokenAuthority,
)


class Command(BaseCommand):
    """Issue a bearer token and print it once."""

    help = 'Issue a bearer token for the identity with the given email'

    def add_arguments(self, parser: Any) -> None:
        """Add command line arguments.

        Args:
            parser: Argument parser.
        """
        parser.add_argument('email', help='Email of the identity')
        parser.add_argument(
            '--name',
            default=DEFAULT_TOKEN_NAME,
            help=f'Token label (default: {DEFAULT_TOKEN_NAME})',
        )
        parser.add_argument(
            '--revoke-existing',
            action='store_true',
            help='Revoke every existing token of the identity first',
        )

    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the command.

        Args:
            args: Positional arguments (unused).
            options: Command options.
        """
        identity = CredentialStore().find_by_email(options['email'])
        if identity is None:
            raise CommandError(f'Identity with email {options["email"]} not found')

        authority = TokenAuthority()
        if options['revoke_existing']:
            revoked = authority.revoke_all_for_identity(identity.id)
            self.stdout.write(f'Revoked {revoked} existing tokens')

        issued = authority.issue(identity.id, name=options['name'])

        self.stdout.write(
            self.style.SUCCESS(
                f'Issued token for {identity.email} (ID: {identity.id}):',
            ),
        )
        self.stdout.write(issued.bearer)
        self.stdout.write(
            f'Send it as the header "Authorization: Bearer {issued.bearer}"',
        )
