"""Django admin configuration for accounts app."""

from django.contrib import admin
from django.db.models import QuerySet
from django.http import HttpRequest

from server.apps.accounts.models import AccessToken, Identity


@admin.register(Identity)
class IdentityAdmin(admin.ModelAdmin[Identity]):
    """Admin interface for Identity model."""

    list_display = [
        'email',
        'name',
        'is_admin',
        'created_at',
        'last_login',
    ]

    list_filter = [
        'is_admin',
        'created_at',
    ]

    search_fields = [
        'email',
        'name',
    ]

    # Passwords are changed through the credential store only
    exclude = ['password']

    readonly_fields = [
        'id',
        'created_at',
        'last_login',
    ]


@admin.register(AccessToken)
class AccessTokenAdmin(admin.ModelAdmin[AccessToken]):
    """Admin interface for AccessToken model.

    Tokens are read-only here: they are issued through the token
    authority and the digest is never shown.
    """

    list_display = [
        'token_id_short',
        'identity',
        'name',
        'created_at',
    ]

    list_filter = [
        'created_at',
    ]

    search_fields = [
        'token_id',
        'identity__email',
        'name',
    ]

    exclude = ['digest']

    readonly_fields = [
        'token_id',
        'identity',
        'name',
        'created_at',
    ]

    def token_id_short(self, obj: AccessToken) -> str:
        """Display truncated token id.

        Args:
            obj: AccessToken instance.

        Returns:
            First 8 characters of the token id.
        """
        return f'{obj.token_id[:8]}...'
    token_id_short.short_description = 'Token'  # type: ignore[attr-defined]

    def has_add_permission(self, request: HttpRequest) -> bool:
        """Tokens can only be issued through the token authority."""
        return False

    def get_queryset(self, request: HttpRequest) -> QuerySet[AccessToken]:
        """Optimize queryset with select_related.

        Args:
            request: HTTP request.

        Returns:
            Optimized QuerySet.
        """
        return super().get_queryset(request).select_related('identity')
