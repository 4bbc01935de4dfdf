"""Django admin configuration for files app."""

from django.contrib import admin
from django.db.models import QuerySet
from django.http import HttpRequest

from server.apps.files.models import File, OrphanedBlob, PermissionGrant


def _format_bytes(size_bytes: int) -> str:
    """Format bytes in human-readable format.

    Args:
        size_bytes: Size in bytes.

    Returns:
        Formatted size string (e.g., '1.5 MB', '234 KB').
    """
    if size_bytes < 1024:
        return f'{size_bytes} B'
    if size_bytes < 1024 * 1024:  # noqa: WPS531
        return f'{size_bytes / 1024:.1f} KB'
    if size_bytes < 1024 * 1024 * 1024:  # noqa: WPS531
        return f'{size_bytes / (1024 * 1024):.1f} MB'
    return f'{size_bytes / (1024 * 1024 * 1024):.1f} GB'


class PermissionGrantInline(admin.TabularInline):
    """Grants shown on the file page."""

    model = PermissionGrant
    extra = 0
    fields = ['grantee', 'can_read', 'can_write', 'can_delete', 'updated_at']
    readonly_fields = ['updated_at']
    raw_id_fields = ['grantee']


@admin.register(File)
class FileAdmin(admin.ModelAdmin[File]):
    """Admin interface for File model."""

    list_display = [
        'name',
        'owner',
        'size_display',
        'mime_type',
        'created_at',
    ]

    list_filter = [
        'mime_type',
        'created_at',
    ]

    search_fields = [
        'id',
        'name',
        'owner__email',
    ]

    # Owner and blob reference never change after creation
    readonly_fields = [
        'id',
        'owner',
        'content_ref',
        'size_bytes',
        'mime_type',
        'created_at',
        'updated_at',
    ]

    inlines = [PermissionGrantInline]

    fieldsets = (
        ('File Information', {
            'fields': ('id', 'name', 'owner'),
        }),
        ('Storage', {
            'fields': ('content_ref', 'size_bytes', 'mime_type'),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
        }),
    )

    def size_display(self, obj: File) -> str:
        """Display file size in human-readable format.

        Args:
            obj: File instance.

        Returns:
            Formatted size string.
        """
        return _format_bytes(obj.size_bytes)
    size_display.short_description = 'Size'  # type: ignore[attr-defined]

    def has_add_permission(self, request: HttpRequest) -> bool:
        """Files are created through the registry, with their blob."""
        return False

    def has_delete_permission(
        self,
        request: HttpRequest,
        obj: File | None = None,
    ) -> bool:
        """Deleting here would skip blob cleanup; use the registry."""
        return False

    def get_queryset(self, request: HttpRequest) -> QuerySet[File]:
        """Optimize queryset with select_related.

        Args:
            request: HTTP request.

        Returns:
            Optimized QuerySet.
        """
        return super().get_queryset(request).select_related('owner')


@admin.register(OrphanedBlob)
class OrphanedBlobAdmin(admin.ModelAdmin[OrphanedBlob]):
    """Admin interface for OrphanedBlob model."""

    list_display = [
        'content_ref',
        'attempts',
        'recorded_at',
    ]

    search_fields = [
        'content_ref',
    ]

    readonly_fields = [
        'content_ref',
        'attempts',
        'last_error',
        'recorded_at',
    ]
