"""Shared fixtures for files app tests."""

import pytest

from server.apps.files.logic.file_registry import FileRegistry
from server.apps.files.logic.permission_ledger import PermissionLedger
from server.apps.files.models import File


@pytest.fixture
def ledger(db):
    """Create permission ledger backed by the test database.

    Returns:
        PermissionLedger instance.
    """
    return PermissionLedger()


@pytest.fixture
def registry(db, mock_s3):
    """Create file registry writing blobs to the mocked bucket.

    Returns:
        FileRegistry instance.
    """
    return FileRegistry()


@pytest.fixture
def stored_file(alice):
    """Create a file record owned by alice without touching storage.

    Returns:
        File instance.
    """
    return File.objects.create(
        owner_id=alice.id,
        name='report.pdf',
        content_ref='blobs/report',
        size_bytes=100,
        mime_type='application/pdf',
    )
