"""Tests for access-controlled file registry."""

from io import BytesIO

import pytest
from django.core.exceptions import ValidationError

from server.apps.files.entities import Capability
from server.apps.files.exceptions import (
    ForbiddenError,
    InvalidCapabilityError,
    NotFoundError,
)
from server.apps.files.infrastructure.blob_store import StorageBlobStore
from server.apps.files.models import File, PermissionGrant


@pytest.fixture
def f1(registry, alice):
    """Upload a file owned by alice.

    Returns:
        FileRecord of the uploaded file.
    """
    return registry.upload(alice.id, 'f1.txt', b'hello from alice')


@pytest.mark.django_db
class TestUploadAndCreate:
    """Tests for adding files to the catalog."""

    def test_upload_stores_record_and_blob(self, registry, alice):
        """Test upload writes the blob and the record."""
        file_record = registry.upload(alice.id, 'notes.txt', b'content')

        assert file_record.id.startswith('fil_')
        assert file_record.owner_id == alice.id
        assert file_record.name == 'notes.txt'
        assert file_record.size_bytes == 7
        assert file_record.mime_type == 'text/plain'
        assert StorageBlobStore().exists(file_record.content_ref)
        assert File.objects.filter(id=file_record.id).exists()

    def test_upload_file_object(self, registry, alice):
        """Test upload accepts binary file objects."""
        file_record = registry.upload(alice.id, 'photo.jpg', BytesIO(b'jpeg'))

        assert file_record.size_bytes == 4
        assert file_record.mime_type == 'image/jpeg'

    def test_upload_does_not_create_owner_grant(self, registry, alice):
        """Test ownership needs no grant row."""
        registry.upload(alice.id, 'notes.txt', b'content')

        assert PermissionGrant.objects.count() == 0

    def test_upload_strips_name(self, registry, alice):
        """Test surrounding whitespace is dropped from names."""
        file_record = registry.upload(alice.id, '  notes.txt ', b'content')

        assert file_record.name == 'notes.txt'

    @pytest.mark.parametrize('name', ['', '   ', 'a/b.txt', 'a\\b.txt', 'x\ny'])
    def test_upload_invalid_name(self, registry, alice, name):
        """Test invalid names are rejected before anything is stored."""
        with pytest.raises(ValidationError):
            registry.upload(alice.id, name, b'content')

        assert File.objects.count() == 0

    def test_upload_unknown_owner(self, registry):
        """Test files need an existing owner."""
        with pytest.raises(NotFoundError):
            registry.upload('usr_missing', 'notes.txt', b'content')

        assert File.objects.count() == 0

    def test_create_from_stored_blob(self, registry, alice):
        """Test registering a blob that is already stored."""
        blob_ref = StorageBlobStore().put(b'content')

        file_record = registry.create(alice.id, 'notes.md', blob_ref, 7)

        assert file_record.content_ref == blob_ref
        assert registry.download(alice.id, file_record.id)[1] == b'content'

    def test_create_negative_size(self, registry, alice):
        """Test negative sizes are rejected."""
        with pytest.raises(ValidationError):
            registry.create(alice.id, 'notes.txt', 'blobs/x', -1)


@pytest.mark.django_db
class TestReadAndDownload:
    """Tests for reading files."""

    def test_owner_reads(self, registry, alice, f1):
        """Test the owner reads metadata."""
        assert registry.read(alice.id, f1.id) == f1

    def test_owner_downloads(self, registry, alice, f1):
        """Test the owner downloads content."""
        file_record, content = registry.download(alice.id, f1.id)

        assert file_record == f1
        assert content == b'hello from alice'

    def test_stranger_cannot_read(self, registry, bob, f1):
        """Test a non-owner without a grant is refused."""
        with pytest.raises(ForbiddenError):
            registry.read(bob.id, f1.id)
        with pytest.raises(ForbiddenError):
            registry.download(bob.id, f1.id)

    def test_read_missing_file(self, registry, alice):
        """Test reading an unknown file."""
        with pytest.raises(NotFoundError):
            registry.read(alice.id, 'fil_missing')

    def test_share_unshare_scenario(self, registry, alice, bob, f1):
        """Test bob's access follows alice's share and unshare."""
        with pytest.raises(ForbiddenError):
            registry.read(bob.id, f1.id)

        registry.share(alice.id, f1.id, bob.id, ['read'])
        assert registry.read(bob.id, f1.id) == f1
        assert registry.download(bob.id, f1.id)[1] == b'hello from alice'

        registry.unshare(alice.id, f1.id, bob.id)
        with pytest.raises(ForbiddenError):
            registry.read(bob.id, f1.id)


@pytest.mark.django_db
class TestUpdate:
    """Tests for renaming files."""

    def test_owner_renames(self, registry, alice, f1):
        """Test the owner renames a file."""
        updated = registry.update(alice.id, f1.id, 'renamed.txt')

        assert updated.name == 'renamed.txt'
        assert updated.content_ref == f1.content_ref
        assert updated.updated_at >= f1.updated_at

    def test_read_grant_cannot_rename(self, registry, alice, bob, f1):
        """Test read access does not allow renaming."""
        registry.share(alice.id, f1.id, bob.id, ['read'])

        with pytest.raises(ForbiddenError):
            registry.update(bob.id, f1.id, 'renamed.txt')

    def test_write_grant_renames(self, registry, alice, bob, f1):
        """Test write access allows renaming."""
        registry.share(alice.id, f1.id, bob.id, ['write'])

        assert registry.update(bob.id, f1.id, 'renamed.txt').name == (
            'renamed.txt'
        )

    def test_rename_invalid_name(self, registry, alice, f1):
        """Test an invalid new name leaves the record unchanged."""
        with pytest.raises(ValidationError):
            registry.update(alice.id, f1.id, 'a/b')

        assert registry.read(alice.id, f1.id).name == 'f1.txt'


@pytest.mark.django_db
class TestDelete:
    """Tests for deleting files."""

    def test_delete_scenario(self, registry, ledger, alice, bob, f1):
        """Test a deleted file is gone together with its grants."""
        registry.share(alice.id, f1.id, bob.id, ['read'])

        registry.delete(alice.id, f1.id)

        with pytest.raises(NotFoundError):
            registry.read(alice.id, f1.id)
        assert ledger.list_grants(f1.id) == []
        assert PermissionGrant.objects.count() == 0

    def test_delete_removes_blob(
        self,
        registry,
        alice,
        f1,
        django_capture_on_commit_callbacks,
    ):
        """Test the blob is deleted once the record delete commits."""
        with django_capture_on_commit_callbacks(execute=True):
            registry.delete(alice.id, f1.id)

        assert not StorageBlobStore().exists(f1.content_ref)

    def test_delete_is_terminal(self, registry, alice, f1):
        """Test a deleted file cannot be deleted again."""
        registry.delete(alice.id, f1.id)

        with pytest.raises(NotFoundError):
            registry.delete(alice.id, f1.id)

    def test_write_grant_cannot_delete(self, registry, alice, bob, f1):
        """Test delete needs the delete capability."""
        registry.share(alice.id, f1.id, bob.id, ['read', 'write'])

        with pytest.raises(ForbiddenError):
            registry.delete(bob.id, f1.id)

        assert File.objects.filter(id=f1.id).exists()

    def test_delete_grant_deletes(self, registry, alice, bob, f1):
        """Test a grantee with delete removes the file."""
        registry.share(alice.id, f1.id, bob.id, ['delete'])

        registry.delete(bob.id, f1.id)

        assert not File.objects.filter(id=f1.id).exists()


@pytest.mark.django_db
class TestSharing:
    """Tests for share, unshare and grant listing."""

    def test_share_replaces_capabilities(self, registry, alice, bob, f1):
        """Test sharing again replaces the earlier set."""
        registry.share(alice.id, f1.id, bob.id, ['read'])
        registry.share(alice.id, f1.id, bob.id, ['write'])

        (grant,) = registry.list_grants(alice.id, f1.id)
        assert grant.grantee_id == bob.id
        assert grant.capabilities == frozenset({Capability.WRITE})
        with pytest.raises(ForbiddenError):
            registry.read(bob.id, f1.id)

    def test_grantee_cannot_reshare(self, registry, alice, bob, admin, f1):
        """Test only the owner manages sharing, whatever bob holds."""
        registry.share(alice.id, f1.id, bob.id, ['read', 'write', 'delete'])

        with pytest.raises(ForbiddenError):
            registry.share(bob.id, f1.id, admin.id, ['read'])
        with pytest.raises(ForbiddenError):
            registry.unshare(bob.id, f1.id, bob.id)
        with pytest.raises(ForbiddenError):
            registry.list_grants(bob.id, f1.id)

    def test_share_with_unknown_identity(self, registry, alice, f1):
        """Test sharing needs an existing grantee."""
        with pytest.raises(NotFoundError) as exc_info:
            registry.share(alice.id, f1.id, 'usr_missing', ['read'])

        assert exc_info.value.kind == 'identity'

    def test_share_unknown_capability(self, registry, alice, bob, f1):
        """Test unknown capability names are rejected."""
        with pytest.raises(InvalidCapabilityError):
            registry.share(alice.id, f1.id, bob.id, ['read', 'own'])

        assert registry.list_grants(alice.id, f1.id) == []

    def test_share_empty_set_unshares(self, registry, alice, bob, f1):
        """Test sharing the empty set removes access."""
        registry.share(alice.id, f1.id, bob.id, ['read'])

        registry.share(alice.id, f1.id, bob.id, [])

        assert registry.list_grants(alice.id, f1.id) == []

    def test_share_with_owner_writes_no_grant(self, registry, alice, f1):
        """Test sharing a file with its owner is a no-op."""
        result = registry.share(alice.id, f1.id, alice.id, ['read'])

        assert result == frozenset(Capability)
        assert PermissionGrant.objects.count() == 0
        assert registry.list_grants(alice.id, f1.id) == []

    def test_unshare_without_grant(self, registry, alice, bob, f1):
        """Test unsharing a non-grantee is a no-op."""
        registry.unshare(alice.id, f1.id, bob.id)

        assert registry.list_grants(alice.id, f1.id) == []


@pytest.mark.django_db
class TestAdminOverride:
    """Tests for admin identities bypassing permission checks."""

    def test_admin_reads_without_grant(self, registry, admin, f1):
        """Test admins read any file."""
        assert registry.read(admin.id, f1.id) == f1

    def test_admin_renames_and_deletes(self, registry, admin, f1):
        """Test admins write and delete any file."""
        assert registry.update(admin.id, f1.id, 'x.txt').name == 'x.txt'

        registry.delete(admin.id, f1.id)

        assert not File.objects.filter(id=f1.id).exists()

    def test_admin_manages_sharing(self, registry, admin, bob, f1):
        """Test admins share files they do not own."""
        registry.share(admin.id, f1.id, bob.id, ['read'])

        assert registry.read(bob.id, f1.id) == f1
        assert len(registry.list_grants(admin.id, f1.id)) == 1

    def test_admin_override_writes_no_grant(self, registry, admin, f1):
        """Test the bypass does not add grant rows."""
        registry.read(admin.id, f1.id)

        assert PermissionGrant.objects.count() == 0

    def test_withdrawn_admin_loses_override(
        self,
        registry,
        credential_store,
        admin,
        f1,
    ):
        """Test the flag is checked on every call."""
        credential_store.set_admin(admin.id, False)

        with pytest.raises(ForbiddenError):
            registry.read(admin.id, f1.id)

    def test_admin_still_gets_not_found(self, registry, admin):
        """Test the override does not hide missing files."""
        with pytest.raises(NotFoundError):
            registry.read(admin.id, 'fil_missing')


@pytest.mark.django_db
class TestListings:
    """Tests for listing files."""

    def test_list_owned(self, registry, alice, bob, f1):
        """Test listing returns only the requester's files."""
        other = registry.upload(bob.id, 'bob.txt', b'bob')

        assert registry.list_owned(alice.id) == [f1]
        assert registry.list_owned(bob.id) == [other]

    def test_list_shared_with(self, registry, alice, bob, f1):
        """Test listing returns files shared for reading."""
        hidden = registry.upload(alice.id, 'write-only.txt', b'x')
        registry.share(alice.id, f1.id, bob.id, ['read'])
        registry.share(alice.id, hidden.id, bob.id, ['write'])

        assert registry.list_shared_with(bob.id) == [f1]
        assert registry.list_shared_with(alice.id) == []

    def test_list_shared_with_nothing_shared(self, registry, bob):
        """Test an empty listing."""
        assert registry.list_shared_with(bob.id) == []


@pytest.mark.django_db
class TestPurgeOwner:
    """Tests for removing every file of an owner."""

    def test_purge_owner(
        self,
        registry,
        alice,
        bob,
        f1,
        django_capture_on_commit_callbacks,
    ):
        """Test records, grants and blobs of the owner are removed."""
        second = registry.upload(alice.id, 'f2.txt', b'second')
        kept = registry.upload(bob.id, 'bob.txt', b'bob')
        registry.share(alice.id, f1.id, bob.id, ['read'])

        with django_capture_on_commit_callbacks(execute=True):
            purged = registry.purge_owner(alice.id)

        assert purged == 2
        assert registry.list_owned(alice.id) == []
        assert registry.list_owned(bob.id) == [kept]
        assert PermissionGrant.objects.count() == 0
        blob_store = StorageBlobStore()
        assert not blob_store.exists(f1.content_ref)
        assert not blob_store.exists(second.content_ref)
        assert blob_store.exists(kept.content_ref)

    def test_purge_owner_without_files(self, registry, bob):
        """Test purging an identity with no files."""
        assert registry.purge_owner(bob.id) == 0
