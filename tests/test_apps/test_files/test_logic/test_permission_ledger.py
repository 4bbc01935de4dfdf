"""Tests for permission ledger."""

import pytest

from server.apps.files.entities import Capability, GrantRecord
from server.apps.files.exceptions import InvalidCapabilityError
from server.apps.files.models import PermissionGrant


@pytest.mark.django_db
class TestCheck:
    """Tests for permission checks."""

    @pytest.mark.parametrize('capability', list(Capability))
    def test_owner_passes_without_grant(
        self,
        ledger,
        stored_file,
        alice,
        capability,
    ):
        """Test the owner holds every capability with no grant rows."""
        assert ledger.check(stored_file.id, alice.id, capability, alice.id)
        assert PermissionGrant.objects.count() == 0

    @pytest.mark.parametrize('capability', list(Capability))
    def test_no_grant_means_no_access(
        self,
        ledger,
        stored_file,
        alice,
        bob,
        capability,
    ):
        """Test a non-owner without a grant holds nothing."""
        assert not ledger.check(stored_file.id, bob.id, capability, alice.id)

    def test_grantee_holds_only_granted_capabilities(
        self,
        ledger,
        stored_file,
        alice,
        bob,
    ):
        """Test a grant allows exactly its capabilities."""
        ledger.grant(stored_file.id, bob.id, ['read', 'write'])

        assert ledger.check(stored_file.id, bob.id, 'read', alice.id)
        assert ledger.check(stored_file.id, bob.id, Capability.WRITE, alice.id)
        assert not ledger.check(stored_file.id, bob.id, 'delete', alice.id)

    def test_check_unknown_capability(self, ledger, stored_file, alice):
        """Test unknown capabilities are rejected, even for the owner."""
        with pytest.raises(InvalidCapabilityError):
            ledger.check(stored_file.id, alice.id, 'execute', alice.id)


@pytest.mark.django_db
class TestGrant:
    """Tests for granting and revoking capabilities."""

    def test_grant_round_trip(self, ledger, stored_file, bob):
        """Test a grant shows up in the file's grant list."""
        ledger.grant(stored_file.id, bob.id, ['read'])

        assert ledger.list_grants(stored_file.id) == [
            GrantRecord(
                file_id=stored_file.id,
                grantee_id=bob.id,
                capabilities=frozenset({Capability.READ}),
            ),
        ]

    def test_grant_replaces_instead_of_merging(self, ledger, stored_file, bob):
        """Test a second grant replaces the first capability set."""
        ledger.grant(stored_file.id, bob.id, ['read'])
        ledger.grant(stored_file.id, bob.id, ['write'])

        (grant,) = ledger.list_grants(stored_file.id)
        assert grant.capabilities == frozenset({Capability.WRITE})
        assert PermissionGrant.objects.count() == 1

    def test_grant_returns_capability_set(self, ledger, stored_file, bob):
        """Test grant reports the set in effect, duplicates collapsed."""
        result = ledger.grant(stored_file.id, bob.id, ['read', 'read', 'delete'])

        assert result == frozenset({Capability.READ, Capability.DELETE})

    def test_empty_grant_revokes(self, ledger, stored_file, alice, bob):
        """Test granting the empty set removes the grant."""
        ledger.grant(stored_file.id, bob.id, ['read'])

        assert ledger.grant(stored_file.id, bob.id, []) == frozenset()

        assert ledger.list_grants(stored_file.id) == []
        assert not ledger.check(stored_file.id, bob.id, 'read', alice.id)

    def test_grant_unknown_capability(self, ledger, stored_file, bob):
        """Test an unknown capability leaves grants unchanged."""
        ledger.grant(stored_file.id, bob.id, ['read'])

        with pytest.raises(InvalidCapabilityError):
            ledger.grant(stored_file.id, bob.id, ['write', 'share'])

        (grant,) = ledger.list_grants(stored_file.id)
        assert grant.capabilities == frozenset({Capability.READ})

    def test_revoke(self, ledger, stored_file, alice, bob):
        """Test revoke removes the grantee's access."""
        ledger.grant(stored_file.id, bob.id, ['read'])

        ledger.revoke(stored_file.id, bob.id)

        assert not ledger.check(stored_file.id, bob.id, 'read', alice.id)

    def test_revoke_missing_grant(self, ledger, stored_file, bob):
        """Test revoking a missing grant is a no-op."""
        ledger.revoke(stored_file.id, bob.id)

        assert ledger.list_grants(stored_file.id) == []

    def test_revoke_all(self, ledger, stored_file, bob, admin):
        """Test every grant on a file is removed."""
        ledger.grant(stored_file.id, bob.id, ['read'])
        ledger.grant(stored_file.id, admin.id, ['write'])

        assert ledger.revoke_all(stored_file.id) == 2
        assert ledger.list_grants(stored_file.id) == []

    def test_admin_flag_is_not_consulted(self, ledger, stored_file, alice, admin):
        """Test the ledger gives admins no implicit capability."""
        assert not ledger.check(stored_file.id, admin.id, 'read', alice.id)


@pytest.mark.django_db
class TestSharedFileIds:
    """Tests for looking up files shared with a grantee."""

    def test_shared_file_ids_by_capability(self, ledger, stored_file, alice, bob):
        """Test only files with the requested capability are listed."""
        ledger.grant(stored_file.id, bob.id, ['write'])

        assert ledger.shared_file_ids(bob.id, Capability.WRITE) == [
            stored_file.id,
        ]
        assert ledger.shared_file_ids(bob.id) == []
        assert ledger.shared_file_ids(alice.id, Capability.WRITE) == []
