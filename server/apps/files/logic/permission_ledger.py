"""Permission ledger: who may read, write or delete which file."""

import logging
from collections.abc import Iterable

from server.apps.files.entities import Capability, GrantRecord, parse_capabilities
from server.apps.files.infrastructure.repositories import (
    DjangoGrantRepository,
    GrantRepository,
)

logger = logging.getLogger(__name__)


class PermissionLedger:
    """Per-file map of grantee -> capability set.

    The owner of a file passes every check without a grant row. The
    ledger knows nothing about admin identities; that override lives
    in the file registry.
    """

    def __init__(self, grants: GrantRepository | None = None) -> None:
        """Initialize the ledger.

        Args:
            grants: Grant repository, the Django adapter by default.
        """
        self._grants = grants or DjangoGrantRepository()

    def grant(
        self,
        file_id: str,
        grantee_id: str,
        capabilities: Iterable[str],
    ) -> frozenset[Capability]:
        """Set a grantee's capabilities on a file.

        The new set replaces the previous one, it is not merged into
        it. An empty set removes the grant.

        Args:
            file_id: File being shared.
            grantee_id: Identity receiving the capabilities.
            capabilities: Capability names (read, write, delete).

        Returns:
            The capability set now in effect.

        Raises:
            InvalidCapabilityError: If a name is not a capability.
        """
        parsed = parse_capabilities(capabilities)
        if not parsed:
            self.revoke(file_id, grantee_id)
            return parsed

        self._grants.upsert(file_id, grantee_id, parsed)
        logger.info(
            'Granted %s on file %s to %s',
            ','.join(sorted(parsed)),
            file_id,
            grantee_id,
        )
        return parsed

    def revoke(self, file_id: str, grantee_id: str) -> None:
        """Remove a grantee's grant. Missing grants are ignored."""
        if self._grants.delete(file_id, grantee_id):
            logger.info('Revoked grant on file %s from %s', file_id, grantee_id)

    def revoke_all(self, file_id: str) -> int:
        """Remove every grant on a file.

        Returns:
            Number of grants removed.
        """
        return self._grants.delete_for_file(file_id)

    def check(
        self,
        file_id: str,
        requester_id: str,
        capability: Capability | str,
        owner_id: str,
    ) -> bool:
        """Decide whether a requester holds a capability on a file.

        Args:
            file_id: File being accessed.
            requester_id: Identity asking for access.
            capability: Required capability.
            owner_id: Owner of the file.

        Returns:
            True for the owner; otherwise whether the requester's grant
            contains the capability. No grant means no access.

        Raises:
            InvalidCapabilityError: If the capability name is unknown.
        """
        (required,) = parse_capabilities([capability])
        if requester_id == owner_id:
            return True

        grant = self._grants.get(file_id, requester_id)
        if grant is None:
            return False
        return required in grant.capabilities

    def list_grants(self, file_id: str) -> list[GrantRecord]:
        """List the grants on a file.

        Order is unspecified; treat the result as a set.
        """
        return [
            grant
            for grant in self._grants.list_for_file(file_id)
            if grant.capabilities
        ]

    def shared_file_ids(
        self,
        grantee_id: str,
        capability: Capability = Capability.READ,
    ) -> list[str]:
        """List ids of files shared with a grantee for a capability."""
        return self._grants.file_ids_for_grantee(grantee_id, capability)
