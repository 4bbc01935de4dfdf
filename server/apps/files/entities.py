"""Plain data records and capabilities of the files app."""

import enum
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from server.apps.files.exceptions import InvalidCapabilityError


class Capability(enum.StrEnum):
    """Smallest unit of authorization on a file."""

    READ = 'read'
    WRITE = 'write'
    DELETE = 'delete'


ALL_CAPABILITIES = frozenset(Capability)


def parse_capabilities(values: Iterable[str]) -> frozenset[Capability]:
    """Convert capability names into a capability set.

    Args:
        values: Names such as 'read' or Capability members.

    Returns:
        Frozen set of capabilities (duplicates collapse).

    Raises:
        InvalidCapabilityError: If a name is not a capability.
    """
    capabilities = set()
    for value in values:
        try:
            capabilities.add(Capability(value))
        except ValueError as exc:
            raise InvalidCapabilityError(value) from exc
    return frozenset(capabilities)


@dataclass(frozen=True, slots=True)
class FileRecord:
    """File metadata as seen by callers of the registry."""

    id: str
    owner_id: str
    name: str
    content_ref: str
    size_bytes: int
    mime_type: str
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True, slots=True)
class GrantRecord:
    """Capabilities of one grantee on one file."""

    file_id: str
    grantee_id: str
    capabilities: frozenset[Capability]
