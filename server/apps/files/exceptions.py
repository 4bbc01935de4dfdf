"""Exceptions for files app."""

from server.common.exceptions import ApplicationError


class NotFoundError(ApplicationError):
    """Raised when a file (or a grantee) does not exist.

    Deleted files are indistinguishable from files that never existed.
    """

    def __init__(self, kind: str, object_id: str) -> None:
        """Initialize NotFoundError.

        Args:
            kind: What was looked up ('file', 'identity').
            object_id: The missing id.
        """
        self.kind = kind
        self.object_id = object_id
        super().__init__(f'{kind.capitalize()} not found: {object_id}')


class ForbiddenError(ApplicationError):
    """Raised when the requester lacks the capability for an operation."""

    def __init__(self, requester_id: str, file_id: str, action: str) -> None:
        """Initialize ForbiddenError.

        Args:
            requester_id: Identity that was refused.
            file_id: File the operation targeted.
            action: Capability or action that was required.
        """
        self.requester_id = requester_id
        self.file_id = file_id
        self.action = action
        super().__init__(
            f'Identity {requester_id} may not {action} file {file_id}',
        )


class InvalidCapabilityError(ApplicationError):
    """Raised when a capability name is not read, write or delete."""

    def __init__(self, value: object) -> None:
        """Initialize InvalidCapabilityError.

        Args:
            value: The rejected capability name.
        """
        self.value = value
        super().__init__(f'Unknown capability: {value!r}')
