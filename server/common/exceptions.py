"""Exceptions shared by all apps."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from django.db import DatabaseError

logger = logging.getLogger(__name__)


class ApplicationError(Exception):
    """Base class for terminal errors reported to callers of the core.

    Application errors are never retried: they describe the request,
    not a transient condition of a backend.
    """


class BackendUnavailableError(ApplicationError):
    """Raised when the database or the blob backend fails.

    The core does not retry these internally. Retry policy belongs to
    the caller.
    """

    def __init__(self, operation: str) -> None:
        """Initialize BackendUnavailableError.

        Args:
            operation: Short name of the operation that failed.
        """
        self.operation = operation
        super().__init__(f'Backend unavailable during {operation}')


@contextmanager
def translate_backend_errors(
    operation: str,
    *extra_errors: type[BaseException],
) -> Iterator[None]:
    """Convert backend failures into BackendUnavailableError.

    Application errors raised inside the block pass through unchanged,
    so adapters may raise domain errors from within it.

    Args:
        operation: Short name of the guarded operation (for logs).
        extra_errors: Additional backend exception types to translate,
            on top of django.db.DatabaseError.

    Yields:
        Nothing, guards the enclosed block.

    Raises:
        BackendUnavailableError: If the block raised a backend error.
    """
    try:
        yield
    except ApplicationError:
        raise
    except (DatabaseError, *extra_errors) as exc:
        logger.exception('Backend failure during %s', operation)
        raise BackendUnavailableError(operation) from exc
