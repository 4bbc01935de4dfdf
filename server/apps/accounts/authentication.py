"""Resolving `Authorization` header values to identities.

This is the single call the request boundary makes before invoking
the file registry with a pre-authenticated requester id.
"""

import logging
from typing import Final

from server.apps.accounts.exceptions import MalformedTokenError
from server.apps.accounts.logic.token_authority import TokenAuthority

logger = logging.getLogger(__name__)

AUTH_SCHEME: Final = 'bearer'


def extract_bearer(header: str | None) -> str:
    """Extract the bearer from an `Authorization` header value.

    Args:
        header: Raw header value, e.g. 'Bearer abc|def'.

    Returns:
        The bearer string.

    Raises:
        MalformedTokenError: If the header is missing or does not use
            the Bearer scheme.
    """
    if not header:
        raise MalformedTokenError('Missing Authorization header')

    scheme, _, bearer = header.strip().partition(' ')
    if scheme.lower() != AUTH_SCHEME or not bearer.strip():
        raise MalformedTokenError('Authorization scheme must be Bearer')
    return bearer.strip()


def authenticate_header(authority: TokenAuthority, header: str | None) -> str:
    """Authenticate a request by its `Authorization` header.

    Args:
        authority: Token authority verifying the bearer.
        header: Raw header value.

    Returns:
        Identity id bound to the presented token.

    Raises:
        TokenError: If the header or the bearer does not authenticate.
    """
    return authority.verify(extract_bearer(header))
