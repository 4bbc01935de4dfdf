"""Access-control settings: tokens, login policy and blob cleanup."""

from server.settings.components import config

# Entropy of a bearer secret in bytes (never below 32, i.e. 256 bits)
ACCESS_TOKEN_SECRET_BYTES = config(
    'ACCESS_TOKEN_SECRET_BYTES',
    cast=int,
    default=32,
)

# Revoke every older token of an identity when it logs in again
ACCESS_SINGLE_TOKEN_PER_LOGIN = config(
    'ACCESS_SINGLE_TOKEN_PER_LOGIN',
    cast=bool,
    default=False,
)

# Attempts at removing a blob after its file record was deleted
ACCESS_BLOB_DELETE_ATTEMPTS = config(
    'ACCESS_BLOB_DELETE_ATTEMPTS',
    cast=int,
    default=3,
)

# Key prefix of every blob written by the blob store
ACCESS_BLOB_PREFIX = config('ACCESS_BLOB_PREFIX', default='blobs')
