"""Shared fixtures for all tests."""

import boto3
import pytest
from moto import mock_aws

from server.apps.accounts.logic.credential_store import CredentialStore
from server.apps.accounts.logic.token_authority import TokenAuthority

_TEST_BUCKET = 'file-vault'


@pytest.fixture(autouse=True)
def fast_password_hasher(settings):
    """Use a cheap hasher, bcrypt makes every registration slow."""
    settings.PASSWORD_HASHERS = [
        'django.contrib.auth.hashers.MD5PasswordHasher',
    ]


@pytest.fixture
def credential_store(db):
    """Create credential store backed by the test database.

    Returns:
        CredentialStore instance.
    """
    return CredentialStore()


@pytest.fixture
def token_authority(db):
    """Create token authority backed by the test database.

    Returns:
        TokenAuthority instance.
    """
    return TokenAuthority()


@pytest.fixture
def alice(credential_store):
    """Create test identity owning files.

    Returns:
        IdentityRecord of alice.
    """
    return credential_store.register('alice', 'alice@example.com', 'secret1')


@pytest.fixture
def bob(credential_store):
    """Create second test identity for isolation tests.

    Returns:
        IdentityRecord of bob.
    """
    return credential_store.register('bob', 'bob@example.com', 'secret2')


@pytest.fixture
def admin(credential_store):
    """Create admin identity.

    Returns:
        IdentityRecord flagged as admin.
    """
    return credential_store.register(
        'root',
        'root@example.com',
        'secret3',
        is_admin=True,
    )


@pytest.fixture
def mock_s3():
    """Mock S3 service with file-vault bucket.

    Yields:
        boto3 S3 resource with file-vault bucket created.
    """
    with mock_aws():
        conn = boto3.resource('s3', region_name='us-east-1')
        conn.create_bucket(Bucket=_TEST_BUCKET)

        yield conn
