"""Accounts app: identities, credentials and bearer tokens."""
