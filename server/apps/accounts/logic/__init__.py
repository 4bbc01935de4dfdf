"""Business logic layer for accounts app.

- Credential store: registration and password checks
- Token authority: bearer issuance, verification and revocation

Components receive repository adapters; nothing here touches the ORM.
"""
