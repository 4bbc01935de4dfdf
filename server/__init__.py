"""File Vault: access-controlled multi-tenant file storage."""
