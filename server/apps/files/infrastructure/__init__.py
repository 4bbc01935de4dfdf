"""Infrastructure layer for files app.

This package contains integrations with external systems:
- Blob store adapter over Django storage (S3-compatible)
- Repositories for file records and permission grants
- Metadata helpers (MIME type, name validation)

Keep infrastructure concerns separate from business logic.
"""
