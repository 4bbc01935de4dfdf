"""Business logic layer for files app.

This package contains all business logic for file operations:
- Permission ledger: per-file capability grants
- File registry: the access-controlled catalog callers invoke

All business logic should be implemented here, separate from
models (data layer) and infrastructure (external systems).
"""
