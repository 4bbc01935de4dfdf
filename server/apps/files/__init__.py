"""Files app: catalog, sharing ledger and blob storage."""
