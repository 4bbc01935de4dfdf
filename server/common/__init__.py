"""Shared building blocks used by every app."""
