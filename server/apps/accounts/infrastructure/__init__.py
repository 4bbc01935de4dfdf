"""Infrastructure layer for accounts app.

Storage adapters for identities and tokens. Logic code depends on the
repository protocols only; the Django ORM adapters are the default.
"""
