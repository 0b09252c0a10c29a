"""Packaged Alembic migrations for the user tables."""
