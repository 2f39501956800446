"""Repository adapters - Database implementations."""

from .postgres import PostgresCredentialStore, run_migrations

__all__ = ["PostgresCredentialStore", "run_migrations"]
