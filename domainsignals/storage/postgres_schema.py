"""Postgres schema management for the domains work queue.

Schema creation is idempotent (CREATE IF NOT EXISTS) so every worker start can run it.
"""

from __future__ import annotations

from typing import Iterable, Optional

import psycopg


SCHEMA_STATEMENTS: list[str] = [
    # Work queue: status NULL is treated the same as 'pending'
    """
    CREATE TABLE IF NOT EXISTS domains (
      id BIGSERIAL PRIMARY KEY,
      url TEXT NOT NULL,
      status TEXT,
      matched BOOLEAN,
      frameworks JSONB,
      helpdesks JSONB,
      emails JSONB,
      contact_page_links JSONB,
      faq_page_links JSONB,
      data TEXT,
      html TEXT,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    """,
    # Backward-compatible column adds (safe if table already exists)
    "ALTER TABLE domains ADD COLUMN IF NOT EXISTS created_at TIMESTAMPTZ NOT NULL DEFAULT now();",
    "ALTER TABLE domains ADD COLUMN IF NOT EXISTS updated_at TIMESTAMPTZ NOT NULL DEFAULT now();",
    "CREATE INDEX IF NOT EXISTS idx_domains_status ON domains (status);",
    "CREATE INDEX IF NOT EXISTS idx_domains_pending ON domains (id) WHERE status IS NULL OR status = 'pending';",
]


def ensure_postgres_schema(
    pg_dsn: str, *, statements: Optional[Iterable[str]] = None, connect_timeout: int = 10
) -> None:
    """Ensure the domains table and its indexes exist."""
    stmts = list(statements) if statements is not None else SCHEMA_STATEMENTS
    with psycopg.connect(pg_dsn, autocommit=True, connect_timeout=connect_timeout) as conn:
        with conn.cursor() as cur:
            for s in stmts:
                cur.execute(s)
