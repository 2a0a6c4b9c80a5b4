"""Postgres-backed work queue for domain records.

Every state change is a single conditional UPDATE, so ownership of a record is
decided by the database: whoever moves a row out of 'pending' owns it.
Each call opens its own short autocommit connection, which keeps the store safe
to share between worker threads.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import List, Optional

import psycopg
from psycopg.types.json import Jsonb

from domainsignals.processing.domain_types import ClassificationResult, Record, RecordStatus, StoreError

logger = logging.getLogger(__name__)


_PENDING_CLAUSE = "(status IS NULL OR status = 'pending')"

# Result columns are only populated on 'done' rows.
_CLEAR_OUTCOME = (
    "matched = NULL, frameworks = NULL, helpdesks = NULL, emails = NULL, "
    "contact_page_links = NULL, faq_page_links = NULL, html = NULL"
)


@dataclass
class PostgresDomainStore:
    pg_dsn: str
    connect_timeout: int = 10

    def _connect(self):
        return psycopg.connect(self.pg_dsn, autocommit=True, connect_timeout=self.connect_timeout)

    def _execute(self, sql: str, params=None, *, fetch: bool = False):
        try:
            with self._connect() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, params)
                    if fetch:
                        return cur.fetchall()
                    return cur.rowcount
        except psycopg.Error as e:
            raise StoreError(str(e)) from e

    def ping(self) -> None:
        self._execute("SELECT 1", fetch=True)

    def claim_pending(self, limit: int) -> List[Record]:
        limit = max(1, int(limit))
        rows = self._execute(
            f"""
            SELECT id, url
            FROM domains
            WHERE {_PENDING_CLAUSE}
            ORDER BY id
            LIMIT %s
            """,
            (limit,),
            fetch=True,
        )
        return [Record(id=int(rid), url=url or "") for rid, url in rows]

    def mark_in_progress(self, record_id: int) -> bool:
        n = self._execute(
            f"""
            UPDATE domains
            SET status = %s, {_CLEAR_OUTCOME}, data = NULL, updated_at = now()
            WHERE id = %s AND {_PENDING_CLAUSE}
            """,
            (RecordStatus.IN_PROGRESS.value, record_id),
        )
        return n == 1

    def commit_done(self, record_id: int, result: ClassificationResult, html: Optional[str] = None) -> bool:
        n = self._execute(
            """
            UPDATE domains
            SET status = %(status)s,
                matched = %(matched)s,
                frameworks = %(frameworks)s,
                helpdesks = %(helpdesks)s,
                emails = %(emails)s,
                contact_page_links = %(contact_page_links)s,
                faq_page_links = %(faq_page_links)s,
                data = %(data)s,
                html = %(html)s,
                updated_at = now()
            WHERE id = %(id)s AND status = %(in_progress)s
            """,
            {
                "status": RecordStatus.DONE.value,
                "matched": result.matched,
                "frameworks": Jsonb(list(result.frameworks)),
                "helpdesks": Jsonb(list(result.help_desks)),
                "emails": Jsonb(list(result.emails)),
                "contact_page_links": Jsonb(list(result.contact_page_links)),
                "faq_page_links": Jsonb(list(result.faq_page_links)),
                "data": json.dumps(result.to_dict()),
                # Postgres TEXT cannot hold NUL bytes.
                "html": html.replace("\x00", "") if html else html,
                "id": record_id,
                "in_progress": RecordStatus.IN_PROGRESS.value,
            },
        )
        if n != 1:
            logger.warning(f"Record {record_id} was not in progress; result not stored")
        return n == 1

    def commit_failed(self, record_id: int, message: str) -> bool:
        n = self._execute(
            f"""
            UPDATE domains
            SET status = %s, {_CLEAR_OUTCOME}, data = %s, updated_at = now()
            WHERE id = %s AND status = %s
            """,
            (RecordStatus.FAILED.value, message, record_id, RecordStatus.IN_PROGRESS.value),
        )
        if n != 1:
            logger.warning(f"Record {record_id} was not in progress; failure not stored")
        return n == 1
