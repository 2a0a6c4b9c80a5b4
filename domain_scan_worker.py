#!/usr/bin/env python3
"""Domain scan worker.

Claims pending rows from the `domains` table, fetches each URL, scans the page
for framework/help-desk signals, emails and contact/FAQ links, and stores the
outcome. Runs until killed (SCAN_MODE=daemon) or for a single batch (SCAN_MODE=once).
"""

from __future__ import annotations

import logging
import sys

import psycopg
from dotenv import load_dotenv

from domainsignals.config.settings import WorkerSettings, load_settings
from domainsignals.extraction.fetch import HttpFetchClient
from domainsignals.processing.batch_scheduler import BatchScheduler
from domainsignals.processing.item_processor import ItemProcessor
from domainsignals.storage.domain_store import PostgresDomainStore, StoreError
from domainsignals.storage.postgres_schema import ensure_postgres_schema

logger = logging.getLogger("domain_scan_worker")


def _configure_logging(settings: WorkerSettings) -> None:
    handlers = [logging.StreamHandler(sys.stdout)]
    if settings.log_file:
        handlers.append(logging.FileHandler(settings.log_file))
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
    )


def build_scheduler(settings: WorkerSettings, store: PostgresDomainStore) -> BatchScheduler:
    fetcher = HttpFetchClient(
        timeout=settings.fetch_timeout,
        connect_timeout=settings.fetch_connect_timeout,
        max_bytes=settings.fetch_max_bytes,
        allow_private_hosts=settings.allow_private_hosts,
    )
    processor = ItemProcessor(store, fetcher, settings.signals)
    return BatchScheduler(store, processor, settings.signals, idle_seconds=settings.idle_seconds)


def main() -> int:
    load_dotenv()
    settings = load_settings()
    _configure_logging(settings)

    store = PostgresDomainStore(settings.pg_dsn)
    try:
        ensure_postgres_schema(settings.pg_dsn, connect_timeout=store.connect_timeout)
        store.ping()
    except (StoreError, psycopg.Error) as e:
        logger.error(f"Database connection failed: {e}")
        return 1
    logger.info("Database connected successfully")
    logger.info(
        f"batch_size={settings.signals.batch_size} frameworks={len(settings.signals.frameworks)} "
        f"help_desks={len(settings.signals.help_desks)} mode={settings.mode}"
    )

    scheduler = build_scheduler(settings, store)
    if settings.mode == "once":
        report = scheduler.run_once()
        print(f"[scan] claimed={report.claimed} done={report.done} failed={report.failed} errored={report.errored}")
        return 0

    try:
        scheduler.run_forever()
    except KeyboardInterrupt:
        logger.info("Interrupted, stopping")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
