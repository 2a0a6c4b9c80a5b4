"""Process a single claimed domain record: claim, fetch, classify, commit."""

from __future__ import annotations

import logging
from enum import Enum

from domainsignals.extraction.fetch import FetchError
from domainsignals.extraction.signals import classify
from domainsignals.processing.domain_types import FetchClient, Record, RecordStore, SignalConfig

logger = logging.getLogger(__name__)


class ItemOutcome(str, Enum):
    DONE = "done"
    FAILED = "failed"
    SKIPPED = "skipped"


class ItemProcessor:
    """Moves one record from pending to done or failed.

    Store errors are not caught here. If the final write fails the record stays
    in progress and the error reaches the caller.
    """

    def __init__(self, store: RecordStore, fetcher: FetchClient, config: SignalConfig):
        self.store = store
        self.fetcher = fetcher
        self.config = config

    def process(self, record: Record) -> ItemOutcome:
        if not self.store.mark_in_progress(record.id):
            logger.info(f"Record {record.id} is no longer pending, skipping")
            return ItemOutcome.SKIPPED

        logger.info(f"Processing record {record.id} - {record.url}")
        try:
            body = self.fetcher.fetch(record.url)
            result = classify(body, self.config)
        except FetchError as e:
            logger.warning(f"Fetch failed for record {record.id} ({record.url}): {e}")
            self.store.commit_failed(record.id, str(e))
            return ItemOutcome.FAILED
        except Exception as e:
            logger.exception(f"Unexpected error processing record {record.id}")
            self.store.commit_failed(record.id, str(e) or e.__class__.__name__)
            return ItemOutcome.FAILED

        if not self.store.commit_done(record.id, result, html=body):
            logger.info(f"Record {record.id} was moved by another actor, result dropped")
            return ItemOutcome.SKIPPED
        logger.info(f"Processed record {record.id} (matched={result.matched})")
        return ItemOutcome.DONE
