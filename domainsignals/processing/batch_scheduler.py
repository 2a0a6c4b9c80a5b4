"""Claim-and-process loop over the domains queue.

Each round claims at most `batch_size` records and processes them on a thread
pool of the same size. The pool is drained before the next claim, so at most
`batch_size` items are ever in flight.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Optional

from domainsignals.processing.domain_types import BatchReport, RecordStore, SignalConfig, StoreError
from domainsignals.processing.item_processor import ItemOutcome, ItemProcessor

logger = logging.getLogger(__name__)

DEFAULT_IDLE_SECONDS = 10.0


class BatchScheduler:
    def __init__(
        self,
        store: RecordStore,
        processor: ItemProcessor,
        config: SignalConfig,
        *,
        idle_seconds: float = DEFAULT_IDLE_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.store = store
        self.processor = processor
        self.config = config
        self.idle_seconds = idle_seconds
        self._sleep = sleep

    def run_once(self) -> BatchReport:
        """Claim one batch and block until every item in it has settled."""
        batch_size = self.config.batch_size
        try:
            records = list(self.store.claim_pending(batch_size))
        except StoreError as e:
            logger.error(f"Error claiming pending records: {e}")
            return BatchReport()
        except Exception:
            logger.exception("Unexpected error claiming pending records")
            return BatchReport()

        records = records[:batch_size]
        report = BatchReport(claimed=len(records))
        if not records:
            return report

        logger.info(f"Claimed {len(records)} record(s)")
        with ThreadPoolExecutor(max_workers=min(batch_size, len(records)), thread_name_prefix="domain-scan") as executor:
            futures = {executor.submit(self.processor.process, r): r for r in records}
            for future in as_completed(futures):
                record = futures[future]
                try:
                    outcome = future.result()
                except Exception as e:
                    # Record stays in progress until someone resets it.
                    logger.error(f"Unrecovered error for record {record.id} ({record.url}): {e}")
                    report.errored += 1
                    continue
                if outcome == ItemOutcome.DONE:
                    report.done += 1
                elif outcome == ItemOutcome.FAILED:
                    report.failed += 1
                else:
                    report.skipped += 1

        logger.info(
            f"Batch settled: claimed={report.claimed} done={report.done} failed={report.failed} "
            f"skipped={report.skipped} errored={report.errored}"
        )
        return report

    def run_forever(self, max_rounds: Optional[int] = None) -> None:
        rounds = 0
        while max_rounds is None or rounds < max_rounds:
            rounds += 1
            report = self.run_once()
            if report.claimed == 0:
                logger.info(f"No pending records found. Retrying in {self.idle_seconds:g} seconds...")
                self._sleep(self.idle_seconds)
