"""Shared data types for the domain scan pipeline.

A `Record` is one row of the `domains` work queue. The store and fetch
collaborators are described as narrow protocols so the processor and the
scheduler can run against in-memory doubles.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Tuple


class RecordStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class ClassificationResult:
    """Signals found in one fetched body.

    Every collection keeps first-seen order and holds no duplicates.
    """

    frameworks: Tuple[str, ...] = ()
    help_desks: Tuple[str, ...] = ()
    emails: Tuple[str, ...] = ()
    contact_page_links: Tuple[str, ...] = ()
    faq_page_links: Tuple[str, ...] = ()

    @property
    def matched(self) -> bool:
        return bool(
            self.frameworks
            or self.help_desks
            or self.emails
            or self.contact_page_links
            or self.faq_page_links
        )

    def to_dict(self) -> Dict[str, Any]:
        # Key names match the JSON stored in domains.data.
        return {
            "matched": self.matched,
            "frameworks": list(self.frameworks),
            "helpDesks": list(self.help_desks),
            "emails": list(self.emails),
            "contactPageLinks": list(self.contact_page_links),
            "faqPageLinks": list(self.faq_page_links),
        }


@dataclass(frozen=True)
class Record:
    id: int
    url: str
    status: RecordStatus = RecordStatus.PENDING
    result: Optional[ClassificationResult] = None
    error_message: Optional[str] = None


@dataclass(frozen=True)
class SignalConfig:
    """Process-wide signal lists and batch size, immutable after load."""

    frameworks: Tuple[str, ...] = ()
    help_desks: Tuple[str, ...] = ()
    batch_size: int = 5

    def __post_init__(self) -> None:
        if int(self.batch_size) < 1:
            raise ValueError(f"batch_size must be positive, got {self.batch_size!r}")
        # Accept lists from callers but keep the frozen value hashable.
        object.__setattr__(self, "frameworks", tuple(self.frameworks))
        object.__setattr__(self, "help_desks", tuple(self.help_desks))


class StoreError(Exception):
    """The record store could not be read or written."""


class RecordStore(Protocol):
    """Store operations; implementations raise StoreError when the backend fails."""

    def claim_pending(self, limit: int) -> List[Record]: ...

    def mark_in_progress(self, record_id: int) -> bool: ...

    def commit_done(self, record_id: int, result: ClassificationResult, html: Optional[str] = None) -> bool: ...

    def commit_failed(self, record_id: int, message: str) -> bool: ...


class FetchClient(Protocol):
    def fetch(self, url: str) -> str: ...


@dataclass
class BatchReport:
    claimed: int = 0
    done: int = 0
    failed: int = 0
    skipped: int = 0
    errored: int = 0
