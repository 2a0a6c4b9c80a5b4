"""Signal extraction over fetched page bodies.

`classify` is pure: the same body and config always produce the same result.
Both scans are linear in the body length, so multi-MB pages without any
whitespace cannot stall a batch.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Tuple, Union

from domainsignals.processing.domain_types import ClassificationResult, SignalConfig


_LOCAL_CHARS = frozenset("ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789._%+-")
_DOMAIN_RUN_RE = re.compile(r"[A-Za-z0-9.-]+")
_ALPHA = frozenset("ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz")

# A URL token runs until whitespace or a quote.
_URL_TOKEN_RE = re.compile(r"(https?://)([^\s\"']*)", re.IGNORECASE)

CONTACT_MARKER = "contact"
FAQ_MARKER = "faq"


def _unique(items: Iterable[str]) -> Tuple[str, ...]:
    return tuple(dict.fromkeys(items))


def _as_text(body: Union[str, bytes, None]) -> str:
    if body is None:
        return ""
    if isinstance(body, (bytes, bytearray)):
        return bytes(body).decode("utf-8", errors="replace")
    if not isinstance(body, str):
        return ""
    return body


def find_signals(lowered_body: str, signals: Iterable[str]) -> Tuple[str, ...]:
    """Return configured signals that occur in an already lower-cased body."""
    hits: List[str] = []
    for signal in signals:
        needle = (signal or "").strip().lower()
        if needle and needle in lowered_body:
            hits.append(signal)
    return _unique(hits)


def _domain_end(run: str) -> int:
    """Length of the longest prefix of `run` shaped like `x.yz`, or 0."""
    k = run.rfind(".")
    while k >= 1:
        if k + 2 < len(run) and run[k + 1] in _ALPHA and run[k + 2] in _ALPHA:
            end = k + 3
            while end < len(run) and run[end] in _ALPHA:
                end += 1
            return end
        k = run.rfind(".", 0, k)
    return 0


def extract_emails(text: str) -> Tuple[str, ...]:
    """Find `local@domain.tld` addresses, leftmost first, without overlap.

    Scanning is anchored on each '@'. The local part grows left only up to the
    previous '@' or match, and the domain grows right only up to the next
    non-domain character, so every character is visited a bounded number of times.
    """
    found: List[str] = []
    floor = 0
    at = text.find("@")
    while at != -1:
        start = at
        while start > floor and text[start - 1] in _LOCAL_CHARS:
            start -= 1
        run = _DOMAIN_RUN_RE.match(text, at + 1)
        if start < at and run:
            end = _domain_end(run.group(0))
            if end:
                found.append(text[start:at + 1 + end])
                floor = at + 1 + end
                at = text.find("@", floor)
                continue
        floor = at + 1
        at = text.find("@", floor)
    return _unique(found)


def extract_page_links(text: str, marker: str) -> Tuple[str, ...]:
    """URL tokens whose text after the scheme contains `marker`, case-insensitively."""
    marker = marker.lower()
    return _unique(m.group(0) for m in _URL_TOKEN_RE.finditer(text) if marker in m.group(2).lower())


def classify(body: Union[str, bytes, None], config: Optional[SignalConfig] = None) -> ClassificationResult:
    """Scan a page body for configured signals, emails, and contact/FAQ links.

    Framework and help-desk signals match case-insensitively as substrings.
    Emails and links are taken from the body as written, so they keep their case.
    Non-text input is treated as an empty body.
    """
    config = config or SignalConfig()
    text = _as_text(body)
    if not text:
        return ClassificationResult()

    lowered = text.lower()
    return ClassificationResult(
        frameworks=find_signals(lowered, config.frameworks),
        help_desks=find_signals(lowered, config.help_desks),
        emails=extract_emails(text),
        contact_page_links=extract_page_links(text, CONTACT_MARKER),
        faq_page_links=extract_page_links(text, FAQ_MARKER),
    )
