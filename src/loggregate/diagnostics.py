"""Logging-backed diagnostics channel for the scan loop."""

from __future__ import annotations

import logging

from loggregate.core.models import EventLog
from loggregate.exceptions import DecodeFailure, FeedError

logger = logging.getLogger(__name__)


class LoggingDiagnostics:
    """
    Report scan notices through `logging`.

    - unknown logs at DEBUG
    - decode failures at WARNING: the first `verbatim_limit` in full, then
      one summary line every `summary_every` failures
    - feed failures at ERROR
    """

    def __init__(self, *, verbatim_limit: int = 10, summary_every: int = 1_000) -> None:
        self.verbatim_limit = verbatim_limit
        self.summary_every = summary_every
        self.unknown_seen = 0
        self.decode_failures_seen = 0

    def unknown_log(self, log: EventLog) -> None:
        self.unknown_seen += 1
        if logger.isEnabledFor(logging.DEBUG):
            topic0 = log.topics[0] if log.topics else "<none>"
            logger.debug("unknown log topic0=%s block=%d tx=%s", topic0, log.block_number, log.tx_hash)

    def decode_failure(self, log: EventLog, error: DecodeFailure) -> None:
        self.decode_failures_seen += 1
        n = self.decode_failures_seen
        if n <= self.verbatim_limit:
            logger.warning("decode failure: %s", error)
        elif n % self.summary_every == 0:
            logger.warning("%d decode failures so far (last at block %d)", n, log.block_number)

    def feed_failure(self, error: FeedError) -> None:
        logger.error("feed failure at position %s: %s", error.last_position, error)
