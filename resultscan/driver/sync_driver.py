"""Synchronous scan driver.

ScanDriver walks a sequence of candidates, runs a ResultLookup for each and
routes the outcome:

- Success goes to on_result (typically a CsvResultSink).
- NotFound, TransportFailure and ParseFailure go to their own callbacks,
  which return True to keep scanning or False to stop. Without a callback
  the failure is counted and the scan continues.

Candidates are processed strictly one at a time with a fixed delay between
them. When proxies are configured the candidate's suffix picks one
round-robin.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from typing_extensions import assert_never

from resultscan.common.request_manager import ProxyPool
from resultscan.config import SiteConfig
from resultscan.data_types import (
    Candidate,
    ExtractionResult,
    NotFound,
    Outcome,
    ParseFailure,
    Success,
    TransportFailure,
)
from resultscan.lookup import ResultLookup

logger = logging.getLogger(__name__)


@dataclass
class ScanStats:
    """Counters for one scan run.

    Attributes:
        attempted: Candidates looked up.
        found: Results handed to on_result without error.
        not_found: Candidates the service rejected or withheld.
        transport_errors: Lookups that failed at the transport level.
        parse_errors: Lookups whose pages did not have the expected shape.
        sink_errors: Results that on_result failed to persist.
    """

    attempted: int = 0
    found: int = 0
    not_found: int = 0
    transport_errors: int = 0
    parse_errors: int = 0
    sink_errors: int = 0

    @property
    def errors(self) -> int:
        """Every attempt that did not end in a persisted result."""
        return (
            self.not_found
            + self.transport_errors
            + self.parse_errors
            + self.sink_errors
        )


class ScanDriver:
    """Sequential driver for scanning a candidate range.

    Example usage::

        from resultscan.candidates import generate_candidates
        from resultscan.driver.callbacks import CsvResultSink

        with CsvResultSink("results.csv") as sink:
            driver = ScanDriver(
                SiteConfig(),
                generate_candidates("2025925", 8601, 9000, 4),
                on_result=sink,
                delay=0.5,
            )
            stats = driver.run()
    """

    def __init__(
        self,
        config: SiteConfig,
        candidates: Iterable[Candidate],
        proxies: list[str] | None = None,
        proxy_pool: ProxyPool | None = None,
        delay: float = 0.5,
        on_result: Callable[[ExtractionResult], None] | None = None,
        on_not_found: Callable[[NotFound], bool] | None = None,
        on_transport_error: Callable[[TransportFailure], bool] | None = None,
        on_parse_error: Callable[[ParseFailure], bool] | None = None,
        on_run_start: Callable[[], None] | None = None,
        on_run_complete: Callable[[ScanStats, str, Exception | None], None]
        | None = None,
        stop_event: threading.Event | None = None,
    ) -> None:
        """Initialize the driver.

        Args:
            config: Site configuration shared by every lookup.
            candidates: Candidates to look up, in order.
            proxies: Optional proxy URLs. Ignored if proxy_pool is given.
            proxy_pool: Optional pre-built ProxyPool. The caller keeps
                ownership and must close it.
            delay: Seconds to wait between candidates. Not applied after
                the last one.
            on_result: Invoked with each successful ExtractionResult. An
                OSError raised here is logged and counted as a sink error;
                the scan continues.
            on_not_found: Invoked for NotFound outcomes; return False to stop.
            on_transport_error: Invoked for TransportFailure outcomes; return
                False to stop.
            on_parse_error: Invoked for ParseFailure outcomes; return False
                to stop.
            on_run_start: Invoked once before the first candidate.
            on_run_complete: Invoked once at the end with the stats, a
                status ("completed" | "stopped" | "error") and the error, if
                any.
            stop_event: Optional threading.Event for graceful shutdown. When
                set, the driver stops after the current candidate, and an
                in-progress delay ends early.
        """
        self.config = config
        self.candidates = candidates
        self.delay = delay

        if proxy_pool is not None:
            self.proxy_pool = proxy_pool
            self._owns_proxy_pool = False
        else:
            self.proxy_pool = ProxyPool(proxies or [], timeout=config.timeout)
            self._owns_proxy_pool = True

        self._lookups = [
            ResultLookup(config, manager)
            for manager in self.proxy_pool.managers
        ]

        self.on_result = on_result
        self.on_not_found = on_not_found
        self.on_transport_error = on_transport_error
        self.on_parse_error = on_parse_error
        self.on_run_start = on_run_start
        self.on_run_complete = on_run_complete
        self.stop_event = stop_event or threading.Event()
        self.stats = ScanStats()

    def lookup_for(self, candidate: Candidate) -> ResultLookup:
        """The lookup (and so the proxy) to use for ``candidate``."""
        if candidate.suffix is None:
            return self._lookups[0]
        return self._lookups[candidate.suffix % len(self._lookups)]

    def run(self) -> ScanStats:
        """Scan every candidate and return the counters."""
        if not self.proxy_pool.proxies:
            logger.warning("Proxy list is empty. Running without proxies.")
        else:
            logger.info(f"Using {len(self.proxy_pool.proxies)} proxies.")

        if self.on_run_start:
            self.on_run_start()

        status = "completed"
        error: Exception | None = None

        try:
            iterator = iter(self.candidates)
            candidate = next(iterator, None)
            while candidate is not None:
                if self.stop_event.is_set():
                    status = "stopped"
                    break

                logger.info(
                    f"--- Attempting {candidate.identifier}"
                    + (
                        f" (i={candidate.suffix})"
                        if candidate.suffix is not None
                        else ""
                    )
                    + " ---"
                )
                outcome = self.lookup_for(candidate).lookup(candidate)
                self.stats.attempted += 1

                if not self.handle_outcome(candidate, outcome):
                    status = "stopped"
                    break

                candidate = next(iterator, None)
                if candidate is not None and self.delay > 0:
                    # Returns early if stop_event is set mid-wait.
                    self.stop_event.wait(self.delay)

        except Exception as e:
            status = "error"
            error = e
            raise
        finally:
            if self._owns_proxy_pool:
                self.proxy_pool.close()

            logger.info(
                f"Scan {status}. Found and saved {self.stats.found} results. "
                f"Encountered {self.stats.errors} errors/empty results."
            )
            if self.on_run_complete:
                self.on_run_complete(self.stats, status, error)

        return self.stats

    def handle_outcome(self, candidate: Candidate, outcome: Outcome) -> bool:
        """Count an outcome and dispatch it to its callback.

        Returns:
            False if a callback asked to stop the scan.
        """
        match outcome:
            case Success(result=result):
                self.handle_result(candidate, result)
                return True
            case NotFound():
                self.stats.not_found += 1
                if self.on_not_found:
                    return self.on_not_found(outcome)
                return True
            case TransportFailure():
                self.stats.transport_errors += 1
                if self.on_transport_error:
                    return self.on_transport_error(outcome)
                return True
            case ParseFailure():
                self.stats.parse_errors += 1
                if self.on_parse_error:
                    return self.on_parse_error(outcome)
                return True
            case _:
                assert_never(outcome)

    def handle_result(
        self, candidate: Candidate, result: ExtractionResult
    ) -> None:
        if self.on_result:
            try:
                self.on_result(result)
            except OSError as e:
                self.stats.sink_errors += 1
                logger.error(
                    f"Error saving result for {candidate.identifier}: {e}",
                    extra={"identifier": candidate.identifier},
                )
                return

        self.stats.found += 1
        logger.info(
            f"[{self.stats.found} Found | {self.stats.errors} Error] "
            f"Saved: {candidate.identifier} - {result.name or ''}"
        )
