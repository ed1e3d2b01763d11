"""Callbacks for the driver's on_result parameter.

The driver hands every successful ExtractionResult to a single on_result
callable. This module provides the CSV sink used by the CLI and a few small
helpers for composing callbacks.

Example::

    from resultscan.driver.callbacks import CsvResultSink
    from resultscan.driver.sync_driver import ScanDriver

    with CsvResultSink("results.csv") as sink:
        driver = ScanDriver(config, candidates, on_result=sink)
        driver.run()
"""

from __future__ import annotations

import csv
import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any, TextIO

from resultscan.data_types import ExtractionResult

logger = logging.getLogger(__name__)

CSV_HEADER = ("Registration Number", "Student Name", "Total Marks")


def result_row(result: ExtractionResult) -> list[str]:
    """Column values for a result, missing fields as empty strings."""
    return [result.identifier or "", result.name or "", result.score or ""]


class CsvResultSink:
    """Appends one CSV row per result.

    The file is created with a header row when the sink is opened. Fields
    containing a comma, quote or line break are quoted with inner quotes
    doubled (``csv.QUOTE_MINIMAL``). Each row is flushed as it is written so
    an interrupted scan keeps everything found so far.

    Args:
        path: Destination file.
        append: Keep an existing file and add to it. The header is written
            only if the file is missing or empty.
    """

    def __init__(self, path: Path | str, append: bool = False) -> None:
        self.path = Path(path)
        self.append = append
        self.rows_written = 0
        self._file: TextIO | None = None
        self._writer: Any = None

    def open(self) -> CsvResultSink:
        """Create (or reopen) the file and write the header if needed.

        Raises:
            OSError: If the file cannot be created.
        """
        keep_existing = (
            self.append and self.path.exists() and self.path.stat().st_size > 0
        )
        mode = "a" if keep_existing else "w"
        logger.info(
            f"{'Appending to' if keep_existing else 'Initializing'} CSV file "
            f"at {self.path}"
        )
        self._file = self.path.open(mode, newline="", encoding="utf-8")
        self._writer = csv.writer(self._file, quoting=csv.QUOTE_MINIMAL)
        if not keep_existing:
            self._writer.writerow(CSV_HEADER)
            self._file.flush()
        return self

    def write(self, result: ExtractionResult) -> None:
        """Append one row.

        Raises:
            OSError: If the write fails.
        """
        if self._file is None:
            self.open()
        self._writer.writerow(result_row(result))
        self._file.flush()  # type: ignore[union-attr]
        self.rows_written += 1

    __call__ = write

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None
            self._writer = None

    def __enter__(self) -> CsvResultSink:
        return self.open()

    def __exit__(self, *args: Any) -> None:
        self.close()


def print_result(prefix: str = "") -> Callable[[ExtractionResult], None]:
    """Create a callback that prints each result to stdout as JSON.

    Example::

        driver = ScanDriver(config, candidates, on_result=print_result("FOUND: "))
    """

    def callback(result: ExtractionResult) -> None:
        print(f"{prefix}{json.dumps(result.model_dump())}")

    return callback


def collect_results() -> tuple[
    Callable[[ExtractionResult], None], list[ExtractionResult]
]:
    """Create a callback that appends results to a list.

    Returns:
        A tuple of (callback, results_list).
    """
    results: list[ExtractionResult] = []

    def callback(result: ExtractionResult) -> None:
        results.append(result)

    return callback, results


def combine_callbacks(
    *callbacks: Callable[[ExtractionResult], None],
) -> Callable[[ExtractionResult], None]:
    """Combine several on_result callbacks into one, called in order.

    Example::

        with CsvResultSink("results.csv") as sink:
            driver = ScanDriver(
                config,
                candidates,
                on_result=combine_callbacks(sink, print_result("FOUND: ")),
            )
            driver.run()
    """

    def callback(result: ExtractionResult) -> None:
        for cb in callbacks:
            cb(result)

    return callback
