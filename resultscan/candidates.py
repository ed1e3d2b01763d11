"""Candidate identifier generation."""

from __future__ import annotations

from collections.abc import Iterator

from resultscan.data_types import Candidate


def generate_candidates(
    prefix: str, start: int, end: int, width: int
) -> Iterator[Candidate]:
    """Yield ``prefix`` + zero-padded suffix for every suffix in [start, end].

    Args:
        prefix: Fixed leading part of every identifier, e.g. "2025925".
        start: First suffix, inclusive.
        end: Last suffix, inclusive.
        width: Number of digits the suffix is padded to.

    Raises:
        ValueError: If the range is empty or negative, or ``end`` needs more
            than ``width`` digits. Raised before anything is yielded.

    Example::

        >>> [c.identifier for c in generate_candidates("2025925", 8601, 8603, 4)]
        ['20259258601', '20259258602', '20259258603']
    """
    if width < 1:
        raise ValueError(f"width must be at least 1, got {width}")
    if start < 0:
        raise ValueError(f"start must be non-negative, got {start}")
    if start > end:
        raise ValueError(f"start ({start}) is greater than end ({end})")
    if len(str(end)) > width:
        raise ValueError(f"end ({end}) does not fit in {width} digits")

    return _generate(prefix, start, end, width)


def _generate(
    prefix: str, start: int, end: int, width: int
) -> Iterator[Candidate]:
    for suffix in range(start, end + 1):
        yield Candidate.from_suffix(prefix, suffix, width)


def count_candidates(start: int, end: int) -> int:
    """Number of candidates in the inclusive range."""
    return max(0, end - start + 1)
