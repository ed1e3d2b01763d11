"""Data types for the lookup core.

This module defines the values passed between the lookup components and
their callers:

1. Request/response plumbing - HTTPRequestParams and Response.
2. Inputs - Token and Candidate.
3. The record - ExtractionResult, a frozen pydantic model.
4. Outcomes - Success, NotFound, TransportFailure and ParseFailure, a tagged
   union meant to be consumed with a ``match`` statement and
   ``typing_extensions.assert_never`` so every case is handled.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

# =============================================================================
# HTTP plumbing
# =============================================================================


class HttpMethod(Enum):
    """HTTP methods used by the lookup."""

    GET = "GET"
    POST = "POST"


@dataclass(frozen=True)
class HTTPRequestParams:
    """Parameters for a single HTTP request.

    :param method: HTTP method, ``GET`` or ``POST``.
    :param url: Absolute URL for the request.
    :param data: (optional) Form fields, sent ``application/x-www-form-urlencoded``.
    :param headers: (optional) Dictionary of HTTP headers to send.
    """

    method: HttpMethod
    url: str
    data: dict[str, str] | None = None
    headers: dict[str, str] | None = None


@dataclass
class Response:
    """HTTP response from fetching a page.

    Modeled after httpx.Response, reduced to what the lookup reads.

    Attributes:
        status_code: HTTP status code.
        headers: Response headers.
        content: Raw response bytes.
        text: Decoded response text.
        url: Final URL after any redirects.
    """

    status_code: int
    headers: dict[str, str]
    content: bytes
    text: str
    url: str


# =============================================================================
# Inputs
# =============================================================================


@dataclass(frozen=True)
class Token:
    """One-time form token read from the form page.

    Valid for a single submission. Nothing caches or reuses it.

    Attributes:
        value: The token string.
        source_url: The form page it was read from.
    """

    value: str
    source_url: str = ""

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Candidate:
    """An identifier to probe.

    Attributes:
        identifier: The full identifier string sent to the service.
        suffix: The numeric suffix it was generated from, if any. The driver
            uses it for proxy selection and progress logging.
    """

    identifier: str
    suffix: int | None = None

    @classmethod
    def from_suffix(cls, prefix: str, suffix: int, width: int) -> Candidate:
        """Build ``prefix`` + ``suffix`` zero-padded to ``width`` digits.

        Raises:
            ValueError: If suffix is negative or needs more than ``width``
                digits.
        """
        if suffix < 0:
            raise ValueError(f"suffix must be non-negative, got {suffix}")
        padded = str(suffix).zfill(width)
        if len(padded) > width:
            raise ValueError(
                f"suffix {suffix} does not fit in {width} digits"
            )
        return cls(identifier=f"{prefix}{padded}", suffix=suffix)

    def __str__(self) -> str:
        return self.identifier


# =============================================================================
# Record
# =============================================================================


class ExtractionResult(BaseModel):
    """A record read from a results page.

    Any field may be missing from the page; missing fields are None. A
    record with every field missing is not a record, so construction
    rejects it.
    """

    model_config = ConfigDict(frozen=True)

    identifier: str | None = Field(None, description="Registration number")
    name: str | None = Field(None, description="Student name")
    score: str | None = Field(None, description="Total obtained marks")

    @model_validator(mode="before")
    @classmethod
    def blank_to_none(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {
                key: (value if value != "" else None)
                for key, value in data.items()
            }
        return data

    @model_validator(mode="after")
    def require_a_field(self) -> ExtractionResult:
        if all(
            value is None for value in (self.identifier, self.name, self.score)
        ):
            raise ValueError(
                "ExtractionResult needs at least one of identifier, name, score"
            )
        return self


# =============================================================================
# Outcomes
# =============================================================================


class LookupStage(Enum):
    """Which of the two requests an outcome came from."""

    TOKEN = "token"
    RESULT = "result"


@dataclass(frozen=True)
class Success:
    """The results page yielded a record."""

    result: ExtractionResult


@dataclass(frozen=True)
class NotFound:
    """The service said the identifier is invalid or its result withheld.

    Attributes:
        identifier: The identifier that was submitted.
        phrase: The rejection phrase found on the page.
    """

    identifier: str
    phrase: str


@dataclass(frozen=True)
class TransportFailure:
    """The service could not be reached or rejected the request.

    Attributes:
        stage: Which request failed.
        url: The URL being requested.
        message: Description of the failure.
        error: The underlying exception. Excluded from equality.
    """

    stage: LookupStage
    url: str
    message: str
    error: Exception | None = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class ParseFailure:
    """The page did not have the shape the lookup expects.

    At the token stage this usually means every later candidate will fail the
    same way.

    Attributes:
        stage: Which page was unparseable.
        url: The URL of the page.
        message: Description of what was missing.
        error: The underlying exception, if one was raised. Excluded from
            equality.
    """

    stage: LookupStage
    url: str
    message: str
    error: Exception | None = field(default=None, compare=False, repr=False)


Outcome = Success | NotFound | TransportFailure | ParseFailure
TokenOutcome = Token | TransportFailure | ParseFailure
