"""Exception types for lookup errors.

Two families are defined here:

- ``ScraperAssumptionException`` and its subclasses signal that a page did
  not look the way the lookup expects (selectors miss, body is not HTML).
- ``TransientException`` and its subclasses signal transport-level failures
  (unexpected status codes, timeouts, connection errors).

The lookup components catch both families at their boundary and convert them
into outcome values, so callers of ``ResultLookup`` never see them raised.
"""

from typing import Any


class ScraperAssumptionException(Exception):
    """Base class for page-structure assumption violations.

    The lookup assumes a particular markup for the form and results pages.
    When the assumption breaks, a subclass of this exception describes which
    part broke and for which URL.
    """

    def __init__(
        self,
        message: str,
        request_url: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable description of the assumption violation.
            request_url: The URL of the request that triggered this error.
            context: Optional dict of additional context (selector, counts, etc).
        """
        self.message = message
        self.request_url = request_url
        self.context = context or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = [self.message]
        parts.append(f"URL: {self.request_url}")

        if self.context:
            parts.append("Context:")
            for key, value in self.context.items():
                parts.append(f"  {key}: {value}")

        return "\n".join(parts)


class HTMLStructuralAssumptionException(ScraperAssumptionException):
    """Raised when a selector returns an unexpected number of results.

    Attributes:
        selector: The XPath or CSS selector that was used.
        selector_type: Type of selector ("xpath" or "css").
        description: What the selector was meant to find.
        expected_min: Minimum number of results expected.
        expected_max: Maximum number of results expected (None = unlimited).
        actual_count: Number of results actually found.
    """

    def __init__(
        self,
        selector: str,
        selector_type: str,
        description: str,
        expected_min: int,
        expected_max: int | None,
        actual_count: int,
        request_url: str,
    ) -> None:
        self.selector = selector
        self.selector_type = selector_type
        self.description = description
        self.expected_min = expected_min
        self.expected_max = expected_max
        self.actual_count = actual_count

        if expected_max is None:
            expected_str = f"at least {expected_min}"
        elif expected_min == expected_max:
            expected_str = f"exactly {expected_min}"
        else:
            expected_str = f"between {expected_min} and {expected_max}"

        message = (
            f"HTML structure mismatch: Expected {expected_str} "
            f"elements for '{description}', but found {actual_count}"
        )

        context = {
            "selector": selector,
            "selector_type": selector_type,
            "expected_min": expected_min,
            "expected_max": expected_max
            if expected_max is not None
            else "unlimited",
            "actual_count": actual_count,
        }

        super().__init__(message, request_url, context)


class UnparseableDocumentException(ScraperAssumptionException):
    """Raised when a response body cannot be parsed as HTML at all.

    lxml refuses empty documents and some binary payloads; either means the
    server sent something other than the page we asked for.
    """

    def __init__(self, request_url: str, reason: str) -> None:
        self.reason = reason
        super().__init__(
            f"Response body is not a parseable HTML document: {reason}",
            request_url,
        )


# =============================================================================
# Transport errors
# =============================================================================


class TransientException(Exception):
    """Base class for transport-level failures.

    These represent network issues, rejected requests and timeouts. The
    lookup never retries them itself; it reports them as a
    ``TransportFailure`` outcome and leaves the decision to the caller.
    """

    pass


class HTMLResponseAssumptionException(TransientException):
    """Raised when an HTTP response has an unexpected status code.

    Attributes:
        status_code: The actual HTTP status code received.
        expected_codes: List of status codes that were expected.
        url: The URL that returned the unexpected status.
        message: Human-readable error message.
    """

    def __init__(
        self,
        status_code: int,
        expected_codes: list[int],
        url: str,
    ) -> None:
        self.status_code = status_code
        self.expected_codes = expected_codes
        self.url = url

        expected_str = ", ".join(str(code) for code in expected_codes)
        self.message = (
            f"HTTP {status_code} from {url} (expected one of: {expected_str})"
        )
        super().__init__(self.message)


class RequestTimeoutException(TransientException):
    """Raised when a request times out.

    Attributes:
        url: The URL that timed out.
        timeout_seconds: The configured timeout, or None if unknown.
        message: Human-readable error message.
    """

    def __init__(self, url: str, timeout_seconds: float | None) -> None:
        self.url = url
        self.timeout_seconds = timeout_seconds
        if timeout_seconds is None:
            self.message = f"Request to {url} timed out"
        else:
            self.message = (
                f"Request to {url} timed out after {timeout_seconds}s"
            )
        super().__init__(self.message)


class RequestFailedException(TransientException):
    """Raised when the transport fails before a response arrives.

    Wraps connection refusals, DNS failures, proxy errors and the like.

    Attributes:
        url: The URL being requested.
        cause: The underlying httpx exception.
        message: Human-readable error message.
    """

    def __init__(self, url: str, cause: Exception) -> None:
        self.url = url
        self.cause = cause
        self.message = (
            f"Request to {url} failed: {type(cause).__name__}: {cause}"
        )
        super().__init__(self.message)
