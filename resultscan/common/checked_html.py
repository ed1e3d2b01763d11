"""Checked HTML element wrapper for safe XPath/CSS querying.

This module provides CheckedHtmlElement, a wrapper around lxml.html.HtmlElement
that validates selector results against expected counts, plus
``parse_html_document`` for turning a response body into a checked tree.
"""

from __future__ import annotations

from typing import Any

from lxml import etree, html
from lxml.html import HtmlElement

from resultscan.common.exceptions import (
    HTMLStructuralAssumptionException,
    UnparseableDocumentException,
)


def parse_html_document(
    content: bytes | str, request_url: str = ""
) -> CheckedHtmlElement:
    """Parse a response body into a CheckedHtmlElement rooted at <html>.

    Bytes are preferred so lxml can honour the page's own charset
    declaration.

    Args:
        content: Raw response body.
        request_url: URL the body came from, for error context.

    Returns:
        CheckedHtmlElement wrapping the document root.

    Raises:
        UnparseableDocumentException: If the body is empty or not HTML.
    """
    if not content or not content.strip():
        raise UnparseableDocumentException(request_url, "document is empty")
    try:
        root = html.document_fromstring(content)
    except (etree.ParserError, ValueError) as e:
        raise UnparseableDocumentException(request_url, str(e)) from e
    return CheckedHtmlElement(root, request_url)


class CheckedHtmlElement:
    """Wrapper around HtmlElement with validated selectors.

    checked_xpath() and checked_css() compare the number of results against
    expected min/max counts and raise HTMLStructuralAssumptionException with
    the selector and URL when the page does not match.
    """

    def __init__(self, element: HtmlElement, request_url: str = "") -> None:
        """Initialize the checked element wrapper.

        Args:
            element: The lxml HtmlElement to wrap.
            request_url: Optional URL for error context.
        """
        self._element = element
        self._request_url = request_url

    @property
    def request_url(self) -> str:
        return self._request_url

    def checked_xpath(
        self,
        xpath: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
        **variables: Any,
    ) -> list[CheckedHtmlElement]:
        """Execute XPath query with count validation.

        Only element results are kept; text and attribute results are
        dropped before counting.

        Args:
            xpath: XPath expression to execute.
            description: Human-readable description of what's being selected.
            min_count: Minimum number of elements expected (default: 1).
            max_count: Maximum number of elements expected (None = unlimited).
            **variables: XPath variables, referenced as ``$name`` in the
                expression. Use these for label text instead of string
                formatting so quotes in labels cannot break the query.

        Returns:
            List of matching CheckedHtmlElements.

        Raises:
            HTMLStructuralAssumptionException: If count doesn't match expectations.

        Example::

            tree = parse_html_document(response.content, response.url)
            cells = tree.checked_xpath(
                "//td[normalize-space(.) = $label]", "label cell", label="Name"
            )
        """
        results = self._element.xpath(xpath, **variables)

        wrapped = [
            CheckedHtmlElement(r, self._request_url)
            for r in results
            if isinstance(r, HtmlElement)
        ]
        actual_count = len(wrapped)
        if actual_count < min_count or (
            max_count is not None and actual_count > max_count
        ):
            raise HTMLStructuralAssumptionException(
                selector=xpath,
                selector_type="xpath",
                description=description,
                expected_min=min_count,
                expected_max=max_count,
                actual_count=actual_count,
                request_url=self._request_url,
            )
        return wrapped

    def checked_css(
        self,
        selector: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[CheckedHtmlElement]:
        """Execute CSS selector query with count validation.

        Args:
            selector: CSS selector expression.
            description: Human-readable description of what's being selected.
            min_count: Minimum number of elements expected (default: 1).
            max_count: Maximum number of elements expected (None = unlimited).

        Returns:
            List of matching CheckedHtmlElements.

        Raises:
            HTMLStructuralAssumptionException: If count doesn't match
                expectations or the selector is invalid.
        """
        try:
            results = self._element.cssselect(selector)
        except Exception as e:
            raise HTMLStructuralAssumptionException(
                selector=selector,
                selector_type="css",
                description=description,
                expected_min=min_count,
                expected_max=max_count,
                actual_count=0,
                request_url=self._request_url,
            ) from e

        actual_count = len(results)
        if actual_count < min_count or (
            max_count is not None and actual_count > max_count
        ):
            raise HTMLStructuralAssumptionException(
                selector=selector,
                selector_type="css",
                description=description,
                expected_min=min_count,
                expected_max=max_count,
                actual_count=actual_count,
                request_url=self._request_url,
            )

        return [
            CheckedHtmlElement(result, self._request_url) for result in results
        ]

    def __getattr__(self, name: str):
        """Delegate all other attributes to the wrapped element."""
        return getattr(self._element, name)
