"""LxmlPageElement: the query surface the lookup parses pages through.

LxmlPageElement wraps CheckedHtmlElement and adds the two lookups the
results service needs: reading a named form field and reading the cell next
to a labelled cell in a given table.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from resultscan.common.checked_html import (
    CheckedHtmlElement,
    parse_html_document,
)

if TYPE_CHECKING:
    from resultscan.data_types import Response

# Innermost cells only, so a layout cell wrapping a whole nested table does
# not match its children's labels.
_EXACT_LABEL_CELL = (
    "//table[@id = $table_id]//td[not(.//td)]"
    "[normalize-space(.) = normalize-space($label)]"
)
_CONTAINS_LABEL_CELL = (
    "//table[@id = $table_id]//td[not(.//td)][contains(., $label)]"
)
_BOLD_SPANS = (
    ".//span[contains(translate(@style, ' ', ''), 'font-weight:bold')]"
)


def _css_string(value: str) -> str:
    """Escape ``value`` for a double-quoted CSS attribute string."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


class LxmlPageElement:
    """PageElement implementation wrapping CheckedHtmlElement.

    Attributes:
        _element: The underlying CheckedHtmlElement.
        _url: The URL the page was fetched from.
    """

    def __init__(self, element: CheckedHtmlElement, url: str = ""):
        self._element = element
        self._url = url

    @classmethod
    def from_response(cls, response: Response) -> LxmlPageElement:
        """Parse a Response body into a page.

        Raises:
            UnparseableDocumentException: If the body is not HTML.
        """
        return cls(
            parse_html_document(response.content, response.url), response.url
        )

    @property
    def url(self) -> str:
        return self._url

    def query_xpath(
        self,
        selector: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
        **variables: str,
    ) -> list[LxmlPageElement]:
        """Query elements by XPath selector.

        Args:
            selector: XPath expression to execute.
            description: Human-readable description of what's being selected.
            min_count: Minimum number of elements expected (default: 1).
            max_count: Maximum number of elements expected (None = unlimited).
            **variables: XPath variables referenced as ``$name``.

        Returns:
            List of matching LxmlPageElement instances.

        Raises:
            HTMLStructuralAssumptionException: If count doesn't match expectations.
        """
        checked_elements = self._element.checked_xpath(
            selector, description, min_count, max_count, **variables
        )
        return [LxmlPageElement(elem, self._url) for elem in checked_elements]

    def query_css(
        self,
        selector: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[LxmlPageElement]:
        """Query elements by CSS selector.

        Raises:
            HTMLStructuralAssumptionException: If count doesn't match expectations.
        """
        checked_elements = self._element.checked_css(
            selector, description, min_count, max_count
        )
        return [LxmlPageElement(elem, self._url) for elem in checked_elements]

    def text_content(self) -> str:
        """Visible text content of the element and its descendants."""
        return self._element.text_content()

    def get_attribute(self, name: str) -> str | None:
        return self._element.get(name)

    def find_field_value(self, field_name: str) -> str | None:
        """Read the value of the first input named ``field_name``.

        The value is returned exactly as it appears in the page.

        Args:
            field_name: The input's ``name`` attribute.

        Returns:
            The ``value`` attribute, or None if the input is missing, has no
            value, or the value is blank.
        """
        inputs = self.query_css(
            f'input[name="{_css_string(field_name)}"]',
            f"input field {field_name!r}",
            min_count=0,
        )
        if not inputs:
            return None
        value = inputs[0].get_attribute("value")
        if value is None or not value.strip():
            return None
        return value

    def find_labelled_cell(
        self, label: str, table_id: str, bold: bool = False
    ) -> str | None:
        """Read the cell to the right of a labelled cell.

        The label cell is looked up inside ``table#table_id``. A cell whose
        whole text equals the label wins; otherwise the first cell that
        contains the label is used, so "Name :" still matches "Name".

        Args:
            label: Literal label text, e.g. "Reg. No.".
            table_id: ``id`` of the table to search in.
            bold: If True, return only the text of bold-styled spans inside
                the value cell rather than the whole cell text.

        Returns:
            The stripped value text, or None if the label, the adjacent cell
            or (with ``bold``) the bold span is missing or blank.
        """
        label_cells = self.query_xpath(
            _EXACT_LABEL_CELL,
            f"cell labelled {label!r}",
            min_count=0,
            table_id=table_id,
            label=label,
        ) or self.query_xpath(
            _CONTAINS_LABEL_CELL,
            f"cell containing {label!r}",
            min_count=0,
            table_id=table_id,
            label=label,
        )
        if not label_cells:
            return None

        value_cells = label_cells[0].query_xpath(
            "following-sibling::td[1]",
            f"value cell for {label!r}",
            min_count=0,
            max_count=1,
        )
        if not value_cells:
            return None

        if bold:
            spans = value_cells[0].query_xpath(
                _BOLD_SPANS, f"bold value for {label!r}", min_count=0
            )
            text = "".join(span.text_content() for span in spans)
        else:
            text = value_cells[0].text_content()

        return text.strip() or None
