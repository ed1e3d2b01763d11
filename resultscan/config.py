"""Site configuration for the results service.

SiteConfig is an immutable pydantic model holding everything that is fixed
about the remote service: URLs, form field names, table ids, labels,
rejection phrases and header templates. One instance is shared by the
TokenAcquirer and the ResultExtractor; the defaults target the Karnataka
II PUC results site.
"""

from __future__ import annotations

from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/135.0.0.0 Safari/537.36"
)
ACCEPT_HTML = (
    "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,"
    "image/webp,image/apng,*/*;q=0.8,application/signed-exchange;v=b3;q=0.7"
)


def default_form_headers() -> dict[str, str]:
    """Headers for the form-page GET, mimicking a plain browser visit."""
    return {
        "User-Agent": USER_AGENT,
        "Accept": ACCEPT_HTML,
        "Accept-Language": "en-US,en;q=0.9",
        "Connection": "keep-alive",
    }


def default_results_headers() -> dict[str, str]:
    """Headers for the results POST, mimicking a form submission.

    Origin and Referer are not included; SiteConfig.results_headers() adds
    them from the form URL.
    """
    return {
        "Accept": ACCEPT_HTML,
        "Accept-Language": "en-US,en;q=0.9,hi;q=0.8",
        "Cache-Control": "max-age=0",
        "Connection": "keep-alive",
        "Content-Type": "application/x-www-form-urlencoded",
        "Sec-Fetch-Dest": "document",
        "Sec-Fetch-Mode": "navigate",
        "Sec-Fetch-Site": "same-origin",
        "Sec-Fetch-User": "?1",
        "Upgrade-Insecure-Requests": "1",
        "User-Agent": USER_AGENT,
        "sec-ch-ua": (
            '"Google Chrome";v="135", "Not-A.Brand";v="8", "Chromium";v="135"'
        ),
        "sec-ch-ua-mobile": "?0",
        "sec-ch-ua-platform": '"Windows"',
    }


class SiteConfig(BaseModel):
    """Immutable description of the remote results service.

    Example::

        config = SiteConfig(timeout=10.0)
        local = SiteConfig(
            form_url="http://127.0.0.1:8080/form",
            results_url="http://127.0.0.1:8080/results",
        )
    """

    model_config = ConfigDict(frozen=True)

    form_url: str = Field(
        "https://karresults.nic.in/slpufirst25_1.asp",
        description="Page carrying the hidden token field",
    )
    results_url: str = Field(
        "https://karresults.nic.in/slakres25_1.asp",
        description="Endpoint the token and identifier are posted to",
    )

    token_field: str = "frmpuc_tokens"
    identifier_field: str = "reg"
    category_field: str = "ddlsub"
    category_value: str = "S"

    details_table_id: str = "details"
    marks_table_id: str = "result"
    name_label: str = "Name"
    identifier_label: str = "Reg. No."
    score_label: str = "TOTAL OBTAINED MARKS"

    rejection_phrases: tuple[str, ...] = (
        "Invalid Reg Number",
        "Result Withheld",
    )

    form_headers: dict[str, str] = Field(default_factory=default_form_headers)
    base_results_headers: dict[str, str] = Field(
        default_factory=default_results_headers
    )

    timeout: float | None = Field(
        30.0, description="Per-request timeout in seconds; None disables it"
    )

    @field_validator("form_url", "results_url")
    @classmethod
    def require_absolute_url(cls, value: str) -> str:
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"expected an absolute http(s) URL, got {value!r}")
        return value

    @property
    def origin(self) -> str:
        """Scheme and host of the form page, as sent in the Origin header."""
        parsed = urlparse(self.form_url)
        return f"{parsed.scheme}://{parsed.netloc}"

    def results_headers(self) -> dict[str, str]:
        """Full header set for the results POST.

        Returns a fresh dict on every call.
        """
        headers = dict(self.base_results_headers)
        headers["Origin"] = self.origin
        headers["Referer"] = self.form_url
        return headers

    def form_request_headers(self) -> dict[str, str]:
        """Header set for the form GET. Returns a fresh dict on every call."""
        return dict(self.form_headers)

    def form_body(self, token: str, identifier: str) -> dict[str, str]:
        """Form-encoded body for the results POST."""
        return {
            self.token_field: token,
            self.identifier_field: identifier,
            self.category_field: self.category_value,
        }
