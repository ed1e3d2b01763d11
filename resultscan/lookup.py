"""The two-step lookup: fetch a form token, then submit it and classify.

TokenAcquirer reads the hidden token from the form page. ResultExtractor
posts token + identifier to the results endpoint and turns the page into an
Outcome. ResultLookup runs the two in order for one candidate.

None of these raise for expected failures. Transport problems come back as
TransportFailure, surprising markup as ParseFailure, and the service's own
"no such result" pages as NotFound. Nothing is retried here.
"""

from __future__ import annotations

import logging

from typing_extensions import assert_never

from resultscan.common.exceptions import (
    ScraperAssumptionException,
    TransientException,
)
from resultscan.common.lxml_page_element import LxmlPageElement
from resultscan.common.request_manager import SyncRequestManager
from resultscan.config import SiteConfig
from resultscan.data_types import (
    Candidate,
    ExtractionResult,
    HttpMethod,
    HTTPRequestParams,
    LookupStage,
    NotFound,
    Outcome,
    ParseFailure,
    Success,
    Token,
    TokenOutcome,
    TransportFailure,
)

logger = logging.getLogger(__name__)


def parse_token(
    page: LxmlPageElement, config: SiteConfig
) -> Token | ParseFailure:
    """Read the token from a parsed form page.

    Args:
        page: The parsed form page.
        config: Supplies the token field name.

    Returns:
        The Token, or a ParseFailure if the field is missing or blank.
    """
    value = page.find_field_value(config.token_field)
    if value is None:
        return ParseFailure(
            stage=LookupStage.TOKEN,
            url=page.url,
            message=(
                f"token field {config.token_field!r} is missing or empty "
                "on the form page"
            ),
        )
    return Token(value=value, source_url=page.url)


def parse_result(
    page: LxmlPageElement, config: SiteConfig, identifier: str
) -> Success | NotFound | ParseFailure:
    """Extract and classify a parsed results page.

    The name, identifier and score are looked up independently; any of them
    may be missing. If all three are missing the page text is searched for
    the configured rejection phrases to tell NotFound from ParseFailure.

    Args:
        page: The parsed results page.
        config: Supplies table ids, labels and rejection phrases.
        identifier: The identifier that was submitted, for NotFound.

    Returns:
        Success, NotFound or ParseFailure.
    """
    name = page.find_labelled_cell(
        config.name_label, config.details_table_id, bold=True
    )
    reg_no = page.find_labelled_cell(
        config.identifier_label, config.details_table_id, bold=True
    )
    score = page.find_labelled_cell(
        config.score_label, config.marks_table_id
    )

    if name is None and reg_no is None and score is None:
        text = page.text_content()
        for phrase in config.rejection_phrases:
            if phrase in text:
                return NotFound(identifier=identifier, phrase=phrase)
        return ParseFailure(
            stage=LookupStage.RESULT,
            url=page.url,
            message=(
                "no result fields and no known rejection phrase on the "
                "results page; the page structure may have changed"
            ),
        )

    return Success(
        ExtractionResult(identifier=reg_no, name=name, score=score)
    )


class TokenAcquirer:
    """Fetches the form page and reads its one-time token.

    Each call is independent: a new GET, a new token.
    """

    def __init__(
        self, config: SiteConfig, request_manager: SyncRequestManager
    ) -> None:
        self.config = config
        self.request_manager = request_manager

    def acquire_token(self) -> TokenOutcome:
        """Fetch a fresh token.

        Returns:
            Token on success, TransportFailure if the form page could not be
            fetched, ParseFailure if it had no usable token.
        """
        url = self.config.form_url
        params = HTTPRequestParams(
            method=HttpMethod.GET,
            url=url,
            headers=self.config.form_request_headers(),
        )
        try:
            response = self.request_manager.resolve_request(params)
            page = LxmlPageElement.from_response(response)
        except TransientException as e:
            return TransportFailure(
                stage=LookupStage.TOKEN, url=url, message=str(e), error=e
            )
        except ScraperAssumptionException as e:
            return ParseFailure(
                stage=LookupStage.TOKEN, url=url, message=e.message, error=e
            )
        return parse_token(page, self.config)


class ResultExtractor:
    """Submits a token and identifier and classifies the results page."""

    def __init__(
        self, config: SiteConfig, request_manager: SyncRequestManager
    ) -> None:
        self.config = config
        self.request_manager = request_manager

    def build_request(
        self, token: Token, candidate: Candidate
    ) -> HTTPRequestParams:
        """The POST that submits ``candidate`` with ``token``."""
        return HTTPRequestParams(
            method=HttpMethod.POST,
            url=self.config.results_url,
            data=self.config.form_body(token.value, candidate.identifier),
            headers=self.config.results_headers(),
        )

    def extract(self, token: Token, candidate: Candidate) -> Outcome:
        """Submit the lookup and classify the response.

        Args:
            token: A token from TokenAcquirer, used once.
            candidate: The identifier to look up.

        Returns:
            Success, NotFound, TransportFailure or ParseFailure.
        """
        params = self.build_request(token, candidate)
        try:
            response = self.request_manager.resolve_request(params)
            page = LxmlPageElement.from_response(response)
        except TransientException as e:
            return TransportFailure(
                stage=LookupStage.RESULT,
                url=params.url,
                message=str(e),
                error=e,
            )
        except ScraperAssumptionException as e:
            return ParseFailure(
                stage=LookupStage.RESULT,
                url=params.url,
                message=e.message,
                error=e,
            )
        return parse_result(page, self.config, candidate.identifier)


class ResultLookup:
    """Runs TokenAcquirer then ResultExtractor for one candidate.

    Example::

        with SyncRequestManager(timeout=30.0) as manager:
            lookup = ResultLookup(SiteConfig(), manager)
            outcome = lookup.lookup(Candidate("20259258601"))
    """

    def __init__(
        self, config: SiteConfig, request_manager: SyncRequestManager
    ) -> None:
        self.config = config
        self.request_manager = request_manager
        self.token_acquirer = TokenAcquirer(config, request_manager)
        self.result_extractor = ResultExtractor(config, request_manager)

    def lookup(self, candidate: Candidate) -> Outcome:
        """Resolve one candidate to an Outcome.

        Cookies from earlier lookups are cleared first; cookies set by the
        form page still reach the POST for the same candidate. A token-stage
        failure is returned as is; no POST is attempted.
        """
        self.request_manager.reset_session()
        token_outcome = self.token_acquirer.acquire_token()
        match token_outcome:
            case Token():
                outcome = self.result_extractor.extract(
                    token_outcome, candidate
                )
            case TransportFailure() | ParseFailure():
                outcome = token_outcome
            case _:
                assert_never(token_outcome)

        log_outcome(candidate, outcome)
        return outcome


def log_outcome(candidate: Candidate, outcome: Outcome) -> None:
    """Log an outcome at a level matching how surprising it is."""
    identifier = candidate.identifier
    match outcome:
        case Success(result=result):
            logger.info(
                f"{identifier}: found {result.name!r} (score {result.score})",
                extra={"identifier": identifier},
            )
        case NotFound(phrase=phrase):
            logger.debug(
                f"{identifier}: not found ({phrase})",
                extra={"identifier": identifier},
            )
        case ParseFailure(stage=stage, url=url, message=message):
            hint = (
                " Later candidates will likely fail the same way."
                if stage is LookupStage.TOKEN
                else ""
            )
            logger.warning(
                f"{identifier}: unexpected {stage.value} page: {message}.{hint}",
                extra={"identifier": identifier, "url": url},
            )
        case TransportFailure(stage=stage, url=url, message=message):
            logger.error(
                f"{identifier}: {stage.value} request failed: {message}",
                extra={"identifier": identifier, "url": url},
            )
        case _:
            assert_never(outcome)
