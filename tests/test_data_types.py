"""Tests for candidates, records, outcomes and SiteConfig."""

import pytest
from pydantic import ValidationError

from resultscan.candidates import count_candidates, generate_candidates
from resultscan.common.exceptions import RequestFailedException
from resultscan.config import SiteConfig
from resultscan.data_types import (
    Candidate,
    ExtractionResult,
    LookupStage,
    ParseFailure,
    Token,
    TransportFailure,
)


class TestCandidates:
    def test_inclusive_zero_padded_range(self):
        identifiers = [
            c.identifier for c in generate_candidates("2025925", 8, 11, 4)
        ]
        assert identifiers == [
            "20259250008",
            "20259250009",
            "20259250010",
            "20259250011",
        ]

    def test_suffix_is_kept(self):
        (candidate,) = generate_candidates("2025925", 8601, 8601, 4)
        assert candidate == Candidate("20259258601", 8601)
        assert str(candidate) == "20259258601"

    @pytest.mark.parametrize(
        "start, end, width",
        [(5, 4, 4), (-1, 3, 4), (1, 10000, 4), (1, 2, 0)],
    )
    def test_invalid_ranges_raise_immediately(self, start, end, width):
        with pytest.raises(ValueError):
            generate_candidates("P", start, end, width)

    def test_from_suffix_rejects_overflow(self):
        with pytest.raises(ValueError):
            Candidate.from_suffix("P", 123, 2)

    def test_count_candidates(self):
        assert count_candidates(8601, 9000) == 400
        assert count_candidates(5, 4) == 0


class TestExtractionResult:
    def test_blank_fields_become_none(self):
        result = ExtractionResult(identifier="1", name="", score="")
        assert result.name is None
        assert result.score is None

    def test_all_missing_is_rejected(self):
        with pytest.raises(ValidationError):
            ExtractionResult()
        with pytest.raises(ValidationError):
            ExtractionResult(identifier="", name=None, score="")

    def test_frozen(self):
        result = ExtractionResult(name="A")
        with pytest.raises(ValidationError):
            result.name = "B"

    def test_equality_by_fields(self):
        assert ExtractionResult(name="A", score="1") == ExtractionResult(
            score="1", name="A"
        )


class TestOutcomes:
    def test_failure_equality_ignores_error_object(self):
        first = TransportFailure(
            LookupStage.TOKEN,
            "http://x.test/",
            "boom",
            error=RequestFailedException("http://x.test/", OSError("a")),
        )
        second = TransportFailure(
            LookupStage.TOKEN,
            "http://x.test/",
            "boom",
            error=RequestFailedException("http://x.test/", OSError("a")),
        )
        assert first == second

    def test_stage_distinguishes_failures(self):
        assert ParseFailure(LookupStage.TOKEN, "u", "m") != ParseFailure(
            LookupStage.RESULT, "u", "m"
        )

    def test_token_str(self):
        assert str(Token("ABC123", "http://x.test/form")) == "ABC123"


class TestSiteConfig:
    def test_defaults(self):
        config = SiteConfig()
        assert config.form_url == "https://karresults.nic.in/slpufirst25_1.asp"
        assert config.origin == "https://karresults.nic.in"
        assert config.rejection_phrases == (
            "Invalid Reg Number",
            "Result Withheld",
        )

    def test_results_headers_add_origin_and_referer(self):
        config = SiteConfig(
            form_url="http://127.0.0.1:8080/form",
            results_url="http://127.0.0.1:8080/results",
        )
        headers = config.results_headers()
        assert headers["Origin"] == "http://127.0.0.1:8080"
        assert headers["Referer"] == "http://127.0.0.1:8080/form"

    def test_header_dicts_are_fresh_copies(self):
        config = SiteConfig()
        config.results_headers()["Origin"] = "tampered"
        config.form_request_headers()["User-Agent"] = "tampered"

        assert config.results_headers()["Origin"] == "https://karresults.nic.in"
        assert "tampered" not in config.form_request_headers().values()

    def test_form_body(self):
        assert SiteConfig().form_body("ABC123", "20259258601") == {
            "frmpuc_tokens": "ABC123",
            "reg": "20259258601",
            "ddlsub": "S",
        }

    def test_frozen(self):
        config = SiteConfig()
        with pytest.raises(ValidationError):
            config.form_url = "https://elsewhere.test/"

    @pytest.mark.parametrize("url", ["/relative", "ftp://x.test/form", ""])
    def test_rejects_non_http_urls(self, url):
        with pytest.raises(ValidationError):
            SiteConfig(form_url=url)
