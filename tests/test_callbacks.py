"""Tests for the on_result callbacks and the CSV sink."""

import csv

import pytest

from resultscan.data_types import ExtractionResult
from resultscan.driver.callbacks import (
    CSV_HEADER,
    CsvResultSink,
    collect_results,
    combine_callbacks,
    print_result,
    result_row,
)

JOHN = ExtractionResult(identifier="20259258601", name="JOHN DOE", score="412")


def read_lines(path) -> list[str]:
    return path.read_text(encoding="utf-8").splitlines()


class TestCsvResultSink:
    def test_creates_file_with_header(self, tmp_path):
        path = tmp_path / "results.csv"
        with CsvResultSink(path):
            pass

        assert read_lines(path) == ["Registration Number,Student Name,Total Marks"]

    def test_writes_rows_in_column_order(self, tmp_path):
        path = tmp_path / "results.csv"
        with CsvResultSink(path) as sink:
            sink(JOHN)
            sink.write(ExtractionResult(name="ONLY NAME"))

        assert read_lines(path)[1:] == [
            "20259258601,JOHN DOE,412",
            ",ONLY NAME,",
        ]
        assert sink.rows_written == 2

    def test_comma_field_is_quoted(self, tmp_path):
        path = tmp_path / "results.csv"
        with CsvResultSink(path) as sink:
            sink(ExtractionResult(identifier="1", name="DOE, JOHN", score="3"))

        assert read_lines(path)[1] == '1,"DOE, JOHN",3'

    def test_quotes_are_doubled(self, tmp_path):
        path = tmp_path / "results.csv"
        with CsvResultSink(path) as sink:
            sink(ExtractionResult(name='ANNA "ANNIE", ROY'))

        assert read_lines(path)[1] == ',"ANNA ""ANNIE"", ROY",'
        with path.open(newline="", encoding="utf-8") as f:
            rows = list(csv.reader(f))
        assert rows[1] == ["", 'ANNA "ANNIE", ROY', ""]

    def test_overwrites_by_default(self, tmp_path):
        path = tmp_path / "results.csv"
        path.write_text("old content\n", encoding="utf-8")

        with CsvResultSink(path) as sink:
            sink(JOHN)

        assert read_lines(path) == [",".join(CSV_HEADER), "20259258601,JOHN DOE,412"]

    def test_append_keeps_existing_rows_and_single_header(self, tmp_path):
        path = tmp_path / "results.csv"
        with CsvResultSink(path) as sink:
            sink(JOHN)
        with CsvResultSink(path, append=True) as sink:
            sink(ExtractionResult(identifier="20259258602", score="389"))

        lines = read_lines(path)
        assert lines.count(",".join(CSV_HEADER)) == 1
        assert lines[1:] == ["20259258601,JOHN DOE,412", "20259258602,,389"]

    def test_append_to_missing_file_writes_header(self, tmp_path):
        path = tmp_path / "new.csv"
        with CsvResultSink(path, append=True) as sink:
            sink(JOHN)
        assert read_lines(path)[0] == ",".join(CSV_HEADER)

    def test_write_opens_lazily(self, tmp_path):
        path = tmp_path / "results.csv"
        sink = CsvResultSink(path)
        sink.write(JOHN)
        sink.close()
        assert len(read_lines(path)) == 2

    def test_unwritable_path_raises_oserror(self, tmp_path):
        sink = CsvResultSink(tmp_path / "missing-dir" / "results.csv")
        with pytest.raises(OSError):
            sink.open()


def test_result_row_uses_empty_strings_for_missing_fields():
    assert result_row(ExtractionResult(score="10")) == ["", "", "10"]


def test_collect_and_combine_callbacks():
    first, first_results = collect_results()
    second, second_results = collect_results()

    combine_callbacks(first, second)(JOHN)

    assert first_results == [JOHN]
    assert second_results == [JOHN]


def test_print_result(capsys):
    print_result("FOUND: ")(JOHN)

    out = capsys.readouterr().out
    assert out.startswith("FOUND: ")
    assert '"name": "JOHN DOE"' in out
