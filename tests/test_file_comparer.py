"""Tests for file pair comparison."""

import logging

import pytest

from conftest import pattern_bytes
from sampler.core.byte_range import ByteRangeComparator
from sampler.core.file_comparer import FileComparator, file_lengths_match
from sampler.core.models import ComparisonResult, ResultKind


@pytest.fixture
def comparator():
    return FileComparator(chunk_size=64)


@pytest.fixture
def sections(monkeypatch):
    """Record the (offset, length) of every section compared."""
    seen = []
    compare_section = ByteRangeComparator.compare_section

    def recording(self, base_stream, compare_stream, start_offset=-1, length=-1, *args, **kwargs):
        seen.append((start_offset, length))
        return compare_section(self, base_stream, compare_stream, start_offset, length, *args, **kwargs)

    monkeypatch.setattr(ByteRangeComparator, "compare_section", recording)
    return seen


@pytest.fixture
def unreadable_end(monkeypatch):
    """Fail the section that starts at offset 900 with a read error."""
    compare_section = ByteRangeComparator.compare_section

    def failing(self, base_stream, compare_stream, start_offset=-1, length=-1, *args, **kwargs):
        if start_offset == 900:
            return ComparisonResult.failure(ResultKind.ERROR, "Error comparing file section: device not ready")
        return compare_section(self, base_stream, compare_stream, start_offset, length, *args, **kwargs)

    monkeypatch.setattr(ByteRangeComparator, "compare_section", failing)


class TestLengths:

    def test_same_length(self, make_pair):
        base, comparison = make_pair(100)

        result = file_lengths_match(base, comparison)

        assert result.matched
        assert result.detail == "File lengths match"

    def test_different_length(self, write_file):
        base = write_file("a/x.bin", pattern_bytes(2048))
        comparison = write_file("b/x.bin", pattern_bytes(1024))

        result = file_lengths_match(base, comparison)

        assert result.kind == ResultKind.LENGTH_MISMATCH
        assert result.detail == "Base file is 2.0 KB; comparison file is 1.0 KB"

    def test_missing_comparison(self, write_file, tmp_path):
        base = write_file("a/x.bin", b"data")

        result = file_lengths_match(base, tmp_path / "b" / "x.bin")

        assert result.kind == ResultKind.NOT_FOUND
        assert result.detail.startswith("Comparison file not found: ")


class TestFullComparison:

    def test_identical_files(self, comparator, make_pair):
        base, comparison = make_pair(500)

        result = comparator.compare(base, comparison, 10, 100)

        assert result.matched
        assert result.detail == "Files match"

    def test_difference_anywhere_is_found(self, comparator, make_pair):
        base, comparison = make_pair(500, flip_at=(250,))

        result = comparator.compare(base, comparison, 10, 100)

        assert result.kind == ResultKind.MISMATCH
        assert result.detail == "Mismatch at offset 250"
        assert result.offset == 250

    def test_empty_files_match(self, comparator, write_file):
        base = write_file("a/empty", b"")
        comparison = write_file("b/empty", b"")

        assert comparator.compare(base, comparison).matched


class TestSampledComparison:

    def test_match_reports_percent_examined(self, comparator, make_pair):
        base, comparison = make_pair(1000)

        result = comparator.compare(base, comparison, 4, 100)

        assert result.matched
        assert result.detail == "Files match (examined 40.00% of the file)"
        assert result.percent_examined == pytest.approx(40.0)

    def test_difference_between_windows_is_not_seen(self, comparator, make_pair):
        base, comparison = make_pair(1000, flip_at=(500,))

        assert comparator.compare(base, comparison, 4, 100).matched

    def test_end_mismatch(self, comparator, make_pair):
        base, comparison = make_pair(1000, flip_at=(950,))

        result = comparator.compare(base, comparison, 4, 100)

        assert result.kind == ResultKind.END_MISMATCH
        assert result.detail == "Files match at the beginning but not at the end; Mismatch at offset 950"
        assert result.offset == 950

    def test_end_mismatch_stops_before_interior_windows(self, comparator, make_pair, sections):
        base, comparison = make_pair(1000, flip_at=(300, 950))

        result = comparator.compare(base, comparison, 4, 100)

        assert result.kind == ResultKind.END_MISMATCH
        assert result.offset == 950
        assert sections == [(0, 100), (900, 100)]

    def test_interior_windows_read_when_ends_match(self, comparator, make_pair, sections):
        base, comparison = make_pair(1000)

        comparator.compare(base, comparison, 4, 100)

        assert sections == [(0, 100), (900, 100), (283, 100), (617, 100)]

    def test_start_mismatch(self, comparator, make_pair):
        base, comparison = make_pair(1000, flip_at=(10,))

        result = comparator.compare(base, comparison, 4, 100)

        assert result.kind == ResultKind.START_MISMATCH
        assert result.detail == "Files match at the end but not at the beginning; Mismatch at offset 10"

    def test_both_ends_report_earliest_offset(self, comparator, make_pair, sections):
        base, comparison = make_pair(1000, flip_at=(10, 950))

        result = comparator.compare(base, comparison, 4, 100)

        assert result.kind == ResultKind.BOTH_ENDS_MISMATCH
        assert result.detail == "Files do not match at the beginning or the end; Mismatch at offset 10"
        assert sections == [(0, 100), (900, 100)]

    def test_middle_mismatch(self, comparator, make_pair):
        base, comparison = make_pair(1000, flip_at=(300,))

        result = comparator.compare(base, comparison, 4, 100)

        assert result.kind == ResultKind.MIDDLE_MISMATCH
        assert result.detail == (
            "Files match at the beginning and end, but not in the middle; Mismatch at offset 300"
        )

    def test_repeated_comparisons_agree(self, comparator, make_pair):
        base, comparison = make_pair(1000, flip_at=(650,))

        first = comparator.compare(base, comparison, 4, 100)
        second = comparator.compare(base, comparison, 4, 100)

        assert first == second
        assert first.kind == ResultKind.MIDDLE_MISMATCH

    def test_read_error_at_the_end_stays_a_read_error(self, comparator, make_pair, unreadable_end):
        base, comparison = make_pair(1000)

        result = comparator.compare(base, comparison, 4, 100)

        assert result.kind == ResultKind.ERROR
        assert result.detail == (
            "Files match at the beginning but not at the end; "
            "Error comparing file section: device not ready"
        )

    def test_read_error_with_start_mismatch_stays_a_read_error(self, comparator, make_pair, unreadable_end):
        base, comparison = make_pair(1000, flip_at=(10,))

        result = comparator.compare(base, comparison, 4, 100)

        assert result.kind == ResultKind.ERROR
        assert result.detail.startswith("Files do not match at the beginning or the end; ")


class TestInvalidInput:

    def test_blank_base_path(self, comparator):
        result = comparator.compare("  ", "other")

        assert result.kind == ResultKind.INVALID_PATH
        assert result.detail == "Base input file path is empty"

    def test_blank_comparison_path(self, comparator, make_pair):
        base, _ = make_pair(10)

        result = comparator.compare(base, "")

        assert result.kind == ResultKind.INVALID_PATH
        assert result.detail == "Input file path to compare is empty"

    def test_missing_base(self, comparator, tmp_path, make_pair):
        _, comparison = make_pair(10)

        result = comparator.compare(tmp_path / "nope.raw", comparison)

        assert result.kind == ResultKind.NOT_FOUND
        assert result.detail.startswith("Base file to compare not found: ")


class TestLogging:

    def test_mismatch_is_logged_as_warning(self, comparator, make_pair, caplog):
        base, comparison = make_pair(500, flip_at=(1,))

        with caplog.at_level(logging.INFO):
            comparator.compare(base, comparison, 10, 100)

        assert any(r.levelno == logging.WARNING and "Mismatch at offset 1" in r.getMessage()
                   for r in caplog.records)

    def test_match_not_logged_when_quiet(self, comparator, make_pair, caplog):
        base, comparison = make_pair(500)

        with caplog.at_level(logging.INFO):
            comparator.compare(base, comparison, 10, 100, report_on_match=False)

        assert not caplog.records
