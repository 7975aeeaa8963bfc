"""Tests for the command line entry point."""

import io
import json
import logging
import sys

import pytest

import main
from conftest import pattern_bytes
from sampler.core.models import ErrorCode
from sampler.workers.base_worker import ProgressInfo


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Keep user settings, root log handlers and the excepthook out of the tests."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("APPDATA", str(tmp_path / "config"))
    monkeypatch.setattr(sys, "excepthook", sys.excepthook)

    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level
    yield
    for handler in root_logger.handlers:
        if handler not in handlers:
            handler.close()
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)


class TestParseArguments:

    def test_two_paths(self):
        args = main.parse_arguments(["base.raw", "other.raw"])

        assert args.base_path == "base.raw"
        assert args.comparison_path == "other.raw"
        assert args.mode == main.RunMode.PATHS
        assert args.number_of_samples is None
        assert args.sample_size_bytes is None
        assert not args.log_to_file
        assert args.log_level == "INFO"

    def test_sampling_options(self):
        args = main.parse_arguments(["a", "b", "-n", "20", "--kb", "64", "--bytes", "1000"])

        assert args.number_of_samples == 20
        assert args.sample_size_bytes == 64 * 1024

    def test_log_flag_without_path(self):
        args = main.parse_arguments(["a", "b", "-L"])

        assert args.log_to_file
        assert args.log_file_path == ""

    def test_log_directory_enables_file_logging(self):
        args = main.parse_arguments(["a", "b", "--log-dir", "logs"])

        assert args.log_to_file
        assert args.log_directory == "logs"

    def test_verbose(self):
        assert main.parse_arguments(["a", "b", "-v"]).log_level == "DEBUG"

    def test_dataset_needs_no_paths(self):
        args = main.parse_arguments(["--dataset", "QC_01", "--dataset-catalog", "d.json"])

        assert args.mode == main.RunMode.DATASET
        assert args.dataset_name == "QC_01"
        assert args.dataset_catalog == "d.json"

    def test_missing_comparison_path_is_an_error(self):
        with pytest.raises(SystemExit) as excinfo:
            main.parse_arguments(["only-one"])

        assert excinfo.value.code == 2

    def test_save_settings_needs_no_paths(self):
        args = main.parse_arguments(["--save-settings", "-n", "5"])

        assert args.save_settings
        assert args.mode == main.RunMode.PATHS
        assert args.base_path == ""


class TestLogFile:

    def test_disabled(self):
        assert main.resolve_log_file(main.CommandLineArgs()) is None

    def test_default_name_in_directory(self, tmp_path):
        args = main.CommandLineArgs(log_to_file=True, log_directory=str(tmp_path))

        log_file = main.resolve_log_file(args)

        assert log_file.parent == tmp_path
        assert log_file.name.startswith("FileCompareSampler_log_")
        assert log_file.suffix == ".txt"

    def test_explicit_path(self, tmp_path):
        args = main.CommandLineArgs(log_to_file=True, log_file_path=str(tmp_path / "run.log"))

        assert main.resolve_log_file(args) == tmp_path / "run.log"


class TestConsoleProgressReporter:

    def test_percent_steps(self):
        stream = io.StringIO()
        reporter = main.ConsoleProgressReporter(stream)

        for current in range(1, 5):
            reporter.on_progress(ProgressInfo('comparing', f"file{current}", current, 4))
        reporter.finish()

        lines = stream.getvalue().splitlines()
        assert [line.strip() for line in lines] == [
            "Processing: 25%", "Processing: 50%", "Processing: 75%", "Processing: 100%"
        ]

    def test_section_progress(self):
        stream = io.StringIO()
        reporter = main.ConsoleProgressReporter(stream)

        reporter.on_progress(ProgressInfo('section', "Sample 3 of 10", 45, 100))
        reporter.finish()

        assert stream.getvalue() == "   Sample 3 of 10, 45.0%\n"

    def test_nothing_written_without_progress(self):
        stream = io.StringIO()

        main.ConsoleProgressReporter(stream).finish()

        assert stream.getvalue() == ""


class TestMain:

    def test_matching_files(self, make_pair):
        base, comparison = make_pair(1000)

        assert main.main([str(base), str(comparison), "-n", "4", "--bytes", "100"]) == 0

    def test_mismatching_files(self, make_pair):
        base, comparison = make_pair(1000, flip_at=(999,))

        assert main.main([str(base), str(comparison), "-n", "4", "--bytes", "100"]) == 1

    def test_base_not_found(self, tmp_path):
        code = main.main([str(tmp_path / "missing.raw"), str(tmp_path)])

        assert code == int(ErrorCode.BASE_NOT_FOUND)

    def test_directories_with_missing_file(self, write_file, tmp_path):
        write_file("base/a.raw", pattern_bytes(200))
        write_file("base/sub/b.raw", pattern_bytes(200))
        write_file("comparison/a.raw", pattern_bytes(200))

        code = main.main([str(tmp_path / "base"), str(tmp_path / "comparison")])

        assert code == int(ErrorCode.MISMATCH)

    def test_dataset(self, write_file, tmp_path, dataset_catalog):
        write_file("storage/run.raw", pattern_bytes(500))
        write_file("archive/run.raw", pattern_bytes(500))
        catalog = dataset_catalog({
            "Run_1": {"storage_path": str(tmp_path / "storage"), "archive_path": str(tmp_path / "archive")}
        })

        assert main.main(["--dataset", "Run_1", "--dataset-catalog", str(catalog)]) == 0

    def test_dataset_without_catalog(self):
        assert main.main(["--dataset", "Run_1"]) == int(ErrorCode.DATASET_LOOKUP_FAILED)

    def test_config_file_supplies_defaults(self, make_pair, tmp_path):
        base, comparison = make_pair(1000, flip_at=(500,))
        config = tmp_path / "settings.json"
        config.write_text(json.dumps({"number_of_samples": 4, "sample_size_bytes": 100}), encoding="utf-8")

        # Four 100 byte samples miss offset 500; the default settings read the whole file
        assert main.main([str(base), str(comparison), "-c", str(config)]) == 0
        assert main.main([str(base), str(comparison)]) == 1

    def test_log_file_is_written(self, make_pair, tmp_path):
        base, comparison = make_pair(100)
        log_dir = tmp_path / "logs"

        assert main.main([str(base), str(comparison), "--log-dir", str(log_dir)]) == 0

        log_files = list(log_dir.glob("FileCompareSampler_log_*.txt"))
        assert len(log_files) == 1
        assert "Files match" in log_files[0].read_text(encoding="utf-8")

    def test_save_settings_without_paths(self, tmp_path):
        config = tmp_path / "saved" / "settings.json"

        code = main.main(["--save-settings", "-n", "5", "--kb", "64", "-c", str(config)])

        assert code == 0
        saved = json.loads(config.read_text(encoding="utf-8"))
        assert saved["number_of_samples"] == 5
        assert saved["sample_size_bytes"] == 64 * 1024

    def test_save_settings_with_a_comparison(self, make_pair, tmp_path):
        base, comparison = make_pair(1000, flip_at=(500,))
        config = tmp_path / "settings.json"

        assert main.main([str(base), str(comparison), "-n", "4", "--bytes", "100",
                          "--save-settings", "-c", str(config)]) == 0
        # The saved defaults miss offset 500 again
        assert main.main([str(base), str(comparison), "-c", str(config)]) == 0
