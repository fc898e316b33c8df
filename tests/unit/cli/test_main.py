"""Unit tests for CLI command handling."""

from __future__ import annotations

from pathlib import Path

import pytest

from cli.main import main
from tests.fixture_paths import SAMPLE_FILENAME, write_sample_archive


def _import_args(data_root: Path, source_dir: Path, sequence: str = "002") -> list[str]:
    return [
        "--data-root",
        str(data_root),
        "import",
        str(source_dir),
        "--date",
        "20210501",
        "--sequence",
        sequence,
        "--no-archive",
    ]


def _output_lines(capsys: pytest.CaptureFixture[str]) -> list[str]:
    return [line for line in capsys.readouterr().out.splitlines() if line.strip()]


def test_cli_import_prints_logged_outcome(tmp_path: Path, capsys) -> None:
    """CLI import should print one tab-separated outcome per file."""
    source_dir = tmp_path / "source"
    write_sample_archive(source_dir)

    exit_code = main(_import_args(tmp_path / "data", source_dir))

    assert exit_code == 0
    assert _output_lines(capsys) == [f"{SAMPLE_FILENAME}\tlogged\t3"]


def test_cli_import_exits_nonzero_for_missing_file(tmp_path: Path, capsys) -> None:
    """A missing source file should be reported as failed."""
    source_dir = tmp_path / "source"
    source_dir.mkdir()

    exit_code = main(_import_args(tmp_path / "data", source_dir, sequence="009"))

    assert exit_code == 1
    assert _output_lines(capsys) == ["ci_20210501_009.zip\tfailed\t0"]


def test_cli_ledger_lists_imported_file(tmp_path: Path, capsys) -> None:
    """Ledger listing should include a freshly imported file."""
    source_dir = tmp_path / "source"
    write_sample_archive(source_dir)
    main(_import_args(tmp_path / "data", source_dir))
    capsys.readouterr()

    exit_code = main(["--data-root", str(tmp_path / "data"), "ledger"])

    lines = _output_lines(capsys)
    assert exit_code == 0 and [line.split("\t")[0] for line in lines] == [SAMPLE_FILENAME]


def test_cli_batches_lists_committed_batch(tmp_path: Path, capsys) -> None:
    """Batch listing should show the source filename and record count."""
    source_dir = tmp_path / "source"
    write_sample_archive(source_dir)
    main(_import_args(tmp_path / "data", source_dir))
    capsys.readouterr()

    exit_code = main(["--data-root", str(tmp_path / "data"), "batches"])

    fields = [line.split("\t") for line in _output_lines(capsys)]
    assert exit_code == 0 and [(item[1], item[2]) for item in fields] == [
        (SAMPLE_FILENAME, "3")
    ]


def test_cli_ledger_clear_reports_result(tmp_path: Path, capsys) -> None:
    """Clearing should succeed once and then report the entry as missing."""
    source_dir = tmp_path / "source"
    write_sample_archive(source_dir)
    data_root = str(tmp_path / "data")
    main(_import_args(tmp_path / "data", source_dir))
    capsys.readouterr()

    first_code = main(["--data-root", data_root, "ledger-clear", SAMPLE_FILENAME])
    second_code = main(["--data-root", data_root, "ledger-clear", SAMPLE_FILENAME])

    assert (first_code, second_code) == (0, 1)
    assert _output_lines(capsys) == [
        f"cleared\t{SAMPLE_FILENAME}",
        f"not_found\t{SAMPLE_FILENAME}",
    ]


def test_cli_rejects_malformed_date(tmp_path: Path) -> None:
    """Dates that are not eight digits should be rejected by the parser."""
    args = ["--data-root", str(tmp_path), "import", str(tmp_path), "--date", "2021-05-01"]

    with pytest.raises(SystemExit):
        main([*args, "--sequence", "001"])

    assert not (tmp_path / "batches").exists()
