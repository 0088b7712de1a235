"""Tests for the command-line interface."""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
import yaml

from quarterly.cli import main

START = datetime(2024, 3, 5, tzinfo=timezone.utc)


@pytest.fixture
def bars_csv(tmp_path: Path) -> Path:
    """Ninety 1-minute bars starting at UTC midnight."""
    lines = ["timestamp,open,high,low,close"]
    for i in range(90):
        ts = START + timedelta(minutes=i)
        price = 100.0 + i
        lines.append(f"{ts.isoformat()},{price},{price + 1},{price - 1},{price + 0.5}")
    path = tmp_path / "bars.csv"
    path.write_text("\n".join(lines) + "\n")
    return path


def test_no_command_prints_help(capsys: pytest.CaptureFixture[str]) -> None:
    """Running without a command shows help."""
    assert main([]) == 0
    assert "scan" in capsys.readouterr().out


def test_scan_csv(bars_csv: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """scan --csv prints every marker and the session levels."""
    assert main(["scan", "--csv", str(bars_csv), "--timezone", "UTC"]) == 0

    out = capsys.readouterr().out
    assert "QUARTERLY SCAN" in out
    assert "2024-03-05T00:01:00+00:00" in out
    assert "FIRST" in out
    assert "90 bars, 4 markers, mode 1m" in out
    assert "Asia" in out
    assert "190.00" in out


def test_scan_custom_session(bars_csv: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """--custom-session limits markers to the given window."""
    code = main(
        ["scan", "--csv", str(bars_csv), "--timezone", "UTC", "--custom-session", "00:30-01:00"]
    )

    out = capsys.readouterr().out
    assert code == 0
    assert "Session:     00:30-01:00" in out
    assert "90 bars, 2 markers" in out


def test_scan_from_config(bars_csv: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """scan reads its source and divider settings from YAML."""
    config_file = tmp_path / "scan.yaml"
    config_file.write_text(
        yaml.dump(
            {
                "data_source": "csv",
                "source_params": {"file_path": str(bars_csv)},
                "divider": {"local_timezone": "UTC"},
                "logging": {"level": "WARNING"},
            }
        )
    )

    assert main(["scan", str(config_file), "--all"]) == 0
    out = capsys.readouterr().out
    assert "(in)" in out
    assert "4 markers" in out


def test_scan_requires_input(capsys: pytest.CaptureFixture[str]) -> None:
    """scan without a config or CSV fails."""
    assert main(["scan"]) == 1
    assert "provide a config file" in capsys.readouterr().out


def test_scan_bad_timezone(bars_csv: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """Configuration problems are reported, not raised."""
    assert main(["scan", "--csv", str(bars_csv), "--timezone", "Nowhere/Special"]) == 1
    assert "Configuration error" in capsys.readouterr().out


def test_scan_missing_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """Unreadable bar files are reported."""
    assert main(["scan", "--csv", str(tmp_path / "none.csv"), "--timezone", "UTC"]) == 1
    assert "Failed to read bars" in capsys.readouterr().out
