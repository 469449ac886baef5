"""
Unit Tests - Command Line
"""
import json

import pytest

from inventory_analytics.cli import build_parser, main


@pytest.fixture
def fixture_file(tmp_path, raw_rows):
    path = tmp_path / "store.json"
    path.write_text(json.dumps(raw_rows))
    return path


class TestReportCommand:
    """Tests for `inventory-analytics report`"""

    def test_json_output(self, fixture_file, capsys):
        code = main([
            "report", "--fixture", str(fixture_file), "--tab", "trend", "--json",
            "--from", "2024-03-01", "--to", "2024-03-31T12:00:00",
        ])

        assert code == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["tab"] == "trend"
        assert payload["trend"]["total_orders"] == 4

    def test_summary_output(self, fixture_file, capsys):
        code = main([
            "report", "--fixture", str(fixture_file), "--tab", "aging",
            "--from", "2024-03-01", "--to", "2024-03-31T12:00:00",
        ])

        out = capsys.readouterr().out
        assert code == 0
        assert "Aging: 3 in-stock products, 2 aging" in out
        assert "45+ days" in out

    def test_export(self, fixture_file, tmp_path, capsys):
        code = main([
            "report", "--fixture", str(fixture_file), "--export", "performance",
            "--output-dir", str(tmp_path / "out"), "--format", "csv",
        ])

        assert code == 0
        assert "Exported performance" in capsys.readouterr().out
        assert len(list((tmp_path / "out").glob("Sales_Executive_Performance_Export_*.csv"))) == 1

    def test_missing_fixture_fails_cleanly(self, tmp_path, capsys):
        """A fetch failure prints the user message and exits non-zero"""
        code = main(["report", "--fixture", str(tmp_path / "missing.json")])

        assert code == 2
        assert "couldn't load the data" in capsys.readouterr().err

    def test_parser_requires_command(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])
