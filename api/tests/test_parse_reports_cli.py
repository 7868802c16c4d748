import csv
import importlib.util
import io
import json
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

SCRIPT = Path(__file__).resolve().parents[1] / "scripts" / "parse_reports.py"
FIXTURES = Path(__file__).resolve().parent / "fixtures"


def _load_cli():
    spec = importlib.util.spec_from_file_location("parse_reports", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_csv_summary_for_directory(capsys):
    cli = _load_cli()
    assert cli.main([str(FIXTURES)]) == 0

    rows = list(csv.DictReader(io.StringIO(capsys.readouterr().out)))
    by_file = {row["file"]: row for row in rows}
    assert set(by_file) == {"experian_report.xml", "generic_report.xml"}
    assert by_file["experian_report.xml"]["pan"] == "BKPPS4521K"
    assert by_file["experian_report.xml"]["accounts"] == "3"
    assert by_file["generic_report.xml"]["ok"] == "1"


def test_json_output_and_failure_exit_code(tmp_path, capsys):
    bad = tmp_path / "bad.xml"
    bad.write_text("<creditReport>", encoding="utf-8")
    cli = _load_cli()

    assert cli.main([str(bad), "--json"]) == 1
    (outcome,) = json.loads(capsys.readouterr().out)
    assert outcome["fileName"] == "bad.xml"
    assert outcome["success"] is False
    assert outcome["error"]["stage"] == "parse"


def test_missing_path_is_a_usage_error(tmp_path, capsys):
    cli = _load_cli()
    with pytest.raises(SystemExit) as exc:
        cli.main([str(tmp_path / "missing.xml")])
    assert exc.value.code == 2
    assert "no such file or directory" in capsys.readouterr().err
