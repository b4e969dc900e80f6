"""Tests for the command line."""

from pathlib import Path

from contracts import build_swaption
from universal import Zero, content_hash, from_bytes
from universal.cli import main

EXAMPLES = Path(__file__).parent.parent / "examples"
SWAPTION = str(EXAMPLES / "swaption.ucl")
FIXINGS = str(EXAMPLES / "fixings.yaml")


class TestHash:
    def test_prints_content_hash(self, capsys):
        assert main(["hash", SWAPTION]) == 0
        assert capsys.readouterr().out.strip() == content_hash(build_swaption())


class TestActions:
    def test_lists_enabled_actions(self, capsys):
        assert main(["actions", SWAPTION, "--at", "02/07/2015"]) == 0
        out = capsys.readouterr().out
        assert "proceed" in out
        assert "cancel" in out

    def test_guard_not_yet_open(self, capsys):
        assert main(["actions", SWAPTION, "--at", "01/07/2015"]) == 0
        out = capsys.readouterr().out
        assert "proceed" not in out
        assert "cancel" in out

    def test_bad_date(self, capsys):
        assert main(["actions", SWAPTION, "--at", "yesterday"]) == 1
        assert "invalid date" in capsys.readouterr().err


class TestElect:
    def test_cancel(self, capsys):
        assert main(["elect", SWAPTION, "--actor", "acmeCorp", "--label", "cancel", "--at", "02/07/2015"]) == 0
        out = capsys.readouterr().out
        assert "acmeCorp -> highStreetBank 10000 USD" in out
        assert "successor: zero" in out

    def test_proceed_with_fixings_writes_successor(self, capsys, tmp_path):
        out_file = tmp_path / "successor.json"
        argv = [
            "elect", SWAPTION,
            "--actor", "highStreetBank",
            "--label", "proceed",
            "--at", "02/07/2015",
            "--fixings", FIXINGS,
            "--out", str(out_file),
        ]
        assert main(argv) == 0
        out = capsys.readouterr().out
        assert "highStreetBank -> acmeCorp" in out
        assert "acmeCorp -> highStreetBank" in out

        successor = from_bytes(out_file.read_bytes())
        assert [a.label for a in successor.actions] == ["proceed", "cancel"]

        # the written successor is itself a contract file
        assert main(["actions", str(out_file), "--at", "02/10/2015"]) == 0
        assert "proceed" in capsys.readouterr().out

    def test_not_authorized(self, capsys):
        argv = ["elect", SWAPTION, "--actor", "highStreetBank", "--label", "cancel", "--at", "02/07/2015"]
        assert main(argv) == 1
        assert "may not elect" in capsys.readouterr().err

    def test_missing_fixing(self, capsys):
        argv = ["elect", SWAPTION, "--actor", "acmeCorp", "--label", "proceed", "--at", "02/07/2015"]
        assert main(argv) == 1
        assert "unavailable_observable" in capsys.readouterr().err

    def test_config_precision(self, capsys, tmp_path):
        config = tmp_path / "config.yaml"
        config.write_text("precision: 10\n")
        argv = [
            "--config", str(config),
            "elect", SWAPTION,
            "--actor", "acmeCorp",
            "--label", "proceed",
            "--at", "02/07/2015",
            "--fixings", FIXINGS,
        ]
        assert main(argv) == 0
        assert "successor: actions" in capsys.readouterr().out


class TestErrors:
    def test_missing_file(self, capsys, tmp_path):
        assert main(["hash", str(tmp_path / "nope.ucl")]) == 1
        assert "error:" in capsys.readouterr().err

    def test_parse_error(self, capsys, tmp_path):
        path = tmp_path / "bad.ucl"
        path.write_text("party a\narrange actions { b may \"x\" anytime { } }\n")
        assert main(["hash", str(path)]) == 1
        assert "unknown party: b" in capsys.readouterr().err

    def test_zero_contract_has_no_actions(self, capsys, tmp_path):
        path = tmp_path / "zero.ucl"
        path.write_text("arrange zero\n")
        assert main(["actions", str(path), "--at", "01/01/2015"]) == 0
        assert "no actions" in capsys.readouterr().out
        assert from_bytes(b'{"type":"zero"}') == Zero()
