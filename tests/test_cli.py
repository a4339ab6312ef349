"""Tests for the command line interface."""

import io

import pytest
import yaml

from unitcalc.cli import main
from unitcalc.config import CONFIG_ENV_VAR


@pytest.fixture(autouse=True)
def no_env(monkeypatch):
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)


@pytest.fixture
def document(tmp_path):
    path = tmp_path / "notes.calc"
    path.write_text("price: 10 [eur]\nprice * 3\nprice [usd]\n5 +\n")
    return path


class TestExecute:
    def test_prints_one_result_per_line(self, document, capsys):
        main(["execute", str(document)])
        out = capsys.readouterr().out
        assert out.splitlines() == ["10 €", "30 €", "11.9047619047619 $", "ERR", ""]

    def test_reads_stdin(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO("side: 2 [m]\nside * side"))
        main(["execute"])
        assert capsys.readouterr().out == "2 m\n4 m^2\n"

    def test_rates_file(self, document, tmp_path, capsys):
        rates = tmp_path / "rates.yaml"
        rates.write_text(yaml.dump({"usd": 2}))
        main(["execute", str(document), "--rates", str(rates)])
        assert capsys.readouterr().out.splitlines()[2] == "20 $"

    def test_config_file(self, document, tmp_path, capsys):
        config = tmp_path / "unitcalc.yaml"
        config.write_text(yaml.dump({"precision": 2, "error_marker": "error"}))
        main(["execute", str(document), "--config", str(config)])
        lines = capsys.readouterr().out.splitlines()
        assert lines[2] == "11.9 $"
        assert lines[3] == "error"

    def test_cycle_exits(self, tmp_path, capsys):
        path = tmp_path / "cycle.calc"
        path.write_text("a: b + 1\nb: a + 1\n")
        with pytest.raises(SystemExit) as exc:
            main(["execute", str(path)])
        assert exc.value.code == 1
        assert "cyclical" in capsys.readouterr().err

    def test_missing_file(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["execute", str(tmp_path / "missing.calc")])
        assert exc.value.code == 1
        assert "Error" in capsys.readouterr().err

    def test_bad_config(self, document, tmp_path, capsys):
        config = tmp_path / "unitcalc.yaml"
        config.write_text(yaml.dump({"precision": "many"}))
        with pytest.raises(SystemExit) as exc:
            main(["execute", str(document), "--config", str(config)])
        assert exc.value.code == 1

    def test_bad_rates(self, document, tmp_path):
        rates = tmp_path / "rates.yaml"
        rates.write_text(yaml.dump({"meter": 2}))
        with pytest.raises(SystemExit) as exc:
            main(["execute", str(document), "--rates", str(rates)])
        assert exc.value.code == 1

    def test_unknown_command(self):
        with pytest.raises(SystemExit) as exc:
            main(["evaluate"])
        assert exc.value.code == 2


class TestColorize:
    def test_prints_html(self, document, capsys):
        main(["colorize", str(document)])
        out = capsys.readouterr().out
        assert out.count("<br/>") == 4
        assert 'class="calc-token-bracket-unit"' in out
