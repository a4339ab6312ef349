"""Tests for settings loading."""

import pytest
import yaml

from unitcalc.catalog import UNITS
from unitcalc.config import CONFIG_ENV_VAR, ConfigError, Settings, apply_settings, load_settings


@pytest.fixture
def no_env(monkeypatch):
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)


class TestLoadSettings:
    def test_defaults(self, no_env):
        settings = load_settings()
        assert settings.precision == 13
        assert settings.error_marker == "ERR"
        assert settings.empty_marker == ""
        assert settings.currency_rates == {}

    def test_from_file(self, no_env, tmp_path):
        path = tmp_path / "unitcalc.yaml"
        path.write_text(yaml.dump({"precision": 4, "currency_rates": {"usd": 1.2}}))
        settings = load_settings(path)
        assert settings.precision == 4
        assert settings.currency_rates == {"usd": 1.2}

    def test_from_environment(self, monkeypatch, tmp_path):
        path = tmp_path / "unitcalc.yaml"
        path.write_text("error_marker: error\n")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
        assert load_settings().error_marker == "error"

    def test_empty_file(self, no_env, tmp_path):
        path = tmp_path / "unitcalc.yaml"
        path.write_text("")
        assert load_settings(path) == Settings()

    def test_missing_file(self, no_env, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_settings(tmp_path / "missing.yaml")

    def test_unknown_key(self, no_env, tmp_path):
        path = tmp_path / "unitcalc.yaml"
        path.write_text("colour: red\n")
        with pytest.raises(ConfigError):
            load_settings(path)

    def test_invalid_precision(self, no_env, tmp_path):
        path = tmp_path / "unitcalc.yaml"
        path.write_text("precision: -1\n")
        with pytest.raises(ConfigError):
            load_settings(path)

    def test_invalid_yaml(self, no_env, tmp_path):
        path = tmp_path / "unitcalc.yaml"
        path.write_text("precision: [1\n")
        with pytest.raises(ConfigError, match="invalid YAML"):
            load_settings(path)

    def test_top_level_must_be_mapping(self, no_env, tmp_path):
        path = tmp_path / "unitcalc.yaml"
        path.write_text("- 1\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_settings(path)


class TestApplySettings:
    def test_pushes_currency_rates(self):
        apply_settings(Settings(currency_rates={"usd": 4}))
        assert UNITS["usd"].factor == pytest.approx(0.25)

    def test_no_rates_is_a_no_op(self):
        apply_settings(Settings())
        assert UNITS["usd"].factor == pytest.approx(0.84)
