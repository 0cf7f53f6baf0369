"""Tests for config.py — loading, saving and validating settings."""

import pytest
import toml

from histminer.config import Config, ConfigError, get_config_path, load_config, parse_setting, save_config


class TestLoadConfig:
    def test_defaults_when_missing(self):
        assert load_config() == Config()

    def test_reads_values(self):
        get_config_path().write_text('min_frequency = 3\nshell = "zsh"\n')
        config = load_config()
        assert config.min_frequency == 3
        assert config.shell == "zsh"
        assert config.top == 20

    def test_ignores_unknown_keys(self):
        get_config_path().write_text('provider = "local"\nmax_results = 7\n')
        assert load_config().max_results == 7

    def test_config_lives_under_home(self, home):
        assert get_config_path() == home / ".histminer" / "config.toml"


class TestSaveConfig:
    def test_saved_values_are_loaded_back(self):
        save_config(Config(top=8, history_file="/tmp/hist"))
        assert load_config() == Config(top=8, history_file="/tmp/hist")

    def test_unset_optionals_are_omitted(self):
        save_config(Config())
        data = toml.load(get_config_path())
        assert "shell" not in data
        assert data["max_results"] == 10


class TestParseSetting:
    def test_integer_setting(self):
        assert parse_setting("top", "15") == 15

    def test_string_setting(self):
        assert parse_setting("shell", "zsh") == "zsh"

    def test_unknown_key(self):
        with pytest.raises(ConfigError, match="Unknown setting"):
            parse_setting("colour", "red")

    def test_not_a_number(self):
        with pytest.raises(ConfigError, match="must be a number"):
            parse_setting("top", "many")

    @pytest.mark.parametrize("key,value", [("max_results", "0"), ("tui_max_results", "21"), ("max_lines", "50")])
    def test_out_of_range(self, key, value):
        with pytest.raises(ConfigError, match="must be between"):
            parse_setting(key, value)
