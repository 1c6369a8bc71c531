"""Tests for flat config loading and the typed accessor."""

from __future__ import annotations

import pytest

from ghdepup.core.flat_config import FlatConfig, parse_flat_config, read_config_files
from ghdepup.exceptions import ConfigError, MissingKeyError, WrongTypeError


class TestFlatConfig:
    def test_get_str(self):
        config = FlatConfig({"A": "x"})
        assert config.get_str("A") == "x"

    def test_missing_key(self):
        with pytest.raises(MissingKeyError) as exc_info:
            FlatConfig({}).get_str("A")
        assert exc_info.value.key == "A"
        assert "missing key 'A'" in str(exc_info.value)

    def test_wrong_type(self):
        with pytest.raises(WrongTypeError) as exc_info:
            FlatConfig({"A": 3}).get_str("A")
        assert exc_info.value.actual == 3
        assert "should be str, got int" in str(exc_info.value)

    def test_missing_and_wrong_type_are_distinguishable(self):
        assert not issubclass(MissingKeyError, WrongTypeError)
        assert not issubclass(WrongTypeError, MissingKeyError)

    def test_get_str_or_defaults(self):
        config = FlatConfig({"A": 3})
        assert config.get_str_or("A") == ""
        assert config.get_str_or("B", "dflt") == "dflt"

    def test_mapping_protocol(self):
        config = FlatConfig({"A": "1", "B": "2"})
        assert set(config) == {"A", "B"}
        assert len(config) == 2
        assert "A" in config


class TestParseFlatConfig:
    def test_parses_declarations(self, config):
        assert config.get_str("HYPER_GH_PROJECT") == "hyperium/hyper"
        assert config.get_str("HYPER_TLS_GH_VERSION_REQ") == ">=0.5"

    def test_malformed_syntax(self):
        with pytest.raises(ConfigError, match="can't be parsed"):
            parse_flat_config("THIS IS NOT = = VALID\n")

    def test_duplicate_keys(self):
        with pytest.raises(ConfigError):
            parse_flat_config('A="1"\nA="2"\n')


class TestReadConfigFiles:
    def test_concatenates_files(self, tmp_path):
        first = tmp_path / "ghdeps.toml"
        second = tmp_path / "ghversions.toml"
        # no trailing newline: files must still be joined line-wise
        first.write_text('HYPER_GH_PROJECT="hyperium/hyper"')
        second.write_text('HYPER_VERSION="1.2.3"\n')
        config = read_config_files([first, second], min_files=2)
        assert config.get_str("HYPER_GH_PROJECT") == "hyperium/hyper"
        assert config.get_str("HYPER_VERSION") == "1.2.3"

    def test_too_few_files(self, tmp_path):
        only = tmp_path / "ghdeps.toml"
        only.write_text("")
        with pytest.raises(ConfigError, match="at least 2 config files needed, but only 1"):
            read_config_files([only], min_files=2)

    def test_reports_every_unreadable_file(self, tmp_path):
        with pytest.raises(ConfigError) as exc_info:
            read_config_files([tmp_path / "a.toml", tmp_path / "b.toml"])
        message = str(exc_info.value)
        assert "a.toml" in message
        assert "b.toml" in message

    def test_invalid_utf8(self, tmp_path):
        bad = tmp_path / "bad.toml"
        bad.write_bytes(b'A="\xff\xfe"\n')
        with pytest.raises(ConfigError, match="not valid utf-8"):
            read_config_files([bad])

    def test_duplicate_across_files_is_fatal(self, tmp_path):
        a = tmp_path / "a.toml"
        b = tmp_path / "b.toml"
        a.write_text('A="1"\n')
        b.write_text('A="2"\n')
        with pytest.raises(ConfigError):
            read_config_files([a, b])
