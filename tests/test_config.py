"""Tests for engine settings."""

import logging

import pytest
import yaml
from receipt_composer.config import DEFAULT_DATETIME_FORMAT, EmptyValuePolicy, EngineSettings


class TestEngineSettings:
    """Test suite for EngineSettings."""

    def test_defaults(self):
        settings = EngineSettings()

        assert settings.empty_value_policy is EmptyValuePolicy.KEEP_TOKEN
        assert settings.datetime_format == DEFAULT_DATETIME_FORMAT
        assert settings.detect_cycles is True
        assert settings.max_depth == 64

    def test_policy_from_string(self):
        settings = EngineSettings.from_dict({'empty_value_policy': 'empty_string'})

        assert settings.empty_value_policy is EmptyValuePolicy.EMPTY_STRING

    def test_invalid_policy(self):
        with pytest.raises(ValueError):
            EngineSettings.from_dict({'empty_value_policy': 'shrug'})

    def test_invalid_max_depth(self):
        with pytest.raises(ValueError):
            EngineSettings(max_depth=0)

    def test_unlimited_depth(self):
        assert EngineSettings.from_dict({'max_depth': None}).max_depth is None

    def test_unknown_keys_ignored(self, caplog):
        with caplog.at_level(logging.WARNING):
            settings = EngineSettings.from_dict({'detect_cycles': False, 'colour': 'blue'})

        assert settings.detect_cycles is False
        assert "colour" in caplog.text

    def test_non_mapping_rejected(self):
        with pytest.raises(ValueError):
            EngineSettings.from_dict(['keep_token'])

    def test_from_file(self, tmp_path):
        """Test loading settings from YAML."""
        settings_path = tmp_path / "engine.yml"
        settings_path.write_text(yaml.safe_dump({
            'empty_value_policy': 'empty_string',
            'datetime_format': '%Y-%m-%d',
            'max_depth': 16,
        }), encoding='utf-8')

        settings = EngineSettings.from_file(settings_path)

        assert settings == EngineSettings(empty_value_policy=EmptyValuePolicy.EMPTY_STRING,
                                          datetime_format='%Y-%m-%d', max_depth=16)

    def test_empty_file_gives_defaults(self, tmp_path):
        settings_path = tmp_path / "engine.yml"
        settings_path.write_text("", encoding='utf-8')

        assert EngineSettings.from_file(settings_path) == EngineSettings()

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            EngineSettings.from_file(tmp_path / "absent.yml")
