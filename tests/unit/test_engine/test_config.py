"""
Unit tests for the setup configuration loader.
"""

import json
import logging

import pytest

from engine.config import SetupConfig, load_setup_config
from engine.error_handler import ConfigError, ValidationError
from settings import MIN_DISTANCE


def _write(path, data):
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestSetupConfigDefaults:
    """Tests for the built-in defaults."""

    def test_defaults(self, setup_config):
        """Test the tuned default values."""
        assert setup_config.formation.min_distance == pytest.approx(MIN_DISTANCE)
        assert setup_config.formation.x_bound == 16
        assert setup_config.formation.y_bound == 9
        assert setup_config.formation.mini_formation_chance == 0.75
        assert setup_config.enemy.boss_scale == 1.5
        assert setup_config.enemy.troop_scale == 0.7
        assert setup_config.player.theme_probability == 0.9

    def test_defaults_validate(self, setup_config):
        """Test that the defaults pass validation."""
        setup_config.validate()

    def test_missing_file_uses_defaults(self, tmp_path):
        """Test that a missing file is not an error."""
        config = SetupConfig.load(tmp_path / "nope.json")
        assert config == SetupConfig()


class TestSetupConfigLoad:
    """Tests for reading config files."""

    def test_partial_file_keeps_other_defaults(self, tmp_path):
        """Test that only the keys present are overridden."""
        path = _write(tmp_path / "setup.json", {"formation": {"x_bound": 20.0}, "enemy": {"boss_scale": 1.8}})
        config = SetupConfig.load(path)

        assert config.formation.x_bound == 20.0
        assert config.formation.y_bound == 9
        assert config.enemy.boss_scale == 1.8
        assert config.enemy.troop_scale == 0.7

    def test_unknown_keys_are_ignored(self, tmp_path, caplog):
        """Test that unknown keys are warned about and dropped."""
        path = _write(tmp_path / "setup.json", {"formation": {"x_bound": 12.0, "zoom": 3}})
        with caplog.at_level(logging.WARNING, logger="armyforge"):
            config = SetupConfig.load(path)

        assert config.formation.x_bound == 12.0
        assert not hasattr(config.formation, "zoom")
        assert "zoom" in caplog.text

    def test_invalid_json(self, tmp_path):
        """Test that unreadable JSON raises ConfigError."""
        path = tmp_path / "setup.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigError):
            SetupConfig.load(path)

    def test_non_object(self, tmp_path):
        """Test that a JSON list is rejected."""
        path = _write(tmp_path / "setup.json", [1, 2, 3])
        with pytest.raises(ConfigError):
            SetupConfig.load(path)

    @pytest.mark.parametrize("section,key,value", [
        ("formation", "min_distance", 0),
        ("formation", "mini_formation_chance", 1.5),
        ("formation", "max_group_size", 0),
        ("player", "theme_probability", -0.1),
        ("enemy", "troop_scale", 0),
    ])
    def test_out_of_range(self, tmp_path, section, key, value):
        """Test that out-of-range values raise ValidationError."""
        path = _write(tmp_path / "setup.json", {section: {key: value}})
        with pytest.raises(ValidationError):
            SetupConfig.load(path)

    def test_negative_theme_weight(self, setup_config):
        """Test that negative theme weights fail validation."""
        setup_config.player.theme_weights["same_class"] = -1.0
        with pytest.raises(ValidationError):
            setup_config.validate()


class TestSetupConfigSave:
    """Tests for writing config files."""

    def test_save_and_load(self, tmp_path):
        """Test that a saved config loads back unchanged."""
        config = SetupConfig()
        config.formation.x_bound = 24.0
        config.enemy.single_boss_chance = 0.1
        path = tmp_path / "nested" / "setup.json"

        config.save(path)
        loaded = load_setup_config(path)

        assert loaded == config
