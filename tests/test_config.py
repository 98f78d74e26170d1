"""
Tests for configuration loading, validation and environment overrides.
"""

import pytest
import yaml

from simorder.config import ConfigManager, OrderingConfig

ENV_VARS = [
    "SIMORDER_CONFIG",
    "SIMORDER_STRATEGY",
    "SIMORDER_MAX_COMPARISONS",
    "SIMORDER_PROGRESS_INTERVAL",
    "SIMORDER_GRAPH_PROGRESS_INTERVAL",
    "SIMORDER_MIN_NEIGHBORS",
    "SIMORDER_NEIGHBOR_SCALE",
    "SIMORDER_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # keep default-path lookups away from the developer's own files
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))


class TestOrderingConfig:
    """Test defaults and validation."""

    def test_defaults(self):
        config = OrderingConfig()
        assert config.strategy == "mst"
        assert config.max_comparisons == 1000
        assert config.progress_interval == 50
        assert config.graph_progress_interval == 100
        assert config.min_neighbors == 20
        assert config.neighbor_scale == 10.0
        assert config.log_level == "WARNING"

    @pytest.mark.parametrize("kwargs", [
        {"strategy": "bogo"},
        {"max_comparisons": 0},
        {"progress_interval": 0},
        {"graph_progress_interval": -1},
        {"min_neighbors": 0},
        {"neighbor_scale": 0.0},
        {"log_level": "LOUD"},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            OrderingConfig(**kwargs)

    def test_unlimited_comparisons_allowed(self):
        assert OrderingConfig(max_comparisons=None).max_comparisons is None

    def test_yaml_round_trip(self, tmp_path):
        path = tmp_path / "nested" / "config.yml"
        original = OrderingConfig(strategy="vptree", max_comparisons=None, min_neighbors=8)
        original.save_to_file(path)

        assert yaml.safe_load(path.read_text())["strategy"] == "vptree"
        assert OrderingConfig.load_from_file(path) == original

    def test_partial_file_uses_defaults(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("progress_interval: 5\n")
        config = OrderingConfig.load_from_file(path)
        assert config.progress_interval == 5
        assert config.strategy == "mst"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("")
        assert OrderingConfig.load_from_file(path) == OrderingConfig()

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            OrderingConfig.load_from_file(tmp_path / "missing.yml")

    def test_load_or_default(self, tmp_path):
        assert OrderingConfig.load_or_default(tmp_path / "missing.yml") == OrderingConfig()

        OrderingConfig(strategy="simple").save_to_file(tmp_path / ".simorder.yml")
        assert OrderingConfig.load_or_default().strategy == "simple"


class TestConfigManager:
    """Test file resolution and environment overrides."""

    def test_explicit_path(self, tmp_path):
        path = tmp_path / "explicit.yml"
        OrderingConfig(progress_interval=7).save_to_file(path)
        assert ConfigManager(path).config.progress_interval == 7

    def test_env_config_path(self, tmp_path, monkeypatch):
        path = tmp_path / "from_env.yml"
        OrderingConfig(strategy="vptree").save_to_file(path)
        monkeypatch.setenv("SIMORDER_CONFIG", str(path))
        assert ConfigManager().config.strategy == "vptree"

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("SIMORDER_STRATEGY", "simple")
        monkeypatch.setenv("SIMORDER_MAX_COMPARISONS", "unlimited")
        monkeypatch.setenv("SIMORDER_NEIGHBOR_SCALE", "2.5")

        config = ConfigManager().config
        assert config.strategy == "simple"
        assert config.max_comparisons is None
        assert config.neighbor_scale == 2.5

    def test_env_overrides_beat_file(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yml"
        OrderingConfig(min_neighbors=3).save_to_file(path)
        monkeypatch.setenv("SIMORDER_MIN_NEIGHBORS", "9")
        assert ConfigManager(path).config.min_neighbors == 9

    def test_bad_env_value(self, monkeypatch):
        monkeypatch.setenv("SIMORDER_PROGRESS_INTERVAL", "often")
        with pytest.raises(ValueError, match="SIMORDER_PROGRESS_INTERVAL"):
            ConfigManager().get_environment_overrides()

    def test_save_config(self, tmp_path):
        manager = ConfigManager(tmp_path / "saved.yml")
        saved = manager.save_config(OrderingConfig(strategy="simple"))
        assert saved == tmp_path / "saved.yml"
        assert manager.config.strategy == "simple"

    def test_validate_config_warnings(self):
        manager = ConfigManager()
        assert manager.validate_config(OrderingConfig()) == []

        issues = manager.validate_config(OrderingConfig(max_comparisons=None, min_neighbors=500))
        assert len(issues) == 2
        assert all(issue.startswith("Warning") for issue in issues)
