"""Tests for configuration loading."""

import tempfile
from pathlib import Path

from clusterstate.utils.config import Config, get_config, reset_config


class TestConfig:
    """Test Config."""
    
    def test_defaults(self, monkeypatch):
        """Test built-in defaults."""
        monkeypatch.delenv("CLUSTERSTATE_ROUTING_TAG", raising=False)
        config = Config()
        
        assert config.get("routing.resource_name") == "brokerResource"
        assert config.get("routing.instance_tag") == "broker_untagged"
        assert config.get("stream.group_id_key") == "stream.kafka.hlc.group.id"
        assert config.get("missing.key", "fallback") == "fallback"
    
    def test_file_overrides_defaults(self):
        """Test a YAML file is deep-merged over defaults."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "cluster.yaml"
            path.write_text("routing:\n  instance_tag: brokers_east\n")
            
            config = Config(str(path))
        
        assert config.get("routing.instance_tag") == "brokers_east"
        assert config.get("routing.resource_name") == "brokerResource"
    
    def test_env_overrides(self, monkeypatch):
        """Test environment variables win over files."""
        monkeypatch.setenv("CLUSTERSTATE_ROUTING_TAG", "brokers_env")
        monkeypatch.setenv("CLUSTERSTATE_LOG_LEVEL", "DEBUG")
        
        config = Config()
        
        assert config.get("routing.instance_tag") == "brokers_env"
        assert config.get("logging.level") == "DEBUG"
    
    def test_set_creates_nested_keys(self):
        """Test dotted set."""
        config = Config()
        
        config.set("strategy.overrides.orders", "balanced")
        
        assert config.get("strategy.overrides.orders") == "balanced"
    
    def test_defaults_are_not_shared(self):
        """Test mutating one config leaves new ones untouched."""
        first = Config()
        first.set("routing.resource_name", "changed")
        
        assert Config().get("routing.resource_name") == "brokerResource"
    
    def test_global_config(self):
        """Test the process-wide instance and its reset."""
        reset_config()
        
        assert get_config() is get_config()
        
        reset_config()
