"""
Tests for configuration system
"""

import pytest
from pathlib import Path

from shade_memory.config.app_config import (
    AppConfig, APIConfig, LLMConfig, MemoryConfig, StorageConfig, LoggingConfig,
    get_config, reload_config
)


class TestAPIConfig:
    """Test API configuration"""
    
    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "test-openai-key")
        
        config = APIConfig.from_env()
        
        assert config.openai_api_key == "test-openai-key"
    
    def test_from_env_missing(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        
        assert APIConfig.from_env().openai_api_key == ""


class TestLLMConfig:
    """Test summarizer model configuration"""
    
    def test_default_values(self):
        config = LLMConfig()
        
        assert config.model_name == "gpt-4o-mini"
        assert config.temperature == 0.3
        assert config.max_tokens == 500
    
    def test_to_dict(self):
        assert LLMConfig().to_dict() == {
            "model_name": "gpt-4o-mini",
            "temperature": 0.3,
            "max_tokens": 500
        }


class TestMemoryAndStorageConfig:
    """Test memory and storage defaults"""
    
    def test_memory_defaults(self):
        assert MemoryConfig().history_limit == 10
    
    def test_storage_defaults(self, monkeypatch):
        monkeypatch.delenv("SHADE_DATA_DIR", raising=False)
        config = StorageConfig()
        
        assert config.user_data_path == str(Path.home() / ".shade")
        assert config.retention_days == 30
        assert config.title_max_length == 64
        assert config.default_title == "New Chat"
        assert config.screenshot_extension == "jpg"
    
    def test_storage_data_dir_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SHADE_DATA_DIR", str(tmp_path))
        
        assert StorageConfig().user_data_path == str(tmp_path)


class TestAppConfig:
    """Test main application configuration"""
    
    def test_load_development(self, monkeypatch):
        monkeypatch.setenv("APP_ENV", "development")
        
        config = AppConfig.load()
        
        assert config.environment == "development"
        assert config.debug is True
        assert config.logging.level == "DEBUG"
    
    def test_load_production(self, monkeypatch):
        monkeypatch.setenv("APP_ENV", "production")
        
        config = AppConfig.load()
        
        assert config.debug is False
        assert config.logging.level == "WARNING"
    
    def test_history_limit_from_env(self, monkeypatch):
        monkeypatch.setenv("SHADE_HISTORY_LIMIT", "25")
        
        assert AppConfig.load().memory.history_limit == 25
    
    def test_invalid_history_limit_env_ignored(self, monkeypatch):
        monkeypatch.setenv("SHADE_HISTORY_LIMIT", "lots")
        
        assert AppConfig.load().memory.history_limit == 10
    
    def test_validate_ok(self):
        assert AppConfig().validate() == []
    
    def test_validate_errors(self):
        config = AppConfig()
        config.memory.history_limit = -1
        config.storage.retention_days = 0
        config.storage.user_data_path = ""
        
        errors = config.validate()
        
        assert "History limit must be zero or greater" in errors
        assert "Retention window must be at least one day" in errors
        assert "User data path is required" in errors
    
    def test_validate_creates_log_directory(self, tmp_path):
        config = AppConfig()
        config.logging = LoggingConfig(enable_file_logging=True, log_file=str(tmp_path / "logs" / "app.log"))
        
        config.validate()
        
        assert (tmp_path / "logs").is_dir()


class TestGlobalConfig:
    """Test global configuration instance"""
    
    def test_get_config_singleton(self):
        assert get_config() is get_config()
    
    def test_reload_config(self, monkeypatch):
        first = get_config()
        monkeypatch.setenv("SHADE_HISTORY_LIMIT", "7")
        
        reloaded = reload_config()
        
        assert reloaded is not first
        assert reloaded.memory.history_limit == 7
        monkeypatch.delenv("SHADE_HISTORY_LIMIT")
        reload_config()


if __name__ == "__main__":
    pytest.main([__file__])
