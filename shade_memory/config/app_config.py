"""
Unified Configuration System for shade-memory

Centralizes memory, storage, summarizer and logging settings, supports
environment-based overrides, and provides type-safe configuration access.
Services receive these objects explicitly; the global instance is only a
convenience for the host application.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, Optional, List
import os
from pathlib import Path


@dataclass
class APIConfig:
    """API configuration settings"""
    openai_api_key: str = ""
    
    @classmethod
    def from_env(cls) -> 'APIConfig':
        """Load API config from environment variables"""
        return cls(openai_api_key=os.getenv("OPENAI_API_KEY", ""))


@dataclass
class LLMConfig:
    """Language model used to summarize older conversation turns"""
    model_name: str = "gpt-4o-mini"
    temperature: float = 0.3
    max_tokens: int = 500
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for LangChain compatibility"""
        return {
            "model_name": self.model_name,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens
        }


@dataclass
class MemoryConfig:
    """Conversation window configuration"""
    history_limit: int = 10


def _default_user_data_path() -> str:
    return os.getenv("SHADE_DATA_DIR", str(Path.home() / ".shade"))


@dataclass
class StorageConfig:
    """Session archive configuration"""
    user_data_path: str = field(default_factory=_default_user_data_path)
    retention_days: int = 30
    title_max_length: int = 64
    default_title: str = "New Chat"
    screenshot_extension: str = "jpg"


@dataclass
class LoggingConfig:
    """Logging configuration"""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    enable_file_logging: bool = False
    log_file: str = "logs/shade-memory.log"


@dataclass
class AppConfig:
    """Main application configuration"""
    api: APIConfig = field(default_factory=APIConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    memory: MemoryConfig = field(default_factory=MemoryConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    
    # Environment settings
    environment: str = field(default_factory=lambda: os.getenv("APP_ENV", "development"))
    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")
    
    @classmethod
    def load(cls) -> 'AppConfig':
        """Load configuration with environment overrides"""
        config = cls()
        
        config.api = APIConfig.from_env()
        
        history_limit = os.getenv("SHADE_HISTORY_LIMIT")
        if history_limit is not None and history_limit.strip().lstrip("-").isdigit():
            config.memory.history_limit = int(history_limit)
        
        # Apply environment-specific overrides
        if config.environment == "production":
            config.debug = False
            config.logging.level = "WARNING"
        elif config.environment == "development":
            config.debug = True
            config.logging.level = "DEBUG"
        
        return config
    
    def validate(self) -> List[str]:
        """Validate configuration and return list of errors"""
        errors = []
        
        if self.memory.history_limit < 0:
            errors.append("History limit must be zero or greater")
        
        if self.storage.retention_days <= 0:
            errors.append("Retention window must be at least one day")
        
        if self.storage.title_max_length < 2:
            errors.append("Title max length must be at least 2")
        
        if not self.storage.user_data_path:
            errors.append("User data path is required")
        
        if self.logging.enable_file_logging:
            log_dir = Path(self.logging.log_file).parent
            if not log_dir.exists():
                log_dir.mkdir(parents=True, exist_ok=True)
        
        return errors


# Global configuration instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the global configuration instance"""
    global _config
    if _config is None:
        _config = AppConfig.load()
        
        # Validate configuration
        errors = _config.validate()
        if errors:
            import warnings
            for error in errors:
                warnings.warn(f"Configuration error: {error}")
    
    return _config


def reload_config() -> AppConfig:
    """Reload configuration (useful for testing)"""
    global _config
    _config = None
    return get_config()


def get_openai_api_key() -> str:
    """Get OpenAI API key from the global configuration"""
    return get_config().api.openai_api_key
