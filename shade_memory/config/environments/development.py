"""
Development environment configuration overrides
"""

from dataclasses import dataclass
from shade_memory.config.app_config import AppConfig


@dataclass
class DevelopmentConfig(AppConfig):
    """Development environment configuration"""
    
    def __post_init__(self):
        
        self.environment = "development"
        self.debug = True
        
        # More verbose logging in development
        self.logging.level = "DEBUG"
        self.logging.enable_file_logging = True
        self.logging.log_file = "logs/dev-shade-memory.log"
        
        # Keep dev data away from the real archive
        self.storage.user_data_path = str(self.storage.user_data_path) + "-dev"


def get_development_config() -> DevelopmentConfig:
    """Get development-specific configuration"""
    return DevelopmentConfig()
