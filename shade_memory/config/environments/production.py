"""
Production environment configuration overrides
"""

from dataclasses import dataclass
from shade_memory.config.app_config import AppConfig, APIConfig


@dataclass
class ProductionConfig(AppConfig):
    """Production environment configuration"""
    
    def __post_init__(self):
        
        self.environment = "production"
        self.debug = False
        
        self.api = APIConfig.from_env()
        
        self.logging.level = "INFO"
        self.logging.enable_file_logging = True
        self.logging.log_file = "logs/shade-memory.log"
        
        # Deterministic summaries
        self.llm.temperature = 0.0


def get_production_config() -> ProductionConfig:
    """Get production-specific configuration"""
    return ProductionConfig()
