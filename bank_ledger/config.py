"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class LedgerConfig(BaseSettings):
    """Bank ledger configuration"""
    
    bank_name: str = "AwesomeGIC Bank"
    
    # Logging configuration
    log_level: str = "WARNING"
    log_format: str = "json"  # json or text
    log_file: Optional[str] = None  # If None, logs to stderr
    
    # Persistence configuration
    storage_backend: str = "memory"  # memory, file or sqlite
    transactions_file: str = "transactions.txt"
    interest_rules_file: str = "interest_rules.txt"
    database_path: str = "bank_ledger.db"
    
    class Config:
        env_prefix = "BANK_LEDGER_"
        env_file = ".env"
        case_sensitive = False


# Global configuration instance
config = LedgerConfig()


def get_config() -> LedgerConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> LedgerConfig:
    """Reload configuration from environment"""
    global config
    config = LedgerConfig()
    return config
