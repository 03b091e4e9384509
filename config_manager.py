"""
Centralized configuration manager to avoid multiple Config instances.
"""
from core.config import Config

# Global config instance - loaded once
_config_instance = None

def get_config() -> Config:
    """Get the global config instance, creating it only once."""
    global _config_instance
    if _config_instance is None:
        _config_instance = Config()
    return _config_instance

def refresh_config():
    """Force a refresh of the global config instance."""
    global _config_instance
    _config_instance = None
    return get_config()

def get_engine_settings():
    """Get FilterSyncEngine settings from the main config."""
    from filter_sync.engine import EngineSettings

    config = get_config()

    return EngineSettings(
        debounce_seconds=config.sync.debounce_seconds,
        max_attempts=config.fetch.max_attempts,
        retry_delay_seconds=config.fetch.retry_delay_seconds,
        preserve_foreign_keys=config.sync.preserve_foreign_keys
    )
