"""
Integrity Monitor Configuration Settings

Values are read from the environment (or a local .env file) so the
keystroke batching and storage backend can be tuned per deployment.
"""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Configuration for the integrity monitor service."""
    
    # API Settings
    APP_NAME: str = "integrity-monitor"
    DEBUG: bool = True
    
    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = False
    LOG_DIR: str = "logs"
    
    # Storage Settings
    STORAGE_BACKEND: str = "memory"  # "memory" or "redis"
    REDIS_URL: str = "redis://localhost:6379/0"
    
    # Keystroke batching
    KEYSTROKE_BATCH_SIZE: int = 20
    KEYSTROKE_RETAIN: int = 10  # intervals kept after a batch is analyzed
    MIN_ANALYSIS_INTERVALS: int = 10
    
    # Grade used when the caller does not know the learner's grade
    DEFAULT_GRADE: int = 4
    
    # Sessions left open longer than this are force-finalized by the reconciler
    STALE_SESSION_MINUTES: int = 120
    
    REPORT_DAYS: int = 7
    
    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
