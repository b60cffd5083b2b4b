"""
Configuration settings for the scheduling core.
Load configuration from environment variables or a .env file.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
env_file = Path(__file__).parent.parent.parent / '.env'
if env_file.exists():
    load_dotenv(env_file)


class Settings:
    """Application settings loaded from environment variables."""

    # Project paths
    PROJECT_ROOT = Path(__file__).parent.parent.parent
    DATA_DIR = PROJECT_ROOT / 'data'
    OUTPUT_DATA_DIR = Path(os.getenv('PROGRAMME_OUTPUT_DIR', str(DATA_DIR / 'output')))

    # Logging
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    LOG_DIR = os.getenv('PROGRAMME_LOG_DIR', '')

    # ============================================================================
    # Analysis defaults (days)
    # ============================================================================
    NEAR_CRITICAL_THRESHOLD_DAYS = int(os.getenv('NEAR_CRITICAL_THRESHOLD_DAYS', '5'))
    SENSITIVITY_DELTA_DAYS = int(os.getenv('SENSITIVITY_DELTA_DAYS', '5'))

    @classmethod
    def get_log_dir(cls):
        """Return the log directory as a Path, or None for console-only logging."""
        if not cls.LOG_DIR:
            return None
        return Path(cls.LOG_DIR)

    @classmethod
    def validate_required_settings(cls) -> list[str]:
        """
        Validate that settings hold usable values.
        Returns list of invalid setting names.
        """
        invalid = []
        if cls.NEAR_CRITICAL_THRESHOLD_DAYS < 0:
            invalid.append('NEAR_CRITICAL_THRESHOLD_DAYS')
        if cls.SENSITIVITY_DELTA_DAYS <= 0:
            invalid.append('SENSITIVITY_DELTA_DAYS')
        return invalid


# Create settings instance
settings = Settings()
