"""
Configuration management for the Deal Advisor engine.

Loads settings from environment variables with sensible defaults.
Threshold defaults seed `Preferences` when no stored preferences exist.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file from project root
_project_root = Path(__file__).parent.parent.parent
_env_file = _project_root / '.env'
if _env_file.exists():
    load_dotenv(_env_file)


class Config:
    """Configuration settings loaded from environment."""

    # Stale lender two-tier thresholds (days)
    LENDER_UPDATE_YELLOW_DAYS: int = int(os.getenv('ADVISOR_LENDER_UPDATE_YELLOW_DAYS', '5'))
    LENDER_UPDATE_RED_DAYS: int = int(os.getenv('ADVISOR_LENDER_UPDATE_RED_DAYS', '7'))

    # Stale deal two-tier thresholds (days)
    STALE_DEAL_DAYS: int = int(os.getenv('ADVISOR_STALE_DEAL_DAYS', '10'))
    STALE_DEAL_URGENT_DAYS: int = int(os.getenv('ADVISOR_STALE_DEAL_URGENT_DAYS', '14'))

    # Alert widget
    ALERT_CRITICAL_DAYS: int = int(os.getenv('ADVISOR_ALERT_CRITICAL_DAYS', '30'))

    # Storage
    PREFERENCES_PATH: str = os.getenv(
        'ADVISOR_PREFERENCES_PATH', str(_project_root / 'data' / 'preferences.json')
    )

    # Logging
    LOG_LEVEL: str = os.getenv('LOG_LEVEL', 'INFO')

    @classmethod
    def validate(cls) -> list[str]:
        """
        Validate that the configured thresholds are coherent.

        Returns:
            List of problems, empty when the configuration is usable
        """
        problems = []
        if cls.LENDER_UPDATE_YELLOW_DAYS < 1:
            problems.append('ADVISOR_LENDER_UPDATE_YELLOW_DAYS must be >= 1')
        if cls.LENDER_UPDATE_RED_DAYS <= cls.LENDER_UPDATE_YELLOW_DAYS:
            problems.append(
                'ADVISOR_LENDER_UPDATE_RED_DAYS must exceed ADVISOR_LENDER_UPDATE_YELLOW_DAYS'
            )
        if cls.STALE_DEAL_URGENT_DAYS <= cls.STALE_DEAL_DAYS:
            problems.append('ADVISOR_STALE_DEAL_URGENT_DAYS must exceed ADVISOR_STALE_DEAL_DAYS')
        return problems


# Singleton config instance
config = Config()
