"""
Studio CRM Configuration
Loads settings from environment variables with sensible defaults.
"""

import logging
import os
from pathlib import Path
from dotenv import load_dotenv

_logger = logging.getLogger(__name__)

# Load .env file
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)


class Config:
    """Application configuration."""

    # Database — must be set in .env; never hardcode credentials here
    DATABASE_URL = os.getenv('DATABASE_URL')
    if not DATABASE_URL:
        _logger.critical("DATABASE_URL is not set — cannot start. Copy .env.example to .env and configure it.")
        raise ValueError("DATABASE_URL environment variable is not set. Copy .env.example to .env and configure it.")

    # Dashboard
    STALE_OUTREACH_DAYS = int(os.getenv('STALE_OUTREACH_DAYS', '7'))
    RECENT_ACTIVITY_LIMIT = int(os.getenv('RECENT_ACTIVITY_LIMIT', '15'))

    # AI Configuration
    # Claude (venue extraction)
    ANTHROPIC_API_KEY = os.getenv('ANTHROPIC_API_KEY', '')
    CLAUDE_MODEL = os.getenv('CLAUDE_MODEL', 'claude-sonnet-4-20250514')
    # DeepSeek (cheaper fallback for extraction)
    DEEPSEEK_API_KEY = os.getenv('DEEPSEEK_API_KEY', '')
    DEEPSEEK_BASE_URL = os.getenv('DEEPSEEK_BASE_URL', 'https://api.deepseek.com')
    DEFAULT_AI_MODEL = os.getenv('DEFAULT_AI_MODEL', 'claude')

    # Venue Scout
    BRAVE_SEARCH_API_KEY = os.getenv('BRAVE_SEARCH_API_KEY', '')
    BRAVE_SEARCH_URL = os.getenv('BRAVE_SEARCH_URL', 'https://api.search.brave.com/res/v1/web/search')
    SCOUT_RESULTS_PER_QUERY = int(os.getenv('SCOUT_RESULTS_PER_QUERY', '10'))
    SCOUT_MAX_RESULTS = int(os.getenv('SCOUT_MAX_RESULTS', '10'))
    SCOUT_REQUEST_TIMEOUT_SECONDS = float(os.getenv('SCOUT_REQUEST_TIMEOUT_SECONDS', '15'))

    # Trello card integration
    TRELLO_API_KEY = os.getenv('TRELLO_API_KEY', '')
    TRELLO_TOKEN = os.getenv('TRELLO_TOKEN', '')
    TRELLO_LIST_ID = os.getenv('TRELLO_LIST_ID', '')


# Singleton instance
config = Config()
