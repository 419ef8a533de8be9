"""Configuration management for the stats scraper"""

import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Configuration class for scraper settings"""

    # Wiki configuration
    WIKI_HOST: str = os.getenv("WIKI_HOST", "https://feheroes.gamepedia.com")
    WIKI_API_URL: str = os.getenv("WIKI_API_URL", f"{WIKI_HOST}/api.php")
    HERO_LIST_PAGE: str = os.getenv("HERO_LIST_PAGE", "Stats Table")

    # Output locations
    ASSETS_DIR: str = os.getenv(
        "ASSETS_DIR",
        os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "assets")
    )
    OUTPUT_PATH: str = os.getenv("OUTPUT_PATH", "stats.json")

    # Fetch behaviour
    MAX_WORKERS: int = int(os.getenv("MAX_WORKERS", "8"))
    MAX_RETRIES: int = int(os.getenv("MAX_RETRIES", "5"))
    RETRY_DELAY: float = float(os.getenv("RETRY_DELAY", "1"))  # Base delay, doubled per attempt
    REQUEST_TIMEOUT: float = float(os.getenv("REQUEST_TIMEOUT", "30"))

    # Treat a hero page without stat tables as a build failure
    STRICT_STATS: bool = _env_flag("STRICT_STATS")

    # User agent for requests
    USER_AGENT: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    )

    @classmethod
    def get_fetch_params(cls) -> dict:
        """Get fetcher settings as dict"""
        return {
            "max_workers": cls.MAX_WORKERS,
            "max_retries": cls.MAX_RETRIES,
            "retry_delay": cls.RETRY_DELAY,
            "timeout": cls.REQUEST_TIMEOUT,
        }
