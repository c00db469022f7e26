"""
Agent Configuration

All settings come from environment variables, optionally loaded
from a .env file next to the backend directory.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from dotenv import load_dotenv

from .core.errors import ConfigurationError

env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(env_path)

DEFAULT_SITE_MAP_PATH = "data/agent_knowledge/site_map.json"
DEFAULT_CRAWL_DEPTH = 2


@dataclass
class AgentSettings:
    """Runtime settings for site mapping and element location"""
    base_url: Optional[str] = None
    user_email: Optional[str] = None
    user_password: Optional[str] = None
    admin_email: Optional[str] = None
    admin_password: Optional[str] = None
    site_map_path: str = DEFAULT_SITE_MAP_PATH
    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    ai_provider: str = "openai"
    ai_model: Optional[str] = None
    crawl_max_depth: int = DEFAULT_CRAWL_DEPTH

    @classmethod
    def from_env(cls) -> "AgentSettings":
        """Read settings from the current environment"""
        depth = os.getenv("CRAWL_MAX_DEPTH")
        return cls(
            base_url=os.getenv("BASE_URL"),
            user_email=os.getenv("USER_EMAIL"),
            user_password=os.getenv("USER_PASSWORD"),
            admin_email=os.getenv("ADMIN_EMAIL"),
            admin_password=os.getenv("ADMIN_PASSWORD"),
            site_map_path=os.getenv("SITE_MAP_PATH", DEFAULT_SITE_MAP_PATH),
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            anthropic_api_key=os.getenv("ANTHROPIC_API_KEY"),
            ai_provider=os.getenv("AI_PROVIDER", "openai").lower(),
            ai_model=os.getenv("AI_MODEL"),
            crawl_max_depth=int(depth) if depth and depth.isdigit() else DEFAULT_CRAWL_DEPTH,
        )

    @property
    def ai_api_key(self) -> Optional[str]:
        """Key for the configured AI provider"""
        if self.ai_provider == "anthropic":
            return self.anthropic_api_key
        return self.openai_api_key


def validate_env(required: Iterable[str] = ("BASE_URL",)) -> None:
    """Raise ConfigurationError if any required variable is unset"""
    missing = [key for key in required if not os.getenv(key)]
    if missing:
        raise ConfigurationError(
            f"Required environment variables are not set: {', '.join(missing)}",
            context={"missing": missing}
        )
