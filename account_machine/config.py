"""
Configuration Management

Settings come from the environment (a local .env file is loaded first);
command line arguments override them.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .exceptions import ConfigurationError

load_dotenv()

DEFAULT_HOME = Path.home() / ".account_machine"
MAX_BATCH_SIZE = 1000


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "on", "yes")


class BotConfig:
    """Registration bot configuration"""

    def __init__(self):
        self.count: int = int(os.getenv("BOT_COUNT", "10"))
        self.delay_ms: int = int(os.getenv("BOT_DELAY_MS", "1500"))
        self.endpoint: Optional[str] = os.getenv("REGISTRATION_ENDPOINT")
        self.timeout_seconds: float = float(os.getenv("REGISTRATION_TIMEOUT", "15"))
        self.user_type: int = int(os.getenv("REGISTRATION_USER_TYPE", "1"))
        self.enforce_response_code: bool = _env_flag("ENFORCE_RESPONSE_CODE")
        self.store_dir: str = os.getenv("ACCOUNT_MACHINE_HOME", str(DEFAULT_HOME))
        self.verbose: bool = False

        self.account_generator_config = {
            "account_generator": {
                "password_min_length": 10,
                "password_max_length": 14,
            }
        }

    def validate(self, require_endpoint: bool = True):
        """Raise ConfigurationError for unusable settings"""
        if self.count < 1 or self.count > MAX_BATCH_SIZE:
            raise ConfigurationError(f"Account count must be between 1 and {MAX_BATCH_SIZE}", "count")
        if self.delay_ms < 0:
            raise ConfigurationError("Delay must not be negative", "delay_ms")
        if self.timeout_seconds <= 0:
            raise ConfigurationError("Timeout must be positive", "timeout_seconds")
        if require_endpoint and not self.endpoint:
            raise ConfigurationError(
                "Registration endpoint is not set (use --endpoint or REGISTRATION_ENDPOINT)",
                "endpoint"
            )


class SupabaseConfig:
    """Hosted auth and database settings for the machine game"""

    def __init__(self):
        self.url: Optional[str] = os.getenv("SUPABASE_URL")
        self.anon_key: Optional[str] = os.getenv("SUPABASE_ANON_KEY")
        self.timeout_seconds: float = float(os.getenv("SUPABASE_TIMEOUT", "15"))
        self.store_dir: str = os.getenv("ACCOUNT_MACHINE_HOME", str(DEFAULT_HOME))

    @property
    def rest_url(self) -> str:
        return f"{self.url.rstrip('/')}/rest/v1"

    @property
    def auth_url(self) -> str:
        return f"{self.url.rstrip('/')}/auth/v1"

    def validate(self):
        if not self.url:
            raise ConfigurationError("SUPABASE_URL is not set", "url")
        if not self.anon_key:
            raise ConfigurationError("SUPABASE_ANON_KEY is not set", "anon_key")
