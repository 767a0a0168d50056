"""Environment-based configuration for planka-mcp."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_BASE_URL = "http://localhost:3000"
DEFAULT_TIMEOUT = 30.0

REQUIRED_VARIABLES = ("PLANKA_AGENT_EMAIL", "PLANKA_AGENT_PASSWORD")


def load_env_file(path: str | Path) -> None:
    """Load KEY=VALUE lines from a .env file into os.environ.

    Existing environment variables are never overridden. Blank lines and
    ``#`` comments are skipped; surrounding quotes are stripped from values.
    """
    env_path = Path(path)
    if not env_path.exists():
        return

    with open(env_path) as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#") and "=" in line:
                key, value = line.split("=", 1)
                key = key.strip()
                value = value.strip().strip("'\"")
                if key not in os.environ:
                    os.environ[key] = value


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() not in {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    """Connection settings for the Planka instance and the two identities.

    The agent identity authenticates every call; the admin identity is the
    human account added to newly created boards.
    """

    base_url: str = DEFAULT_BASE_URL
    agent_email: str | None = None
    agent_password: str | None = None
    admin_id: str | None = None
    admin_email: str | None = None
    admin_username: str | None = None
    timeout: float = DEFAULT_TIMEOUT
    verify_ssl: bool = True

    @classmethod
    def from_env(cls, env_file: str | None = None) -> Settings:
        """Build settings from the environment, loading a .env file first.

        Args:
            env_file: Path to a .env file. Defaults to $PLANKA_ENV_FILE or ".env".

        Raises:
            ValueError: If PLANKA_TIMEOUT is not a positive number
        """
        load_env_file(env_file or os.getenv("PLANKA_ENV_FILE", ".env"))

        raw_timeout = os.getenv("PLANKA_TIMEOUT")
        timeout = DEFAULT_TIMEOUT
        if raw_timeout:
            try:
                timeout = float(raw_timeout)
            except ValueError:
                raise ValueError(f"PLANKA_TIMEOUT must be a number, got: {raw_timeout}") from None
            if timeout <= 0:
                raise ValueError(f"PLANKA_TIMEOUT must be positive, got: {raw_timeout}")

        return cls(
            base_url=os.getenv("PLANKA_BASE_URL") or DEFAULT_BASE_URL,
            agent_email=os.getenv("PLANKA_AGENT_EMAIL") or None,
            agent_password=os.getenv("PLANKA_AGENT_PASSWORD") or None,
            admin_id=os.getenv("PLANKA_ADMIN_ID") or None,
            admin_email=os.getenv("PLANKA_ADMIN_EMAIL") or None,
            admin_username=os.getenv("PLANKA_ADMIN_USERNAME") or None,
            timeout=timeout,
            verify_ssl=_as_bool(os.getenv("PLANKA_VERIFY_SSL"), True),
        )

    def missing(self) -> list[str]:
        """Names of required environment variables that are not set"""
        values = {
            "PLANKA_AGENT_EMAIL": self.agent_email,
            "PLANKA_AGENT_PASSWORD": self.agent_password,
        }
        return [name for name in REQUIRED_VARIABLES if not values[name]]
