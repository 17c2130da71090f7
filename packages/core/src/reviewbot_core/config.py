import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "url": None,
    "username": None,
    "period_hours": 1,
    "restrict_to_user": False,
    "repository": None,  # repository name; None = all repositories
    "timeout": 30,  # seconds, applied to connect and read
    "markdown": False,
}


@dataclass(frozen=True)
class ConnectionConfig:
    """Credentials and base URL for one Review Board server."""

    base_url: str
    username: str
    password: str
    timeout: float = 30

    def __post_init__(self):
        if not self.base_url.endswith("/"):
            object.__setattr__(self, "base_url", self.base_url + "/")


def load_config(config_path: str = ".reviewbot.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .reviewbot.yml in the current directory
      3. CLI argument overrides
      4. Environment: REVIEWBOARD_URL and REVIEWBOARD_USERNAME fill a url or
         username still unset after steps 1-3; the password comes only from
         REVIEWBOARD_PASSWORD (a password in the file is ignored)
    """
    config = dict(DEFAULT_CONFIG)

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        # The password never comes from a file that may be committed.
        file_config.pop("password", None)
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    # Environment fills in what neither the file nor the CLI provided.
    if not config.get("url"):
        config["url"] = os.environ.get("REVIEWBOARD_URL")
    if not config.get("username"):
        config["username"] = os.environ.get("REVIEWBOARD_USERNAME")
    config["password"] = os.environ.get("REVIEWBOARD_PASSWORD")

    return config


def connection_config(config: dict) -> ConnectionConfig:
    """Build the immutable ConnectionConfig from a merged config dict."""
    missing = [key for key in ("url", "username", "password") if not config.get(key)]
    if missing:
        raise ValueError(f"Missing Review Board settings: {', '.join(missing)}")
    return ConnectionConfig(
        base_url=config["url"],
        username=config["username"],
        password=config["password"],
        timeout=config.get("timeout") or DEFAULT_CONFIG["timeout"],
    )
