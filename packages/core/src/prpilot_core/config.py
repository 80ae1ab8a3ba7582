import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv

from prpilot_core.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: dict = {
    "agent_model": "claude-haiku-4-5",
    "allowed_tools": ["Skill", "Bash", "Read", "Write", "Grep", "Glob", "WebFetch"],
    "setting_sources": ["user", "project"],  # where the agent runtime looks for skills
    "files_per_page": 100,  # GitHub's maximum page size; only the first page is fetched
    "interactive": True,
}

# Value shipped in the sample .env; treated the same as an unset token.
TOKEN_PLACEHOLDER = "your_github_token_here"

_TOKEN_HINT = "Get one at: https://github.com/settings/tokens"


def load_config(config_path: str = ".prpilot.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .prpilot.yml in the current directory
      3. CLI argument overrides

    A ``.env`` file in the working directory is loaded first; variables that
    are already set in the environment win over it.
    """
    load_dotenv(dotenv_path=Path(".env"), override=False)

    config = {
        **DEFAULT_CONFIG,
        "allowed_tools": list(DEFAULT_CONFIG["allowed_tools"]),
        "setting_sources": list(DEFAULT_CONFIG["setting_sources"]),
    }

    path = Path(config_path)
    if path.exists():
        try:
            with open(path) as f:
                file_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Could not parse {config_path}: {e}") from e
        if not isinstance(file_config, dict):
            raise ConfigError(f"{config_path} must contain a mapping, got {type(file_config).__name__}")
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    # Resolve credentials from environment variables
    config["github_token"] = os.environ.get("GITHUB_TOKEN")
    config["anthropic_api_key"] = os.environ.get("ANTHROPIC_API_KEY")
    config["diagram_api_key"] = os.environ.get("DIAGRAM_API_KEY")
    config["image_host_api_key"] = os.environ.get("IMAGE_HOST_API_KEY")

    return config


def validate_github_token(token: Optional[str]) -> str:
    """Return ``token`` or raise ConfigError when it is missing or the placeholder."""
    if not token or token.strip() == TOKEN_PLACEHOLDER:
        raise ConfigError(f"GITHUB_TOKEN required. {_TOKEN_HINT}")
    return token.strip()


@dataclass(frozen=True)
class Settings:
    """Immutable run settings, built once at startup and passed to the gateway and orchestrator."""

    github_token: str
    anthropic_api_key: Optional[str] = None
    diagram_api_key: Optional[str] = None
    image_host_api_key: Optional[str] = None
    agent_model: str = DEFAULT_CONFIG["agent_model"]
    allowed_tools: tuple[str, ...] = tuple(DEFAULT_CONFIG["allowed_tools"])
    setting_sources: tuple[str, ...] = tuple(DEFAULT_CONFIG["setting_sources"])
    files_per_page: int = DEFAULT_CONFIG["files_per_page"]

    @classmethod
    def from_config(cls, config: dict) -> "Settings":
        settings = cls(
            github_token=validate_github_token(config.get("github_token")),
            anthropic_api_key=config.get("anthropic_api_key"),
            diagram_api_key=config.get("diagram_api_key"),
            image_host_api_key=config.get("image_host_api_key"),
            agent_model=config.get("agent_model", DEFAULT_CONFIG["agent_model"]),
            allowed_tools=tuple(config.get("allowed_tools", DEFAULT_CONFIG["allowed_tools"])),
            setting_sources=tuple(config.get("setting_sources", DEFAULT_CONFIG["setting_sources"])),
            files_per_page=int(config.get("files_per_page", DEFAULT_CONFIG["files_per_page"])),
        )
        settings.log_degraded_features()
        return settings

    def log_degraded_features(self) -> None:
        if not self.anthropic_api_key:
            logger.info("ANTHROPIC_API_KEY not set; the agent runtime will use its own login session.")
        if not self.diagram_api_key:
            logger.info("DIAGRAM_API_KEY not set; architecture diagrams will be skipped.")
        if not self.image_host_api_key:
            logger.info("IMAGE_HOST_API_KEY not set; diagrams cannot be uploaded for the review.")

    def agent_env(self) -> dict[str, str]:
        """Environment handed to the agent runtime so its skills can reach the same APIs."""
        env = dict(os.environ)
        env["GITHUB_TOKEN"] = self.github_token
        for key, value in (
            ("ANTHROPIC_API_KEY", self.anthropic_api_key),
            ("DIAGRAM_API_KEY", self.diagram_api_key),
            ("IMAGE_HOST_API_KEY", self.image_host_api_key),
        ):
            if value:
                env[key] = value
        return env
