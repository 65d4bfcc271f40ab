"""
Configuration for the BMI chart service.

Settings come from the environment (a local .env file is loaded first).
The resulting ChartConfig is passed explicitly to the pipeline and the app;
nothing downstream reads os.environ.
"""

import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from dotenv import load_dotenv

from .errors import ConfigError


# Flags required to run Chromium inside containers without a user namespace
BROWSER_LAUNCH_ARGS: List[str] = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--single-process",
]

# Large enough that the mobile navbar does not overlap the chart
DEFAULT_VIEWPORT: Dict[str, int] = {"width": 800, "height": 1000}

REQUIRED_KEYS = ("BASE_URL", "SELECTOR", "OBSTRUCTION_SELECTOR")

# Older deployments name the obstruction locator SELECTOR_TO_REMOVE
KEY_ALIASES: Dict[str, str] = {"OBSTRUCTION_SELECTOR": "SELECTOR_TO_REMOVE"}


def _env_str(env: Mapping[str, str], key: str) -> str:
    value = (env.get(key) or "").strip()
    if not value and key in KEY_ALIASES:
        value = (env.get(KEY_ALIASES[key]) or "").strip()
    return value


def _env_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{key} must be an integer, got {raw!r}")


def _env_bool(env: Mapping[str, str], key: str, default: bool) -> bool:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ChartConfig:
    """Settings for one service process."""

    # Chart source
    base_url: str
    target_selector: str
    obstruction_selector: str

    # Browser
    executable_path: Optional[str] = None
    launch_args: List[str] = field(default_factory=lambda: list(BROWSER_LAUNCH_ARGS))
    viewport: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_VIEWPORT))

    # Timing
    navigation_timeout_ms: int = 10000
    selector_timeout_ms: int = 10000
    # Heuristic wait for late layout/paint after the obstruction is removed.
    # The source page gives no "render finished" signal.
    settle_delay_ms: int = 300
    navigation_attempts: int = 1

    # Artifacts
    artifact_dir: Optional[Path] = None

    # Server
    host: str = "0.0.0.0"
    port: int = 3000

    # Logging
    log_level: str = "INFO"
    log_json: bool = True
    log_dir: Optional[Path] = None

    def __post_init__(self):
        if self.artifact_dir is None:
            self.artifact_dir = Path(tempfile.gettempdir())
        elif isinstance(self.artifact_dir, str):
            self.artifact_dir = Path(self.artifact_dir)
        if isinstance(self.log_dir, str):
            self.log_dir = Path(self.log_dir)
        if self.navigation_attempts < 1:
            raise ConfigError("NAVIGATION_ATTEMPTS must be at least 1")

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None, dotenv: bool = True) -> "ChartConfig":
        """
        Builds the config from environment variables.

        Args:
            env: Mapping to read instead of os.environ (used by tests)
            dotenv: Load a .env file into os.environ first

        Raises:
            ConfigError: if a required key is missing or a number is malformed
        """
        if env is None:
            if dotenv:
                load_dotenv()
            env = os.environ

        missing = [key for key in REQUIRED_KEYS if not _env_str(env, key)]
        if missing:
            raise ConfigError(f"Missing required settings: {', '.join(missing)}")

        kwargs: Dict[str, Any] = {
            "base_url": env["BASE_URL"],
            "target_selector": env["SELECTOR"],
            "obstruction_selector": _env_str(env, "OBSTRUCTION_SELECTOR"),
            "executable_path": env.get("EXECUTABLE_PATH_OVERRIDE") or None,
            "viewport": {
                "width": _env_int(env, "VIEWPORT_WIDTH", DEFAULT_VIEWPORT["width"]),
                "height": _env_int(env, "VIEWPORT_HEIGHT", DEFAULT_VIEWPORT["height"]),
            },
            "navigation_timeout_ms": _env_int(env, "NAVIGATION_TIMEOUT_MS", 10000),
            "selector_timeout_ms": _env_int(env, "SELECTOR_TIMEOUT_MS", 10000),
            "settle_delay_ms": _env_int(env, "SETTLE_DELAY_MS", 300),
            "navigation_attempts": _env_int(env, "NAVIGATION_ATTEMPTS", 1),
            "artifact_dir": env.get("ARTIFACT_DIR") or None,
            "host": env.get("HOST") or "0.0.0.0",
            "port": _env_int(env, "PORT", 3000),
            "log_level": (env.get("LOG_LEVEL") or "INFO").upper(),
            "log_json": _env_bool(env, "LOG_JSON", True),
            "log_dir": env.get("LOG_DIR") or None,
        }
        return cls(**kwargs)
