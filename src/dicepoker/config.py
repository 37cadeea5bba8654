"""Client configuration loader.

Defaults point at a local development server. An optional YAML file
overrides them, and environment variables override the file.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

DEFAULT_SOCKET_URL = "http://localhost:5000"
DEFAULT_API_BASE_URL = "http://localhost:5000/api"
DEFAULT_TURN_PREFIX = "Turno de "
DEFAULT_LOG_FILE = Path("output/logs/dicepoker.log")

ENV_SOCKET_URL = "DICEPOKER_SOCKET_URL"
ENV_API_BASE_URL = "DICEPOKER_API_BASE_URL"
ENV_JOURNAL_DIR = "DICEPOKER_JOURNAL_DIR"
ENV_LOG_LEVEL = "DICEPOKER_LOG_LEVEL"


@dataclass
class PresentationConfig:
    roll_animation_ms: int = 1200
    roll_announcement_ms: int = 2500
    turn_announcement_ms: int = 2000


@dataclass
class ClientConfig:
    socket_url: str = DEFAULT_SOCKET_URL
    api_base_url: str = DEFAULT_API_BASE_URL
    turn_prefix: str = DEFAULT_TURN_PREFIX
    request_timeout_s: float = 10.0
    journal_dir: Path | None = None
    log_file: Path | None = DEFAULT_LOG_FILE
    log_level: str = "INFO"
    presentation: PresentationConfig = field(default_factory=PresentationConfig)


def load_config(
    path: Path | None = None,
    env: dict[str, str] | None = None,
) -> ClientConfig:
    """Load client config from an optional YAML file plus environment."""
    env = os.environ if env is None else env
    raw: dict = {}
    if path is not None:
        with open(path) as f:
            raw = yaml.safe_load(f) or {}

    c = raw.get("client", {}) or {}
    p = raw.get("presentation", {}) or {}
    defaults = PresentationConfig()

    presentation = PresentationConfig(
        roll_animation_ms=int(p.get("roll_animation_ms", defaults.roll_animation_ms)),
        roll_announcement_ms=int(
            p.get("roll_announcement_ms", defaults.roll_announcement_ms)
        ),
        turn_announcement_ms=int(
            p.get("turn_announcement_ms", defaults.turn_announcement_ms)
        ),
    )

    journal_dir = env.get(ENV_JOURNAL_DIR) or c.get("journal_dir")
    log_file = c.get("log_file", DEFAULT_LOG_FILE)

    return ClientConfig(
        socket_url=env.get(ENV_SOCKET_URL) or c.get("socket_url", DEFAULT_SOCKET_URL),
        api_base_url=(
            env.get(ENV_API_BASE_URL) or c.get("api_base_url", DEFAULT_API_BASE_URL)
        ),
        turn_prefix=c.get("turn_prefix", DEFAULT_TURN_PREFIX),
        request_timeout_s=float(c.get("request_timeout_s", 10.0)),
        journal_dir=Path(journal_dir) if journal_dir else None,
        log_file=Path(log_file) if log_file else None,
        log_level=(env.get(ENV_LOG_LEVEL) or c.get("log_level", "INFO")).upper(),
        presentation=presentation,
    )
