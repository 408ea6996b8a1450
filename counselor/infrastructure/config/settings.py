"""
Process configuration.

Values come from the environment (optionally seeded from a ``.env`` file)
and are validated once at startup.
"""

from typing import List, Optional
from pathlib import Path
import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

PACKAGE_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_SKILLS_DIR = PACKAGE_ROOT / "skills"


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseModel):
    """Runtime settings for the gateway"""
    anthropic_api_key: Optional[str] = Field(None, description="API key for the inference backend")
    model: str = Field(default="claude-haiku-4-5-20251001")
    max_tokens: int = Field(default=4096, gt=0)
    max_iterations: int = Field(default=10, gt=0, description="Inference calls allowed per turn")
    max_session_turns: int = Field(default=50, gt=0, description="Turns retained per session")
    request_timeout: float = Field(default=120.0, gt=0, description="Seconds per inference request")
    memory_root: Path = Field(default=Path("./memories"))
    skills_dir: Path = Field(default=DEFAULT_SKILLS_DIR)
    cors_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://localhost:4173"]
    )
    host: str = "0.0.0.0"
    port: int = 3001
    log_level: str = "INFO"
    log_format: str = "json"

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "Settings":
        """Build settings from environment variables"""

        load_dotenv(env_file)
        env = os.environ
        values = {
            "anthropic_api_key": env.get("ANTHROPIC_API_KEY"),
            "model": env.get("COUNSELOR_MODEL"),
            "max_tokens": env.get("COUNSELOR_MAX_TOKENS"),
            "max_iterations": env.get("COUNSELOR_MAX_ITERATIONS"),
            "max_session_turns": env.get("COUNSELOR_MAX_SESSION_TURNS"),
            "request_timeout": env.get("COUNSELOR_REQUEST_TIMEOUT"),
            "memory_root": env.get("COUNSELOR_MEMORY_ROOT"),
            "skills_dir": env.get("COUNSELOR_SKILLS_DIR"),
            "host": env.get("COUNSELOR_HOST"),
            "port": env.get("COUNSELOR_PORT"),
            "log_level": env.get("LOG_LEVEL"),
            "log_format": env.get("LOG_FORMAT"),
        }
        origins = env.get("COUNSELOR_CORS_ORIGINS")
        if origins:
            values["cors_origins"] = _split_csv(origins)

        # Unset variables fall back to the field defaults
        return cls(**{key: value for key, value in values.items() if value is not None})
