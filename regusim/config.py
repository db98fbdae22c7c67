"""
ReguSim Configuration

Loads configuration from environment variables with sensible defaults.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()


def _optional_int(name: str) -> int | None:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    return int(raw)


class Config:
    """Application configuration loaded from environment variables."""

    # Narrative generator (LLM) configuration. Leave LLM_PROVIDER empty to
    # run without narratives; the fallback texts are used instead.
    LLM_PROVIDER: str | None = os.getenv("LLM_PROVIDER") or None
    LLM_MODEL: str | None = os.getenv("LLM_MODEL") or None

    # API Keys
    ANTHROPIC_API_KEY: str | None = os.getenv("ANTHROPIC_API_KEY")
    OPENAI_API_KEY: str | None = os.getenv("OPENAI_API_KEY")
    GOOGLE_API_KEY: str | None = os.getenv("GOOGLE_API_KEY")

    # Simulation Configuration
    DEFAULT_POPULATION: int = int(os.getenv("REGUSIM_POPULATION", "60"))
    DEFAULT_MAX_TIME: int = int(os.getenv("REGUSIM_MAX_TIME", "100"))
    DEFAULT_SEED: int | None = _optional_int("REGUSIM_SEED")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Project Paths
    PROJECT_ROOT: Path = Path(__file__).parent.parent
    SCENARIOS_DIR: Path = Path(
        os.getenv("REGUSIM_SCENARIOS_DIR", str(PROJECT_ROOT / "examples" / "scenarios"))
    )

    _PROVIDER_KEYS = {
        "anthropic": "ANTHROPIC_API_KEY",
        "openai": "OPENAI_API_KEY",
        "google": "GOOGLE_API_KEY",
    }

    @classmethod
    def llm_enabled(cls) -> bool:
        """True when both a provider and a model are configured."""
        return bool(cls.LLM_PROVIDER and cls.LLM_MODEL)

    @classmethod
    def validate(cls) -> None:
        """Validate configuration and raise errors if required values are missing."""
        if cls.DEFAULT_POPULATION < 0:
            raise ValueError("REGUSIM_POPULATION must be non-negative")

        if cls.DEFAULT_MAX_TIME < 0:
            raise ValueError("REGUSIM_MAX_TIME must be non-negative")

        if cls.LLM_PROVIDER and not cls.LLM_MODEL:
            raise ValueError(
                f"LLM_MODEL is required when LLM_PROVIDER is set ('{cls.LLM_PROVIDER}')"
            )

        key_name = cls._PROVIDER_KEYS.get((cls.LLM_PROVIDER or "").lower())
        if key_name and not getattr(cls, key_name):
            raise ValueError(
                f"{key_name} is required when using the '{cls.LLM_PROVIDER}' provider"
            )

    @classmethod
    def display(cls) -> str:
        """Return a formatted string showing current configuration."""
        lines = [
            "ReguSim Configuration:",
            f"  LLM Provider: {cls.LLM_PROVIDER or '(disabled)'}",
            f"  LLM Model: {cls.LLM_MODEL or '(disabled)'}",
            f"  Population: {cls.DEFAULT_POPULATION}",
            f"  Max Time: {cls.DEFAULT_MAX_TIME}",
            f"  Seed: {cls.DEFAULT_SEED if cls.DEFAULT_SEED is not None else '(random)'}",
            f"  Scenarios: {cls.SCENARIOS_DIR}",
        ]
        return "\n".join(lines)
