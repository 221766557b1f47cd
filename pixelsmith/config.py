"""
Configuration management with environment variables.
"""

import os
from typing import Optional, Dict, Any
from dotenv import load_dotenv

from pixelsmith.exceptions import ConfigurationError
from pixelsmith.utils.logger import get_logger

# Load .env file early (for local/dev)
load_dotenv()

logger = get_logger(__name__, "Configuration")


def _int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


def _bool(name: str, default: bool) -> bool:
    return os.getenv(name, str(default)).lower() == "true"


class Config:
    """Application configuration loaded from environment variables."""

    # API Keys
    ANTHROPIC_API_KEY: Optional[str] = os.getenv("ANTHROPIC_API_KEY")
    OPENAI_API_KEY: Optional[str] = os.getenv("OPENAI_API_KEY")
    GOOGLE_API_KEY: Optional[str] = os.getenv("GOOGLE_API_KEY") or os.getenv("GEMINI_API_KEY")
    SEARCH_API_KEY: Optional[str] = os.getenv("SEARCH_API_KEY")
    SEARCH_ENGINE_ID: Optional[str] = os.getenv("SEARCH_ENGINE_ID")

    # Model client
    LLM_MAX_RETRIES: int = _int("LLM_MAX_RETRIES", 2)
    LLM_RETRY_BASE_DELAY: float = _float("LLM_RETRY_BASE_DELAY", 1.0)
    LLM_RETRY_MAX_DELAY: float = _float("LLM_RETRY_MAX_DELAY", 30.0)
    LLM_TIMEOUT: int = _int("LLM_TIMEOUT", 120)

    # Stage models
    ROUTER_MODEL: str = os.getenv("ROUTER_MODEL", "claude-sonnet-4-5")
    SURVEYOR_MODEL: str = os.getenv("SURVEYOR_MODEL", "claude-sonnet-4-5")
    PHYSICIST_MODEL: str = os.getenv("PHYSICIST_MODEL", "gemini-2.5-pro")
    ARCHITECT_MODEL: str = os.getenv("ARCHITECT_MODEL", "claude-opus-4-1")
    BUILDER_MODEL: str = os.getenv("BUILDER_MODEL", "claude-sonnet-4-5")
    LIVE_EDITOR_MODEL: str = os.getenv("LIVE_EDITOR_MODEL", "claude-sonnet-4-5")
    CRITIC_MODEL: str = os.getenv("CRITIC_MODEL", "claude-sonnet-4-5")
    SWARM_MODEL: str = os.getenv("SWARM_MODEL", "claude-sonnet-4-5")
    IMAGE_MODEL: str = os.getenv("IMAGE_MODEL", "gpt-image-1")

    ROUTER_MODEL_TEMPERATURE: float = _float("ROUTER_MODEL_TEMPERATURE", 0.0)
    SURVEYOR_MODEL_TEMPERATURE: float = _float("SURVEYOR_MODEL_TEMPERATURE", 0.0)
    PHYSICIST_MODEL_TEMPERATURE: float = _float("PHYSICIST_MODEL_TEMPERATURE", 0.2)
    ARCHITECT_MODEL_TEMPERATURE: float = _float("ARCHITECT_MODEL_TEMPERATURE", 0.2)
    BUILDER_MODEL_TEMPERATURE: float = _float("BUILDER_MODEL_TEMPERATURE", 0.2)
    LIVE_EDITOR_MODEL_TEMPERATURE: float = _float("LIVE_EDITOR_MODEL_TEMPERATURE", 0.2)
    CRITIC_MODEL_TEMPERATURE: float = _float("CRITIC_MODEL_TEMPERATURE", 0.0)
    SWARM_MODEL_TEMPERATURE: float = _float("SWARM_MODEL_TEMPERATURE", 0.4)

    ROUTER_MODEL_TOKEN: int = _int("ROUTER_MODEL_TOKEN", 1024)
    SURVEYOR_MODEL_TOKEN: int = _int("SURVEYOR_MODEL_TOKEN", 8192)
    PHYSICIST_MODEL_TOKEN: int = _int("PHYSICIST_MODEL_TOKEN", 4096)
    ARCHITECT_MODEL_TOKEN: int = _int("ARCHITECT_MODEL_TOKEN", 4000)
    BUILDER_MODEL_TOKEN: int = _int("BUILDER_MODEL_TOKEN", 16384)
    LIVE_EDITOR_MODEL_TOKEN: int = _int("LIVE_EDITOR_MODEL_TOKEN", 16384)
    CRITIC_MODEL_TOKEN: int = _int("CRITIC_MODEL_TOKEN", 4096)
    SWARM_MODEL_TOKEN: int = _int("SWARM_MODEL_TOKEN", 8192)

    IMAGE_SIZE: str = os.getenv("IMAGE_SIZE", "1024x1024")

    # Pipeline
    PIPELINE_TIMEOUT_SECONDS: float = _float("PIPELINE_TIMEOUT_SECONDS", 120.0)

    # Healing loop
    HEALING_MAX_ITERATIONS: int = _int("HEALING_MAX_ITERATIONS", 2)
    HEALING_TARGET_FIDELITY: int = _int("HEALING_TARGET_FIDELITY", 90)
    SCREENSHOT_API_URL: str = os.getenv("SCREENSHOT_API_URL", "http://localhost:3000/api/layout/screenshot")
    SCREENSHOT_VIEWPORT_WIDTH: int = _int("SCREENSHOT_VIEWPORT_WIDTH", 1280)
    SCREENSHOT_VIEWPORT_HEIGHT: int = _int("SCREENSHOT_VIEWPORT_HEIGHT", 800)
    SCREENSHOT_TIMEOUT: float = _float("SCREENSHOT_TIMEOUT", 30.0)

    # Swarm
    SWARM_MAX_RETRIES: int = _int("SWARM_MAX_RETRIES", 3)
    SWARM_MIN_OUTPUT_CHARS: int = _int("SWARM_MIN_OUTPUT_CHARS", 10)
    SWARM_TEST_CONTEXT_CHARS: int = _int("SWARM_TEST_CONTEXT_CHARS", 3000)
    SWARM_CODE_CONTEXT_CHARS: int = _int("SWARM_CODE_CONTEXT_CHARS", 4000)
    SWARM_FEEDBACK_OUTPUT_CHARS: int = _int("SWARM_FEEDBACK_OUTPUT_CHARS", 5000)
    SWARM_STRICT_VERIFICATION: bool = _bool("SWARM_STRICT_VERIFICATION", False)
    COMMAND_TIMEOUT_MS: int = _int("COMMAND_TIMEOUT_MS", 30000)
    SEARCH_API_URL: str = os.getenv("SEARCH_API_URL", "https://www.googleapis.com/customsearch/v1")
    SEARCH_MAX_RESULTS: int = _int("SEARCH_MAX_RESULTS", 5)

    # Application Settings
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = _int("API_PORT", 8091)
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "info")
    LOG_FILE: Optional[str] = os.getenv("LOG_FILE")

    @classmethod
    def validate(cls) -> None:
        """Fail fast when a configured model has no credentials."""
        models = [
            cls.ROUTER_MODEL, cls.SURVEYOR_MODEL, cls.PHYSICIST_MODEL, cls.ARCHITECT_MODEL,
            cls.BUILDER_MODEL, cls.LIVE_EDITOR_MODEL, cls.CRITIC_MODEL, cls.SWARM_MODEL,
        ]
        missing = []
        if any(m.startswith("claude") for m in models) and not cls.ANTHROPIC_API_KEY:
            missing.append("ANTHROPIC_API_KEY")
        if any(m.startswith("gemini") for m in models) and not cls.GOOGLE_API_KEY:
            missing.append("GOOGLE_API_KEY")
        if not cls.OPENAI_API_KEY:
            missing.append("OPENAI_API_KEY")

        if missing:
            logger.critical(
                "Missing required configuration:\n  - " + "\n  - ".join(missing),
                correlation_id="SYSTEM"
            )
            raise ConfigurationError(f"Missing required configuration: {', '.join(missing)}")

        if not cls.SEARCH_API_KEY or not cls.SEARCH_ENGINE_ID:
            logger.warning("SEARCH_API_KEY/SEARCH_ENGINE_ID not set, agent web search disabled", correlation_id="SYSTEM")

        logger.info("Configuration validated", correlation_id="SYSTEM")

    @classmethod
    def _stage_config(cls, prefix: str) -> Dict[str, Any]:
        return {
            "model": getattr(cls, f"{prefix}_MODEL"),
            "temperature": getattr(cls, f"{prefix}_MODEL_TEMPERATURE"),
            "max_tokens": getattr(cls, f"{prefix}_MODEL_TOKEN"),
        }

    @classmethod
    def get_router_config(cls) -> Dict[str, Any]:
        return cls._stage_config("ROUTER")

    @classmethod
    def get_surveyor_config(cls) -> Dict[str, Any]:
        return cls._stage_config("SURVEYOR")

    @classmethod
    def get_physicist_config(cls) -> Dict[str, Any]:
        return cls._stage_config("PHYSICIST")

    @classmethod
    def get_architect_config(cls) -> Dict[str, Any]:
        return cls._stage_config("ARCHITECT")

    @classmethod
    def get_builder_config(cls) -> Dict[str, Any]:
        return cls._stage_config("BUILDER")

    @classmethod
    def get_live_editor_config(cls) -> Dict[str, Any]:
        return cls._stage_config("LIVE_EDITOR")

    @classmethod
    def get_critic_config(cls) -> Dict[str, Any]:
        return cls._stage_config("CRITIC")

    @classmethod
    def get_swarm_config(cls) -> Dict[str, Any]:
        cfg = cls._stage_config("SWARM")
        cfg.update({
            "min_output_chars": cls.SWARM_MIN_OUTPUT_CHARS,
            "test_context_chars": cls.SWARM_TEST_CONTEXT_CHARS,
            "code_context_chars": cls.SWARM_CODE_CONTEXT_CHARS,
            "feedback_output_chars": cls.SWARM_FEEDBACK_OUTPUT_CHARS,
            "strict_verification": cls.SWARM_STRICT_VERIFICATION,
            "command_timeout_ms": cls.COMMAND_TIMEOUT_MS,
        })
        return cfg

    @classmethod
    def get_healing_config(cls) -> Dict[str, Any]:
        return {
            "max_iterations": cls.HEALING_MAX_ITERATIONS,
            "target_fidelity": cls.HEALING_TARGET_FIDELITY,
        }

    @classmethod
    def get_image_config(cls) -> Dict[str, Any]:
        return {"model": cls.IMAGE_MODEL, "size": cls.IMAGE_SIZE}

    @classmethod
    def get_screenshot_config(cls) -> Dict[str, Any]:
        return {
            "url": cls.SCREENSHOT_API_URL,
            "viewport": {"width": cls.SCREENSHOT_VIEWPORT_WIDTH, "height": cls.SCREENSHOT_VIEWPORT_HEIGHT},
            "timeout": cls.SCREENSHOT_TIMEOUT,
        }

    @classmethod
    def get_search_config(cls) -> Dict[str, Any]:
        return {
            "url": cls.SEARCH_API_URL,
            "api_key": cls.SEARCH_API_KEY,
            "engine_id": cls.SEARCH_ENGINE_ID,
            "max_results": cls.SEARCH_MAX_RESULTS,
        }


config = Config()
