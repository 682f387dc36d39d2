"""
Application configuration.

Responsibilities:
- Load deployment-specific configuration
- Read environment variables
- Provide a typed, immutable config object

Non-responsibilities:
- No engine logic
- No behavioral constants (see spec.py)
- No runtime mutation
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from errors import ConfigurationError
from spec import (
    AVAILABLE_VOICES,
    CAPTURE_BUFFER_SAMPLES_DEFAULT,
    DEFAULT_VOICE,
    LIVE_MODEL_DEFAULT,
    MAX_RETRY_ATTEMPTS,
    OFFLINE_RESPONSE_DELAY_MS_DEFAULT,
    UTTERANCE_WINDOW_S_DEFAULT,
)


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes")


def _env_number(name: str, default: str, cast: type) -> int | float:
    raw = os.environ.get(name, default)
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from e


@dataclass(frozen=True)
class AppConfig:
    """
    Immutable application configuration.

    Constructed once at process startup and passed downward to
    session bootstrap code.
    """

    # ------------------------------------------------------------------
    # Environment
    # ------------------------------------------------------------------

    env: str
    log_level: str
    enable_json_logs: bool

    # ------------------------------------------------------------------
    # Live voice link
    # ------------------------------------------------------------------

    gemini_api_key: str | None
    live_model: str
    voice_name: str

    # ------------------------------------------------------------------
    # Response / report generation
    # ------------------------------------------------------------------

    openai_api_key: str | None
    llm_model: str

    # ------------------------------------------------------------------
    # Engine tuning
    # ------------------------------------------------------------------

    max_retry_attempts: int = MAX_RETRY_ATTEMPTS
    capture_buffer_samples: int = CAPTURE_BUFFER_SAMPLES_DEFAULT
    offline_response_delay_ms: int = OFFLINE_RESPONSE_DELAY_MS_DEFAULT
    utterance_window_s: float = UTTERANCE_WINDOW_S_DEFAULT
    scenario_registry_path: str | None = None

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @staticmethod
    def load_from_env() -> AppConfig:
        """
        Load configuration from environment variables.

        Raises:
            ConfigurationError if a value is malformed.
        """
        config = AppConfig(
            env=os.environ.get("ENV", "dev"),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
            enable_json_logs=_env_bool("ENABLE_JSON_LOGS", "1"),

            gemini_api_key=os.environ.get("GEMINI_API_KEY") or None,
            live_model=os.environ.get("LIVE_MODEL", LIVE_MODEL_DEFAULT),
            voice_name=os.environ.get("VOICE_NAME", DEFAULT_VOICE),

            openai_api_key=os.environ.get("OPENAI_API_KEY") or None,
            llm_model=os.environ.get("LLM_MODEL", "gpt-4o-mini"),

            max_retry_attempts=int(_env_number("MAX_RETRY_ATTEMPTS", str(MAX_RETRY_ATTEMPTS), int)),
            capture_buffer_samples=int(
                _env_number("CAPTURE_BUFFER_SAMPLES", str(CAPTURE_BUFFER_SAMPLES_DEFAULT), int)
            ),
            offline_response_delay_ms=int(
                _env_number("OFFLINE_RESPONSE_DELAY_MS", str(OFFLINE_RESPONSE_DELAY_MS_DEFAULT), int)
            ),
            utterance_window_s=float(
                _env_number("UTTERANCE_WINDOW_S", str(UTTERANCE_WINDOW_S_DEFAULT), float)
            ),
            scenario_registry_path=os.environ.get("SCENARIO_REGISTRY_PATH") or None,
        )
        config.validate()
        return config

    def validate(self) -> None:
        """Reject values no component could operate with."""
        if self.voice_name not in AVAILABLE_VOICES:
            raise ConfigurationError(
                f"VOICE_NAME {self.voice_name!r} not one of {', '.join(AVAILABLE_VOICES)}"
            )
        if self.max_retry_attempts < 1:
            raise ConfigurationError("MAX_RETRY_ATTEMPTS must be >= 1")
        if self.capture_buffer_samples <= 0:
            raise ConfigurationError("CAPTURE_BUFFER_SAMPLES must be > 0")
        if self.offline_response_delay_ms < 0:
            raise ConfigurationError("OFFLINE_RESPONSE_DELAY_MS must be >= 0")
        if self.utterance_window_s <= 0:
            raise ConfigurationError("UTTERANCE_WINDOW_S must be > 0")

    def require_live_credentials(self) -> str:
        """Return the live-link API key or fail fast."""
        if not self.gemini_api_key:
            raise ConfigurationError("GEMINI_API_KEY missing")
        return self.gemini_api_key
