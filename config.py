"""
Settings for the symptom checker, loaded from environment variables.
"""
import os
from typing import Optional
from dotenv import load_dotenv

from prediction_errors import ConfigurationError

MODES = ("demo", "live")
DEFAULT_GATEWAY_URL = "https://ai.gateway.lovable.dev/v1"
DEFAULT_GATEWAY_MODEL = "google/gemini-3-flash-preview"
DEFAULT_API_URL = "http://127.0.0.1:5000/api/predict-disease"


def _number(name: str, default: str, cast):
    raw = os.getenv(name, default)
    try:
        return cast(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None


class Settings:
    """
    Application settings loaded from environment variables.

    `demo` mode predicts from the built-in table, `live` mode sends
    symptoms to the backend which asks the AI gateway.
    """

    def __init__(self) -> None:
        self.mode: str = os.getenv("PREDICTION_MODE", "demo").strip().lower()
        if self.mode not in MODES:
            raise ConfigurationError(
                f"PREDICTION_MODE must be one of {', '.join(MODES)}, got {self.mode!r}"
            )

        # AI gateway (OpenAI-compatible chat completions)
        self.api_key: Optional[str] = os.getenv("AI_GATEWAY_API_KEY") or None
        self.gateway_url: str = os.getenv("AI_GATEWAY_BASE_URL", DEFAULT_GATEWAY_URL).rstrip("/")
        self.gateway_model: str = os.getenv("AI_GATEWAY_MODEL", DEFAULT_GATEWAY_MODEL)
        self.timeout: float = _number("AI_GATEWAY_TIMEOUT", "30", float)

        # Backend used by the presenter in live mode
        self.api_url: str = os.getenv("SYMPTOM_CHECKER_API_URL", DEFAULT_API_URL)

        # Server
        self.host: str = os.getenv("HOST", "0.0.0.0")
        self.port: int = _number("PORT", "5000", int)
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO")

    def require_api_key(self) -> str:
        if not self.api_key:
            raise ConfigurationError("AI_GATEWAY_API_KEY is not configured")
        return self.api_key


def load_settings() -> Settings:
    load_dotenv()
    return Settings()
