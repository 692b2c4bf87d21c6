import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

# --- Provider constants ---
CHAT_MODEL = "gemini-2.5-flash"
IMAGE_MODEL = "imagen-3.0-generate-002"
TTS_MODEL = "gemini-2.5-flash-preview-tts"
TTS_VOICE = "Charon"

DEFAULT_API_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_PORT = 3000
DEFAULT_TIMEOUT = 60.0

# Requests may carry base64 encoded images/videos
MAX_BODY_BYTES = 50 * 1024 * 1024

DEFAULT_DEV_ORIGINS = (
    "http://127.0.0.1:5501",
    "http://localhost:3000",
    "http://localhost:5500",  # VS Code Live Server
)
# Any Vercel deployment
VERCEL_ORIGIN_REGEX = r"https?://.*\.vercel\.app"


class ConfigError(RuntimeError):
    pass


class Settings(BaseModel):
    """Process-wide configuration, built once at startup."""

    model_config = ConfigDict(frozen=True)

    gemini_api_key: str
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    frontend_url: str | None = None
    dev_origins: tuple[str, ...] = DEFAULT_DEV_ORIGINS
    provider_timeout: float = DEFAULT_TIMEOUT
    api_base_url: str = DEFAULT_API_BASE_URL
    log_level: str = "INFO"

    @property
    def allowed_origins(self) -> list[str]:
        origins = list(self.dev_origins)
        if self.frontend_url:
            origins.append(self.frontend_url)
        return origins

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()

        # Fall back to the key name used by the Vite frontend
        api_key = os.getenv("GEMINI_API_KEY") or os.getenv("VITE_GEMINI_API_KEY")
        if not api_key:
            raise ConfigError("GEMINI_API_KEY is not set in environment variables (.env file).")

        dev_origins = os.getenv("DEV_ORIGINS")
        return cls(
            gemini_api_key=api_key,
            host=os.getenv("HOST", "0.0.0.0"),
            port=_number_from_env("PORT", DEFAULT_PORT, int),
            frontend_url=os.getenv("FRONTEND_URL") or None,
            dev_origins=(
                tuple(o.strip() for o in dev_origins.split(",") if o.strip())
                if dev_origins is not None
                else DEFAULT_DEV_ORIGINS
            ),
            provider_timeout=_number_from_env("PROVIDER_TIMEOUT", DEFAULT_TIMEOUT, float),
            api_base_url=os.getenv("GEMINI_API_BASE_URL", DEFAULT_API_BASE_URL).rstrip("/"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


def _number_from_env(name, default, cast):
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")
