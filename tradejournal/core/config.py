from pathlib import Path
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Locate the nearest .env starting from this file's directory
def find_env_file() -> Path | None:
    current = Path(__file__).resolve()
    for parent in current.parents:
        env_file = parent / ".env"
        if env_file.exists():
            return env_file
    return None


ENV_FILE = find_env_file()
BASE_DIR = ENV_FILE.parent if ENV_FILE else Path(__file__).resolve().parents[2]


class Settings(BaseSettings):
    APP_NAME: str = "Trade Journal API"

    # Storage: sqlite (aiosqlite) or mysql (aiomysql)
    DB_TYPE: str = "sqlite"
    DATABASE_URL: str = "sqlite+aiosqlite:///./tradejournal.db"
    DB_ECHO: bool = False

    # Identity. Tokens are issued by the external auth provider; we only verify them.
    AUTH_ENABLED: bool = False
    JWT_SECRET_KEY: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: str | None = None
    DEFAULT_USER_ID: str = "local-user"

    LOG_LEVEL: str = "INFO"
    # Optional journal log file, rotated at midnight
    LOG_FILE: str | None = None
    LOG_BACKUP_DAYS: int = 7
    CORS_ORIGINS: list[str] = ["*"]

    # LLM providers for the mentor (OpenAI first, DeepSeek as fallback)
    OPENAI_API_KEY: str | None = None
    OPENAI_API_BASE: str | None = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    OPENAI_MAX_TOKENS: int = 800
    OPENAI_TIMEOUT_SECONDS: int = 30

    DEEPSEEK_ENABLED: bool = False
    DEEPSEEK_API_KEY: str | None = None
    DEEPSEEK_API_BASE: str = "https://api.deepseek.com"
    DEEPSEEK_MODEL: str = "deepseek-chat"
    DEEPSEEK_TIMEOUT_SECONDS: int = 60

    AI_PROVIDERS: list[str] | str = ["openai", "deepseek"]
    AI_PREFERRED_PROVIDER: str | None = None

    # Mentor context sizes
    MENTOR_HISTORY_LIMIT: int = 6
    MENTOR_RECENT_TRADES: int = 10
    MENTOR_LANGUAGE: str = "English"

    # Risk card: warning zone as a fraction of the drawdown amount
    RISK_WARNING_RATIO: float = 0.25
    # Trade count chart window when no date range is given
    TRADE_COUNT_WINDOW_DAYS: int = 30
    # Longest date range a dashboard or report request may cover
    MAX_RANGE_DAYS: int = 3660

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE) if ENV_FILE else ".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def _resolve_sqlite_path(cls, value: str) -> str:
        # Relative sqlite paths are anchored at the project root, not the cwd
        prefix = "sqlite+aiosqlite:///./"
        if isinstance(value, str) and value.startswith(prefix):
            return f"sqlite+aiosqlite:///{BASE_DIR / value[len(prefix):]}"
        return value


settings = Settings()
