from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PATH = Path(__file__).resolve().parent.parent / ".env.local"


class Settings(BaseSettings):
    # Environment settings
    environment: str = "development"
    debug: bool = False
    LOG_LEVEL: str = "INFO"

    # Redis settings (VIP registry + behavior persistence)
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_MAX_CONNECTIONS: int = 20
    REDIS_KEY_PREFIX: str = "priority"
    VIP_REGISTRY_TTL_S: int | None = None

    # Bearer token verification
    AUTH_JWKS_URL: str | None = None
    AUTH_AUDIENCE: str = "authenticated"
    AUTH_ALGORITHMS: list[str] = ["ES256", "RS256"]

    # =================================================================
    # PRIORITY ENGINE SETTINGS
    # =================================================================
    PRIORITY_RULES_PATH: str | None = None  # YAML overrides for scoring tables
    DIGEST_TIMEZONE: str = "UTC"  # "local time" for digest day boundaries

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def rules_path(self) -> Path | None:
        if not self.PRIORITY_RULES_PATH:
            return None
        return Path(self.PRIORITY_RULES_PATH).expanduser()

    def redis_key(self, *parts: str) -> str:
        """Build a namespaced Redis key, e.g. priority:vip_contacts:user-1."""
        return ":".join([self.REDIS_KEY_PREFIX, *parts])


settings = Settings()
