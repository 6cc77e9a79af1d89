from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    DEBUG: bool = False
    APP_DATA_PATH: str = "/tmp"
    LOG_LEVEL: str = "INFO"

    # Remote API
    API_URL: str = "http://localhost:4000"
    API_TIMEOUT_SECONDS: float = 30.0
    API_MAX_RETRIES: int = 3
    API_RETRY_BASE_DELAY: float = 1.0  # seconds, doubled per attempt

    # Stock
    NEAR_EXPIRY_DAYS: int = 30

    # Invoice numbering
    DEFAULT_BRANCH_CODE: str = "GLD"

    @property
    def token_file(self) -> str:
        return f"{self.APP_DATA_PATH.rstrip('/')}/pos_engine_token.json"


settings = Settings()
