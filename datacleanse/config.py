from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    PROJECT_NAME: str = "Data Cleansing Engine"

    # In-memory sessions kept before the oldest is evicted
    MAX_SESSIONS: int = 100

    # Rows included in parse/cleanse events
    PREVIEW_ROWS: int = 50

    # Profiling
    DISTRIBUTION_TOP_N: int = 5

    # Export
    JSON_INDENT: int = 2

    LOG_LEVEL: str = "INFO"


settings = Settings()
