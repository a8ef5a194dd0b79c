from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App environment
    ENVIRONMENT: str = "production"
    LOG_LEVEL: str = "INFO"

    # Server settings
    HOST: str = "0.0.0.0"
    PORT: int = 5000
    BODY_LIMIT_BYTES: int = 10 * 1024

    # Database settings (env names are matched case-insensitively, so the
    # legacy lowercase `mongo_uri` variable is picked up here)
    MONGO_URI: str = "mongodb://localhost:27017/userhub"
    MONGO_DB_NAME: Optional[str] = None
    MONGO_SERVER_SELECTION_TIMEOUT_MS: Optional[int] = None
    MONGO_MAX_POOL_SIZE: Optional[int] = None

    # Upper bound in seconds on how long a caller waits for the database.
    # Unset means wait for the driver to give up on its own.
    CONNECT_TIMEOUT: Optional[float] = None

    # Local directories for static mounts (long-running server only)
    STATIC_ROOT: str = "."

    # Realtime transport (long-running server only)
    REALTIME_ENABLED: bool = True
    REALTIME_PATH: str = "/socket"

    # API docs credentials
    SWAGGER_USERNAME: Optional[str] = None
    SWAGGER_PASSWORD: Optional[str] = None

    # Object storage credentials, read by the upload collaborator
    CLOUD_NAME: str = ""
    CLOUD_API_KEY: str = ""
    CLOUD_API_SECRET: str = ""

    # Lambda / API Gateway
    API_GATEWAY_BASE_PATH: str = ""


settings = Settings()
