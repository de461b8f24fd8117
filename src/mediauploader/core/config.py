"""Configuration management for the media uploader."""

from dataclasses import dataclass

from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class UploaderConfig:
    """Immutable configuration snapshot used by a single upload session."""

    api_base_url: str
    cloud_name: str
    api_key: str
    chunk_size: int
    upload_timeout_seconds: float | None
    connect_timeout_seconds: float
    transport_max_attempts: int
    user_agent: str


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
    )

    ENV: str = "local"
    SERVICE_NAME: str = "mediauploader"
    SERVICE_VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"

    # Asset service
    API_BASE_URL: str = "https://api.cloudinary.com"
    CLOUD_NAME: str = ""
    API_KEY: str = ""

    # Upload Constraints
    CHUNK_SIZE: int = 20_000_000  # bytes per chunk for large uploads
    UPLOAD_TIMEOUT_SECONDS: float | None = 60.0  # None = no default deadline

    # Transport
    CONNECT_TIMEOUT_SECONDS: float = 10.0
    TRANSPORT_MAX_ATTEMPTS: int = 1  # connection attempts per request, 1 = no retry

    @property
    def user_agent(self) -> str:
        """Build the User-Agent header value."""
        return f"{self.SERVICE_NAME}/{self.SERVICE_VERSION}"

    def snapshot(self) -> UploaderConfig:
        """Freeze the current settings for one upload session."""
        if self.CHUNK_SIZE <= 0:
            raise ValueError("CHUNK_SIZE must be positive")

        return UploaderConfig(
            api_base_url=self.API_BASE_URL.rstrip("/"),
            cloud_name=self.CLOUD_NAME,
            api_key=self.API_KEY,
            chunk_size=self.CHUNK_SIZE,
            upload_timeout_seconds=self.UPLOAD_TIMEOUT_SECONDS,
            connect_timeout_seconds=self.CONNECT_TIMEOUT_SECONDS,
            transport_max_attempts=max(1, self.TRANSPORT_MAX_ATTEMPTS),
            user_agent=self.user_agent,
        )


# Singleton settings instance
settings = Settings()
