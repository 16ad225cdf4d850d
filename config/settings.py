"""
Application settings
"""
from pydantic_settings import BaseSettings
from typing import List, Optional
from dotenv import load_dotenv

load_dotenv(encoding='utf-8')


class Settings(BaseSettings):
    """Application settings"""

    # Database
    database_url: str = "sqlite:///./data/odontoforense.db"

    # Generative text endpoint
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"
    gemini_api_base: str = "https://generativelanguage.googleapis.com/v1beta"
    # None disables the HTTP timeout; a hung call stalls its request
    gemini_timeout_seconds: Optional[float] = None

    # Retry policy
    generation_max_attempts: int = 3
    generation_initial_delay: float = 1.0
    generation_backoff_factor: float = 2.0

    # Auth
    jwt_secret_key: str = "dev-secret-change-me"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 120

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Blob storage
    blob_chunk_size: int = 255 * 1024
    max_file_size_mb: int = 10

    # Report compatibility mode
    sign_regenerates_content: bool = True
    retain_superseded_blobs: bool = True

    # Logging
    log_level: str = "INFO"
    log_file_path: str = "./logs/app.log"

    # Environment
    environment: str = "development"

    # CORS
    cors_origins: str = "http://localhost:3000,http://localhost:5173"

    @property
    def cors_origins_list(self) -> List[str]:
        """CORS origins as a list"""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


settings = Settings()
