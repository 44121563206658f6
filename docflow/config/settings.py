from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "docflow"
    db_username: str = "docflow"
    db_password: str = "secret"
    db_pool_max_size: int = 10

    max_job_attempts: int = Field(default=3, ge=1)
    job_poll_interval_seconds: int = 5
    job_timeout_seconds: int = Field(default=300, gt=0)

    files_root: Path = Path("/app/storage")

    render_engine: str = "pymupdf"
    render_dpi: int = 150

    inference_provider: str = "ollama"
    ollama_base_url: str = "http://127.0.0.1:11434"
    ollama_model: str = "qwen3-vl:8b"
    ollama_timeout_seconds: int = Field(default=120, gt=0)
    ollama_max_image_width: int = Field(default=1600, gt=0)
