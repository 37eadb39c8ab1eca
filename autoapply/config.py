"""Auto-apply configuration — loaded from environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_prefix": "AUTOAPPLY_", "env_file": ".env"}

    # Text-generation collaborator
    anthropic_api_key: str = ""
    xai_api_key: str = ""
    generation_backend: str = "claude"
    generation_model: str = ""
    generation_concurrency: int = 3
    generation_timeout: float = 90.0

    # Resolution
    confidence_floor: float = 0.6
    previous_application_limit: int = 5
    min_extraction_confidence: float = 0.5
    weight_document_confidence: bool = False

    # Server
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000


settings = Settings()
