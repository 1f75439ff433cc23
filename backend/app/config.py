from pydantic import ConfigDict, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Logging
    log_level: str = "INFO"
    log_format: str = "console"  # console | json

    # Proof artifacts
    max_artifact_bytes: int = 16_384  # 16KB, a P-256 JWS is well under 1KB

    # Rate Limiting
    trust_forwarded_for: bool = False
    rate_limit_nonces: str = "30/minute"
    rate_limit_verifications: str = "30/minute"

    # CORS
    cors_origins: list[str] | str = []

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from comma-separated string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v


settings = Settings()
