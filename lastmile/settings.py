from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Planner tuning knobs, overridable through LASTMILE_* env variables."""

    model_config = SettingsConfigDict(
        env_prefix="LASTMILE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "INFO"

    # Variable-depth search
    candidate_k: int = Field(default=10, ge=1)
    max_iterations: int = Field(default=100, ge=1)
    gain_epsilon: float = Field(default=0.001, ge=0.0)

    # 110 px on the canvas is roughly one km
    default_scale_px_per_km: float = Field(default=110.0, gt=0.0)


settings = Settings()
