from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Movement metrics
    speed_threshold_kmh: float = Field(default=80.0, gt=0)  # same cap for every species

    # Habitat clustering
    cluster_count: int = Field(default=3, ge=1)
    cluster_restarts: int = Field(default=10, ge=1)
    cluster_seed: int = 42
    cluster_max_iter: int = Field(default=300, ge=1)
    cluster_init: Literal["k-means++", "random"] = "k-means++"

    # Forecasting
    forecast_horizon_hours: int = Field(default=24, ge=1)
    min_history_points: int = Field(default=12, ge=2)
    forecast_max_p: int = Field(default=5, ge=0)
    forecast_max_q: int = Field(default=5, ge=0)
    forecast_max_order: int = Field(default=5, ge=0)  # cap on p + q
    forecast_max_d: int = Field(default=2, ge=0, le=2)
    forecast_fill_gaps: bool = True

    # Outputs
    database_url: str = "sqlite:///./wildlife.db"
    output_dir: str = "./results"

    model_config = SettingsConfigDict(
        env_prefix="WILDLIFE_",
        env_file=".env",
        env_file_encoding="utf-8",
    )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
