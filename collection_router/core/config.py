# collection_router/core/config.py
from typing import Dict, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables (.env file).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    APP_NAME: str = "Collection Route Engine"
    APP_VERSION: str = "0.1.0"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Depot (Bacolod City Hall area)
    DEPOT_ID: str = "DEPOT"
    DEPOT_LAT: float = 10.6762
    DEPOT_LNG: float = 122.9501

    # Graph construction, in raw coordinate units
    CONNECTION_THRESHOLD: float = 20.0
    GRAPH_VALIDITY_S: float = 300.0
    # "time": rebuild only once the validity window elapsed.
    # "content": also rebuild inside the window when the site set changed.
    INVALIDATION_MODE: Literal["time", "content"] = "time"

    SPATIAL_CELL_SIZE: float = 0.01

    SORT_MIN_MERGE: int = 32

    # Site selection score: 1 / (distance + epsilon) + bonus
    SELECTION_EPSILON: float = 0.1
    SELECTION_BASE_BONUS: float = 1.0
    PRIORITY_BOOSTS: Dict[str, float] = {"C1": 2.0}

    # Presentation-side conversions (1 degree ~ 111 km, ~3 min per km)
    KM_PER_UNIT: float = 111.0
    MINUTES_PER_KM: float = 3.0


settings = Settings()
