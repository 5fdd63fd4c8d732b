from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # ── Application ────────────────────────────────────────────────────────────
    app_name: str = "GridPulse Analytics API"
    app_version: str = "0.1.0"
    debug: bool = False

    # ── Authentication ─────────────────────────────────────────────────────────
    api_key: str = "dev-api-key"

    # ── Database ───────────────────────────────────────────────────────────────
    # Only touched when a request asks for persistence or reads stored history
    database_url: str = "postgresql+asyncpg://gridpulse:gridpulse@db:5432/gridpulse"
    db_pool_size: int = 5
    db_max_overflow: int = 10

    # ── Grid defaults ──────────────────────────────────────────────────────────
    # Hour-of-day / day-of-week features are evaluated in the SIN local time
    grid_timezone: str = "America/Bogota"

    # ── Demand forecasting ─────────────────────────────────────────────────────
    # Share of the daily-profile estimator in the ensemble; the trend-seasonal
    # estimator gets the remainder
    ensemble_primary_weight: float = 0.6

    # 20 MB upload limit for demand history files
    max_upload_size_bytes: int = 20 * 1024 * 1024

    # ── Network rules ──────────────────────────────────────────────────────────
    nominal_voltage_kv: float = 220.0
    voltage_tolerance: float = 0.05
    savings_per_mw_usd: float = 50.0

    @field_validator("ensemble_primary_weight")
    @classmethod
    def validate_ensemble_weight(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError("ensemble_primary_weight must be between 0.0 and 1.0")
        return v

    @field_validator("voltage_tolerance")
    @classmethod
    def validate_voltage_tolerance(cls, v: float) -> float:
        if not 0.0 < v < 1.0:
            raise ValueError("voltage_tolerance must be a fraction between 0 and 1")
        return v

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
