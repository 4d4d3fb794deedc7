# receiptmatic/settings/config.py  (Pydantic v2)
from typing import Optional
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # ---------- Printer pacing ----------
    # One template line is revealed per tick
    PRINT_INTERVAL_MS: int = Field(
        default=200,
        gt=0,
        validation_alias=AliasChoices("PRINT_INTERVAL_MS", "RECEIPTMATIC_PRINT_INTERVAL_MS"),
    )
    # Time a fully printed receipt spends "detaching" before it is complete
    SETTLE_DELAY_MS: int = Field(
        default=800,
        ge=0,
        validation_alias=AliasChoices("SETTLE_DELAY_MS", "RECEIPTMATIC_SETTLE_DELAY_MS"),
    )
    WRAP_WIDTH: int = Field(
        default=30,
        gt=0,
        validation_alias=AliasChoices("WRAP_WIDTH", "RECEIPTMATIC_WRAP_WIDTH"),
    )

    # ---------- Enrichment service ----------
    # Unset = no enrichment block on any receipt
    ENRICH_URL: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("ENRICH_URL", "RECEIPTMATIC_ENRICH_URL"),
    )
    ENRICH_TIMEOUT: float = Field(
        default=10.0,
        gt=0,
        validation_alias=AliasChoices("ENRICH_TIMEOUT", "RECEIPTMATIC_ENRICH_TIMEOUT"),
    )

    # ---------- Timestamp line ----------
    APP_TZ: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("APP_TZ", "RECEIPTMATIC_APP_TZ"),
    )
    TIME_FORMAT: str = Field(
        default="%Y/%m/%d %H:%M:%S",
        validation_alias=AliasChoices("TIME_FORMAT", "RECEIPTMATIC_TIME_FORMAT"),
    )

    LOG_LEVEL: str = Field(
        default="INFO",
        validation_alias=AliasChoices("LOG_LEVEL", "RECEIPTMATIC_LOG_LEVEL"),
    )

    # ---------- pydantic-settings config ----------
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,  # allow lower/upper env names
        extra="ignore",
    )

    @property
    def print_interval(self) -> float:
        return self.PRINT_INTERVAL_MS / 1000.0

    @property
    def settle_delay(self) -> float:
        return self.SETTLE_DELAY_MS / 1000.0


settings = Settings()
