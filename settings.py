from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
    )

    app_title: str = Field("Trip Ledger API", alias="APP_TITLE")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    # used when a trip or a format call does not name a currency
    default_currency: str = Field("USD", alias="DEFAULT_CURRENCY")


settings = Settings()
