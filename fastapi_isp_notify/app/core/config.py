from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = Field(default="ISP Notify API", alias="APP_NAME")
    app_env: str = Field(default="local", alias="APP_ENV")
    debug: bool = Field(default=True, alias="DEBUG")

    database_url: str = Field(default="sqlite:///./data/billing.db", alias="DATABASE_URL")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_dir: str | None = Field(default="logs", alias="LOG_DIR")
    timezone: str = Field(default="Asia/Jakarta", alias="TIMEZONE")
    admin_api_token: str | None = Field(default=None, alias="ADMIN_API_TOKEN")

    whatsapp_provider: str = Field(default="none", alias="WHATSAPP_PROVIDER")
    whatsapp_meta_base_url: str = Field(
        default="https://graph.facebook.com/v18.0",
        alias="WHATSAPP_META_BASE_URL",
    )
    whatsapp_meta_api_key: str | None = Field(default=None, alias="WHATSAPP_META_API_KEY")
    whatsapp_meta_phone_number_id: str | None = Field(
        default=None,
        alias="WHATSAPP_META_PHONE_NUMBER_ID",
    )
    whatsapp_gateway_url: str | None = Field(default=None, alias="WHATSAPP_GATEWAY_URL")
    whatsapp_gateway_api_key: str | None = Field(default=None, alias="WHATSAPP_GATEWAY_API_KEY")
    whatsapp_http_timeout: float = Field(default=20.0, alias="WHATSAPP_HTTP_TIMEOUT")

    scheduler_enabled: bool = Field(default=True, alias="SCHEDULER_ENABLED")
    pppoe_monitor_enabled: bool = Field(default=True, alias="PPPOE_MONITOR_ENABLED")

    model_config = SettingsConfigDict(
        env_file=(".env", ),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        valid = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}
        upper = value.upper()
        if upper not in valid:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(sorted(valid))}")
        return upper

    @field_validator("whatsapp_provider")
    @classmethod
    def normalize_provider(cls, value: str) -> str:
        provider = (value or "none").strip().lower()
        if provider not in {"meta", "gateway", "none"}:
            raise ValueError("WHATSAPP_PROVIDER must be one of meta, gateway, none")
        return provider


settings = Settings()
