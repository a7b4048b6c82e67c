from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from approvalbridge.services.continuations.sequencer import (
    DEFAULT_ACK_TEMPLATE,
    DEFAULT_CONFIRM_TEMPLATE,
)


class TelegramSettings(BaseModel):
    bot_token: SecretStr | None = None
    chat_id: str | None = None
    api_base: str = "https://api.telegram.org"
    request_timeout_s: float = 10.0

    @property
    def configured(self) -> bool:
        return bool(self.bot_token and self.bot_token.get_secret_value() and self.chat_id)


class ApprovalSettings(BaseModel):
    # per-request wait for the operator's decision
    timeout_s: float = 60.0
    # poller
    batch_limit: int = Field(default=100, ge=1, le=100)
    wait_window_s: float = 30.0
    backoff_s: float = 5.0
    # acknowledgment texts; {action} and {actor} are substituted
    ack_template: str = DEFAULT_ACK_TEMPLATE
    confirm_template: str = DEFAULT_CONFIRM_TEMPLATE


class BillingSettings(BaseModel):
    lookup_url: str = (
        "https://caribesol.facture.co/DesktopModules/Gateway.Pago.ConsultaAnonima"
        "/API/ConsultaAnonima/getPolizaOpen"
    )
    timeout_s: float = 15.0
    user_agent: str = "Mozilla/5.0"


class SiteSettings(BaseModel):
    static_dir: str | None = None
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    timezone: str = "America/Bogota"
    notify_visitors: bool = True


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    json_logs: bool = False
    file_logs: bool = False
    log_dir: str = "./logs"


class AppSettings(BaseSettings):
    """
    Process configuration.

    Environment variables use the APPROVALBRIDGE_ prefix and `__` for nesting,
    e.g. APPROVALBRIDGE_TELEGRAM__BOT_TOKEN, APPROVALBRIDGE_APPROVAL__TIMEOUT_S.
    """

    model_config = SettingsConfigDict(
        env_prefix="APPROVALBRIDGE_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    host: str = "0.0.0.0"
    port: int = 3000

    telegram: TelegramSettings = TelegramSettings()
    approval: ApprovalSettings = ApprovalSettings()
    billing: BillingSettings = BillingSettings()
    site: SiteSettings = SiteSettings()
    logging: LoggingSettings = LoggingSettings()
