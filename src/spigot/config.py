"""Configuration management for Spigot using Pydantic Settings."""

from decimal import Decimal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class FaucetConfig(BaseSettings):
    """Spigot service configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    # Network
    rpc_endpoint: str = Field(alias="SPIGOT_RPC_ENDPOINT")
    network_name: str = Field(default="testnet", alias="SPIGOT_NETWORK_NAME", min_length=1)
    chain_id: int | None = Field(default=None, alias="SPIGOT_CHAIN_ID")
    block_explorer_url: str | None = Field(default=None, alias="SPIGOT_BLOCK_EXPLORER_URL")

    # Wallet
    wallet_private_key: SecretStr | None = Field(default=None, alias="SPIGOT_WALLET_PRIVATE_KEY")
    wallet_private_key_file: str | None = Field(
        default=None, alias="SPIGOT_WALLET_PRIVATE_KEY_FILE"
    )

    # Payout policy
    withdrawal_amount: Decimal = Field(default=Decimal("1"), alias="SPIGOT_WITHDRAWAL_AMOUNT", gt=0)
    cooldown_seconds: int = Field(default=3600, alias="SPIGOT_COOLDOWN_SECONDS", ge=0)
    override_token: SecretStr | None = Field(default=None, alias="SPIGOT_OVERRIDE_TOKEN")
    balance_refresh_seconds: int = Field(
        default=300, alias="SPIGOT_BALANCE_REFRESH_SECONDS", gt=0
    )
    request_timeout_seconds: float = Field(
        default=60.0, alias="SPIGOT_REQUEST_TIMEOUT_SECONDS", gt=0
    )

    # HTTP
    listen_host: str = Field(default="0.0.0.0", alias="SPIGOT_LISTEN_HOST")  # noqa: S104
    listen_port: int = Field(default=8000, alias="SPIGOT_LISTEN_PORT", ge=1, le=65535)
    trusted_proxies: list[str] = Field(default_factory=list, alias="SPIGOT_TRUSTED_PROXIES")
    real_ip_header: str = Field(default="X-Real-IP", alias="SPIGOT_REAL_IP_HEADER")

    # Slack
    slack_bot_token: SecretStr | None = Field(default=None, alias="SLACK_BOT_TOKEN")
    slack_app_token: SecretStr | None = Field(default=None, alias="SLACK_APP_TOKEN")

    # Observability
    metrics_port: int = Field(default=8080, alias="SPIGOT_METRICS_PORT", ge=1, le=65535)
    log_level: str = Field(default="INFO", alias="SPIGOT_LOG_LEVEL")
    log_format: str = Field(default="json", alias="SPIGOT_LOG_FORMAT")

    @property
    def slack_enabled(self) -> bool:
        """Whether both Slack tokens are configured."""
        return self.slack_bot_token is not None and self.slack_app_token is not None
