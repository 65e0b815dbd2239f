import os
from dataclasses import dataclass, field

import structlog
from dotenv import load_dotenv

logger = structlog.get_logger(__name__)

MERCADO_PAGO_API_URL = "https://api.mercadopago.com"


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _default_database_url() -> str:
    db_user = os.getenv("POSTGRES_USER", "postgres")
    db_password = os.getenv("POSTGRES_PASSWORD", "postgres")
    db_host = os.getenv("POSTGRES_HOST", "localhost")  # In Docker, this will be 'postgres'
    db_port = os.getenv("POSTGRES_PORT", "5432")
    db_name = os.getenv("POSTGRES_DB", "storefront")
    return f"postgresql+asyncpg://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}"


def _tail(secret: str | None) -> str:
    return secret[-5:] if secret else "N/A"


@dataclass
class Settings:
    mercado_pago_access_token: str = ""
    app_base_url: str = "http://localhost:8000"
    app_env: str = "development"
    database_url: str = field(default_factory=_default_database_url)
    db_echo: bool = False
    db_create_tables: bool = True
    mercado_pago_api_url: str = MERCADO_PAGO_API_URL
    payment_timeout_seconds: float = 10.0
    placeholder_image_url: str | None = None
    service_name: str = "storefront"
    metrics_enabled: bool = True
    otlp_endpoint: str | None = None

    def __post_init__(self):
        self.app_base_url = self.app_base_url.rstrip("/")
        if not self.placeholder_image_url:
            self.placeholder_image_url = f"{self.app_base_url}/images/placeholder.png"

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"

    @property
    def success_url(self) -> str:
        return f"{self.app_base_url}/success"

    @property
    def failure_url(self) -> str:
        return f"{self.app_base_url}/failure"

    @property
    def pending_url(self) -> str:
        return f"{self.app_base_url}/pending"

    @property
    def notification_url(self) -> str:
        return f"{self.app_base_url}/webhook"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment (and a local .env file)."""
        load_dotenv()
        return cls(
            mercado_pago_access_token=os.getenv("MERCADO_PAGO_ACCESS_TOKEN", ""),
            app_base_url=os.getenv("APP_BASE_URL", "http://localhost:8000"),
            app_env=os.getenv("APP_ENV", "development"),
            database_url=os.getenv("DATABASE_URL") or _default_database_url(),
            db_echo=_env_flag("DB_ECHO", False),
            db_create_tables=_env_flag("DB_CREATE_TABLES", True),
            mercado_pago_api_url=os.getenv("MERCADO_PAGO_API_URL", MERCADO_PAGO_API_URL),
            payment_timeout_seconds=float(os.getenv("PAYMENT_TIMEOUT_SECONDS", "10")),
            placeholder_image_url=os.getenv("PLACEHOLDER_IMAGE_URL") or None,
            service_name=os.getenv("SERVICE_NAME", "storefront"),
            metrics_enabled=_env_flag("METRICS_ENABLED", True),
            otlp_endpoint=os.getenv("OTLP_ENDPOINT") or None,
        )

    def log_summary(self) -> None:
        """Surface misconfiguration loudly at startup without crashing the app."""
        if not self.mercado_pago_access_token:
            logger.critical("config.missing", key="MERCADO_PAGO_ACCESS_TOKEN")
        if not os.getenv("APP_BASE_URL"):
            logger.warning(
                "config.missing",
                key="APP_BASE_URL",
                fallback=self.app_base_url,
                impact="back_urls and notification_url point at the fallback",
            )
        logger.info(
            "config.loaded",
            app_env=self.app_env,
            app_base_url=self.app_base_url,
            mp_token_tail=_tail(self.mercado_pago_access_token),
        )
