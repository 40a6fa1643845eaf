import logging
import os
from dotenv import load_dotenv

# Logging
logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")

# Environment variables
load_dotenv(dotenv_path=".env", encoding="utf-8")

# Silence SQLAlchemy engine logs
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def _as_bool(value: str) -> bool:
    return str(value).strip().lower() in ("1", "true", "yes", "on")


class Configuration:
    def __init__(self):

        # Urls
        self.app_base_url = os.getenv("APP_BASE_URL", "http://localhost:3000")
        self.api_url = os.getenv("API_URL", "http://localhost:3001")
        self.cors_origins = [
            origin.strip()
            for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:3002").split(",")
            if origin.strip()
        ]

        # Environment
        self.environment = os.getenv("ENVIRONMENT", "development").lower()
        self.scheduler_enabled = _as_bool(os.getenv("SCHEDULER_ENABLED", "true"))

        # Auth
        self.secret_key = os.getenv("SECRET_KEY", "supersecretjwtkey")
        self.jwt_expiration_hours = int(os.getenv("JWT_EXPIRATION_HOURS", 24 * 7))
        self.auth_cookie_secure = _as_bool(os.getenv("AUTH_COOKIE_SECURE", "false")) or self.environment == "production"

        # Email
        self.email_user = os.getenv("EMAIL_USER")
        self.email_password = os.getenv("EMAIL_PASSWORD")
        self.smtp_host = os.getenv("SMTP_HOST", "smtp-relay.brevo.com")
        self.smtp_port = int(os.getenv("SMTP_PORT", 587))

        # Database
        self.database_url = os.getenv("DATABASE_URL")

        # POSTGRES PRODUCTION
        self.db_user = os.getenv("DB_USER")
        self.db_password = os.getenv("DB_PASSWORD")
        self.db_host = os.getenv("DB_HOST")
        self.db_port = os.getenv("DB_PORT", "5432")
        self.db_name = os.getenv("DB_NAME")

        # POSTGRES
        self.db_dev_user = os.getenv("DB_DEV_USER")
        self.db_dev_password = os.getenv("DB_DEV_PASSWORD")
        self.db_dev_host = os.getenv("DB_DEV_HOST")
        self.db_dev_port = os.getenv("DB_DEV_PORT", "5432")
        self.db_dev_name = os.getenv("DB_DEV_NAME")

        # Geoapify
        self.geoapify_api_key = (os.getenv("GEOAPIFY_API_KEY") or "").strip()

        # Mercado Pago
        self.mercado_pago_access_token_test = os.getenv("MERCADO_PAGO_ACCESS_TOKEN_TEST")
        self.mercado_pago_access_token_prod = os.getenv("MERCADO_PAGO_ACCESS_TOKEN_PROD")

        # Orders
        self.pending_order_timeout_hours = int(os.getenv("PENDING_ORDER_TIMEOUT_HOURS", 24))

    def get_database_url(self) -> str:
        if self.database_url:
            return self.database_url
        if self.environment == "production":
            return self.connect_to_postgresql()
        return self.connect_to_postgresql_dev()

    def connect_to_postgresql(self):
        db_url = f"postgresql://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"
        logging.info(f"DATABASE >>> Production database selected -> {self.db_host}:{self.db_port}/{self.db_name}")
        return db_url

    def connect_to_postgresql_dev(self):
        db_url = f"postgresql://{self.db_dev_user}:{self.db_dev_password}@{self.db_dev_host}:{self.db_dev_port}/{self.db_dev_name}"
        logging.info(f"DATABASE >>> Development database selected -> {self.db_dev_host}:{self.db_dev_port}/{self.db_dev_name}")
        return db_url
