import os
from typing import Optional
from urllib.parse import quote_plus

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

# Collection names are fixed; only credentials and the database come from the environment
TIME_COLLECTION = "StartTime"
MONEY_COLLECTION = "MoneyRaised"

DEFAULT_CLUSTER_DOMAIN = "w25bq.mongodb.net"
DEFAULT_PORT = 3000


class ConfigurationError(Exception):
    """Raised when the database connection settings are incomplete."""


class Settings(BaseModel):
    """Immutable service settings, built once at startup."""

    model_config = ConfigDict(frozen=True)

    user_name: Optional[str] = None
    user_password: Optional[str] = None
    cluster_name: Optional[str] = None
    cluster_domain: str = DEFAULT_CLUSTER_DOMAIN
    db_name: Optional[str] = None
    database_url: Optional[str] = None
    port: int = DEFAULT_PORT
    log_level: str = "INFO"
    time_collection: str = TIME_COLLECTION
    money_collection: str = MONEY_COLLECTION

    @property
    def is_configured(self) -> bool:
        if not self.db_name:
            return False
        if self.database_url:
            return True
        return bool(self.user_name and self.user_password and self.cluster_name)

    def connection_string(self) -> str:
        """Build the MongoDB connection string

        DATABASE_URL wins when set; otherwise an Atlas SRV string is assembled
        from the user, password and cluster name.
        """
        if self.database_url:
            return self.database_url
        if not (self.user_name and self.user_password and self.cluster_name):
            raise ConfigurationError(
                "Database not configured. Check USER_NAME, USER_PASSWORD and CLUSTER_NAME environment variables."
            )
        return (
            f"mongodb+srv://{quote_plus(self.user_name)}:{quote_plus(self.user_password)}"
            f"@{self.cluster_name}.{self.cluster_domain}/"
            f"?retryWrites=true&w=majority&appName={self.cluster_name}"
        )


def load_settings() -> Settings:
    """Read settings from the environment (and a .env file if present)"""
    load_dotenv()

    return Settings(
        user_name=os.getenv("USER_NAME"),
        user_password=os.getenv("USER_PASSWORD"),
        cluster_name=os.getenv("CLUSTER_NAME"),
        cluster_domain=os.getenv("CLUSTER_DOMAIN") or DEFAULT_CLUSTER_DOMAIN,
        db_name=os.getenv("DB_NAME"),
        database_url=os.getenv("DATABASE_URL"),
        port=int(os.getenv("PORT", DEFAULT_PORT)),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
