import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .exceptions import ConfigurationError

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

# Appwrite Configuration
APPWRITE_ENDPOINT = os.getenv("APPWRITE_ENDPOINT", "https://tor.cloud.appwrite.io/v1")
APPWRITE_PROJECT_ID = os.getenv("APPWRITE_PROJECT_ID", "")
APPWRITE_API_KEY = os.getenv("APPWRITE_API_KEY")

# Initial session lookup is the only remote call with a timeout
SESSION_CHECK_TIMEOUT = float(os.getenv("SESSION_CHECK_TIMEOUT", "5"))

# Frontend base URL for verification/recovery/OAuth redirects
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

# Resend Email Configuration (primary provider)
EMAIL_FROM_ADDRESS = os.getenv(
    "EMAIL_FROM_ADDRESS", "ServiceHub <noreply.servicehub@wabanakisoftwaresolutions.com>"
)

# Checkout totals (test mode orders, no payment is taken)
TAX_RATE = float(os.getenv("TAX_RATE", "0.10"))

# Legacy appointments schema limits serviceName to 50 characters
SERVICE_NAME_MAX_LENGTH = 50

DEFAULT_PURCHASES_COLLECTION_ID = "sh-purchases"
DEFAULT_ITEMS_COLLECTION_ID = "sh-items"
DEFAULT_USERS_COLLECTION_ID = "sh-users"
DEFAULT_APPOINTMENTS_COLLECTION_ID = "appointments"


@dataclass(frozen=True)
class DatabaseConfig:
    database_id: str
    purchases_collection_id: str
    items_collection_id: str
    users_collection_id: str
    appointments_collection_id: str


def get_database_config() -> DatabaseConfig:
    """
    Read database/collection IDs from the environment and reject the
    common mix-up of pasting a Collection ID where the Database ID belongs.
    """
    database_id = os.getenv("APPWRITE_DATABASE_ID")
    purchases_id = os.getenv("APPWRITE_PURCHASES_COLLECTION_ID", DEFAULT_PURCHASES_COLLECTION_ID)
    items_id = os.getenv("APPWRITE_ITEMS_COLLECTION_ID", DEFAULT_ITEMS_COLLECTION_ID)
    users_id = os.getenv("APPWRITE_USERS_COLLECTION_ID", DEFAULT_USERS_COLLECTION_ID)
    appointments_id = os.getenv(
        "APPWRITE_APPOINTMENTS_COLLECTION_ID", DEFAULT_APPOINTMENTS_COLLECTION_ID
    )

    if not database_id:
        raise ConfigurationError("Database not configured (APPWRITE_DATABASE_ID)")

    if database_id in (purchases_id, items_id, users_id, appointments_id):
        raise ConfigurationError(
            f"Invalid Database ID: looks like you set a Collection ID ({database_id}). "
            "Set APPWRITE_DATABASE_ID to your Database ID from Appwrite Console → Databases → Settings."
        )
    if database_id in (DEFAULT_PURCHASES_COLLECTION_ID, DEFAULT_ITEMS_COLLECTION_ID):
        raise ConfigurationError(
            "Invalid Database ID: sh-purchases/sh-items are collection IDs. "
            "Set APPWRITE_DATABASE_ID to your Database ID from Appwrite Console → Databases → Settings."
        )

    return DatabaseConfig(
        database_id=database_id,
        purchases_collection_id=purchases_id,
        items_collection_id=items_id,
        users_collection_id=users_id,
        appointments_collection_id=appointments_id,
    )


@dataclass(frozen=True)
class SMTPConfig:
    host: str
    port: int
    username: str
    password: str
    secure: bool
    from_address: str
    use_tls: bool = True


def get_smtp_config() -> Optional[SMTPConfig]:
    """SMTP relay settings, or None when any required variable is missing"""
    host = os.getenv("SMTP_HOST")
    port = os.getenv("SMTP_PORT")
    username = os.getenv("SMTP_USER")
    password = os.getenv("SMTP_PASS")
    if not (host and port and username and password):
        return None

    port_number = int(port)
    secure_env = os.getenv("SMTP_SECURE")
    secure = secure_env.lower() == "true" if secure_env is not None else port_number == 465

    return SMTPConfig(
        host=host,
        port=port_number,
        username=username,
        password=password,
        secure=secure,
        from_address=os.getenv("SMTP_FROM") or os.getenv("EMAIL_FROM_ADDRESS") or EMAIL_FROM_ADDRESS,
        use_tls=os.getenv("SMTP_USE_TLS", "true").lower() == "true",
    )


def get_resend_api_key() -> Optional[str]:
    return os.getenv("RESEND_API_KEY")
