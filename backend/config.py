# config.py - environment driven settings
import os
from urllib.parse import quote_plus

from dotenv import load_dotenv

load_dotenv()

# ==================== DATABASE ====================

DB_USER = os.getenv("DB_USER", "telehealth")
DB_PASS = os.getenv("DB_PASS", "telehealth")
DB_HOST = os.getenv("DB_HOST", "localhost")
DB_PORT = os.getenv("DB_PORT", "5432")
DB_NAME = os.getenv("DB_NAME", "telehealth")

DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql://{DB_USER}:{quote_plus(DB_PASS)}@{DB_HOST}:{DB_PORT}/{DB_NAME}",
)

# ==================== AUTH ====================

JWT_SECRET = os.getenv("JWT_SECRET", "your-super-secret-key-change-in-production")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))

# ==================== PROVIDERS ====================

# Every outbound provider call uses this bound
PROVIDER_TIMEOUT_SECONDS = float(os.getenv("PROVIDER_TIMEOUT_SECONDS", "10"))

RAZORPAY_KEY_ID = os.getenv("RAZORPAY_KEY_ID", "rzp_test_xxx")
RAZORPAY_KEY_SECRET = os.getenv("RAZORPAY_KEY_SECRET", "xxx")

HMS_TOKEN = os.getenv("HMS_TOKEN", "")
HMS_TEMPLATE_ID = os.getenv("HMS_TEMPLATE_ID", "")
HMS_API_BASE = os.getenv("HMS_API_BASE", "https://api.100ms.live/v2")
VIDEO_MEETING_HOST = os.getenv("VIDEO_MEETING_HOST", "antarnaa-videoconf-1243.app.100ms.live")

TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID", "")
TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN", "")
TWILIO_FROM = os.getenv("TWILIO_FROM", "")
TWILIO_WHATSAPP_FROM = os.getenv("TWILIO_WHATSAPP_FROM", "")
DEFAULT_COUNTRY_CODE = os.getenv("DEFAULT_COUNTRY_CODE", "+91")


def parse_exponents(raw: str) -> dict:
    """Parse ``"USD:2,EUR:2"`` into ``{"USD": 2, "EUR": 2}``."""
    exponents = {}
    for item in raw.split(","):
        item = item.strip()
        if not item:
            continue
        code, _, exponent = item.partition(":")
        exponents[code.strip().upper()] = int(exponent or 0)
    return exponents


# Currencies whose amounts arrive in major units and must be sent in minor units.
# Anything not listed is passed through unchanged.
MINOR_UNIT_EXPONENTS = parse_exponents(os.getenv("MINOR_UNIT_EXPONENTS", "USD:2"))

# ==================== APP ====================

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:19006,http://localhost:5173").split(",")
    if origin.strip()
]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
