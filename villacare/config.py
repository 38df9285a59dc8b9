import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()
IS_PRODUCTION = ENVIRONMENT == "production"

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./villacare.db")

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

# Session cookie issued by the sign-in flow
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "villacare_session")
SESSION_MAX_AGE = int(os.getenv("SESSION_MAX_AGE", str(30 * 24 * 60 * 60)))  # 30 days

# Cron endpoints: bearer secret, or the hosting platform's trusted header
CRON_SECRET = os.getenv("CRON_SECRET")
CRON_TRUSTED_HEADER = os.getenv("CRON_TRUSTED_HEADER", "x-vercel-cron")

# Public base URL used in notification action links and magic links
APP_URL = os.getenv("APP_URL", "http://localhost:3000")

# Twilio WhatsApp Configuration
TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID")
TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN")
TWILIO_WHATSAPP_NUMBER = os.getenv("TWILIO_WHATSAPP_NUMBER")  # e.g. whatsapp:+14155238886

# Booking response windows (hours since the booking request was created)
REMINDER_AFTER_HOURS = float(os.getenv("REMINDER_AFTER_HOURS", "1"))
ESCALATE_AFTER_HOURS = float(os.getenv("ESCALATE_AFTER_HOURS", "2"))
AUTO_DECLINE_AFTER_HOURS = float(os.getenv("AUTO_DECLINE_AFTER_HOURS", "6"))

# Cleanup windows
RATE_LIMIT_RETENTION_HOURS = int(os.getenv("RATE_LIMIT_RETENTION_HOURS", "24"))
EXPIRED_ONBOARDING_RETENTION_DAYS = int(os.getenv("EXPIRED_ONBOARDING_RETENTION_DAYS", "7"))

# CORS - comma separated list of allowed origins
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("ALLOWED_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]

# Security headers
SECURITY_HEADERS_ENABLED = os.getenv("SECURITY_HEADERS_ENABLED", "true").lower() == "true"

# ARQ worker
REDIS_URL = os.getenv("REDIS_URL")
