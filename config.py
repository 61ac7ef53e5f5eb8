import os
from decimal import Decimal

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv(override=False)

# Application environment
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
DEBUG = ENVIRONMENT == "development"

# Database settings
DATABASE_URL = os.getenv("DATABASE_URL")

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Application settings
APP_NAME = "Crowdlend API"
APP_VERSION = "1.0.0"
PORT = int(os.getenv("PORT", "5000"))

# Comma separated list of origins allowed by CORS
FRONTEND_ORIGIN = os.getenv("FRONTEND_ORIGIN", "http://localhost:5173")
CORS_ALLOW_ORIGINS = [o.strip() for o in FRONTEND_ORIGIN.split(",") if o.strip()]

# Descope settings
DESCOPE_PROJECT_ID = os.getenv("DESCOPE_PROJECT_ID", "")
DESCOPE_MANAGEMENT_KEY = os.getenv("DESCOPE_MANAGEMENT_KEY", "")
DESCOPE_JWT_LEEWAY = int(os.getenv("DESCOPE_JWT_LEEWAY", "60"))  # seconds of clock-skew tolerance
DESCOPE_JWT_LEEWAY_FALLBACK = int(os.getenv("DESCOPE_JWT_LEEWAY_FALLBACK", "120"))

# Redis settings
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

# Wallet settings
DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "PHP")

# Investor defaults used when no investor profile (or no income) is on record
DEFAULT_ANNUAL_INCOME = Decimal(os.getenv("DEFAULT_ANNUAL_INCOME", "1000000"))
DEFAULT_VERIFICATION_STATUS = os.getenv("DEFAULT_VERIFICATION_STATUS", "verified")

# Team settings
TEAM_INVITE_EXPIRY_HOURS = int(os.getenv("TEAM_INVITE_EXPIRY_HOURS", "72"))

# Rate limits
INVESTMENT_SUBMIT_MAX_PER_MINUTE = int(os.getenv("INVESTMENT_SUBMIT_MAX_PER_MINUTE", "10"))
TOPUP_REQUEST_MAX_PER_HOUR = int(os.getenv("TOPUP_REQUEST_MAX_PER_HOUR", "10"))
TICKET_MAX_PER_HOUR = int(os.getenv("TICKET_MAX_PER_HOUR", "5"))
