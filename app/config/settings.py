import os
from decimal import Decimal
from dotenv import load_dotenv
from pathlib import Path

# Load .env manually when running outside Docker
if not os.getenv("RUNNING_IN_DOCKER"):
    dotenv_path = Path(__file__).resolve().parents[2] / ".env"
    load_dotenv(dotenv_path=dotenv_path)

# Database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./storefront.db")
SEED_SAMPLE_MENU = os.getenv("SEED_SAMPLE_MENU", "true").lower() in ("1", "true", "yes")

# CORS
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()]
CORS_ALLOW_ALL = os.getenv("CORS_ALLOW_ALL", "false").lower() in ("1", "true", "yes")

# FastAPI / App
BASE_URL = os.getenv("BASE_URL", "")
ENABLE_DOCS = os.getenv("ENABLE_DOCS", "true").lower() in ("1", "true", "yes")

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_DIR = os.getenv("LOG_DIR", str(Path(__file__).resolve().parents[2] / "logs"))

# Pricing API
PRICING_API_BASE_URL = os.getenv("PRICING_API_BASE_URL", "https://mpebb4a821df73b62188.free.beeceptor.com/api")
PRICING_TIMEOUT_SECONDS = float(os.getenv("PRICING_TIMEOUT_SECONDS", 10))

# OTP API
OTP_API_BASE_URL = os.getenv("OTP_API_BASE_URL", "http://localhost:8001/api")
OTP_TIMEOUT_SECONDS = float(os.getenv("OTP_TIMEOUT_SECONDS", 10))
OTP_FALLBACK_CODE = os.getenv("OTP_FALLBACK_CODE", "123456")

# Checkout
CHECKOUT_SUCCESS_CLOSE_DELAY_SECONDS = float(os.getenv("CHECKOUT_SUCCESS_CLOSE_DELAY_SECONDS", 3))
SMALL_ORDER_THRESHOLD = Decimal(os.getenv("SMALL_ORDER_THRESHOLD", "15"))

# Orders
# When set, status webhooks must carry it in the X-Webhook-Secret header
ORDER_WEBHOOK_SECRET = os.getenv("ORDER_WEBHOOK_SECRET", "")

# Sessions (cart + checkout kept in memory per X-Session-Id)
SESSION_MAX_IDLE_SECONDS = float(os.getenv("SESSION_MAX_IDLE_SECONDS", 2 * 60 * 60))
