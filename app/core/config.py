import os
from pathlib import Path
from dotenv import load_dotenv
import logging

logger = logging.getLogger(__name__)

# Locate the .env file at the project root
env_path = Path(__file__).parent.parent.parent / '.env'
if env_path.exists():
    logger.info(f"Loading environment variables from: {env_path}")
    # Variables already set in the process win over the file
    load_dotenv(dotenv_path=env_path, override=False)
else:
    logger.warning(f".env file not found at: {env_path}")

# Basic settings
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    logger.warning("SECRET_KEY is not set, falling back to an insecure development key")
    SECRET_KEY = "dev-secret-key-change-me"
API_PREFIX = os.getenv("API_PREFIX", "/api")
DEBUG = os.getenv("DEBUG", "False").lower() == "true"
CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()]

# Database settings
DB_HOST = os.getenv("DB_HOST", "localhost")
DB_PORT = os.getenv("DB_PORT", "3306")
DB_NAME = os.getenv("DB_NAME", "courier_console")
DB_USER = os.getenv("DB_USER", "courier")
DB_PASSWORD = os.getenv("DB_PASSWORD", "courier")
DATABASE_URL = os.getenv("DATABASE_URL", f"mysql+pymysql://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}")

# Redis settings
REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = os.getenv("REDIS_PORT", "6379")
REDIS_DB = os.getenv("REDIS_DB", "0")
REDIS_PASSWORD = os.getenv("REDIS_PASSWORD", "")
REDIS_URL = os.getenv("REDIS_URL", f"redis://:{REDIS_PASSWORD}@{REDIS_HOST}:{REDIS_PORT}/{REDIS_DB}")

# JWT settings
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

# Subscription and billing settings
TRIAL_PERIOD_DAYS = int(os.getenv("TRIAL_PERIOD_DAYS", "14"))
DEFAULT_COMMISSION_RATE = float(os.getenv("DEFAULT_COMMISSION_RATE", "5.00"))
# Seed prices for the plan catalogue; live prices come from the subscription_plans table
DEFAULT_PLAN_PRICES = {
    "starter": 299,
    "professional": 999,
    "enterprise": 2999,
}
