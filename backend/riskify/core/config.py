from pydantic_settings import BaseSettings
from typing import List, Dict, Any
import json


def parse_cors_origins(v: Any) -> List[str]:
    """Parse CORS origins from string or list"""
    if isinstance(v, list):
        return v
    if isinstance(v, str):
        # Try JSON parsing first
        if v.startswith('['):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                pass
        # Fall back to comma-separated
        return [origin.strip() for origin in v.split(',') if origin.strip()]
    return []


def parse_credit_package(v: str) -> Dict[str, Any]:
    """Parse credit package from format: credits,price_in_cents,name[,kind]"""
    if not v:
        return {}
    parts = v.split(',')
    if len(parts) >= 3:
        return {
            "credits": int(parts[0].strip()),
            "price": int(parts[1].strip()),
            "name": parts[2].strip(),
            "kind": parts[3].strip() if len(parts) > 3 else "addon"
        }
    return {}


class Settings(BaseSettings):
    """Application settings - all configurable via environment variables"""

    # ==========================================
    # Application
    # ==========================================
    APP_NAME: str = "Riskify"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    SECRET_KEY: str
    API_PREFIX: str = "/api"

    # Server Configuration
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 8000

    # ==========================================
    # Database
    # ==========================================
    DATABASE_URL: str
    DB_ECHO: bool = False

    # ==========================================
    # Authentication
    # ==========================================
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440  # 24 hours
    BCRYPT_ROUNDS: int = 12  # 4 for dev (fast), 12 for prod (secure)
    SESSION_COOKIE_NAME: str = "access_token"
    SESSION_COOKIE_SECURE: bool = False

    # ==========================================
    # Frontend
    # ==========================================
    FRONTEND_URL: str = "http://localhost:5173"

    # ==========================================
    # Razorpay
    # ==========================================
    RAZORPAY_KEY_ID: str = ""
    RAZORPAY_KEY_SECRET: str = ""
    RAZORPAY_WEBHOOK_SECRET: str = ""
    PAYMENT_CURRENCY: str = "AUD"

    # ==========================================
    # CORS (stored as comma-separated string, parsed to list)
    # ==========================================
    CORS_ORIGINS_STR: str = "http://localhost:5173,http://localhost:3000,http://127.0.0.1:5173,http://127.0.0.1:3000"

    @property
    def CORS_ORIGINS(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        return parse_cors_origins(self.CORS_ORIGINS_STR)

    # ==========================================
    # Rate Limiting
    # ==========================================
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_PER_MINUTE: int = 60
    RATE_LIMIT_STORAGE_URI: str = "memory://"

    # ==========================================
    # Request limits
    # ==========================================
    MAX_REQUEST_SIZE: int = 10485760  # 10MB, MSDS attachments travel as base64

    # ==========================================
    # Logging
    # ==========================================
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""

    # ==========================================
    # Credit System Configuration
    # ==========================================
    SWMS_CREDIT_COST: int = 1
    SIGNUP_BONUS_CREDITS: int = 0
    RECYCLE_BIN_RETENTION_DAYS: int = 30

    # Subscriptions refill every SUBSCRIPTION_RESET_DAYS until the term ends
    SUBSCRIPTION_TERM_DAYS: int = 365
    SUBSCRIPTION_RESET_DAYS: int = 30

    # Credit Packages (format: credits,price_in_cents,name,kind)
    CREDIT_PACKAGE_SINGLE: str = "1,1500,Single SWMS,addon"
    CREDIT_PACKAGE_PACK: str = "5,6000,SWMS Pack,addon"

    # Subscription Plans (format: monthly_credits,price_in_cents,name,kind)
    SUBSCRIPTION_PLAN_PRO: str = "10,5000,Pro,subscription"
    SUBSCRIPTION_PLAN_ENTERPRISE: str = "25,10000,Enterprise,subscription"

    # ==========================================
    # PDF Rendering
    # ==========================================
    PDF_DEFAULT_THEME: str = "modern"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env that aren't defined in Settings

    # ==========================================
    # Helper Methods for Credit Configuration
    # ==========================================
    def get_credit_packages(self) -> Dict[str, Dict[str, Any]]:
        """Get one-off credit packages and subscription plans as a dictionary"""
        return {
            "single": parse_credit_package(self.CREDIT_PACKAGE_SINGLE),
            "pack": parse_credit_package(self.CREDIT_PACKAGE_PACK),
            "pro": parse_credit_package(self.SUBSCRIPTION_PLAN_PRO),
            "enterprise": parse_credit_package(self.SUBSCRIPTION_PLAN_ENTERPRISE),
        }

    def get_subscription_allowance(self, plan: str) -> int:
        """Monthly subscription credits for a plan name, 0 when unknown"""
        package = self.get_credit_packages().get(plan) or {}
        if package.get("kind") != "subscription":
            return 0
        return package["credits"]

    def get_check_in_url(self, document_id: str, token: str) -> str:
        """Public URL encoded in a document's check-in QR code"""
        return f"{self.FRONTEND_URL.rstrip('/')}/check-in/{document_id}?token={token}"

    def is_dev_mode(self) -> bool:
        """Check if running in development mode"""
        return self.ENVIRONMENT == "development" or self.DEBUG


# Create settings instance
settings = Settings()
