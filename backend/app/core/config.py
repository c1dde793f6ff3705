# core/config.py
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


def _split_csv(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    # ────────────────────────────────
    # 1. APP & ENVIRONMENT
    # ────────────────────────────────
    PROJECT_NAME: str = "KenyaOnABudget Payments"
    ENVIRONMENT: str = Field(default="development")
    DEBUG: bool = Field(default=True)
    PORT: int = Field(default=3000)

    # ────────────────────────────────
    # 2. FRONTEND & CORS
    # ────────────────────────────────
    FRONTEND_URL: str = Field(
        default="https://kenyaonabudgetsafaris.co.uk",
        description="Base URL of the public site, used for checkout redirects"
    )
    ALLOWED_ORIGINS: str = Field(
        default=(
            "http://127.0.0.1:5500,"
            "https://kenyaonabudgetsafaris.co.uk,"
            "http://localhost:5500,"
            "http://localhost:3000"
        ),
        description="Comma-separated CORS allow-list"
    )

    # ────────────────────────────────
    # 3. STRIPE
    # ────────────────────────────────
    STRIPE_SECRET_KEY: str = Field(...)
    STRIPE_WEBHOOK_SECRET: str = Field(...)
    DEFAULT_CURRENCY: str = "gbp"
    SUPPORTED_CURRENCIES: str = "gbp,usd"
    TIP_SUCCESS_URL: Optional[str] = None
    TIP_CANCEL_URL: Optional[str] = None

    # ────────────────────────────────
    # 4. FIREBASE / FIRESTORE
    # ────────────────────────────────
    GOOGLE_APPLICATION_CREDENTIALS: Optional[str] = Field(
        default=None,
        description="Path to Firebase service account JSON"
    )
    FIREBASE_KEY: Optional[str] = Field(
        default=None,
        description="Base64-encoded Firebase service account JSON"
    )

    # ────────────────────────────────
    # 5. EMAIL (Resend)
    # ────────────────────────────────
    RESEND_API_KEY: Optional[str] = None
    EMAIL_SENDER: str = "KenyaOnABudget Safaris <tips@kenyaonabudgetsafaris.co.uk>"
    ADMIN_EMAILS: str = Field(default="", description="Comma-separated admin recipients")
    COMPANY_EMAIL: Optional[str] = None
    COMPANY_NAME: str = "KenyaOnABudget Safaris"

    # ────────────────────────────────
    # 6. KEEP-ALIVE
    # ────────────────────────────────
    COMPANION_APP_URL: Optional[str] = None
    ACTIVITY_APP_URL: Optional[str] = None
    RENDER_EXTERNAL_URL: Optional[str] = None
    SELF_PING_INTERVAL_SECONDS: int = 10 * 60
    COMPANION_PING_INTERVAL_SECONDS: int = 14 * 60

    # ────────────────────────────────
    # 7. UPSTREAM CALLS
    # ────────────────────────────────
    UPSTREAM_TIMEOUT_SECONDS: float = 15.0

    class Config:
        case_sensitive = False
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def allowed_origins(self) -> List[str]:
        return _split_csv(self.ALLOWED_ORIGINS)

    @property
    def admin_emails(self) -> List[str]:
        return _split_csv(self.ADMIN_EMAILS)

    @property
    def supported_currencies(self) -> List[str]:
        return [code.lower() for code in _split_csv(self.SUPPORTED_CURRENCIES)]

    @property
    def self_url(self) -> str:
        return self.RENDER_EXTERNAL_URL or f"http://localhost:{self.PORT}"


# Create singleton
settings = Settings()
