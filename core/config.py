# core/config.py

from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    # -------------------------------------------------
    # General
    # -------------------------------------------------
    PROJECT_NAME: str = "Asine Admin API"
    ENV: str = "development"

    # -------------------------------------------------
    # Frontend Domains
    # -------------------------------------------------
    CLOUDFLARE_PAGES_DOMAIN: Optional[str] = None

    ADMIN_CONSOLE_DOMAINS: List[str] = [
        "https://admin.asine.app",
        "http://localhost:5173",
        "http://localhost:5174",
    ]

    # Checkout success / cancel redirects land here
    SITE_URL: str = Field("http://localhost:5174", description="Subscription page URL")

    # Verification links: {BASE_URL}/verify?token=...
    # Unset -> derived from the Stripe key mode (see verification_base_url)
    BASE_URL: Optional[str] = None

    # -------------------------------------------------
    # CORS (auto-built below)
    # -------------------------------------------------
    BACKEND_CORS_ORIGINS: List[str] = []

    # -------------------------------------------------
    # Supabase (Identity Provider + Profile Store)
    # -------------------------------------------------
    SUPABASE_URL: Optional[str] = None
    SUPABASE_ANON_KEY: Optional[str] = None
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = None

    # -------------------------------------------------
    # Stripe Payment Processing
    # -------------------------------------------------
    STRIPE_SECRET_KEY: Optional[str] = None
    STRIPE_WEBHOOK_SECRET: Optional[str] = None
    STRIPE_MONTHLY_PRICE_ID: Optional[str] = Field(None, description="Overrides the built-in monthly price")
    STRIPE_YEARLY_PRICE_ID: Optional[str] = Field(None, description="Overrides the built-in yearly price")

    # -------------------------------------------------
    # Mailgun (Transactional Email)
    # -------------------------------------------------
    MAILGUN_DOMAIN: str = "mg.asine.app"
    MAILGUN_API_KEY: Optional[str] = None
    MAILGUN_REGION: str = Field("us", description="'us' or 'eu'")
    EMAIL_FROM_NAME: str = "Asine Admin"

    # -------------------------------------------------
    # Account provisioning
    # -------------------------------------------------
    PROFILE_RETRY_ATTEMPTS: int = Field(3, description="Profile update attempts before falling back to insert")
    PROFILE_RETRY_DELAY_SECONDS: float = Field(0.2, description="Fixed delay between profile update attempts")

    # -------------------------------------------------
    # Email verification
    # -------------------------------------------------
    VERIFICATION_TOKEN_TTL_HOURS: int = 24
    ENFORCE_VERIFICATION_EXPIRY: bool = True

    # -------------------------------------------------
    # Model Config
    # -------------------------------------------------
    class Config:
        case_sensitive = True

    @property
    def stripe_test_mode(self) -> bool:
        return bool(self.STRIPE_SECRET_KEY and self.STRIPE_SECRET_KEY.startswith("sk_test_"))

    @property
    def verification_base_url(self) -> str:
        if self.BASE_URL:
            return self.BASE_URL.rstrip("/")
        if self.stripe_test_mode:
            return "http://localhost:5173"
        return "https://admin.asine.app"


# Instantiate settings
settings = Settings()

# -------------------------------------------------
# Build CORS list dynamically after loading settings
# -------------------------------------------------
cors_origins = []

# 1) add Cloudflare Pages custom domain
if settings.CLOUDFLARE_PAGES_DOMAIN:
    domain = settings.CLOUDFLARE_PAGES_DOMAIN
    if not domain.startswith("http"):
        domain = f"https://{domain}"
    cors_origins.append(domain.rstrip("/"))

# 2) add admin console domains
cors_origins.extend([d.rstrip("/") for d in settings.ADMIN_CONSOLE_DOMAINS])

# 3) remove duplicates
settings.BACKEND_CORS_ORIGINS = sorted(list(set(cors_origins)))
