# core/config_validator.py

from typing import List
from core.config import settings
from core.logging_config import logger


def validate_required_config() -> List[str]:
    """
    Validate that all required environment variables are set.
    Returns list of missing required variables.
    """
    missing = []

    if not settings.SUPABASE_URL:
        missing.append("SUPABASE_URL")
    if not settings.SUPABASE_SERVICE_ROLE_KEY:
        missing.append("SUPABASE_SERVICE_ROLE_KEY")

    return missing


def validate_optional_config() -> List[str]:
    """
    Configuration the payment / email half of the flow needs.
    Returns list of warnings.
    """
    warnings = []

    if not settings.SUPABASE_ANON_KEY:
        warnings.append("SUPABASE_ANON_KEY (console sign-in)")
    if not settings.STRIPE_SECRET_KEY:
        warnings.append("STRIPE_SECRET_KEY (customers + checkout)")
    if not settings.STRIPE_WEBHOOK_SECRET:
        warnings.append("STRIPE_WEBHOOK_SECRET (webhook events will be rejected)")
    if not settings.MAILGUN_API_KEY:
        warnings.append("MAILGUN_API_KEY (verification emails)")

    return warnings


def validate_config_on_startup(strict: bool = False):
    """
    Log missing configuration on application startup.
    Raises RuntimeError for missing required config only when strict.
    """
    missing_required = validate_required_config()
    missing_optional = validate_optional_config()

    if missing_required:
        error_msg = f"Missing required environment variables: {', '.join(missing_required)}"
        logger.error(error_msg)
        if strict:
            raise RuntimeError(error_msg)

    for warning in missing_optional:
        logger.warning(f"Optional configuration missing: {warning}")

    if not missing_required:
        logger.info("Configuration validation passed")
