# core/config_validator.py

from typing import List
from core.config import settings
from core.logging_config import logger


def validate_required_config() -> List[str]:
    """
    Returns the required environment variables that are not set.
    Every tenant query and auth call goes through the service-role client.
    """
    missing = []

    if not settings.SUPABASE_URL:
        missing.append("SUPABASE_URL")
    if not settings.SUPABASE_SERVICE_ROLE_KEY:
        missing.append("SUPABASE_SERVICE_ROLE_KEY")

    return missing


def validate_optional_config() -> List[str]:
    """Missing optional settings (warnings only)."""
    warnings = []

    if not settings.SUPABASE_ANON_KEY:
        warnings.append("SUPABASE_ANON_KEY (optional but recommended)")
    if not settings.SUPER_ADMIN_EMAILS:
        warnings.append("SUPER_ADMIN_EMAILS (tenant admin portal is unreachable without it)")
    if settings.PASSWORD_MIN_LENGTH < 8:
        warnings.append(f"PASSWORD_MIN_LENGTH={settings.PASSWORD_MIN_LENGTH} is below 8")

    return warnings


def validate_config_on_startup():
    """
    Raises RuntimeError if critical config is missing.
    Skipped entirely when ENV == "test".
    """
    if settings.ENV == "test":
        logger.debug("Configuration validation skipped (ENV=test)")
        return

    missing_required = validate_required_config()
    missing_optional = validate_optional_config()

    if missing_required:
        error_msg = f"Missing required environment variables: {', '.join(missing_required)}"
        logger.error(error_msg)
        raise RuntimeError(error_msg)

    for warning in missing_optional:
        logger.warning(f"Optional configuration missing: {warning}")

    logger.info("Configuration validation passed")
