# core/errors.py

from typing import Optional

from core.logging_config import logger


# ============================================================
# Typed application failures
# ============================================================
# Every failure the API can surface is one of these. main.py renders them
# as {"detail": ..., "redirect_to": ..., "state": ...} so the client can
# show a notice and, where set, navigate away.
# ============================================================

class AppError(Exception):
    status_code: int = 500
    default_detail: str = "Internal server error"

    def __init__(
        self,
        detail: Optional[str] = None,
        *,
        redirect_to: Optional[str] = None,
        state: Optional[str] = None,
    ):
        self.detail = detail or self.default_detail
        self.redirect_to = redirect_to
        self.state = state
        super().__init__(self.detail)

    def to_dict(self) -> dict:
        body = {"detail": self.detail}
        if self.redirect_to:
            body["redirect_to"] = self.redirect_to
        if self.state:
            body["state"] = self.state
        return body


# -----------------------------------------------------
# Identity / tenancy
# -----------------------------------------------------
class Unauthenticated(AppError):
    status_code = 401
    default_detail = "Invalid or expired authentication token"

    def __init__(self, detail: Optional[str] = None, **kwargs):
        kwargs.setdefault("redirect_to", "/login")
        super().__init__(detail, **kwargs)


class TenantResolutionError(AppError):
    """Profile missing or not linked to an organization. There is no fallback tenant."""
    status_code = 403
    default_detail = "No organization is linked to this account"


class OrganizationSuspended(AppError):
    status_code = 403
    default_detail = "This organization is suspended. Please contact support."


# -----------------------------------------------------
# Permissions
# -----------------------------------------------------
class PageAccessDenied(AppError):
    status_code = 403

    def __init__(self, page: str, redirect_to: str = "/overview"):
        self.page = page
        super().__init__(
            f"Access Denied: You do not have permission to view {page}.",
            redirect_to=redirect_to,
        )


class ActionForbidden(AppError):
    status_code = 403
    default_detail = "You do not have permission to perform this action"


# -----------------------------------------------------
# Account activation
# -----------------------------------------------------
class ActivationRequired(AppError):
    status_code = 428
    default_detail = "Account setup must be completed before using the dashboard"


class ActivationError(AppError):
    status_code = 400
    default_detail = "Account activation failed"


class PartialActivationError(AppError):
    """The password changed but a later roster/profile write failed. Not rolled back."""
    status_code = 500
    default_detail = "Password updated, but your profile could not be saved. Please try again."


# -----------------------------------------------------
# Gateways (store failures)
# -----------------------------------------------------
class GatewayError(AppError):
    status_code = 502
    default_detail = "Database operation failed"


class RecordNotFound(GatewayError):
    status_code = 404
    default_detail = "Resource not found"


class RecordConflict(GatewayError):
    status_code = 409
    default_detail = "Record already exists"


class InvalidReference(GatewayError):
    status_code = 400
    default_detail = "Invalid reference"


class MutationFailed(GatewayError):
    status_code = 502
    default_detail = "The change could not be saved"


# -----------------------------------------------------
# Outbound email
# -----------------------------------------------------
class EmailDispatchError(AppError):
    status_code = 502
    default_detail = "Failed to send email"


# ============================================================
# Supabase error helpers
# ============================================================

def extract_supabase_error(error: Exception) -> str:
    """
    Safely extract readable details from Supabase Python client errors.
    Handles:
      • PostgREST errors
      • GoTrue (Auth) errors
      • Generic Python exceptions
    """

    # Case 1: Supabase Auth / GoTrue errors
    if hasattr(error, "message"):
        try:
            return str(error.message)
        except Exception:
            pass

    # Case 2: Supabase errors with args (common)
    if hasattr(error, "args") and error.args:
        try:
            return str(error.args[0])
        except Exception:
            pass

    # Case 3: Plain string fallback
    try:
        return str(error)
    except Exception:
        return "Unknown Supabase error"


def gateway_error(error: Exception, operation: str = "Database operation") -> GatewayError:
    """
    Classify a Supabase / PostgREST failure into a typed gateway error.
    Returns the exception (doesn't raise) so callers can `raise ... from e`.
    """
    error_detail = extract_supabase_error(error)
    logger.error(f"{operation}: {error_detail}")

    error_lower = error_detail.lower()
    if "duplicate" in error_lower or "unique" in error_lower:
        return RecordConflict(f"{operation}: Record already exists")
    elif "foreign key" in error_lower:
        return InvalidReference(f"{operation}: Invalid reference")
    elif "not found" in error_lower or "does not exist" in error_lower:
        return RecordNotFound(f"{operation}: Resource not found")
    else:
        return MutationFailed(f"{operation} failed")
