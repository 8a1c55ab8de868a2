# core/invitations.py

from typing import Optional

from core.activation import org_metadata
from core.config import settings
from core.errors import EmailDispatchError, extract_supabase_error
from core.logging_config import logger
from core.utils import normalize_email


def default_redirect(path: str = "/login") -> str:
    return f"{settings.SITE_URL.rstrip('/')}{path}"


def send_password_link(client, email: str, redirect_to: Optional[str] = None) -> None:
    """Password-reset email; used for addresses that already have an account."""
    email = normalize_email(email)
    try:
        client.auth.reset_password_for_email(
            email, {"redirect_to": redirect_to or default_redirect("/login")}
        )
    except Exception as e:
        logger.error(f"Failed to send password link to {email}: {extract_supabase_error(e)}")
        raise EmailDispatchError("Failed to send the sign-in email") from e

    logger.info(f"Password link sent to {email}")


def invite_member(client, email: str, organization: dict, redirect_to: Optional[str] = None) -> str:
    """
    Sends the first-login email for a roster entry.

    The invite carries the organization id in user_metadata; the tenant
    resolver reads it back when the invited person has no profile yet.
    Returns "invited" or "reset" depending on which email went out.
    """
    email = normalize_email(email)
    redirect_to = redirect_to or default_redirect("/login")
    metadata = org_metadata(organization)

    try:
        client.auth.admin.invite_user_by_email(
            email, {"data": metadata, "redirect_to": redirect_to}
        )
        logger.info(f"Invite sent to {email} for org {metadata['organization_id']}")
        return "invited"
    except Exception as e:
        msg = extract_supabase_error(e).lower()
        if "already" not in msg or "registered" not in msg:
            logger.error(f"Invite failed for {email}: {msg}")
            raise EmailDispatchError("Failed to send invite email") from e

    # Existing account (member of another tenant, or re-invite).
    send_password_link(client, email, redirect_to)
    return "reset"
