# core/email_dispatch.py

from typing import List, Optional

from core.errors import EmailDispatchError, extract_supabase_error
from core.logging_config import logger

SEND_EMAIL_FUNCTION = "send-email"


def send_member_email(
    client,
    recipients: List[str],
    subject: str,
    message: str,
    sender_email: str,
    sender_name: Optional[str] = None,
) -> dict:
    """
    Hands a bulk message to the `send-email` edge function.

    The function delivers the mail and writes the communication log, so the
    API issues exactly one invocation per send and never writes log rows
    itself.
    """
    recipients = [r.strip() for r in (recipients or []) if r and r.strip()]
    subject = (subject or "").strip()
    message = (message or "").strip()

    if not recipients:
        raise ValueError("At least one recipient is required")
    if not subject or not message:
        raise ValueError("Subject and message are required")

    body = {
        "recipients": recipients,
        "subject": subject,
        "message": message,
        "senderEmail": sender_email,
        "senderName": sender_name or "",
    }

    try:
        response = client.functions.invoke(
            SEND_EMAIL_FUNCTION,
            invoke_options={"body": body, "responseType": "json"},
        )
    except Exception as e:
        logger.error(f"send-email failed for {sender_email}: {extract_supabase_error(e)}")
        raise EmailDispatchError() from e

    if isinstance(response, dict) and response.get("error"):
        logger.error(f"send-email returned an error for {sender_email}: {response['error']}")
        raise EmailDispatchError(str(response["error"]))

    logger.info(f"Email '{subject}' sent by {sender_email} to {len(recipients)} recipient(s)")
    return {"sent": len(recipients), "response": response if isinstance(response, dict) else None}
