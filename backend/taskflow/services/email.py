from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from html import escape

import httpx

from taskflow.config import settings


RESEND_API_URL = "https://api.resend.com/emails"
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmailResult:
    success: bool
    error: str | None = None
    message_id: str | None = None


def invitation_subject(team_name: str) -> str:
    return f"You're invited to join {team_name} on TaskFlow"


def render_invitation_html(*, team_name: str, inviter_name: str, invitation_url: str, expires_at: datetime) -> str:
    expires = expires_at.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
    return f"""<!DOCTYPE html>
<html>
  <body style="font-family: -apple-system, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #333;">
    <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
      <h1 style="font-size: 24px;">TaskFlow</h1>
      <h2>You're Invited to Join a Team!</h2>
      <p><strong>{escape(inviter_name)}</strong> has invited you to join the team
        <strong>"{escape(team_name)}"</strong> on TaskFlow.</p>
      <p style="text-align: center;">
        <a href="{escape(invitation_url, quote=True)}"
           style="background: #3b82f6; color: white; padding: 12px 24px; text-decoration: none; border-radius: 6px;">
          Accept Invitation</a>
      </p>
      <p style="font-size: 14px; color: #666;">This invitation expires on {expires}.</p>
      <p style="font-size: 14px; color: #666;">
        If you don't have a TaskFlow account yet, you'll be prompted to create one when you accept the invitation.
        If you didn't expect this invitation, you can safely ignore this email.
      </p>
    </div>
  </body>
</html>
"""


async def send_team_invitation_email(
    *,
    to: str,
    team_name: str,
    inviter_name: str,
    invitation_url: str,
    expires_at: datetime,
) -> EmailResult:
    """Deliver an invitation email. Never raises; failures come back in the result."""
    subject = invitation_subject(team_name)
    if not settings.RESEND_API_KEY:
        logger.info("Email delivery not configured; invitation for %s: %s (expires %s)", to, invitation_url, expires_at)
        return EmailResult(success=True, message_id="mock-email-id")

    try:
        async with httpx.AsyncClient(timeout=15.0) as client:
            res = await client.post(
                RESEND_API_URL,
                headers={"Authorization": f"Bearer {settings.RESEND_API_KEY}"},
                json={
                    "from": settings.EMAIL_FROM_ADDRESS,
                    "to": [to],
                    "subject": subject,
                    "html": render_invitation_html(
                        team_name=team_name,
                        inviter_name=inviter_name,
                        invitation_url=invitation_url,
                        expires_at=expires_at,
                    ),
                },
            )
        res.raise_for_status()
        message_id = res.json().get("id")
    except Exception as exc:
        logger.exception("Failed to send invitation email to %s", to)
        return EmailResult(success=False, error=str(exc) or exc.__class__.__name__)

    logger.info("Invitation email sent to %s (id=%s)", to, message_id)
    return EmailResult(success=True, message_id=message_id)
