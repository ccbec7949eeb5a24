"""Outgoing email content."""

from dataclasses import dataclass
from html import escape
from typing import Optional

from admin_api.config import PortalSettings


@dataclass(frozen=True)
class EmailContent:
    subject: str
    text: str
    html: str


def build_admin_invite_email(
    to_email: str,
    portal: PortalSettings,
    set_password_url: Optional[str] = None,
) -> EmailContent:
    """Invite sent to newly granted staff."""
    admin_url = portal.admin_portal_url
    diploma_admin_url = portal.diploma_admin_url

    text = (
        "You have been granted Access USA administrator access.\n\n"
        f"Admin Portal:\n{admin_url}\n\n"
        f"Diploma Admin (shortcut):\n{diploma_admin_url}\n\n"
    )
    if set_password_url:
        text += f"Set your password:\n{set_password_url}\n\n"
    text += f"Sign in using this email address: {to_email}\n"

    html = (
        "<p>You have been granted <strong>Access USA administrator access</strong>.</p>"
        f'<p><strong>Admin Portal:</strong> <a href="{escape(admin_url)}">{escape(admin_url)}</a></p>'
        f"<p><strong>Diploma Admin (shortcut):</strong> "
        f'<a href="{escape(diploma_admin_url)}">{escape(diploma_admin_url)}</a></p>'
    )
    if set_password_url:
        html += f'<p><a href="{escape(set_password_url)}">Set your password</a></p>'
    html += f"<p>Sign in using this email address: <strong>{escape(to_email)}</strong></p>"

    return EmailContent(subject="Access USA Admin Access", text=text, html=html)


def build_welcome_email(to_email: str, first_name: Optional[str], portal: PortalSettings) -> EmailContent:
    """Welcome sent to a newly created diploma student."""
    first_name = (first_name or "").strip()
    portal_url = portal.diploma_portal_url
    support_email = portal.diploma_support_email

    greeting_html = f"Hi {escape(first_name)}," if first_name else "Hello,"
    html = f"""
  <div style="font-family:system-ui,-apple-system,Segoe UI,Roboto,Helvetica,Arial,sans-serif;line-height:1.45">
    <p>{greeting_html}</p>
    <p>Welcome to the <strong>Access USA Diploma Portal</strong>.</p>
    <p>You can access your binder, announcements, and next steps here:</p>
    <p>
      <a href="{escape(portal_url)}"
         style="display:inline-block;padding:10px 14px;border-radius:10px;text-decoration:none;border:1px solid #ddd">
        Open Diploma Portal
      </a>
    </p>
    <p><strong>Sign in with:</strong> {escape(to_email)}</p>
    <p>If you run into any issues, contact <a href="mailto:{escape(support_email)}">{escape(support_email)}</a>.</p>
    <p style="color:#666;font-size:12px;margin-top:18px">If you did not expect this email, you can ignore it.</p>
  </div>"""

    text = "\n".join(
        [
            f"Hi {first_name}," if first_name else "Hello,",
            "",
            "Welcome to the Access USA Diploma Portal.",
            "",
            f"Open: {portal_url}",
            f"Sign in with: {to_email}",
            "",
            f"Help: {support_email}",
        ]
    )

    return EmailContent(subject="Welcome to the Diploma Portal", text=text, html=html)


def build_reply_event_body(
    to: str,
    subject: str,
    provider_id: Optional[str],
    text: Optional[str],
) -> str:
    """Body of the ``email`` audit event logged after an inbox reply."""
    lines = [f"To: {to}", f"Subject: {subject}"]
    if provider_id:
        lines.append(f"Resend ID: {provider_id}")
    return "\n".join(lines) + "\n\n" + (text or "(html email sent)")
