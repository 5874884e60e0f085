"""
Scholarhub API
Email Service.

Provides email sending with template support.
When SMTP is not configured, emails are logged but not sent (dev/test mode).

Uses:
    - MAIL_* config (MAIL_SERVER, MAIL_PORT, etc.)
    - Falls back to logging-only mode when SMTP is not configured
    - All emails are recorded in EmailLog for audit

Configuration (env vars):
    MAIL_SERVER     SMTP host (default: None → log-only mode)
    MAIL_PORT       SMTP port (default: 587)
    MAIL_USE_TLS    Use TLS (default: true)
    MAIL_USERNAME   SMTP username
    MAIL_PASSWORD   SMTP password
    MAIL_DEFAULT_SENDER  Default from address

Notification email is best-effort: ``send_best_effort`` never raises, it
returns a ``Delivery`` describing the outcome so the caller can log it.
"""

from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any

from flask import current_app

from scholarhub.models import db
from scholarhub.models.email_log import EmailLog
from scholarhub.utils.helpers import utcnow

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
#  Email Templates
# ═══════════════════════════════════════════════════════════════════════════

_TEMPLATES: dict[str, dict[str, str]] = {
    "invitation": {
        "subject": "You're invited to join Ashinaga as {role_label}",
        "html": """
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <div style="background: #1e3a5f; color: white; padding: 16px 24px; border-radius: 8px 8px 0 0;">
                <h2 style="margin: 0; font-size: 18px;">Ashinaga</h2>
            </div>
            <div style="background: #f8fafc; padding: 24px; border: 1px solid #e2e8f0; border-top: none;">
                <h3 style="margin: 0 0 8px; color: #1e293b;">You have been invited</h3>
                <p style="color: #475569; line-height: 1.6;">
                    {inviter_name} has invited you to join Ashinaga as {role_label}.
                    Use the link below to create your account.
                </p>
                <p style="margin: 24px 0;">
                    <a href="{invitation_url}" style="background: #1e3a5f; color: white; padding: 10px 20px;
                       border-radius: 6px; text-decoration: none;">Accept invitation</a>
                </p>
                <p style="color: #94a3b8; font-size: 12px;">This invitation expires on {expires_on}.</p>
            </div>
        </div>
        """,
    },
    "request_update": {
        "subject": "Your {request_type} request has been {status}",
        "html": """
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <div style="background: #1e3a5f; color: white; padding: 16px 24px; border-radius: 8px 8px 0 0;">
                <h2 style="margin: 0; font-size: 18px;">Ashinaga</h2>
            </div>
            <div style="background: #f8fafc; padding: 24px; border: 1px solid #e2e8f0; border-top: none;">
                <p style="color: #475569;">Hello {scholar_name},</p>
                <p style="color: #475569; line-height: 1.6;">
                    Your {request_type} request is now <strong>{status}</strong>.
                </p>
                <blockquote style="border-left: 3px solid #cbd5e1; margin: 16px 0; padding-left: 12px;
                                   color: #334155;">{comment}</blockquote>
            </div>
        </div>
        """,
    },
}


@dataclass(frozen=True)
class Delivery:
    """Outcome of a best-effort send."""

    ok: bool
    error: str | None = None


class EmailService:
    """
    Email sending service with template support.

    In development/test mode (no MAIL_SERVER configured), emails are
    logged to the database but not actually sent via SMTP.
    """

    @staticmethod
    def is_configured() -> bool:
        """Check if SMTP is configured."""
        return bool(current_app.config.get("MAIL_SERVER"))

    @staticmethod
    def get_template(template_name: str) -> dict[str, str] | None:
        return _TEMPLATES.get(template_name)

    @classmethod
    def send(
        cls,
        *,
        to_email: str,
        subject: str,
        html_body: str,
        template_name: str | None = None,
        category: str = "system",
    ) -> EmailLog:
        """
        Send an email and log it.

        SMTP failures are recorded on the returned log row (status='failed')
        rather than raised. The log row is committed.
        """
        log = EmailLog(
            recipient_email=to_email,
            subject=subject,
            template_name=template_name,
            category=category,
            status="queued",
        )
        db.session.add(log)
        db.session.flush()

        if not cls.is_configured():
            # Dev/test mode - log only
            log.status = "sent"
            log.sent_at = utcnow()
            logger.info(
                "Email (dev mode): to=%s subject='%s' template=%s",
                to_email, subject, template_name,
            )
            db.session.commit()
            return log

        try:
            cls._send_smtp(to_email=to_email, subject=subject, html_body=html_body)
            log.status = "sent"
            log.sent_at = utcnow()
            logger.info("Email sent: to=%s subject='%s'", to_email, subject)
        except (smtplib.SMTPException, OSError) as exc:
            log.status = "failed"
            log.error_message = str(exc)[:1000]
            logger.error("Email failed: to=%s error=%s", to_email, exc)

        db.session.commit()
        return log

    @classmethod
    def send_from_template(
        cls,
        *,
        to_email: str,
        template_name: str,
        context: dict[str, Any],
        category: str = "system",
    ) -> EmailLog | None:
        """
        Send an email using a named template.

        Template variables are interpolated from the context dict.
        """
        template = cls.get_template(template_name)
        if not template:
            logger.warning("Email template not found: %s", template_name)
            return None

        subject = template["subject"].format_map(_SafeDict(context))
        html_body = template["html"].format_map(_SafeDict(context))

        return cls.send(
            to_email=to_email,
            subject=subject,
            html_body=html_body,
            template_name=template_name,
            category=category,
        )

    @staticmethod
    def _send_smtp(*, to_email: str, subject: str, html_body: str) -> None:
        cfg = current_app.config
        server = cfg.get("MAIL_SERVER")
        port = cfg.get("MAIL_PORT", 587)
        use_tls = cfg.get("MAIL_USE_TLS", True)
        username = cfg.get("MAIL_USERNAME")
        password = cfg.get("MAIL_PASSWORD")
        sender = cfg.get("MAIL_DEFAULT_SENDER", f"noreply@{server}")

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = sender
        msg["To"] = to_email
        msg.attach(MIMEText(html_body, "html"))

        with smtplib.SMTP(server, port, timeout=30) as smtp:
            if use_tls:
                smtp.starttls()
            if username and password:
                smtp.login(username, password)
            smtp.send_message(msg)


def send_best_effort(*, to_email: str, template_name: str,
                     context: dict[str, Any], category: str = "system") -> Delivery:
    """Send a templated email without letting any failure reach the caller.

    Callers commit their own work first; a failure here rolls back only the
    email log row.
    """
    try:
        log = EmailService.send_from_template(
            to_email=to_email,
            template_name=template_name,
            context=context,
            category=category,
        )
    except Exception as exc:  # noqa: BLE001
        db.session.rollback()
        logger.error("Email not delivered: to=%s template=%s error=%s",
                     to_email, template_name, exc)
        return Delivery(ok=False, error=str(exc))

    if log is None:
        return Delivery(ok=False, error=f"Unknown template {template_name}")
    if log.status == "failed":
        return Delivery(ok=False, error=log.error_message)
    return Delivery(ok=True)


class _SafeDict(dict):
    """Dict that returns {key} for missing keys instead of raising."""

    def __missing__(self, key):
        return f"{{{key}}}"
