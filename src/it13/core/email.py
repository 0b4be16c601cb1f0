"""
Email Service using Resend

Transactional mail for the technician onboarding and password recovery
flows. Delivery is best effort: ``send_email`` never raises, it reports
the outcome in a ``MailResult`` for the caller to log.
"""

import asyncio
import logging
from dataclasses import dataclass
from html import escape

import resend

from it13.core.config import settings

logger = logging.getLogger(__name__)

resend.api_key = settings.resend_api_key or None

_STYLE = """
    body { font-family: system-ui, -apple-system, sans-serif; line-height: 1.6; color: #1f2937; }
    .container { max-width: 600px; margin: 0 auto; padding: 40px 20px; }
    .header { color: #1e3a8a; margin-bottom: 24px; }
    .box { background-color: #f9fafb; border: 1px solid #e5e7eb; padding: 16px; border-radius: 8px; margin: 16px 0; }
    .password { font-family: monospace; font-size: 20px; letter-spacing: 2px; }
    .warning { background-color: #fef3c7; border: 1px solid #f59e0b; padding: 12px 16px; border-radius: 8px; margin: 16px 0; font-size: 14px; }
    .button { display: inline-block; background-color: #1e3a8a; color: white; padding: 14px 28px; text-decoration: none; border-radius: 8px; margin: 12px 0; }
    .footer { margin-top: 40px; padding-top: 20px; border-top: 1px solid #e5e7eb; color: #6b7280; font-size: 14px; }
"""

_FOOTER = """
    <div class="footer">
        <p>IT13 - Plateforme de Services Informatiques</p>
        <p>Cet email a été envoyé automatiquement, merci de ne pas y répondre.</p>
    </div>
"""


@dataclass
class MailResult:
    success: bool
    message_id: str | None = None
    error: str | None = None


def _render(body: str) -> str:
    return f"""
    <!DOCTYPE html>
    <html>
    <head><meta charset="utf-8"><style>{_STYLE}</style></head>
    <body>
        <div class="container">
            {body}
            {_FOOTER}
        </div>
    </body>
    </html>
    """


async def send_email(
    to_email: str,
    subject: str,
    html_content: str,
) -> MailResult:
    """
    Send an email using Resend.

    Without an API key the message is logged instead of sent and
    reported as delivered, which keeps local development usable.

    Args:
        to_email: Recipient email address
        subject: Email subject line
        html_content: HTML content of the email

    Returns:
        MailResult with the provider message id, or the error
    """
    if not resend.api_key:
        logger.warning("RESEND_API_KEY not set - logging email instead of sending")
        logger.info(f"EMAIL TO: {to_email} | SUBJECT: {subject}")
        return MailResult(success=True, message_id="dev-log")

    params: resend.Emails.SendParams = {
        "from": settings.email_from,
        "to": [to_email],
        "subject": subject,
        "html": html_content,
    }

    try:
        # Resend is synchronous; keep it off the event loop
        email = await asyncio.wait_for(
            asyncio.to_thread(resend.Emails.send, params),
            timeout=settings.upstream_timeout_seconds,
        )
    except TimeoutError:
        logger.error(f"Timed out sending email to {to_email}")
        return MailResult(success=False, error="timeout")
    except Exception as e:
        logger.error(f"Failed to send email to {to_email}: {e}")
        return MailResult(success=False, error=str(e))

    logger.info(f"Email sent successfully to {to_email}, id: {email['id']}")
    return MailResult(success=True, message_id=email["id"])


async def send_temporary_password(
    to_email: str,
    name: str,
    surname: str,
    temporary_password: str,
    change_password_token: str,
) -> MailResult:
    """Send approval notice with the temporary password and the direct change link."""
    safe_name = escape(f"{name} {surname}".strip())
    safe_email = escape(to_email)

    login_url = f"{settings.frontend_url}/techlog"
    change_url = (
        f"{settings.frontend_url}/change-password?token={change_password_token}&temporary=true"
    )
    ttl_hours = settings.temporary_password_ttl_hours

    body = f"""
        <h1 class="header">Félicitations {safe_name} !</h1>

        <p>Votre candidature pour devenir technicien IT13 a été <strong>approuvée</strong>.</p>

        <div class="box">
            <p><strong>Email :</strong> {safe_email}</p>
            <p><strong>Mot de passe temporaire :</strong></p>
            <p class="password">{escape(temporary_password)}</p>
        </div>

        <div class="warning">
            Ce mot de passe est temporaire et expire dans <strong>{ttl_hours} heures</strong>.
            Il doit être changé lors de votre première connexion.
        </div>

        <p><strong>Deux options s'offrent à vous :</strong></p>
        <ol>
            <li>Connectez-vous avec le mot de passe temporaire puis changez-le.</li>
            <li>Définissez directement votre nouveau mot de passe avec le lien sécurisé.</li>
        </ol>

        <a href="{login_url}" class="button">Se connecter</a>
        <br>
        <a href="{change_url}" class="button">Changer directement le mot de passe</a>
    """

    return await send_email(
        to_email=to_email,
        subject="Votre compte technicien IT13 a été approuvé - Mot de passe temporaire",
        html_content=_render(body),
    )


async def send_application_rejected(
    to_email: str,
    name: str,
    surname: str,
    rejection_reason: str | None = None,
) -> MailResult:
    """Send notification that the application was rejected."""
    safe_name = escape(f"{name} {surname}".strip())

    reason_block = ""
    if rejection_reason:
        reason_block = f"""
        <div class="box">
            <p><strong>Motif :</strong></p>
            <p><em>{escape(rejection_reason)}</em></p>
        </div>
        """

    body = f"""
        <h1 class="header">Candidature Technicien</h1>

        <p>Bonjour {safe_name},</p>

        <p>Nous vous remercions pour l'intérêt que vous portez à IT13.</p>

        <p>Après examen attentif de votre dossier, nous regrettons de vous informer que nous
        ne pouvons pas donner une suite favorable à votre candidature pour le moment.</p>

        {reason_block}

        <p>Nous vous encourageons à postuler de nouveau si vous acquérez de nouvelles
        qualifications ou expériences.</p>

        <p>Cordialement,<br>L'équipe IT13</p>
    """

    return await send_email(
        to_email=to_email,
        subject="Mise à jour de votre candidature technicien IT13",
        html_content=_render(body),
    )


async def send_password_reset(
    to_email: str,
    name: str,
    reset_token: str,
) -> MailResult:
    """Send the self-service password reset link."""
    safe_name = escape(name)
    reset_url = f"{settings.frontend_url}/reset-password?token={reset_token}"

    body = f"""
        <h1 class="header">Réinitialisation de mot de passe</h1>

        <p>Bonjour {safe_name},</p>

        <p>Vous avez demandé la réinitialisation de votre mot de passe IT13.</p>

        <a href="{reset_url}" class="button">Réinitialiser mon mot de passe</a>

        <p><strong>Ce lien expire dans 1 heure.</strong></p>

        <p>Si vous n'avez pas demandé cette réinitialisation, ignorez cet email.</p>
    """

    return await send_email(
        to_email=to_email,
        subject="Réinitialisation de votre mot de passe IT13",
        html_content=_render(body),
    )
