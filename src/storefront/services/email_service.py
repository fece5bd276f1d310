from __future__ import annotations

import asyncio
import logging
import smtplib
from email.message import EmailMessage

from storefront.core.config import Settings
from storefront.domain.ports import EmailDeliveryError

logger = logging.getLogger(__name__)

_ADMIN_SUBJECT = "Solicitud de suscripción a promociones"
_USER_SUBJECT = "¡Gracias por suscribirte a nuestras promociones!"


class SubscriptionMailer:
    """Sends the admin notice and the subscriber confirmation for a promo sign-up."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    async def subscribe(self, email: str) -> None:
        """
        Raises:
            EmailDeliveryError: Wenn der SMTP-Versand fehlschlägt (kein Retry).
        """
        messages = [self._admin_notice(email), self._user_confirmation(email)]
        try:
            await asyncio.to_thread(self._deliver, messages)
        except (smtplib.SMTPException, OSError) as e:
            logger.exception("Failed to send subscription e-mails for %s", email)
            raise EmailDeliveryError(str(e)) from e

    def _deliver(self, messages: list[EmailMessage]) -> None:
        s = self._settings
        with smtplib.SMTP(s.smtp_host, s.smtp_port, timeout=s.smtp_timeout_seconds) as smtp:
            if s.smtp_starttls:
                smtp.starttls()
            if s.smtp_user:
                smtp.login(s.smtp_user, s.smtp_password)
            for message in messages:
                smtp.send_message(message)

    def _admin_notice(self, email: str) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = _ADMIN_SUBJECT
        message["From"] = self._settings.smtp_user
        message["To"] = self._settings.smtp_user
        # Replies go to the subscriber; the sender stays our own mailbox
        message["Reply-To"] = email
        message.set_content(f"El siguiente usuario desea recibir promociones:\n\nCorreo: {email}\n")
        return message

    def _user_confirmation(self, email: str) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = _USER_SUBJECT
        message["From"] = self._settings.smtp_user
        message["To"] = email
        message.set_content(
            "Hemos recibido tu solicitud para recibir promociones.\n\n"
            "Si tú no realizaste esta solicitud, por favor ignora este mensaje.\n"
        )
        return message
