import smtplib
from collections.abc import Generator
from unittest.mock import MagicMock, patch

import pytest

from storefront.core.config import Settings
from storefront.domain.ports import EmailDeliveryError
from storefront.services.email_service import SubscriptionMailer


@pytest.fixture
def settings() -> Settings:
    return Settings(
        smtp_host="smtp.example.com",
        smtp_port=2525,
        smtp_user="shop@example.com",
        smtp_password="pw",
        smtp_starttls=True,
    )


@pytest.fixture
def smtp() -> Generator[MagicMock, None, None]:
    with patch("storefront.services.email_service.smtplib.SMTP") as smtp_cls:
        yield smtp_cls


@pytest.mark.asyncio
async def test_sends_admin_notice_and_confirmation(settings: Settings, smtp: MagicMock) -> None:
    await SubscriptionMailer(settings).subscribe("fan@example.org")

    smtp.assert_called_once_with("smtp.example.com", 2525, timeout=settings.smtp_timeout_seconds)
    conn = smtp.return_value.__enter__.return_value
    conn.starttls.assert_called_once()
    conn.login.assert_called_once_with("shop@example.com", "pw")

    sent = [call.args[0] for call in conn.send_message.call_args_list]
    assert [m["To"] for m in sent] == ["shop@example.com", "fan@example.org"]
    assert sent[0]["Reply-To"] == "fan@example.org"
    assert "fan@example.org" in sent[0].get_content()
    assert all(m["From"] == "shop@example.com" for m in sent)


@pytest.mark.asyncio
async def test_skips_login_without_credentials(settings: Settings, smtp: MagicMock) -> None:
    settings = settings.model_copy(update={"smtp_user": "", "smtp_starttls": False})

    await SubscriptionMailer(settings).subscribe("fan@example.org")

    conn = smtp.return_value.__enter__.return_value
    conn.starttls.assert_not_called()
    conn.login.assert_not_called()
    assert conn.send_message.call_count == 2


@pytest.mark.asyncio
async def test_smtp_failure_raises_email_delivery_error(
    settings: Settings, smtp: MagicMock, caplog: pytest.LogCaptureFixture
) -> None:
    conn = smtp.return_value.__enter__.return_value
    conn.send_message.side_effect = smtplib.SMTPRecipientsRefused({})

    with pytest.raises(EmailDeliveryError):
        await SubscriptionMailer(settings).subscribe("fan@example.org")

    assert "Failed to send subscription e-mails" in caplog.text


@pytest.mark.asyncio
async def test_connection_failure_raises_email_delivery_error(
    settings: Settings, smtp: MagicMock
) -> None:
    smtp.side_effect = ConnectionRefusedError("refused")

    with pytest.raises(EmailDeliveryError):
        await SubscriptionMailer(settings).subscribe("fan@example.org")
