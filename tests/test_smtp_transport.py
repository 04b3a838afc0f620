"""
Tests for the SMTP transport, with smtplib patched out.
"""

import smtplib
from unittest.mock import patch

import pytest

from salonbook.adapters.smtp_transport import SMTPTransport
from salonbook.domain.exceptions import NotificationError
from salonbook.services.notifications import OutgoingEmail

MESSAGE = OutgoingEmail(to="amaka@example.com", subject="Booking Confirmed", text="See you soon")
SENDER = "Modern Beauty Studio <bookings@example.com>"


@patch("salonbook.adapters.smtp_transport.smtplib.SMTP")
def test_send_uses_starttls_and_login(mock_smtp):
    smtp = mock_smtp.return_value.__enter__.return_value
    transport = SMTPTransport("smtp.example.com", username="bookings", password="secret")

    transport.send(MESSAGE, SENDER)

    mock_smtp.assert_called_once_with("smtp.example.com", 587, timeout=30)
    smtp.starttls.assert_called_once()
    smtp.login.assert_called_once_with("bookings", "secret")
    sent = smtp.send_message.call_args.args[0]
    assert sent["To"] == "amaka@example.com"
    assert sent["From"] == SENDER
    assert sent["Subject"] == "Booking Confirmed"


@patch("salonbook.adapters.smtp_transport.smtplib.SMTP")
def test_plain_relay_without_auth(mock_smtp):
    smtp = mock_smtp.return_value.__enter__.return_value
    transport = SMTPTransport("localhost", port=25, use_tls=False)

    transport.send(MESSAGE, SENDER)

    smtp.starttls.assert_not_called()
    smtp.login.assert_not_called()
    smtp.send_message.assert_called_once()


@patch("salonbook.adapters.smtp_transport.smtplib.SMTP")
def test_smtp_error_becomes_notification_error(mock_smtp):
    smtp = mock_smtp.return_value.__enter__.return_value
    smtp.send_message.side_effect = smtplib.SMTPRecipientsRefused({})

    with pytest.raises(NotificationError):
        SMTPTransport("smtp.example.com").send(MESSAGE, SENDER)


@patch("salonbook.adapters.smtp_transport.smtplib.SMTP")
def test_connection_error_becomes_notification_error(mock_smtp):
    mock_smtp.side_effect = ConnectionRefusedError("refused")

    with pytest.raises(NotificationError, match="amaka@example.com"):
        SMTPTransport("smtp.example.com").send(MESSAGE, SENDER)


def test_html_alternative():
    message = OutgoingEmail(to="amaka@example.com", subject="Hi", text="Plain", html="<p>Rich</p>")

    mime = SMTPTransport("smtp.example.com").build_message(message, SENDER)

    assert mime.is_multipart()
    assert mime.get_body(preferencelist=("html",)).get_content().strip() == "<p>Rich</p>"
    assert mime.get_body(preferencelist=("plain",)).get_content().strip() == "Plain"
