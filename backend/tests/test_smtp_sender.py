"""
Tests for SMTP delivery.

smtplib.SMTP is mocked throughout; no network connections are made.
"""

import smtplib
from unittest.mock import MagicMock, patch

import pytest

from mailrelay.config import Settings
from mailrelay.models.send_request import SendRequest
from mailrelay.services.smtp_sender import InvalidMessageError, MailDeliveryError, send_mail


def _make_settings(**overrides) -> Settings:
    data = {"gmail_from": "relay@example.com", "gmail_password": "app-password"}
    data.update(overrides)
    return Settings(**data)


def _make_request(**overrides) -> SendRequest:
    data = {
        "from": "alice@example.com",
        "to": ["bob@example.com"],
        "cc": ["carol@example.com"],
        "bcc": ["dave@example.com"],
        "title": "Hello",
        "body": "Hello there",
    }
    data.update(overrides)
    return SendRequest.model_validate(data)


@pytest.fixture()
def mock_smtp():
    """Patch smtplib.SMTP and yield (class_mock, connection_mock)."""
    with patch("mailrelay.services.smtp_sender.smtplib.SMTP") as smtp_cls:
        conn = MagicMock()
        conn.send_message.return_value = {}
        smtp_cls.return_value.__enter__.return_value = conn
        yield smtp_cls, conn


class TestSendMailSuccess:

    def test_connects_to_configured_server(self, mock_smtp):
        smtp_cls, _ = mock_smtp

        send_mail(_make_settings(smtp_host="smtp.test", smtp_port=2525, smtp_timeout=5), _make_request())

        smtp_cls.assert_called_once_with("smtp.test", 2525, timeout=5)

    def test_starttls_before_login(self, mock_smtp):
        _, conn = mock_smtp

        send_mail(_make_settings(), _make_request())

        call_names = [c[0] for c in conn.method_calls]
        assert call_names.index("starttls") < call_names.index("login")
        assert call_names.index("login") < call_names.index("send_message")

    def test_logs_in_with_account_credentials(self, mock_smtp):
        _, conn = mock_smtp

        send_mail(_make_settings(), _make_request())

        conn.login.assert_called_once_with("relay@example.com", "app-password")

    def test_envelope_includes_cc_and_bcc(self, mock_smtp):
        _, conn = mock_smtp

        send_mail(_make_settings(), _make_request())

        kwargs = conn.send_message.call_args.kwargs
        assert kwargs["from_addr"] == "alice@example.com"
        assert kwargs["to_addrs"] == [
            "bob@example.com",
            "carol@example.com",
            "dave@example.com",
        ]

    def test_envelope_sender_falls_back_to_account(self, mock_smtp):
        _, conn = mock_smtp

        send_mail(_make_settings(), _make_request(**{"from": ""}))

        message = conn.send_message.call_args.args[0]
        assert conn.send_message.call_args.kwargs["from_addr"] == "relay@example.com"
        assert message["From"] == "relay@example.com"

    def test_sends_composed_message(self, mock_smtp):
        _, conn = mock_smtp

        send_mail(_make_settings(), _make_request())

        message = conn.send_message.call_args.args[0]
        assert message["Subject"] == "Hello"
        assert "Hello there" in message.get_content()

    def test_partial_refusal_is_not_an_error(self, mock_smtp):
        _, conn = mock_smtp
        conn.send_message.return_value = {"dave@example.com": (550, b"no such user")}

        send_mail(_make_settings(), _make_request())


class TestSendMailFailure:

    def test_auth_failure_raises_delivery_error(self, mock_smtp):
        _, conn = mock_smtp
        conn.login.side_effect = smtplib.SMTPAuthenticationError(535, b"Username and Password not accepted")

        with pytest.raises(MailDeliveryError) as exc_info:
            send_mail(_make_settings(), _make_request())

        assert "Username and Password not accepted" in str(exc_info.value)
        conn.send_message.assert_not_called()

    def test_connection_failure_raises_delivery_error(self, mock_smtp):
        smtp_cls, _ = mock_smtp
        smtp_cls.side_effect = ConnectionRefusedError(111, "Connection refused")

        with pytest.raises(MailDeliveryError) as exc_info:
            send_mail(_make_settings(), _make_request())

        assert "Connection refused" in str(exc_info.value)

    def test_all_recipients_refused_raises_delivery_error(self, mock_smtp):
        _, conn = mock_smtp
        conn.send_message.side_effect = smtplib.SMTPRecipientsRefused(
            {"bob@example.com": (550, b"mailbox unavailable")}
        )

        with pytest.raises(MailDeliveryError):
            send_mail(_make_settings(), _make_request())

    def test_starttls_unsupported_raises_delivery_error(self, mock_smtp):
        _, conn = mock_smtp
        conn.starttls.side_effect = smtplib.SMTPNotSupportedError(
            "STARTTLS extension not supported by server."
        )

        with pytest.raises(MailDeliveryError) as exc_info:
            send_mail(_make_settings(), _make_request())

        assert "STARTTLS" in str(exc_info.value)
        conn.login.assert_not_called()

    def test_original_exception_is_chained(self, mock_smtp):
        _, conn = mock_smtp
        original = smtplib.SMTPServerDisconnected("Connection unexpectedly closed")
        conn.send_message.side_effect = original

        with pytest.raises(MailDeliveryError) as exc_info:
            send_mail(_make_settings(), _make_request())

        assert exc_info.value.__cause__ is original

    def test_no_recipients_raises_readable_error(self, mock_smtp):
        smtp_cls, _ = mock_smtp

        with pytest.raises(MailDeliveryError) as exc_info:
            send_mail(_make_settings(), _make_request(to=[], cc=[], bcc=[]))

        assert "no recipients" in str(exc_info.value)
        smtp_cls.assert_not_called()


class TestSendMailComposition:

    @pytest.mark.parametrize("error", [IndexError("string index out of range"), ValueError("bad header")])
    def test_build_failure_raises_invalid_message_error(self, mock_smtp, error):
        smtp_cls, _ = mock_smtp

        with patch("mailrelay.services.smtp_sender.build_message", side_effect=error):
            with pytest.raises(InvalidMessageError) as exc_info:
                send_mail(_make_settings(), _make_request())

        assert str(error) in str(exc_info.value)
        smtp_cls.assert_not_called()
